"""
Processing stage registry.

ProcessorRegistry maps stage names to stage instances. It is shared by
every request a Core serves, so all access goes through a lock: a lookup
sees either the old or the new stage for a name, never a partial update.
Registering an existing name replaces the stage (last write wins).

Built-in stages register their classes with @builtin_stage; the default
stage set of a Core is built from them by ``load_builtin_stages()``.

Example:
    >>> registry = ProcessorRegistry()
    >>> registry.register("ndvi", NDVI())
    >>> registry.lookup("ndvi")
    NDVI(name='ndvi', version='1.0.0')
    >>> registry.lookup("missing") is None
    True
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from .base import ProcessingStage

logger = structlog.get_logger(__name__)

# Built-in stage classes, filled by @builtin_stage
_BUILTIN_STAGES: dict[str, type] = {}


class ProcessorRegistry:
    """Thread-safe mapping of stage name to stage."""

    def __init__(self, stages: Mapping[str, ProcessingStage] | None = None):
        """Initialize registry.

        Args:
            stages: Optional initial name -> stage mapping
        """
        self._lock = threading.RLock()
        self._stages: dict[str, ProcessingStage] = {}
        if stages:
            self.register_many(stages)

    def register(self, name: str, stage: ProcessingStage) -> str:
        """Store ``stage`` under ``name``, replacing any previous stage.

        Args:
            name: Stage name
            stage: Stage implementation

        Returns:
            The registered name
        """
        with self._lock:
            previous = self._stages.get(name)
            self._stages[name] = stage

        if previous is not None and previous is not stage:
            logger.warning(
                "stage_replaced",
                name=name,
                old_class=type(previous).__name__,
                new_class=type(stage).__name__,
            )
        else:
            logger.debug("stage_registered", name=name, class_name=type(stage).__name__)
        return name

    def register_many(self, stages: Mapping[str, ProcessingStage]) -> set[str]:
        """Register several stages at once.

        Args:
            stages: name -> stage mapping

        Returns:
            Set of all names present after registration
        """
        with self._lock:
            for name, stage in stages.items():
                self.register(name, stage)
            return set(self._stages)

    def lookup(self, name: str) -> ProcessingStage | None:
        """Get the stage registered under ``name``.

        Returns:
            Stage, or None if not registered
        """
        with self._lock:
            return self._stages.get(name)

    def all(self) -> dict[str, ProcessingStage]:
        """Snapshot of the current name -> stage mapping."""
        with self._lock:
            return dict(self._stages)

    def names(self) -> set[str]:
        with self._lock:
            return set(self._stages)

    def unregister(self, name: str) -> bool:
        """Remove a stage.

        Returns:
            True if removed, False if not found
        """
        with self._lock:
            if name in self._stages:
                del self._stages[name]
                return True
            return False

    def clear(self) -> None:
        """Remove all stages."""
        with self._lock:
            self._stages.clear()

    def get_stage_info(self) -> list[dict[str, str]]:
        """Describe registered stages.

        Returns:
            List of dicts with name, class, version, description
        """
        return [
            {
                "name": name,
                "class": type(stage).__name__,
                "version": getattr(stage, "version", "unknown"),
                "description": getattr(stage, "description", "No description"),
            }
            for name, stage in sorted(self.all().items())
        ]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._stages

    def __len__(self) -> int:
        with self._lock:
            return len(self._stages)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.names()))


def builtin_stage(name: str) -> Callable[[type], type]:
    """Decorator marking a stage class as part of the default stage set.

    Usage:
        @builtin_stage("ndvi")
        class NDVI(NormalizedDifferenceIndex):
            ...

    Args:
        name: Name the stage is registered under

    Returns:
        Decorator function
    """

    def decorator(cls: type) -> type:
        if name in _BUILTIN_STAGES:
            logger.warning(
                "builtin_stage_replaced",
                name=name,
                old_class=_BUILTIN_STAGES[name].__name__,
                new_class=cls.__name__,
            )
        _BUILTIN_STAGES[name] = cls
        return cls

    return decorator


def load_builtin_stages() -> dict[str, ProcessingStage]:
    """Instantiate the built-in stages.

    Imports the builtin package, which registers the default stages.

    Returns:
        Fresh name -> stage mapping
    """
    from . import builtin  # noqa: F401

    return {name: cls() for name, cls in _BUILTIN_STAGES.items()}


def list_builtin_stages() -> list[str]:
    """Names of the built-in stages."""
    from . import builtin  # noqa: F401

    return sorted(_BUILTIN_STAGES)
