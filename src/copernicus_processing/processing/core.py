"""
Core: the entry point for external applications.

A Core owns the stage registry, the acquisition source and the export
manager, and exposes ``request()``. Applications normally build one Core
at startup and pass it to whoever needs it:

    >>> core = Core.from_settings(get_settings())
    >>> artifact = core.request(start, end, "7.0|51.0|7.1|51.1", {}, "ndvi")

For code that cannot be handed a Core, ``get_instance()`` returns a
lazily created process-wide one. It is configured once: passing custom
stages after it exists raises CoreAlreadyInitialized rather than being
ignored. Use ``add_processor()`` to extend a running Core.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from copernicus_processing.exceptions import CoreAlreadyInitialized
from copernicus_processing.export.manager import ExportManager
from copernicus_processing.models.requests import DispatchResult, ProcessingRequest
from copernicus_processing.processing.dispatcher import Exporter, RequestDispatcher
from copernicus_processing.processing.registry import ProcessorRegistry, load_builtin_stages
from copernicus_processing.sources.protocol import get_source

if TYPE_CHECKING:
    from copernicus_processing.config.settings import Settings
    from copernicus_processing.sources.protocol import AcquisitionSource

    from .base import ProcessingStage

logger = structlog.get_logger(__name__)

_instance: Core | None = None
_instance_lock = threading.Lock()


def _source_from_settings(settings: Settings) -> AcquisitionSource:
    acquisition = settings.acquisition
    if acquisition.source == "mock":
        return get_source("mock", size=acquisition.mock_size, seed=acquisition.mock_seed)
    if acquisition.source == "file":
        return get_source("file", settings.data_dir)
    if acquisition.source == "stac":
        return get_source(
            "stac",
            acquisition.stac_url,
            collection=acquisition.collection,
            max_cloud_cover=acquisition.max_cloud_cover,
        )
    return get_source(acquisition.source)


class Core:
    """Registry, acquisition source and export manager behind one entry point."""

    def __init__(
        self,
        stages: Mapping[str, ProcessingStage] | None = None,
        *,
        source: AcquisitionSource | None = None,
        export_manager: Exporter | None = None,
        extent_delimiter: str = "|",
    ):
        """Initialize core.

        Args:
            stages: name -> stage mapping; None uses the built-in stages
                (correction, ndvi, ndmi)
            source: Acquisition source (MockSource if omitted)
            export_manager: Export manager (ExportManager("result") if omitted)
            extent_delimiter: Delimiter of serialized extents
        """
        if source is None:
            source = get_source("mock")
        if export_manager is None:
            export_manager = ExportManager()

        self.registry = ProcessorRegistry(load_builtin_stages() if stages is None else stages)
        self.source = source
        self.export_manager = export_manager
        self.dispatcher = RequestDispatcher(
            self.registry,
            source,
            export_manager,
            extent_delimiter=extent_delimiter,
        )

        logger.info(
            "core_initialized",
            stages=sorted(self.registry.names()),
            source=getattr(source, "source_name", type(source).__name__),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        stages: Mapping[str, ProcessingStage] | None = None,
    ) -> Core:
        """Build a Core from settings.

        Args:
            settings: Loaded settings
            stages: Optional custom stage set

        Returns:
            Configured Core
        """
        export_manager = ExportManager(
            settings.output_dir,
            default_format=settings.export.format,
            prefix=settings.export.prefix,
            compress=settings.export.compress,
        )
        return cls(
            stages,
            source=_source_from_settings(settings),
            export_manager=export_manager,
            extent_delimiter=settings.dispatch.extent_delimiter,
        )

    def add_processor(self, stage: ProcessingStage, name: str | None = None) -> str:
        """Register a stage under ``name`` (default: ``stage.name``).

        Returns:
            The registered name
        """
        return self.registry.register(name or stage.name, stage)

    def add_processors(
        self, stages: Mapping[str, ProcessingStage] | Iterable[ProcessingStage]
    ) -> set[str]:
        """Register several stages.

        Args:
            stages: name -> stage mapping, or stages registered by their own name

        Returns:
            For a mapping, all names now registered; for an iterable of
            stages, the names just added
        """
        if isinstance(stages, Mapping):
            return self.registry.register_many(stages)
        return {self.add_processor(stage) for stage in stages}

    def get_processors(self) -> dict[str, ProcessingStage]:
        """Snapshot of all registered stages."""
        return self.registry.all()

    def get_processor(self, name: str) -> ProcessingStage | None:
        return self.registry.lookup(name)

    def request(
        self,
        start: datetime,
        end: datetime,
        extent: str,
        params: Mapping[Any, Any] | None,
        selector: str,
    ) -> Path:
        """Handle a request and return the artifact path.

        Args:
            start: Acquisition window start
            end: Acquisition window end
            extent: Serialized extent "x1|y1|x2|y2"
            params: Passed unmodified to the acquisition source
            selector: "none", "correction" or a registered stage name

        Returns:
            Path of the exported product. Unprocessed if selector is
            "none", corrected only if selector is "correction" or unknown.
        """
        return self.dispatcher.request(start, end, extent, params, selector).artifact

    def dispatch(self, request: ProcessingRequest) -> DispatchResult:
        """Handle a parsed request and return the full result."""
        return self.dispatcher.dispatch(request)


def get_instance(custom_stages: Mapping[str, ProcessingStage] | None = None) -> Core:
    """Return the process-wide Core, creating it on first call.

    Args:
        custom_stages: Stage set for the first construction (built-in
            stages if None)

    Returns:
        The shared Core

    Raises:
        CoreAlreadyInitialized: If custom_stages is given after the
            shared Core was created
    """
    global _instance

    with _instance_lock:
        if _instance is None:
            _instance = Core(custom_stages)
        elif custom_stages is not None:
            raise CoreAlreadyInitialized(
                "The shared Core already exists; custom stages must be supplied on the first "
                "get_instance() call. Use add_processors() to extend it, or reset_instance()."
            )
        return _instance


def set_instance(core: Core) -> Core:
    """Install an explicitly built Core as the shared instance.

    Raises:
        CoreAlreadyInitialized: If a shared Core already exists
    """
    global _instance

    with _instance_lock:
        if _instance is not None and _instance is not core:
            raise CoreAlreadyInitialized("The shared Core already exists")
        _instance = core
        return core


def reset_instance() -> None:
    """Drop the shared Core. Primarily for testing."""
    global _instance

    with _instance_lock:
        _instance = None
