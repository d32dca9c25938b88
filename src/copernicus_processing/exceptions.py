"""
Exception types raised by the processing core.

All errors derive from ProcessingError so callers can catch the whole
family at a service boundary:

    >>> try:
    ...     core.request(start, end, "10|20|30|40", {}, "ndvi")
    ... except MalformedExtent:
    ...     ...  # bad client input
    ... except ProcessingError:
    ...     ...  # everything else

An unknown processing type is not an error. The request falls back to
correction only and the result is flagged with ``degraded=True``.
"""

from __future__ import annotations


class ProcessingError(Exception):
    """Base class for processing core errors."""


class MalformedExtent(ProcessingError, ValueError):
    """Serialized extent did not decompose into four numeric tokens."""

    def __init__(self, extent: str, reason: str):
        self.extent = extent
        self.reason = reason
        super().__init__(f"Malformed extent {extent!r}: {reason}")


class AcquisitionFailure(ProcessingError):
    """The acquisition source could not produce a raster product."""

    def __init__(self, message: str, *, source: str | None = None):
        self.source = source
        super().__init__(message)


class StageNotConfigured(ProcessingError):
    """A mandatory stage is missing from the registry."""

    def __init__(self, stage_name: str):
        self.stage_name = stage_name
        super().__init__(
            f"Stage '{stage_name}' is not registered; it is required for every "
            "request except those with processing type 'none'"
        )


class StageExecutionError(ProcessingError):
    """A registered stage raised while transforming a product."""

    def __init__(self, stage_name: str, message: str):
        self.stage_name = stage_name
        super().__init__(f"Stage '{stage_name}' failed: {message}")


class ExportFailure(ProcessingError):
    """Writing the processed product failed."""

    def __init__(self, message: str, *, path: str | None = None):
        self.path = path
        super().__init__(message)


class CoreAlreadyInitialized(ProcessingError):
    """Custom stages were supplied after the shared Core already exists."""


__all__ = [
    "AcquisitionFailure",
    "CoreAlreadyInitialized",
    "ExportFailure",
    "MalformedExtent",
    "ProcessingError",
    "StageExecutionError",
    "StageNotConfigured",
]
