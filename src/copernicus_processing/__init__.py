"""
Copernicus Processing Core

Coordinates retrieval of remote-sensing raster products and routes them
through a configurable chain of processing stages before export.

Features:
- Pluggable processing stages (radiometric correction, NDVI, NDMI, ...)
- Thread-safe stage registry
- Fixed dispatch policy: none / correction / correction + typed stage
- Acquisition sources (mock, local GeoTIFF, STAC API)
- GeoTIFF and NumPy export

Example:
    >>> from copernicus_processing import Core, MockSource
    >>>
    >>> core = Core(source=MockSource())
    >>> path = core.request(start, end, "10.0|20.0|30.0|40.0", {}, "ndvi")
    >>> print(f"NDVI written to {path}")

For more information run:
    $ copernicus-processing --help
"""

__version__ = "1.0.0"

from copernicus_processing.config.settings import Settings, get_settings
from copernicus_processing.exceptions import (
    AcquisitionFailure,
    CoreAlreadyInitialized,
    ExportFailure,
    MalformedExtent,
    ProcessingError,
    StageExecutionError,
    StageNotConfigured,
)
from copernicus_processing.export import ExportManager
from copernicus_processing.models import (
    PROCESSING_CORRECTION,
    PROCESSING_NDMI,
    PROCESSING_NDVI,
    PROCESSING_NONE,
    DispatchResult,
    ProcessingRequest,
    RasterProduct,
    Rectangle,
)
from copernicus_processing.processing import (
    BaseStage,
    Core,
    ProcessingStage,
    ProcessorRegistry,
    RequestDispatcher,
    get_instance,
    parse_extent,
    reset_instance,
)
from copernicus_processing.sources import AcquisitionSource, FileSource, MockSource, StacSource

__all__ = [
    "PROCESSING_CORRECTION",
    "PROCESSING_NDMI",
    "PROCESSING_NDVI",
    "PROCESSING_NONE",
    "AcquisitionFailure",
    "AcquisitionSource",
    "BaseStage",
    "Core",
    "CoreAlreadyInitialized",
    "DispatchResult",
    "ExportFailure",
    "ExportManager",
    "FileSource",
    "MalformedExtent",
    "MockSource",
    "ProcessingError",
    "ProcessingRequest",
    "ProcessingStage",
    "ProcessorRegistry",
    "RasterProduct",
    "Rectangle",
    "RequestDispatcher",
    "Settings",
    "StacSource",
    "StageExecutionError",
    "StageNotConfigured",
    "__version__",
    "get_instance",
    "get_settings",
    "parse_extent",
    "reset_instance",
]
