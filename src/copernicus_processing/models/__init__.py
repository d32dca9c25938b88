"""
Data models for the Copernicus processing core.

- Rectangle: Axis-aligned area of interest
- RasterProduct: Multi-band raster passed between stages
- ProcessingRequest / DispatchResult: Dispatch input and outcome
"""

from copernicus_processing.models.extent import Rectangle
from copernicus_processing.models.products import RasterProduct
from copernicus_processing.models.requests import (
    PROCESSING_CORRECTION,
    PROCESSING_NDMI,
    PROCESSING_NDVI,
    PROCESSING_NONE,
    DispatchResult,
    ProcessingRequest,
)

__all__ = [
    "PROCESSING_CORRECTION",
    "PROCESSING_NDMI",
    "PROCESSING_NDVI",
    "PROCESSING_NONE",
    "DispatchResult",
    "ProcessingRequest",
    "RasterProduct",
    "Rectangle",
]
