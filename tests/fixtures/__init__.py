"""
Test fixtures for the Copernicus processing core.

This module provides:
- ProductFactory: Create raster products with sensible defaults
- Recording doubles: Stages, sources and exporters that record calls
- write_geotiff: Write single-band GeoTIFFs for file source tests
"""

from tests.fixtures.factories import (
    FailingStage,
    ProductFactory,
    RecordingExporter,
    RecordingSource,
    RecordingStage,
    write_geotiff,
)

__all__ = [
    "FailingStage",
    "ProductFactory",
    "RecordingExporter",
    "RecordingSource",
    "RecordingStage",
    "write_geotiff",
]
