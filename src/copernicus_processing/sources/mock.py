"""
Mock acquisition source for testing.

Generates synthetic Sentinel-2 style scenes (uint16 digital numbers)
covering the requested rectangle, without any network access.

Example:
    >>> from copernicus_processing.sources import MockSource
    >>>
    >>> source = MockSource(size=32, seed=42)
    >>> product = source.acquire(start, end, rectangle, {})
    >>> product.band_names
    ['B02', 'B03', 'B04', 'B08', 'B11']
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

import numpy as np
import structlog
from rasterio.transform import from_bounds

from copernicus_processing.exceptions import AcquisitionFailure
from copernicus_processing.models import RasterProduct, Rectangle
from copernicus_processing.sources.protocol import register_source
from copernicus_processing.utils.time import ensure_utc, format_iso

logger = structlog.get_logger(__name__)

DEFAULT_BANDS = ("B02", "B03", "B04", "B08", "B11")
NODATA = 0

# Mean digital numbers (with the 04.00 baseline offset) for soil and vegetation
_SOIL_DN = {"B02": 1900, "B03": 2100, "B04": 2400, "B08": 3200, "B11": 3600}
_VEGETATION_DN = {"B02": 1300, "B03": 1600, "B04": 1350, "B08": 5200, "B11": 2600}


@register_source("mock")
class MockSource:
    """Synthetic scene generator.

    The left half of every scene is vegetated, the right half is bare
    soil, so NDVI is clearly positive on the left. A thin stripe of
    nodata pixels runs along the last row.

    Attributes:
        source_name: Always "mock"
        size: Scene width and height in pixels
        seed: Random seed for reproducibility
        bands: Band names to generate
        fail_with: Exception raised by every acquire() call (outage simulation)
        acquisitions: Number of successful acquire() calls
    """

    source_name = "mock"

    def __init__(
        self,
        size: int = 64,
        *,
        seed: int | None = 42,
        bands: tuple[str, ...] = DEFAULT_BANDS,
        processing_baseline: str = "05.09",
        fail_with: Exception | None = None,
    ):
        if size <= 0:
            raise ValueError("size must be positive")
        self.size = size
        self.seed = seed
        self.bands = bands
        self.processing_baseline = processing_baseline
        self.fail_with = fail_with
        self.acquisitions = 0

    def acquire(
        self,
        start: datetime,
        end: datetime,
        rectangle: Rectangle,
        params: Mapping[Any, Any],
    ) -> RasterProduct:
        """Generate a scene for the window and area.

        Recognised params:
            size: Override scene size in pixels
            cloud_cover: Value stored in metadata (default 0.0)

        Raises:
            AcquisitionFailure: For an inverted window, an empty area or
                when ``fail_with`` is set
        """
        if self.fail_with is not None:
            if isinstance(self.fail_with, AcquisitionFailure):
                raise self.fail_with
            raise AcquisitionFailure(str(self.fail_with), source=self.source_name) from self.fail_with

        start, end = ensure_utc(start), ensure_utc(end)
        if end < start:
            raise AcquisitionFailure(
                f"Window end {format_iso(end)} precedes start {format_iso(start)}",
                source=self.source_name,
            )
        if rectangle.width == 0 or rectangle.height == 0:
            raise AcquisitionFailure("Area of interest has zero extent", source=self.source_name)

        size = int(params.get("size", self.size))
        rng = np.random.default_rng(self.seed)

        vegetated = np.zeros((size, size), dtype=bool)
        vegetated[:, : size // 2] = True

        bands = {}
        for name in self.bands:
            mean = np.where(vegetated, _VEGETATION_DN.get(name, 2000), _SOIL_DN.get(name, 2500))
            noise = rng.normal(0.0, 50.0, size=(size, size))
            dn = np.clip(mean + noise, 1, 65535).astype("uint16")
            dn[-1, :] = NODATA
            bands[name] = dn

        sensing_time = start + (end - start) / 2
        self.acquisitions += 1

        logger.debug(
            "mock_scene_generated",
            size=size,
            bounds=rectangle.bounds,
            sensing_time=format_iso(sensing_time),
        )

        return RasterProduct(
            bands=bands,
            transform=from_bounds(*rectangle.bounds, size, size),
            crs=rectangle.crs,
            nodata=NODATA,
            metadata={
                "source": self.source_name,
                "scene_id": f"MOCK_{sensing_time:%Y%m%dT%H%M%S}",
                "sensing_time": format_iso(sensing_time),
                "processing_baseline": self.processing_baseline,
                "cloud_cover": float(params.get("cloud_cover", 0.0)),
            },
        )
