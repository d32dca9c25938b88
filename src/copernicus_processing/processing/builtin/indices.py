"""
Spectral index stages.

Normalized difference indices of two bands:

    index = (a - b) / (a + b + eps)

- NDVI (vegetation): a = NIR (B08), b = red (B04)
- NDMI (moisture):   a = NIR (B08), b = SWIR (B11)

The output product holds the index band only. NaN inputs stay NaN.
"""

from __future__ import annotations

import numpy as np
import structlog
from numpy.typing import NDArray

from copernicus_processing.models.products import RasterProduct
from copernicus_processing.models.requests import PROCESSING_NDMI, PROCESSING_NDVI
from copernicus_processing.processing.base import BaseStage
from copernicus_processing.processing.registry import builtin_stage

logger = structlog.get_logger(__name__)

EPSILON = 1e-6


def normalized_difference(a: NDArray[np.floating], b: NDArray[np.floating]) -> NDArray[np.floating]:
    """Compute (a - b) / (a + b + eps) as float32."""
    a = np.asarray(a, dtype="float32")
    b = np.asarray(b, dtype="float32")
    with np.errstate(invalid="ignore", divide="ignore"):
        result: NDArray[np.floating] = (a - b) / (a + b + EPSILON)
    return result.astype("float32")


class NormalizedDifferenceIndex(BaseStage):
    """Base class for two-band normalized difference indices."""

    band_a: str = ""
    band_b: str = ""
    output_band: str = ""

    def validate(self, product: RasterProduct) -> None:
        missing = [b for b in (self.band_a, self.band_b) if b not in product.bands]
        if missing:
            raise ValueError(
                f"{self.name} requires bands {self.band_a} and {self.band_b}; "
                f"missing {missing} (available: {product.band_names})"
            )

    def apply(self, product: RasterProduct) -> RasterProduct:
        index = normalized_difference(product.band(self.band_a), product.band(self.band_b))
        valid = np.isfinite(index)
        logger.debug(
            "index_computed",
            stage=self.name,
            valid_pixels=int(valid.sum()),
            mean=float(index[valid].mean()) if valid.any() else None,
        )
        return product.derive(
            {self.output_band: index},
            stage=self.name,
            nodata=float("nan"),
            metadata={"index": self.output_band},
        )


@builtin_stage(PROCESSING_NDVI)
class NDVI(NormalizedDifferenceIndex):
    """Normalized Difference Vegetation Index."""

    name = PROCESSING_NDVI
    version = "1.0.0"
    description = "Vegetation index (B08 - B04) / (B08 + B04)"
    band_a = "B08"
    band_b = "B04"
    output_band = "NDVI"


@builtin_stage(PROCESSING_NDMI)
class NDMI(NormalizedDifferenceIndex):
    """Normalized Difference Moisture Index."""

    name = PROCESSING_NDMI
    version = "1.0.0"
    description = "Moisture index (B08 - B11) / (B08 + B11)"
    band_a = "B08"
    band_b = "B11"
    output_band = "NDMI"
