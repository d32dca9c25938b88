"""
Radiometric correction stage.

Converts Sentinel-2 digital numbers to surface reflectance:

    reflectance = (DN + offset) / quantification_value

Products from processing baseline 04.00 onwards carry a radiometric
offset of -1000; older products have none. Nodata pixels become NaN and
reflectance is clipped to [0, 1].
"""

from __future__ import annotations

from typing import Any

import numpy as np
import structlog

from copernicus_processing.models.products import RasterProduct
from copernicus_processing.models.requests import PROCESSING_CORRECTION
from copernicus_processing.processing.base import BaseStage
from copernicus_processing.processing.registry import builtin_stage

logger = structlog.get_logger(__name__)

QUANTIFICATION_VALUE = 10000.0
BOA_ADD_OFFSET = -1000.0
OFFSET_BASELINE = (4, 0)

# Classification/quality layers that are not reflectances
PASSTHROUGH_BANDS = frozenset({"SCL", "QA60", "AOT", "WVP"})


def _parse_baseline(value: Any) -> tuple[int, int] | None:
    """Parse a processing baseline such as "05.09" or "N0509"."""
    if value is None:
        return None
    text = str(value).strip().upper().lstrip("N")
    if "." in text:
        major, _, minor = text.partition(".")
    elif len(text) == 4 and text.isdigit():
        major, minor = text[:2], text[2:]
    else:
        return None
    try:
        return int(major), int(minor)
    except ValueError:
        return None


@builtin_stage(PROCESSING_CORRECTION)
class RadiometricCorrection(BaseStage):
    """Digital numbers to bottom-of-atmosphere reflectance."""

    name = PROCESSING_CORRECTION
    version = "1.0.0"
    description = "Scale digital numbers to surface reflectance (offset-aware)"

    def __init__(
        self,
        quantification_value: float = QUANTIFICATION_VALUE,
        offset: float | None = None,
        passthrough_bands: frozenset[str] = PASSTHROUGH_BANDS,
    ):
        """Initialize correction.

        Args:
            quantification_value: Divisor from DN to reflectance
            offset: Fixed additive offset; None picks it from the
                product's ``processing_baseline`` metadata
            passthrough_bands: Bands copied unchanged
        """
        if quantification_value <= 0:
            raise ValueError("quantification_value must be positive")
        self.quantification_value = quantification_value
        self.offset = offset
        self.passthrough_bands = passthrough_bands

    def resolve_offset(self, product: RasterProduct) -> float:
        """Offset to apply to ``product``."""
        if self.offset is not None:
            return self.offset
        baseline = _parse_baseline(product.metadata.get("processing_baseline"))
        if baseline is not None and baseline >= OFFSET_BASELINE:
            return BOA_ADD_OFFSET
        return 0.0

    def validate(self, product: RasterProduct) -> None:
        if all(name in self.passthrough_bands for name in product.band_names):
            raise ValueError("Product has no spectral bands to correct")

    def apply(self, product: RasterProduct) -> RasterProduct:
        offset = self.resolve_offset(product)
        bands = {}

        for name, data in product.bands.items():
            if name in self.passthrough_bands:
                bands[name] = data
                continue

            dn = np.asarray(data, dtype="float32")
            invalid = ~np.isfinite(dn)
            if product.nodata is not None and not np.isnan(product.nodata):
                invalid |= dn == product.nodata

            reflectance = (dn + offset) / self.quantification_value
            reflectance = np.clip(reflectance, 0.0, 1.0).astype("float32")
            reflectance[invalid] = np.nan
            bands[name] = reflectance

        logger.debug(
            "radiometric_correction",
            offset=offset,
            quantification_value=self.quantification_value,
            bands=list(bands),
        )

        return product.derive(
            bands,
            stage=self.name,
            nodata=float("nan"),
            metadata={
                "radiometric_offset": offset,
                "quantification_value": self.quantification_value,
                "units": "reflectance",
            },
        )
