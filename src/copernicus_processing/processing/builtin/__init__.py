"""
Built-in processing stages.

- RadiometricCorrection ("correction"): DN to surface reflectance
- NDVI ("ndvi"): Vegetation index
- NDMI ("ndmi"): Moisture index

Importing this package registers them as the default stage set.
"""

from copernicus_processing.processing.builtin.correction import RadiometricCorrection
from copernicus_processing.processing.builtin.indices import (
    NDMI,
    NDVI,
    NormalizedDifferenceIndex,
    normalized_difference,
)

__all__ = [
    "NDMI",
    "NDVI",
    "NormalizedDifferenceIndex",
    "RadiometricCorrection",
    "normalized_difference",
]
