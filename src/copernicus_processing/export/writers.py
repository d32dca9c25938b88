"""
Product writers.

Each writer encodes a RasterProduct into one file format:

- GeoTiffWriter ("GTiff"): Multi-band GeoTIFF via rasterio, band
  descriptions set to band names, metadata and stage history as tags
- NumpyWriter ("npz"): Compressed NumPy archive of the bands plus the
  affine transform, for analysis without GDAL
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import numpy as np
import rasterio

from copernicus_processing.models.products import RasterProduct


@runtime_checkable
class ProductWriter(Protocol):
    """Interface for product encoders."""

    format_name: str
    extension: str

    def write(self, product: RasterProduct, path: Path) -> None:
        """Write ``product`` to ``path``.

        Raises:
            OSError, rasterio.errors.RasterioError, ValueError: On failure
        """
        ...


def _tag_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


class GeoTiffWriter:
    """GeoTIFF encoder."""

    format_name = "GTiff"
    extension = "tif"

    def __init__(self, compress: str | None = "deflate"):
        self.compress = compress

    def write(self, product: RasterProduct, path: Path) -> None:
        dtype = product.dtype
        if dtype == np.bool_:
            dtype = np.dtype("uint8")

        nodata = product.nodata
        if nodata is not None and np.isnan(nodata) and not np.issubdtype(dtype, np.floating):
            nodata = None

        height, width = product.shape
        profile: dict[str, Any] = {
            "driver": "GTiff",
            "height": height,
            "width": width,
            "count": len(product.bands),
            "dtype": dtype.name,
            "crs": product.crs,
            "transform": product.transform,
            "nodata": nodata,
        }
        if self.compress:
            profile["compress"] = self.compress

        with rasterio.open(path, "w", **profile) as dst:
            for index, (name, data) in enumerate(product.bands.items(), start=1):
                dst.write(np.asarray(data).astype(dtype, copy=False), index)
                dst.set_band_description(index, name)
            tags = {key: _tag_value(value) for key, value in product.metadata.items()}
            tags["history"] = ",".join(product.history)
            dst.update_tags(**tags)


class NumpyWriter:
    """Compressed NumPy archive encoder."""

    format_name = "npz"
    extension = "npz"

    def write(self, product: RasterProduct, path: Path) -> None:
        with open(path, "wb") as f:
            np.savez_compressed(
                f,
                transform=np.asarray(product.transform.to_gdal(), dtype="float64"),
                crs=np.asarray(product.crs),
                history=np.asarray(",".join(product.history)),
                **{f"band_{name}": np.asarray(data) for name, data in product.bands.items()},
            )
