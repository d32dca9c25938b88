"""Windowed band reading shared by the file and STAC sources."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import numpy as np
import rasterio
import rasterio.warp
from numpy.typing import NDArray
from rasterio.enums import Resampling
from rasterio.errors import RasterioError
from rasterio.mask import geometry_mask
from rasterio.windows import Window, from_bounds
from shapely.geometry import shape

from copernicus_processing.exceptions import AcquisitionFailure
from copernicus_processing.models import RasterProduct, Rectangle


def read_band_window(
    href: str, rectangle: Rectangle
) -> tuple[NDArray[np.floating], Any, str, Any]:
    """Read one band clipped to ``rectangle``.

    Pixels outside the rectangle (after reprojection into the raster CRS)
    are set to NaN.

    Args:
        href: Path or URL of a single-band raster
        rectangle: Area of interest

    Returns:
        Tuple of (data, window transform, crs, clip shape)

    Raises:
        AcquisitionFailure: If the area does not overlap the raster
    """
    with rasterio.open(href) as src:
        clip = rasterio.warp.transform_geom(
            src_crs=rectangle.crs, dst_crs=src.crs, geom=rectangle.to_geojson()
        )
        clip_shape = shape(clip)
        window = from_bounds(*clip_shape.bounds, transform=src.transform)
        window = window.round_offsets().round_lengths()
        window = window.intersection(Window(0, 0, src.width, src.height))

        data = src.read(1, window=window).astype("float32")
        if src.nodata is not None:
            data[data == src.nodata] = np.nan
        window_transform = src.window_transform(window)
        crs = src.crs.to_string()

    if data.size == 0:
        raise AcquisitionFailure(f"Area of interest does not overlap {href}")

    mask = geometry_mask([clip_shape], transform=window_transform, invert=True, out_shape=data.shape)
    data[~mask] = np.nan
    return data, window_transform, crs, clip_shape


def resample_to_grid(
    data: NDArray[np.floating],
    transform: Any,
    crs: str,
    grid: tuple[tuple[int, ...], Any, str],
    resampling: Resampling = Resampling.bilinear,
) -> NDArray[np.floating]:
    """Warp a band onto ``grid`` (shape, transform, crs), NaN where it has no data."""
    shape, grid_transform, grid_crs = grid
    resampled = np.full(shape, np.nan, dtype="float32")
    rasterio.warp.reproject(
        data,
        resampled,
        src_transform=transform,
        src_crs=crs,
        dst_transform=grid_transform,
        dst_crs=grid_crs,
        src_nodata=np.nan,
        dst_nodata=np.nan,
        resampling=resampling,
    )
    return resampled


def read_bands(
    hrefs: Mapping[str, str],
    rectangle: Rectangle,
    *,
    metadata: dict[str, Any] | None = None,
) -> RasterProduct:
    """Read several bands onto a common grid.

    The first band defines the grid; bands at other resolutions are
    resampled onto it.

    Args:
        hrefs: band name -> path or URL
        rectangle: Area of interest
        metadata: Product metadata

    Returns:
        RasterProduct with NaN as nodata

    Raises:
        AcquisitionFailure: On read errors or no overlap
    """
    if not hrefs:
        raise AcquisitionFailure("No bands to read")

    names = list(hrefs)
    try:
        first, transform, crs, _ = read_band_window(hrefs[names[0]], rectangle)
        grid = (first.shape, transform, crs)
        bands: dict[str, NDArray[np.floating]] = {names[0]: first}

        for name in names[1:]:
            data, band_transform, band_crs, _ = read_band_window(hrefs[name], rectangle)
            if data.shape != first.shape or band_crs != crs:
                data = resample_to_grid(data, band_transform, band_crs, grid)
            bands[name] = data
    except (RasterioError, OSError) as e:
        raise AcquisitionFailure(f"Failed to read band rasters: {e}") from e

    return RasterProduct(
        bands=bands,
        transform=transform,
        crs=crs,
        nodata=float("nan"),
        metadata=dict(metadata or {}),
    )
