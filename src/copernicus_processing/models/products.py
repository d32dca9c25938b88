"""
Raster product model.

A RasterProduct is the unit passed between acquisition, processing stages
and export. Stages never modify a product in place: they build a new one
with ``derive()``, which also records the stage in ``history``.

Example:
    >>> import numpy as np
    >>> from affine import Affine
    >>> from copernicus_processing.models import RasterProduct
    >>>
    >>> product = RasterProduct(
    ...     bands={"B04": np.zeros((2, 2)), "B08": np.ones((2, 2))},
    ...     transform=Affine.identity(),
    ... )
    >>> ndvi = product.derive({"NDVI": np.ones((2, 2))}, stage="ndvi")
    >>> ndvi.history
    ('ndvi',)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np
from affine import Affine
from numpy.typing import NDArray

_UNSET: Any = object()


@dataclass(frozen=True)
class RasterProduct:
    """Multi-band raster with georeferencing.

    Attributes:
        bands: Band name -> 2D array, all of the same shape
        transform: Affine pixel-to-CRS transform
        crs: Coordinate reference system
        nodata: Nodata value for the bands (None if none)
        metadata: Free-form product metadata (scene id, baseline, ...)
        history: Names of stages applied, in order
    """

    bands: dict[str, NDArray[Any]]
    transform: Affine = field(default_factory=Affine.identity)
    crs: str = "EPSG:4326"
    nodata: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    history: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.bands:
            raise ValueError("RasterProduct requires at least one band")
        shapes = {np.shape(data) for data in self.bands.values()}
        if len(shapes) != 1:
            raise ValueError(f"All bands must share one shape, got {sorted(shapes)}")
        if len(next(iter(shapes))) != 2:
            raise ValueError("Bands must be 2D arrays")

    @property
    def band_names(self) -> list[str]:
        return list(self.bands)

    @property
    def shape(self) -> tuple[int, int]:
        """(height, width) shared by all bands."""
        height, width = np.shape(next(iter(self.bands.values())))
        return int(height), int(width)

    @property
    def dtype(self) -> np.dtype[Any]:
        """Common dtype large enough for every band."""
        return np.result_type(*self.bands.values())

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy) in the product CRS."""
        height, width = self.shape
        xs, ys = zip(
            self.transform * (0, 0),
            self.transform * (width, 0),
            self.transform * (0, height),
            self.transform * (width, height),
        )
        return min(xs), min(ys), max(xs), max(ys)

    def band(self, name: str) -> NDArray[Any]:
        """Get a band by name.

        Raises:
            KeyError: If the band is missing (message lists available bands)
        """
        try:
            return self.bands[name]
        except KeyError:
            raise KeyError(f"Band '{name}' not in product (available: {self.band_names})") from None

    def has_bands(self, *names: str) -> bool:
        return all(name in self.bands for name in names)

    def stack(self) -> NDArray[Any]:
        """Bands stacked as (count, height, width)."""
        return np.stack([np.asarray(data) for data in self.bands.values()])

    def derive(
        self,
        bands: dict[str, NDArray[Any]],
        *,
        stage: str,
        nodata: Any = _UNSET,
        metadata: dict[str, Any] | None = None,
    ) -> "RasterProduct":
        """Build a new product from this one with replaced bands.

        Georeferencing is kept, metadata is merged and ``stage`` is
        appended to the history.

        Args:
            bands: Bands of the new product
            stage: Name of the stage producing it
            nodata: New nodata value (unchanged if omitted)
            metadata: Extra metadata to merge

        Returns:
            New RasterProduct
        """
        return replace(
            self,
            bands=dict(bands),
            nodata=self.nodata if nodata is _UNSET else nodata,
            metadata={**self.metadata, **(metadata or {})},
            history=(*self.history, stage),
        )
