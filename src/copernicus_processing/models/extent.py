"""
Spatial extent model.

A Rectangle is the axis-aligned area of interest of a request, given by
two opposite corners in the order they were supplied. The corners are
kept as given; ``bounds`` normalises them.

Example:
    >>> from copernicus_processing.models import Rectangle
    >>>
    >>> rect = Rectangle(x1=10.0, y1=20.0, x2=30.0, y2=40.0)
    >>> rect.bounds
    (10.0, 20.0, 30.0, 40.0)
    >>> rect.to_geojson()["type"]
    'Polygon'
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from shapely.geometry import box, mapping
from shapely.geometry.polygon import Polygon


class Rectangle(BaseModel):
    """Axis-aligned rectangle defined by two corner points.

    Attributes:
        x1: First corner x (longitude for EPSG:4326)
        y1: First corner y (latitude for EPSG:4326)
        x2: Second corner x
        y2: Second corner y
        crs: Coordinate reference system of the corners
    """

    model_config = ConfigDict(frozen=True)

    x1: float = Field(..., description="First corner x")
    y1: float = Field(..., description="First corner y")
    x2: float = Field(..., description="Second corner x")
    y2: float = Field(..., description="Second corner y")
    crs: str = Field(default="EPSG:4326", description="CRS of the corner coordinates")

    @field_validator("x1", "y1", "x2", "y2")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject NaN and infinite coordinates."""
        if not math.isfinite(v):
            raise ValueError("coordinate must be finite")
        return v

    @property
    def corners(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """The two corners as supplied."""
        return (self.x1, self.y1), (self.x2, self.y2)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy)."""
        return (
            min(self.x1, self.x2),
            min(self.y1, self.y2),
            max(self.x1, self.x2),
            max(self.y1, self.y2),
        )

    @property
    def width(self) -> float:
        return abs(self.x2 - self.x1)

    @property
    def height(self) -> float:
        return abs(self.y2 - self.y1)

    def to_geometry(self) -> Polygon:
        """Shapely polygon covering the rectangle."""
        return box(*self.bounds)

    def to_geojson(self) -> dict[str, Any]:
        """GeoJSON mapping of the rectangle, e.g. for STAC ``intersects``."""
        return dict(mapping(self.to_geometry()))
