"""
Acquisition source protocol.

An acquisition source turns a time window and an area of interest into a
RasterProduct. The dispatcher only depends on this interface.

Example - Implementing a custom source:
    >>> from copernicus_processing.sources import register_source
    >>>
    >>> @register_source("my_portal")
    >>> class MyPortalSource:
    ...     source_name = "my_portal"
    ...
    ...     def acquire(self, start, end, rectangle, params):
    ...         scene = my_client.download(start, end, rectangle.bounds)
    ...         return RasterProduct(bands=scene.bands, transform=scene.transform)

Using registered sources:
    >>> from copernicus_processing.sources import get_source
    >>> source = get_source("mock", seed=7)
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from copernicus_processing.models import RasterProduct, Rectangle


# Registry of available sources
_SOURCE_REGISTRY: dict[str, type] = {}


@runtime_checkable
class AcquisitionSource(Protocol):
    """Interface for raster acquisition.

    Implementations:
    - MockSource: Synthetic Sentinel-2 style scenes
    - FileSource: Per-band GeoTIFFs in a local directory
    - StacSource: STAC API search (Planetary Computer by default)
    """

    @property
    def source_name(self) -> str:
        """Human-readable source identifier used in logs and metadata."""
        ...

    def acquire(
        self,
        start: datetime,
        end: datetime,
        rectangle: Rectangle,
        params: Mapping[Any, Any],
    ) -> RasterProduct:
        """Produce a raster product for the window and area.

        Args:
            start: Window start
            end: Window end
            rectangle: Area of interest
            params: Source-specific options, passed through unmodified

        Returns:
            Raw RasterProduct

        Raises:
            AcquisitionFailure: If no product can be produced
        """
        ...


def register_source(name: str):
    """Decorator to register a source implementation by name.

    Args:
        name: Unique name for the source

    Returns:
        Decorator function
    """

    def decorator(cls: type) -> type:
        if name in _SOURCE_REGISTRY:
            raise ValueError(f"Source '{name}' is already registered")
        _SOURCE_REGISTRY[name] = cls
        return cls

    return decorator


def get_source(name: str, *args, **kwargs) -> AcquisitionSource:
    """Instantiate a registered source by name.

    Args:
        name: Name of the source
        *args: Constructor arguments
        **kwargs: Constructor keyword arguments

    Returns:
        Source instance

    Raises:
        KeyError: If source is not registered
    """
    if name not in _SOURCE_REGISTRY:
        available = ", ".join(sorted(_SOURCE_REGISTRY))
        raise KeyError(f"Source '{name}' not found. Available: {available}")

    return _SOURCE_REGISTRY[name](*args, **kwargs)


def list_sources() -> list[str]:
    """List all registered source names."""
    return sorted(_SOURCE_REGISTRY)


def is_source_registered(name: str) -> bool:
    return name in _SOURCE_REGISTRY
