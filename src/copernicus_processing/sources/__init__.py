"""
Acquisition sources for the Copernicus processing core.

Sources implement the AcquisitionSource protocol:

- MockSource: Synthetic scenes (testing, demos)
- FileSource: Per-band GeoTIFFs in a local directory
- StacSource: STAC API search (Planetary Computer Sentinel-2 L2A by default)

Example:
    >>> from copernicus_processing.sources import get_source
    >>>
    >>> source = get_source("file", data_dir="data/scenes")
    >>> product = source.acquire(start, end, rectangle, {})

To implement a custom source, see `sources/protocol.py` for the interface.
"""

from copernicus_processing.sources.file import FileSource
from copernicus_processing.sources.mock import MockSource
from copernicus_processing.sources.protocol import (
    AcquisitionSource,
    get_source,
    is_source_registered,
    list_sources,
    register_source,
)
from copernicus_processing.sources.stac import StacSource

__all__ = [
    "AcquisitionSource",
    "FileSource",
    "MockSource",
    "StacSource",
    "get_source",
    "is_source_registered",
    "list_sources",
    "register_source",
]
