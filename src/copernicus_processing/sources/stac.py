"""
STAC API acquisition source.

Searches a STAC API (Microsoft Planetary Computer by default) for
Sentinel-2 L2A scenes intersecting the requested rectangle in the time
window, picks the least cloudy one and reads the requested bands for the
rectangle directly from the cloud-optimized GeoTIFF assets.

Example:
    >>> source = StacSource(max_cloud_cover=20)
    >>> product = source.acquire(start, end, rectangle, {"bands": ["B04", "B08"]})
    >>> product.metadata["scene_id"]
    'S2B_MSIL2A_20240612T102559_R108_T32UNE_20240612T140437'
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import planetary_computer
import pystac
import structlog
from pystac_client import Client
from pystac_client.exceptions import APIError

from copernicus_processing.exceptions import AcquisitionFailure
from copernicus_processing.models import RasterProduct, Rectangle
from copernicus_processing.sources.protocol import register_source
from copernicus_processing.sources.reader import read_bands
from copernicus_processing.utils.time import ensure_utc, stac_interval

logger = structlog.get_logger(__name__)

PLANETARY_COMPUTER_URL = "https://planetarycomputer.microsoft.com/api/stac/v1"
DEFAULT_COLLECTION = "sentinel-2-l2a"
DEFAULT_BANDS = ("B02", "B03", "B04", "B08", "B11")
DEFAULT_MAX_CLOUD_COVER = 30
DEFAULT_MAX_ITEMS = 50


def least_cloudy(items: list[pystac.Item]) -> pystac.Item:
    """Pick the item with the lowest ``eo:cloud_cover`` (missing = 100)."""
    return min(items, key=lambda item: item.properties.get("eo:cloud_cover", 100.0))


@register_source("stac")
class StacSource:
    """Acquire scenes from a STAC API.

    Attributes:
        source_name: Always "stac"
        url: STAC API endpoint
        collection: Collection searched
        max_cloud_cover: Default cloud cover limit (percent)
    """

    source_name = "stac"

    def __init__(
        self,
        url: str = PLANETARY_COMPUTER_URL,
        *,
        collection: str = DEFAULT_COLLECTION,
        max_cloud_cover: int = DEFAULT_MAX_CLOUD_COVER,
        sign: Callable[[str], str] | None = None,
        client: Any = None,
    ):
        """Initialize STAC source.

        Args:
            url: STAC API endpoint
            collection: Collection to search
            max_cloud_cover: Cloud cover limit when params give none
            sign: Asset href signer (Planetary Computer signing by default
                for the Planetary Computer endpoint)
            client: Pre-built pystac-client Client (opened lazily otherwise)
        """
        self.url = url
        self.collection = collection
        self.max_cloud_cover = max_cloud_cover
        if sign is None and url == PLANETARY_COMPUTER_URL:
            sign = planetary_computer.sign
        self.sign = sign
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                self._client = Client.open(self.url)
            except (APIError, OSError) as e:
                raise AcquisitionFailure(f"Cannot open STAC API {self.url}: {e}", source=self.source_name) from e
        return self._client

    def search(
        self,
        start: datetime,
        end: datetime,
        rectangle: Rectangle,
        params: Mapping[Any, Any],
    ) -> list[pystac.Item]:
        """Search items for the window, area and cloud cover limit.

        Raises:
            AcquisitionFailure: On API errors
        """
        max_cloud = params.get("max_cloud_cover", self.max_cloud_cover)
        try:
            search = self.client.search(
                collections=[params.get("collection", self.collection)],
                intersects=rectangle.to_geojson(),
                datetime=stac_interval(start, end),
                query={"eo:cloud_cover": {"lt": max_cloud}},
                max_items=int(params.get("max_items", DEFAULT_MAX_ITEMS)),
            )
            return list(search.items())
        except (APIError, OSError) as e:
            raise AcquisitionFailure(f"STAC search failed: {e}", source=self.source_name) from e

    def asset_hrefs(self, item: pystac.Item, bands: list[str]) -> dict[str, str]:
        """Resolve (and sign) asset hrefs for ``bands``.

        Raises:
            AcquisitionFailure: If the item lacks a requested band
        """
        missing = [band for band in bands if band not in item.assets]
        if missing:
            raise AcquisitionFailure(
                f"Item {item.id} has no assets {missing} (available: {sorted(item.assets)})",
                source=self.source_name,
            )
        hrefs = {band: item.assets[band].href for band in bands}
        if self.sign is not None:
            hrefs = {band: self.sign(href) for band, href in hrefs.items()}
        return hrefs

    def acquire(
        self,
        start: datetime,
        end: datetime,
        rectangle: Rectangle,
        params: Mapping[Any, Any],
    ) -> RasterProduct:
        """Search, select the least cloudy scene and read its bands.

        Recognised params:
            bands: Asset keys to read (default B02 B03 B04 B08 B11)
            max_cloud_cover: Cloud cover limit (percent)
            collection: Collection override
            max_items: Search result limit

        Raises:
            AcquisitionFailure: Inverted window, no scenes, missing assets or read errors
        """
        if ensure_utc(end) < ensure_utc(start):
            raise AcquisitionFailure("Window end precedes start", source=self.source_name)

        items = self.search(start, end, rectangle, params)
        if not items:
            raise AcquisitionFailure(
                f"No scenes found for {stac_interval(start, end)} over {rectangle.bounds}",
                source=self.source_name,
            )

        item = least_cloudy(items)
        bands = list(params.get("bands") or DEFAULT_BANDS)
        hrefs = self.asset_hrefs(item, bands)

        logger.info(
            "stac_scene_selected",
            item_id=item.id,
            candidates=len(items),
            cloud_cover=item.properties.get("eo:cloud_cover"),
            bands=bands,
        )

        metadata = {
            "source": self.source_name,
            "scene_id": item.id,
            "collection": item.collection_id,
            "sensing_time": item.properties.get("datetime"),
            "cloud_cover": item.properties.get("eo:cloud_cover"),
            "processing_baseline": item.properties.get("s2:processing_baseline"),
        }
        return read_bands(hrefs, rectangle, metadata=metadata)
