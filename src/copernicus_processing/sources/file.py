"""
Local GeoTIFF acquisition source.

Reads a scene stored as one single-band GeoTIFF per band:

    data/scenes/
        B04.tif
        B08.tif
        B11.tif
        metadata.json      (optional, merged into product metadata)

or, with ``params={"scene": "S2A_20240601"}``, from a subdirectory of
that name. Only the part covering the requested rectangle is read.

Example:
    >>> source = FileSource("data/scenes")
    >>> product = source.acquire(start, end, rectangle, {"bands": ["B04", "B08"]})
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from copernicus_processing.exceptions import AcquisitionFailure
from copernicus_processing.models import RasterProduct, Rectangle
from copernicus_processing.sources.protocol import register_source
from copernicus_processing.sources.reader import read_bands
from copernicus_processing.utils.time import ensure_utc

logger = structlog.get_logger(__name__)

RASTER_SUFFIXES = (".tif", ".tiff")


@register_source("file")
class FileSource:
    """Acquire scenes from per-band GeoTIFFs on disk.

    Attributes:
        source_name: Always "file"
        data_dir: Root directory of scenes
    """

    source_name = "file"

    def __init__(self, data_dir: Path | str = "data/scenes"):
        self.data_dir = Path(data_dir)

    def _scene_dir(self, params: Mapping[Any, Any]) -> Path:
        scene = params.get("scene")
        scene_dir = self.data_dir / scene if scene else self.data_dir
        if not scene_dir.is_dir():
            raise AcquisitionFailure(f"Scene directory not found: {scene_dir}", source=self.source_name)
        return scene_dir

    def _band_files(self, scene_dir: Path, params: Mapping[Any, Any]) -> dict[str, str]:
        available = {
            path.stem: str(path)
            for path in sorted(scene_dir.iterdir())
            if path.suffix.lower() in RASTER_SUFFIXES
        }
        if not available:
            raise AcquisitionFailure(f"No GeoTIFF bands in {scene_dir}", source=self.source_name)

        wanted = params.get("bands")
        if not wanted:
            return available

        missing = [band for band in wanted if band not in available]
        if missing:
            raise AcquisitionFailure(
                f"Bands {missing} not found in {scene_dir} (available: {sorted(available)})",
                source=self.source_name,
            )
        return {band: available[band] for band in wanted}

    def _scene_metadata(self, scene_dir: Path) -> dict[str, Any]:
        path = scene_dir / "metadata.json"
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                return dict(json.load(f))
        except (OSError, ValueError) as e:
            raise AcquisitionFailure(f"Invalid scene metadata {path}: {e}", source=self.source_name) from e

    def acquire(
        self,
        start: datetime,
        end: datetime,
        rectangle: Rectangle,
        params: Mapping[Any, Any],
    ) -> RasterProduct:
        """Read the scene clipped to ``rectangle``.

        Recognised params:
            scene: Subdirectory of ``data_dir`` holding the scene
            bands: Band names to read (default: all, sorted)

        Raises:
            AcquisitionFailure: Missing directory/bands, no overlap or read errors
        """
        if ensure_utc(end) < ensure_utc(start):
            raise AcquisitionFailure("Window end precedes start", source=self.source_name)

        scene_dir = self._scene_dir(params)
        hrefs = self._band_files(scene_dir, params)
        metadata = {"source": self.source_name, "scene_id": scene_dir.name}
        metadata.update(self._scene_metadata(scene_dir))

        logger.info("file_scene_reading", scene=str(scene_dir), bands=list(hrefs))
        return read_bands(hrefs, rectangle, metadata=metadata)
