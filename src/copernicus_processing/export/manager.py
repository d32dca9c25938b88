"""
Export manager.

Writes processed products with a fixed encoding into a fixed output
directory, naming files

    {prefix}_{label}_{YYYYmmddTHHMMSS}_{request_id}.{ext}

Write failures raise ExportFailure. A partially written file is removed.

Example:
    >>> manager = ExportManager(output_dir="result", default_format="GTiff")
    >>> path = manager.export(product, label="ndvi", request_id="a1b2c3")
    >>> path.name
    'product_ndvi_20240601T120000_a1b2c3.tif'
"""

from __future__ import annotations

import contextlib
import re
import threading
from pathlib import Path
from uuid import uuid4

import structlog

from copernicus_processing.exceptions import ExportFailure
from copernicus_processing.export.writers import GeoTiffWriter, NumpyWriter, ProductWriter
from copernicus_processing.models.products import RasterProduct
from copernicus_processing.utils.time import filename_timestamp

logger = structlog.get_logger(__name__)

DEFAULT_OUTPUT_DIR = "result"
DEFAULT_FORMAT = "GTiff"
DEFAULT_PREFIX = "product"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]+")


def _safe(fragment: str) -> str:
    """Make a string safe for use in a file name."""
    return _UNSAFE_CHARS.sub("-", fragment).strip("-") or "x"


class ExportManager:
    """Owns product writers and the output naming scheme."""

    def __init__(
        self,
        output_dir: Path | str = DEFAULT_OUTPUT_DIR,
        *,
        default_format: str = DEFAULT_FORMAT,
        prefix: str = DEFAULT_PREFIX,
        compress: str | None = "deflate",
    ):
        """Initialize manager with the built-in writers.

        Args:
            output_dir: Destination directory (created on first export)
            default_format: Format used by ``export()``
            prefix: File name prefix
            compress: GeoTIFF compression

        Raises:
            ValueError: If default_format is not a built-in format
        """
        self.output_dir = Path(output_dir)
        self.prefix = prefix
        self._lock = threading.Lock()
        self._writers: dict[str, ProductWriter] = {}
        self.register_writer(GeoTiffWriter(compress=compress))
        self.register_writer(NumpyWriter())

        if default_format not in self._writers:
            raise ValueError(f"Unknown export format '{default_format}'. Available: {self.formats}")
        self.default_format = default_format

    @property
    def formats(self) -> list[str]:
        with self._lock:
            return sorted(self._writers)

    def register_writer(self, writer: ProductWriter) -> str:
        """Add or replace a writer for its ``format_name``.

        Returns:
            The format name
        """
        with self._lock:
            self._writers[writer.format_name] = writer
        return writer.format_name

    def get_writer(self, format_name: str) -> ProductWriter:
        """Get the writer for a format.

        Raises:
            ExportFailure: If the format is unknown
        """
        with self._lock:
            writer = self._writers.get(format_name)
        if writer is None:
            raise ExportFailure(f"No writer for format '{format_name}' (available: {self.formats})")
        return writer

    def build_path(self, label: str, request_id: str, extension: str) -> Path:
        """Destination path for an artifact."""
        name = f"{_safe(self.prefix)}_{_safe(label)}_{filename_timestamp()}_{_safe(request_id)}.{extension}"
        return self.output_dir / name

    def export(
        self,
        product: RasterProduct,
        *,
        label: str | None = None,
        request_id: str | None = None,
        format_name: str | None = None,
    ) -> Path:
        """Write ``product`` and return the artifact path.

        Args:
            product: Product to write
            label: Name fragment, usually the processing type
            request_id: Name fragment unique per request (random if omitted)
            format_name: Override the default format

        Returns:
            Path of the written file

        Raises:
            ExportFailure: If the product cannot be written
        """
        writer = self.get_writer(format_name or self.default_format)
        label = label or (product.history[-1] if product.history else "raw")
        path = self.build_path(label, request_id or uuid4().hex[:12], writer.extension)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            writer.write(product, path)
        except Exception as e:
            logger.error("export_failed", path=str(path), format=writer.format_name, error=str(e))
            # the write error is reported even when cleanup fails
            with contextlib.suppress(OSError):
                path.unlink(missing_ok=True)
            raise ExportFailure(f"Failed to write {path}: {e}", path=str(path)) from e

        logger.info(
            "product_written",
            path=str(path),
            format=writer.format_name,
            bands=product.band_names,
            shape=product.shape,
        )
        return path
