"""
Product export.

- ExportManager: Output directory, naming scheme and format writers
- GeoTiffWriter / NumpyWriter: Built-in encoders
"""

from copernicus_processing.export.manager import ExportManager
from copernicus_processing.export.writers import GeoTiffWriter, NumpyWriter, ProductWriter

__all__ = [
    "ExportManager",
    "GeoTiffWriter",
    "NumpyWriter",
    "ProductWriter",
]
