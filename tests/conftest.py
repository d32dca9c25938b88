"""
Pytest configuration and shared fixtures for the Copernicus processing core.

This module provides:
- Product factory and recording test doubles
- Standard request window and area of interest
- Temporary export manager and on-disk scenes

Example usage in tests:
    def test_something(recording_source, recording_exporter, call_log):
        dispatcher = RequestDispatcher(registry, recording_source, recording_exporter)
        dispatcher.request(start, end, "10.0|20.0|30.0|40.0", {}, "none")
        assert call_log == ["acquire", "export"]
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import numpy as np
import pytest
from affine import Affine

from copernicus_processing.config import get_settings
from copernicus_processing.export import ExportManager
from copernicus_processing.models import Rectangle
from copernicus_processing.processing.core import reset_instance
from copernicus_processing.sources import MockSource
from copernicus_processing.utils.logging import clear_context
from tests.fixtures.factories import (
    ProductFactory,
    RecordingExporter,
    RecordingSource,
    write_geotiff,
)

# ============================================================================
# ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_shared_state() -> Iterator[None]:
    """Drop the shared Core and log context between tests."""
    reset_instance()
    clear_context()
    yield
    reset_instance()
    clear_context()


# ============================================================================
# FACTORY FIXTURES
# ============================================================================


@pytest.fixture
def product_factory() -> type[ProductFactory]:
    """Provide a fresh ProductFactory with counter reset."""
    ProductFactory.reset()
    return ProductFactory


@pytest.fixture
def call_log() -> list[str]:
    """Shared list that recording doubles append to, in call order."""
    return []


@pytest.fixture
def recording_source(product_factory: type[ProductFactory], call_log: list[str]) -> RecordingSource:
    return RecordingSource(product_factory.create(), calls=call_log)


@pytest.fixture
def recording_exporter(call_log: list[str]) -> RecordingExporter:
    return RecordingExporter(calls=call_log)


# ============================================================================
# REQUEST FIXTURES
# ============================================================================


@pytest.fixture
def window() -> tuple[datetime, datetime]:
    """Two-week acquisition window in June 2024."""
    return datetime(2024, 6, 1, tzinfo=UTC), datetime(2024, 6, 15, tzinfo=UTC)


@pytest.fixture
def rectangle() -> Rectangle:
    """Area of interest parsed from "10.0|20.0|30.0|40.0"."""
    return Rectangle(x1=10.0, y1=20.0, x2=30.0, y2=40.0)


@pytest.fixture
def mock_source() -> MockSource:
    """Small, seeded synthetic scene generator."""
    return MockSource(size=16, seed=42)


# ============================================================================
# FILESYSTEM FIXTURES
# ============================================================================


@pytest.fixture
def export_manager(tmp_path: Path) -> ExportManager:
    """Export manager writing into a temporary directory."""
    return ExportManager(tmp_path / "result")


@pytest.fixture
def scene_dir(tmp_path: Path) -> Path:
    """Scene of three 20x20 GeoTIFF bands covering lon 10..30, lat 20..40.

    B04 and B08 are 10 m style bands at 1 degree; B11 is coarser (2 degrees,
    10x10) so reading it exercises resampling onto the B04 grid.
    """
    scene = tmp_path / "scenes" / "S2_TEST"
    scene.mkdir(parents=True)

    fine = Affine.translation(10.0, 40.0) * Affine.scale(1.0, -1.0)
    coarse = Affine.translation(10.0, 40.0) * Affine.scale(2.0, -2.0)

    write_geotiff(scene / "B04.tif", np.full((20, 20), 2000, dtype="uint16"), transform=fine, nodata=0)
    write_geotiff(scene / "B08.tif", np.full((20, 20), 4000, dtype="uint16"), transform=fine, nodata=0)
    write_geotiff(scene / "B11.tif", np.full((10, 10), 3000, dtype="uint16"), transform=coarse, nodata=0)

    with open(scene / "metadata.json", "w") as f:
        json.dump({"processing_baseline": "05.09", "cloud_cover": 3.5}, f)

    return scene


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """Remove COPERNICUS_* variables and reset cached settings."""
    for key in list(os.environ):
        if key.startswith("COPERNICUS_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: mark test as slow")
