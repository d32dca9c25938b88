"""
Tests for the processing stage registry.
"""

from __future__ import annotations

import threading

from copernicus_processing.processing.base import BaseStage, ProcessingStage
from copernicus_processing.processing.builtin import NDMI, NDVI, RadiometricCorrection
from copernicus_processing.processing.registry import (
    ProcessorRegistry,
    list_builtin_stages,
    load_builtin_stages,
)
from tests.fixtures.factories import RecordingStage


class TestProcessorRegistry:
    """Tests for ProcessorRegistry."""

    def setup_method(self):
        """Fresh registry before each test."""
        self.registry = ProcessorRegistry()

    def test_register_then_lookup_returns_same_stage(self):
        """Test lookup returns the exact stage registered."""
        stage = RecordingStage("ndvi")

        assert self.registry.register("ndvi", stage) == "ndvi"
        assert self.registry.lookup("ndvi") is stage

    def test_register_lookup_regardless_of_prior_contents(self):
        """Test register/lookup holds whatever else is registered."""
        for name in ("a", "b", "c"):
            self.registry.register(name, RecordingStage(name))
        stage = RecordingStage("b")

        self.registry.register("b", stage)

        assert self.registry.lookup("b") is stage

    def test_reregister_replaces(self):
        """Test re-registering keeps a single entry, the latest one."""
        first = RecordingStage("correction")
        second = RecordingStage("correction")

        self.registry.register("correction", first)
        self.registry.register("correction", second)

        assert self.registry.lookup("correction") is second
        assert len(self.registry) == 1
        assert list(self.registry.all()) == ["correction"]

    def test_lookup_missing_returns_none(self):
        """Test lookup of an unknown name is not an error."""
        assert self.registry.lookup("unknown-xyz") is None

    def test_register_many_returns_all_names(self):
        """Test bulk registration returns every name now present."""
        self.registry.register("correction", RecordingStage("correction"))

        names = self.registry.register_many(
            {"correction": RecordingStage("correction"), "ndvi": RecordingStage("ndvi")}
        )

        assert names == {"correction", "ndvi"}

    def test_all_is_snapshot(self):
        """Test all() returns a copy unaffected by later changes."""
        self.registry.register("a", RecordingStage("a"))
        snapshot = self.registry.all()

        self.registry.register("b", RecordingStage("b"))

        assert set(snapshot) == {"a"}
        assert set(self.registry.all()) == {"a", "b"}

    def test_unregister(self):
        self.registry.register("temp", RecordingStage("temp"))

        assert self.registry.unregister("temp") is True
        assert "temp" not in self.registry
        assert self.registry.unregister("temp") is False

    def test_clear(self):
        self.registry.register_many({"a": RecordingStage("a"), "b": RecordingStage("b")})
        self.registry.clear()
        assert len(self.registry) == 0

    def test_iteration_sorted(self):
        self.registry.register_many({"ndvi": RecordingStage("ndvi"), "correction": RecordingStage("correction")})
        assert list(self.registry) == ["correction", "ndvi"]

    def test_initial_stages(self):
        stage = RecordingStage("correction")
        registry = ProcessorRegistry({"correction": stage})
        assert registry.lookup("correction") is stage

    def test_get_stage_info(self):
        """Test stage info rows for the CLI."""
        self.registry.register("ndvi", NDVI())
        self.registry.register("custom", RecordingStage("custom"))

        info = self.registry.get_stage_info()

        assert [row["name"] for row in info] == ["custom", "ndvi"]
        assert info[1]["class"] == "NDVI"
        assert info[1]["version"] == "1.0.0"
        assert info[0]["version"] == "unknown"

    def test_concurrent_registration_no_lost_entries(self):
        """Test concurrent registration with distinct names loses nothing."""
        stages = {f"stage_{i}": RecordingStage(f"stage_{i}") for i in range(200)}
        barrier = threading.Barrier(8)

        def worker(offset: int) -> None:
            barrier.wait()
            for i in range(offset, 200, 8):
                name = f"stage_{i}"
                self.registry.register(name, stages[name])
                self.registry.lookup(f"stage_{(i * 7) % 200}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(self.registry) == 200
        for name, stage in stages.items():
            assert self.registry.lookup(name) is stage


class TestBuiltinStages:
    """Tests for the default stage set."""

    def test_list_builtin_stages(self):
        assert list_builtin_stages() == ["correction", "ndmi", "ndvi"]

    def test_load_builtin_stages(self):
        """Test default stages are instantiated under reserved names."""
        stages = load_builtin_stages()

        assert isinstance(stages["correction"], RadiometricCorrection)
        assert isinstance(stages["ndvi"], NDVI)
        assert isinstance(stages["ndmi"], NDMI)

    def test_load_builtin_stages_fresh_instances(self):
        """Test each call builds new stage objects."""
        first = load_builtin_stages()
        second = load_builtin_stages()
        assert first["ndvi"] is not second["ndvi"]

    def test_builtin_stages_satisfy_protocol(self):
        for stage in load_builtin_stages().values():
            assert isinstance(stage, ProcessingStage)
            assert isinstance(stage, BaseStage)

    def test_recording_stage_satisfies_protocol(self):
        """Test duck-typed stages need no base class."""
        assert isinstance(RecordingStage("x"), ProcessingStage)

    def test_stage_repr(self):
        assert repr(NDVI()) == "NDVI(name='ndvi', version='1.0.0')"
