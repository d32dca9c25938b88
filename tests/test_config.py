"""
Tests for configuration module.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from copernicus_processing.config.settings import (
    AcquisitionSettings,
    DispatchSettings,
    ExportSettings,
    LoggingSettings,
    Settings,
    _apply_env_overrides,
    _coerce,
    _find_config_files,
    _load_toml,
    _merge_dicts,
    get_settings,
    load_settings,
    reload_settings,
)


class TestAcquisitionSettings:
    """Tests for AcquisitionSettings."""

    def test_default_values(self):
        settings = AcquisitionSettings()

        assert settings.source == "mock"
        assert settings.collection == "sentinel-2-l2a"
        assert settings.stac_url == "https://planetarycomputer.microsoft.com/api/stac/v1"
        assert settings.max_cloud_cover == 30

    def test_cloud_cover_range(self):
        with pytest.raises(ValidationError):
            AcquisitionSettings(max_cloud_cover=150)

    def test_mock_size_positive(self):
        with pytest.raises(ValidationError):
            AcquisitionSettings(mock_size=0)


class TestExportSettings:
    """Tests for ExportSettings."""

    def test_default_values(self):
        settings = ExportSettings()

        assert settings.output_dir == "result"
        assert settings.format == "GTiff"
        assert settings.prefix == "product"
        assert settings.compress == "deflate"


class TestDispatchSettings:
    """Tests for DispatchSettings."""

    def test_default_delimiter(self):
        assert DispatchSettings().extent_delimiter == "|"

    @pytest.mark.parametrize("delimiter", ["", ".", "-", "1"])
    def test_rejects_numeric_delimiters(self, delimiter):
        """Test delimiters that clash with numbers are rejected."""
        with pytest.raises(ValidationError):
            DispatchSettings(extent_delimiter=delimiter)

    def test_accepts_other_delimiters(self):
        assert DispatchSettings(extent_delimiter=";").extent_delimiter == ";"


class TestLoggingSettings:
    def test_default_values(self):
        settings = LoggingSettings()
        assert settings.level == "INFO"
        assert settings.format == "console"


class TestSettings:
    """Tests for main Settings."""

    def test_default_values(self):
        settings = Settings()

        assert settings.name == "copernicus-processing"
        assert settings.base_dir == Path(".")

    def test_output_dir_relative(self, tmp_path):
        settings = Settings(base_dir=tmp_path)
        assert settings.output_dir == tmp_path / "result"

    def test_output_dir_absolute(self, tmp_path):
        settings = Settings(base_dir=Path("/elsewhere"), export={"output_dir": str(tmp_path)})
        assert settings.output_dir == tmp_path

    def test_data_dir(self, tmp_path):
        settings = Settings(base_dir=tmp_path)
        assert settings.data_dir == tmp_path / "data" / "scenes"

    def test_nested_config(self):
        settings = Settings(
            acquisition={"source": "stac", "max_cloud_cover": 10},
            export={"format": "npz"},
        )

        assert settings.acquisition.source == "stac"
        assert settings.acquisition.max_cloud_cover == 10
        assert settings.export.format == "npz"

    def test_unknown_keys_ignored(self):
        settings = Settings(acquisition={"source": "mock", "legacy_option": 1})
        assert not hasattr(settings.acquisition, "legacy_option")


class TestMergeDicts:
    """Tests for _merge_dicts."""

    def test_nested_merge(self):
        base = {"export": {"format": "GTiff", "prefix": "product"}}
        override = {"export": {"format": "npz"}}

        result = _merge_dicts(base, override)

        assert result == {"export": {"format": "npz", "prefix": "product"}}

    def test_base_unchanged(self):
        base = {"a": 1}
        _merge_dicts(base, {"a": 2})
        assert base == {"a": 1}


class TestFindConfigFiles:
    """Tests for _find_config_files."""

    def test_no_config_files(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)
        assert _find_config_files() == []

    def test_default_and_local(self, tmp_path, clean_env):
        """Test local.toml comes after default.toml."""
        clean_env.chdir(tmp_path)
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.toml").write_text("")
        (config_dir / "local.toml").write_text("")

        files = _find_config_files()

        assert [f.name for f in files] == ["default.toml", "local.toml"]

    def test_env_config_path(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)
        env_file = tmp_path / "env.toml"
        env_file.write_text("")
        clean_env.setenv("COPERNICUS_CONFIG_PATH", str(env_file))

        assert _find_config_files() == [env_file]

    def test_env_config_path_nonexistent(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)
        clean_env.setenv("COPERNICUS_CONFIG_PATH", "/nonexistent/config.toml")

        assert _find_config_files() == []


class TestLoadToml:
    def test_load_nested_toml(self, tmp_path):
        toml_file = tmp_path / "config.toml"
        toml_file.write_text('[export]\nformat = "npz"\n')

        assert _load_toml(toml_file) == {"export": {"format": "npz"}}


class TestEnvOverrides:
    """Tests for COPERNICUS_* environment overrides."""

    def test_section_override(self, clean_env):
        clean_env.setenv("COPERNICUS_ACQUISITION_SOURCE", "stac")

        config = _apply_env_overrides({})

        assert config == {"acquisition": {"source": "stac"}}

    def test_field_with_underscores(self, clean_env):
        """Test COPERNICUS_EXPORT_OUTPUT_DIR maps to export.output_dir."""
        clean_env.setenv("COPERNICUS_EXPORT_OUTPUT_DIR", "/data/out")

        config = _apply_env_overrides({})

        assert config["export"]["output_dir"] == "/data/out"

    def test_type_coercion(self, clean_env):
        clean_env.setenv("COPERNICUS_ACQUISITION_MAX_CLOUD_COVER", "15")
        clean_env.setenv("COPERNICUS_LOGGING_INCLUDE_LOCATION", "true")

        config = _apply_env_overrides({})

        assert config["acquisition"]["max_cloud_cover"] == 15
        assert config["logging"]["include_location"] is True

    def test_top_level_override(self, clean_env):
        clean_env.setenv("COPERNICUS_NAME", "edge-node")
        assert _apply_env_overrides({})["name"] == "edge-node"

    def test_unknown_variables_ignored(self, clean_env):
        clean_env.setenv("COPERNICUS_EXPORT_NOT_A_FIELD", "x")
        clean_env.setenv("COPERNICUS_SOMETHING", "y")

        assert _apply_env_overrides({}) == {}

    def test_config_path_not_a_setting(self, clean_env):
        clean_env.setenv("COPERNICUS_CONFIG_PATH", "/tmp/x.toml")
        assert _apply_env_overrides({}) == {}

    def test_env_beats_file(self, clean_env):
        clean_env.setenv("COPERNICUS_EXPORT_FORMAT", "npz")

        config = _apply_env_overrides({"export": {"format": "GTiff", "prefix": "s2"}})

        assert config["export"] == {"format": "npz", "prefix": "s2"}

    def test_coerce(self):
        assert _coerce("0", False) is False
        assert _coerce("2.5", 1.0) == 2.5
        assert _coerce("x", None) == "x"


class TestLoadSettings:
    """Tests for load_settings / get_settings."""

    def test_explicit_file(self, tmp_path, clean_env):
        config_file = tmp_path / "site.toml"
        config_file.write_text(
            '[acquisition]\nsource = "file"\ndata_dir = "/srv/scenes"\n\n[export]\nformat = "npz"\n'
        )

        settings = load_settings(config_file)

        assert settings.acquisition.source == "file"
        assert settings.acquisition.data_dir == "/srv/scenes"
        assert settings.export.format == "npz"
        assert settings.export.prefix == "product"

    def test_file_then_env(self, tmp_path, clean_env):
        config_file = tmp_path / "site.toml"
        config_file.write_text('[export]\nprefix = "site"\n')
        clean_env.setenv("COPERNICUS_EXPORT_PREFIX", "env")

        assert load_settings(config_file).export.prefix == "env"

    def test_standard_locations(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "default.toml").write_text('[export]\nprefix = "default"\n')
        (tmp_path / "config" / "local.toml").write_text('[export]\nprefix = "local"\n')

        assert load_settings().export.prefix == "local"

    def test_get_settings_cached(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)
        assert get_settings() is get_settings()

    def test_reload_settings(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)
        first = get_settings()
        clean_env.setenv("COPERNICUS_EXPORT_PREFIX", "reloaded")

        second = reload_settings()

        assert second is not first
        assert second.export.prefix == "reloaded"

    def test_shipped_default_config(self, clean_env):
        """Test config/default.toml matches the built-in defaults."""
        default_toml = Path(__file__).parent.parent / "config" / "default.toml"

        settings = load_settings(default_toml)

        assert settings.model_dump() == Settings().model_dump()
