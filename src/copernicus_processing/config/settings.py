"""
Configuration settings for the Copernicus processing core.

Settings are loaded from TOML files and environment variables.

Configuration hierarchy (later overrides earlier):
1. Default values (built-in)
2. config/default.toml
3. config/local.toml (gitignored)
4. File named by COPERNICUS_CONFIG_PATH
5. Environment variables (COPERNICUS_* prefix)
6. Command-line arguments

Example:
    >>> from copernicus_processing.config import get_settings
    >>>
    >>> settings = get_settings()
    >>> print(f"Exports go to: {settings.export.output_dir}")
    >>> print(f"Acquisition source: {settings.acquisition.source}")
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "COPERNICUS_"


class AcquisitionSettings(BaseModel):
    """Acquisition source settings."""

    model_config = ConfigDict(extra="ignore")

    source: str = Field(
        default="mock",
        description="Registered acquisition source name (mock, file, stac)",
    )
    data_dir: str = Field(
        default="data/scenes",
        description="Directory of per-band GeoTIFFs for the file source",
    )
    stac_url: str = Field(
        default="https://planetarycomputer.microsoft.com/api/stac/v1",
        description="STAC API endpoint",
    )
    collection: str = Field(
        default="sentinel-2-l2a",
        description="STAC collection to search",
    )
    max_cloud_cover: int = Field(
        default=30,
        ge=0,
        le=100,
        description="Maximum scene cloud cover (percent)",
    )
    mock_seed: int = Field(default=42, description="Seed for the mock source")
    mock_size: int = Field(default=64, gt=0, description="Mock raster width/height in pixels")


class ExportSettings(BaseModel):
    """Export settings."""

    model_config = ConfigDict(extra="ignore")

    output_dir: str = Field(
        default="result",
        description="Directory for exported artifacts",
    )
    format: str = Field(
        default="GTiff",
        description="Output encoding (GTiff or npz)",
    )
    prefix: str = Field(
        default="product",
        description="File name prefix",
    )
    compress: str | None = Field(
        default="deflate",
        description="GeoTIFF compression (None = uncompressed)",
    )


class DispatchSettings(BaseModel):
    """Dispatcher settings."""

    model_config = ConfigDict(extra="ignore")

    extent_delimiter: str = Field(
        default="|",
        description="Delimiter between extent tokens (x1|y1|x2|y2)",
    )

    @field_validator("extent_delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Delimiter must be non-empty and must not clash with numbers."""
        if not v or any(c in "0123456789.+-eE" for c in v):
            raise ValueError(f"Invalid extent delimiter: {v!r}")
        return v


class LoggingSettings(BaseModel):
    """Logging settings."""

    model_config = ConfigDict(extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="console", description="Output format")
    include_timestamp: bool = Field(default=True)
    include_location: bool = Field(default=False)


class Settings(BaseModel):
    """Main settings container."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="copernicus-processing")
    base_dir: Path = Field(default=Path("."))

    acquisition: AcquisitionSettings = Field(default_factory=AcquisitionSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def output_dir(self) -> Path:
        """Absolute or base_dir-relative export directory."""
        out = Path(self.export.output_dir)
        if out.is_absolute():
            return out
        return self.base_dir / out

    @property
    def data_dir(self) -> Path:
        """Directory read by the file acquisition source."""
        data = Path(self.acquisition.data_dir)
        if data.is_absolute():
            return data
        return self.base_dir / data


def _find_config_files() -> list[Path]:
    """Find configuration files in standard locations.

    Returns:
        List of config file paths (in order of priority)
    """
    files = []

    cwd = Path.cwd()
    for name in ["config/default.toml", "config/local.toml"]:
        path = cwd / name
        if path.exists():
            files.append(path)

    env_config = os.environ.get(f"{ENV_PREFIX}CONFIG_PATH")
    if env_config:
        path = Path(env_config)
        if path.exists():
            files.append(path)

    return files


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value

    return result


def _coerce(value: str, original: Any) -> Any:
    """Convert an environment string to the type of the value it replaces."""
    if isinstance(original, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(original, int):
        return int(value)
    if isinstance(original, float):
        return float(value)
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides.

    COPERNICUS_<SECTION>_<FIELD> sets ``section.field``, and
    COPERNICUS_<FIELD> sets a top-level field. Field names may contain
    underscores (COPERNICUS_EXPORT_OUTPUT_DIR -> export.output_dir).

    Args:
        config: Configuration dictionary (from TOML files)

    Returns:
        Modified configuration
    """
    defaults = Settings().model_dump()

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX) or key == f"{ENV_PREFIX}CONFIG_PATH":
            continue

        config_key = key[len(ENV_PREFIX) :].lower()
        section, _, field_name = config_key.partition("_")

        if section in defaults and isinstance(defaults[section], dict):
            if field_name not in defaults[section]:
                continue
            target = config.setdefault(section, {})
            original = target.get(field_name, defaults[section][field_name])
            target[field_name] = _coerce(value, original)
        elif config_key in defaults:
            original = config.get(config_key, defaults[config_key])
            config[config_key] = _coerce(value, original)

    return config


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from configuration files and the environment.

    Args:
        config_path: Optional explicit config file path

    Returns:
        Settings instance
    """
    config: dict[str, Any] = {}

    if config_path:
        files = [Path(config_path)]
    else:
        files = _find_config_files()

    for path in files:
        config = _merge_dicts(config, _load_toml(path))

    config = _apply_env_overrides(config)

    return Settings(**config)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()


def reload_settings() -> Settings:
    """Reload settings (clears cache).

    Returns:
        Fresh Settings instance
    """
    get_settings.cache_clear()
    return get_settings()
