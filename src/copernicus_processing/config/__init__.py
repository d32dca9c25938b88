"""
Configuration management for the Copernicus processing core.

Settings come from TOML files (config/default.toml, config/local.toml)
and COPERNICUS_* environment variables.

Example:
    >>> from copernicus_processing.config import get_settings
    >>>
    >>> settings = get_settings()
    >>> print(settings.export.format)
"""

from copernicus_processing.config.settings import (
    AcquisitionSettings,
    DispatchSettings,
    ExportSettings,
    LoggingSettings,
    Settings,
    get_settings,
    load_settings,
    reload_settings,
)

__all__ = [
    "AcquisitionSettings",
    "DispatchSettings",
    "ExportSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "load_settings",
    "reload_settings",
]
