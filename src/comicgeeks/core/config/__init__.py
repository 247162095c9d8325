"""Configuration loading and validation."""

from .models import (
    # Enums
    ComicFormat,
    # Config models
    AppConfig,
    ClientConfig,
    ComicFilters,
    LoggingConfig,
    DEFAULT_FORMATS,
    DEFAULT_SITE_URL,
)
from .loader import ConfigError, load_app_config, validate_config_file, write_default_config

__all__ = [
    # Enums
    "ComicFormat",
    # Config models
    "AppConfig",
    "ClientConfig",
    "ComicFilters",
    "LoggingConfig",
    "DEFAULT_FORMATS",
    "DEFAULT_SITE_URL",
    # Loaders
    "ConfigError",
    "load_app_config",
    "validate_config_file",
    "write_default_config",
]
