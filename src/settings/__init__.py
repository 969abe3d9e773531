"""Configuration for xrefmap."""

from errors import ConfigError
from settings.config import CONFIG_FILENAME, XrefConfig, load_config

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "XrefConfig",
    "load_config",
]
