"""Configuration system."""

from updown_core.config.loader import ConfigError, load_config
from updown_core.config.schema import AppConfig

__all__ = ["AppConfig", "ConfigError", "load_config"]
