"""Config loader — reads YAML, applies UPDOWN_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from updown_core.config.schema import AppConfig


class ConfigError(Exception):
    """Raised when config.yaml cannot be parsed or fails validation."""


_ENV_OVERRIDES = {
    "UPDOWN_LOG_ROOT": ("storage", "log_root"),
    "UPDOWN_PATTERN_CONFIG": ("patterns", "config_path"),
    "UPDOWN_HOST": ("server", "host"),
    "UPDOWN_PORT": ("server", "port"),
    "UPDOWN_LOG_LEVEL": ("logging", "level"),
    "UPDOWN_LOG_FORMAT": ("logging", "format"),
}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        UPDOWN_LOG_ROOT        -> storage.log_root
        UPDOWN_PATTERN_CONFIG  -> patterns.config_path
        UPDOWN_HOST            -> server.host
        UPDOWN_PORT            -> server.port
        UPDOWN_LOG_LEVEL       -> logging.level
        UPDOWN_LOG_FORMAT      -> logging.format
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            try:
                with open(p) as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"invalid YAML in {p}: {exc}") from exc
            if not isinstance(data, dict):
                raise ConfigError(f"{p} must contain a mapping at the top level")

    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data.setdefault(section, {})[key] = value

    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
