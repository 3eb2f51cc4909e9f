"""Pattern config — embedded defaults, JSON overrides and content hashing."""

from __future__ import annotations

import hashlib
import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import updown_core.patterns.library  # noqa: F401 - registers built-in patterns
from updown_core.logging import get_logger
from updown_core.models.patterns import PatternDefinition, PatternSetConfig
from updown_core.patterns.registry import PATTERN_PRIORITY, PATTERN_REGISTRY
from updown_core.store.signature import file_signature
from updown_core.windows.warnings import WarningTracker

log = get_logger(__name__)

DEFAULT_PATTERN_SET_VERSION = "1"


def default_pattern_config() -> PatternSetConfig:
    return PatternSetConfig(
        pattern_set_version=DEFAULT_PATTERN_SET_VERSION,
        patterns={
            pid: PatternDefinition(enabled=True, params=dict(PATTERN_REGISTRY[pid].defaults))
            for pid in PATTERN_PRIORITY
        },
    )


def normalize_pattern_config(raw: Any = None) -> PatternSetConfig:
    """Merge a raw (parsed JSON) config over the embedded defaults.

    Only known pattern ids are read; ``enabled`` must be a boolean and
    ``params`` a mapping, anything else is ignored. Pattern identity never
    changes.
    """
    cfg = default_pattern_config()
    if not isinstance(raw, dict):
        return cfg

    version = raw.get("patternSetVersion")
    if isinstance(version, str) and version.strip():
        cfg.pattern_set_version = version.strip()

    patterns = raw.get("patterns")
    if not isinstance(patterns, dict):
        return cfg

    for pid in PATTERN_PRIORITY:
        src = patterns.get(pid)
        if not isinstance(src, dict):
            continue
        definition = cfg.patterns[pid]
        if isinstance(src.get("enabled"), bool):
            definition.enabled = src["enabled"]
        if isinstance(src.get("params"), dict):
            definition.params = {**definition.params, **src["params"]}
    return cfg


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def config_hash(config: PatternSetConfig) -> str:
    """SHA-256 of the canonical serialization; key order does not matter."""
    payload = canonical_json(config.model_dump(by_alias=True))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class LoadedPatternConfig:
    config: PatternSetConfig
    hash: str
    # "default" or the resolved path of the file that was applied
    source: str

    @property
    def version(self) -> str:
        return self.config.pattern_set_version


def load_pattern_config(
    path: str | Path | None,
    warnings: WarningTracker | None = None,
) -> LoadedPatternConfig:
    """Read a pattern config file, falling back to defaults.

    A missing file silently means defaults. A file that is not a JSON object
    is recorded as ``bad_pattern_config_json`` and also means defaults.
    """
    raw: Any = None
    source = "default"
    if path is not None:
        p = Path(path).resolve()
        if p.is_file():
            try:
                raw = json.loads(p.read_text(encoding="utf-8"))
            except (ValueError, OSError) as exc:
                raw = None
                log.warning("pattern_config_invalid", path=str(p), error=str(exc))
            else:
                if not isinstance(raw, dict):
                    raw = None
                    log.warning("pattern_config_invalid", path=str(p), error="top level is not an object")
            if raw is None:
                if warnings is not None:
                    warnings.add("bad_pattern_config_json", str(p))
            else:
                source = str(p)

    config = normalize_pattern_config(raw)
    return LoadedPatternConfig(config=config, hash=config_hash(config), source=source)


class PatternConfigSource:
    """Holds the current pattern config, re-reading the file only when it changes."""

    def __init__(self, path: str | Path | None) -> None:
        self.path = Path(path) if path is not None else None
        self._signature: str | None = None
        self._loaded: LoadedPatternConfig | None = None
        self._warnings = WarningTracker()
        self._lock = threading.Lock()

    def current(self) -> LoadedPatternConfig:
        signature = file_signature(self.path) if self.path is not None else None
        with self._lock:
            if self._loaded is None or signature != self._signature:
                self._warnings = WarningTracker()
                self._loaded = load_pattern_config(self.path, self._warnings)
                self._signature = signature
                log.info(
                    "pattern_config_loaded",
                    source=self._loaded.source,
                    version=self._loaded.version,
                    params_hash=self._loaded.hash,
                )
            return self._loaded

    @property
    def warnings(self) -> WarningTracker:
        """Warnings raised by the most recent (re)load."""
        return self._warnings

    def invalidate(self) -> None:
        self._loaded = None
        self._signature = None
