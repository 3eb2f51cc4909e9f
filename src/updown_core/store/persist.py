"""Persisted per-date pattern store, written next to the raw logs.

One JSON document per ``(date, includeIncomplete, patternSetVersion,
paramsHash)`` holds a record per window. A record is reused only when the
window's source signature and the config that produced it are unchanged.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from updown_core.logging import get_logger
from updown_core.models.patterns import SideHit, WindowPatternResult
from updown_core.models.window import Window

if TYPE_CHECKING:
    from updown_core.patterns.config import LoadedPatternConfig

log = get_logger(__name__)

SCHEMA_VERSION = 1
STORE_DIR = ".pattern_store"


class PatternStoreRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    window_id: str = Field(alias="windowId")
    source_signature: dict[str, Any] = Field(alias="sourceSignature")
    params_hash: str = Field(alias="paramsHash")
    pattern_set_version: str = Field(alias="patternSetVersion")
    include_incomplete: bool = Field(alias="includeIncomplete")
    patterns: list[str] = Field(default_factory=list)
    pattern_primary: str | None = Field(default=None, alias="patternPrimary")
    pattern_side_hits: dict[str, list[SideHit]] = Field(
        default_factory=dict, alias="patternSideHits"
    )

    def result(self) -> WindowPatternResult:
        return WindowPatternResult(
            patterns=self.patterns,
            pattern_primary=self.pattern_primary,
            pattern_side_hits=self.pattern_side_hits,
        )


class PatternStoreDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_version: int = Field(default=SCHEMA_VERSION, alias="schemaVersion")
    date: str
    include_incomplete: bool = Field(alias="includeIncomplete")
    pattern_set_version: str = Field(alias="patternSetVersion")
    params_hash: str = Field(alias="paramsHash")
    windows: dict[str, PatternStoreRecord] = Field(default_factory=dict)


def store_path(
    day_dir: Path,
    include_incomplete: bool,
    pattern_set_version: str,
    params_hash: str,
) -> Path:
    scope = "all" if include_incomplete else "complete"
    name = f"patterns-{scope}-v{pattern_set_version}-{params_hash[:16]}.json"
    return day_dir / STORE_DIR / name


class PatternStore:
    """Read-through store of per-window pattern results for one date."""

    def __init__(
        self,
        day_dir: Path,
        date: str,
        include_incomplete: bool,
        pattern_config: LoadedPatternConfig,
    ) -> None:
        self.date = date
        self.include_incomplete = include_incomplete
        self.params_hash = pattern_config.hash
        self.pattern_set_version = pattern_config.version
        self.path = store_path(day_dir, include_incomplete, self.pattern_set_version, self.params_hash)
        self._records: dict[str, PatternStoreRecord] = {}
        self._seen: set[str] = set()
        self._dirty = False
        self.reused = 0
        self.computed = 0

    def load(self) -> None:
        """Read the document; anything unreadable or of another schema counts as empty."""
        self._records = {}
        if not self.path.is_file():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (ValueError, OSError) as exc:
            log.warning("pattern_store_unreadable", path=str(self.path), error=str(exc))
            return
        if not isinstance(raw, dict) or raw.get("schemaVersion") != SCHEMA_VERSION:
            log.info("pattern_store_schema_mismatch", path=str(self.path))
            return
        try:
            doc = PatternStoreDocument.model_validate(raw)
        except ValidationError as exc:
            log.warning("pattern_store_invalid", path=str(self.path), error=str(exc))
            return
        self._records = dict(doc.windows)

    def _matches(self, record: PatternStoreRecord, signature: dict[str, Any]) -> bool:
        return (
            record.source_signature == signature
            and record.params_hash == self.params_hash
            and record.pattern_set_version == self.pattern_set_version
            and record.include_incomplete == self.include_incomplete
        )

    def resolve(
        self,
        window: Window,
        signature: dict[str, Any],
        compute: Callable[[Window], WindowPatternResult],
    ) -> WindowPatternResult:
        """Return the stored result for *window*, recomputing it when stale."""
        self._seen.add(window.window_id)
        record = self._records.get(window.window_id)
        if record is not None and self._matches(record, signature):
            self.reused += 1
            return record.result()

        result = compute(window)
        self._records[window.window_id] = PatternStoreRecord(
            window_id=window.window_id,
            source_signature=signature,
            params_hash=self.params_hash,
            pattern_set_version=self.pattern_set_version,
            include_incomplete=self.include_incomplete,
            patterns=result.patterns,
            pattern_primary=result.pattern_primary,
            pattern_side_hits=result.pattern_side_hits,
        )
        self.computed += 1
        self._dirty = True
        return result

    def save(self) -> bool:
        """Write the document atomically if anything changed.

        Records for windows not resolved since :meth:`load` are dropped.
        Returns True when a file was written.
        """
        stale = set(self._records) - self._seen
        for window_id in stale:
            del self._records[window_id]
        if not self._dirty and not stale:
            return False

        doc = PatternStoreDocument(
            date=self.date,
            include_incomplete=self.include_incomplete,
            pattern_set_version=self.pattern_set_version,
            params_hash=self.params_hash,
            windows=dict(sorted(self._records.items())),
        )
        payload = json.dumps(doc.model_dump(by_alias=True), indent=2, sort_keys=True)
        atomic_write_text(self.path, payload + "\n")
        self._dirty = False
        log.debug(
            "pattern_store_saved",
            path=str(self.path),
            windows=len(self._records),
            reused=self.reused,
            computed=self.computed,
        )
        return True


def atomic_write_text(path: Path, text: str) -> None:
    """Write to a unique temp file in the target directory, then rename over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
