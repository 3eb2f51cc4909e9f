"""Replay service — per-date interval summaries and raw series for the API."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from updown_core.config.schema import AppConfig
from updown_core.logging import get_logger
from updown_core.models.patterns import WindowPatternResult
from updown_core.models.window import Window
from updown_core.patterns.config import LoadedPatternConfig, PatternConfigSource
from updown_core.patterns.evaluator import PatternEvaluator
from updown_core.patterns.registry import PATTERN_PRIORITY
from updown_core.report.summary import aggregate
from updown_core.store import (
    CacheKey,
    PatternCache,
    PatternStore,
    day_signature,
    window_source_signature,
)
from updown_core.windows import (
    ScanCounters,
    WarningTracker,
    WindowSource,
    build_series,
    build_windows,
    list_dates,
    open_window_source,
)
from updown_core.windows.layout import is_date_name

log = get_logger(__name__)


def empty_result() -> WindowPatternResult:
    return WindowPatternResult(pattern_side_hits={pid: [] for pid in PATTERN_PRIORITY})


class ReplayService:
    """Builds (and caches) what the replay UI asks for.

    Owns the pattern config source and the in-memory cache for one log root.
    """

    def __init__(
        self,
        log_root: str | Path,
        pattern_config: PatternConfigSource,
        cache: PatternCache | None = None,
        persist_store: bool = True,
        minutes: int | None = None,
    ) -> None:
        self.log_root = Path(log_root)
        self.pattern_config = pattern_config
        self.cache = cache if cache is not None else PatternCache()
        self.persist_store = persist_store
        self.minutes = minutes

    @classmethod
    def from_config(cls, config: AppConfig) -> ReplayService:
        return cls(
            log_root=Path(config.storage.log_root).resolve(),
            pattern_config=PatternConfigSource(config.patterns.config_path),
            cache=PatternCache(max_entries=config.server.cache_size),
            persist_store=config.server.persist_store,
            minutes=config.patterns.minutes,
        )

    def list_dates(self) -> list[str]:
        """Date partitions under the log root, newest first."""
        return list(reversed(list_dates(self.log_root)))

    def resolve_date(self, date: str | None) -> str | None:
        """*date* when it names an existing partition, otherwise the latest one."""
        dates = self.list_dates()
        if date and is_date_name(date) and date in dates:
            return date
        return dates[0] if dates else None

    def build_intervals(self, date: str, include_incomplete: bool = False) -> dict[str, Any]:
        """Interval summaries plus pattern counts for one date.

        Results are cached on ``(date, includeIncomplete, paramsHash,
        daySignature)``; touching any source log of the date or changing the
        pattern config yields a new key.
        """
        loaded = self.pattern_config.current()
        warnings = WarningTracker()
        warnings.merge(self.pattern_config.warnings)

        source = open_window_source(self.log_root, date, warnings)
        key = CacheKey(date, include_incomplete, loaded.hash, day_signature(source.relevant_files()))
        cached = self.cache.get(key)
        if cached is not None:
            log.debug("intervals_cache_hit", date=date, include_incomplete=include_incomplete)
            return cached

        payload = self._compute_intervals(source, loaded, include_incomplete, warnings)
        self.cache.set(key, payload)
        return payload

    def _compute_intervals(
        self,
        source: WindowSource,
        loaded: LoadedPatternConfig,
        include_incomplete: bool,
        warnings: WarningTracker,
    ) -> dict[str, Any]:
        counters = ScanCounters()
        windows = build_windows(source, counters, minutes=self.minutes)
        evaluator = PatternEvaluator(loaded.config)

        store: PatternStore | None = None
        if self.persist_store and source.layout == "partitioned":
            store = PatternStore(source.day_dir, source.date, include_incomplete, loaded)
            store.load()

        intervals: list[dict[str, Any]] = []
        evaluated: list[tuple[Window, WindowPatternResult]] = []
        for window in windows:
            if include_incomplete or window.is_complete:
                counters.counted_windows += 1
                if store is not None:
                    signature = window_source_signature(
                        source.files_for_window(window.source_key), window
                    )
                    result = store.resolve(window, signature, evaluator.evaluate_window)
                else:
                    result = evaluator.evaluate_window(window)
                evaluated.append((window, result))
            else:
                result = empty_result()
            intervals.append({**window.summary(), **result.to_api()})

        if store is not None:
            try:
                store.save()
            except OSError as exc:
                # A read-only log root still serves freshly computed results
                log.warning("pattern_store_write_failed", path=str(store.path), error=str(exc))

        report = aggregate(evaluated, evaluator.enabled_ids)
        log.info(
            "intervals_built",
            date=source.date,
            layout=source.layout,
            intervals=len(intervals),
            counted_windows=counters.counted_windows,
            reused=store.reused if store is not None else 0,
        )
        return {
            "date": source.date,
            "layout": source.layout,
            "intervals": intervals,
            "patternSummary": {
                "patternSetVersion": loaded.version,
                "paramsHash": loaded.hash,
                "includeIncomplete": include_incomplete,
                "order": list(PATTERN_PRIORITY),
                "countedWindows": counters.counted_windows,
                "patterns": {
                    pid: {
                        "enabled": pid in report.enabled,
                        "windowCount": report.counts[pid],
                        "sideHitCount": len(report.hits[pid]),
                    }
                    for pid in PATTERN_PRIORITY
                },
            },
            "counters": counters.to_dict(),
            "warnings": warnings.to_dict(),
        }

    def build_series(
        self,
        start_ms: int,
        end_ms: int,
        market_slug: str = "",
        window_id: str = "",
        date_hint: str = "",
    ) -> dict[str, Any]:
        """Raw chart series for ``[start_ms, end_ms]``; never cached."""
        if end_ms <= start_ms:
            raise ValueError("endMs must be greater than startMs")
        warnings = WarningTracker()
        series = build_series(
            self.log_root,
            start_ms,
            end_ms,
            market_slug=market_slug,
            window_key=window_id,
            date_hint=date_hint,
            warnings=warnings,
        )
        return {
            "startMs": start_ms,
            "endMs": end_ms,
            "marketSlug": market_slug,
            "windowId": window_id,
            **series,
            "warnings": warnings.to_dict(),
        }

    def invalidate(self, date: str | None = None) -> int:
        """Drop cached summaries for *date*, or everything when None."""
        if date is not None:
            removed = self.cache.invalidate_date(date)
        else:
            removed = len(self.cache)
            self.cache.clear()
            self.pattern_config.invalidate()
        log.info("cache_invalidated", date=date, removed=removed)
        return removed
