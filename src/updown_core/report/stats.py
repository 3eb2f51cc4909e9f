"""Multi-date pattern statistics, as printed by the report CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

from updown_core.logging import get_logger
from updown_core.models.patterns import WindowPatternResult
from updown_core.models.window import Window
from updown_core.patterns.config import LoadedPatternConfig, load_pattern_config
from updown_core.patterns.evaluator import PatternEvaluator
from updown_core.report.summary import aggregate
from updown_core.windows import (
    ScanCounters,
    WarningTracker,
    build_windows,
    list_dates,
    open_window_source,
)

log = get_logger(__name__)


def build_report(
    root: Path,
    dates: Sequence[str] = (),
    include_incomplete: bool = False,
    pattern_config: LoadedPatternConfig | None = None,
    minutes: int | None = None,
    warnings: WarningTracker | None = None,
) -> dict[str, Any]:
    """Scan *dates* (all dates under *root* when empty) and summarize patterns."""
    warnings = warnings if warnings is not None else WarningTracker()
    pattern_config = pattern_config or load_pattern_config(None, warnings)
    evaluator = PatternEvaluator(pattern_config.config)
    counters = ScanCounters()

    selected = sorted(set(dates)) if dates else list_dates(root)
    evaluated: list[tuple[Window, WindowPatternResult]] = []

    for date in selected:
        day_dir = root / date
        if not day_dir.is_dir():
            warnings.add("missing_date_dir", str(day_dir))
            continue
        source = open_window_source(root, date, warnings)
        for window in build_windows(source, counters, minutes=minutes):
            if not include_incomplete and not window.is_complete:
                continue
            counters.counted_windows += 1
            evaluated.append((window, evaluator.evaluate_window(window)))

    report = aggregate(evaluated, evaluator.enabled_ids)
    log.info(
        "report_built",
        dates=len(selected),
        counted_windows=counters.counted_windows,
        warnings=warnings.total,
    )
    return {
        "config": {
            "root": str(root),
            "dates": selected,
            "includeIncomplete": include_incomplete,
            "minutes": minutes,
            "patternConfigSource": pattern_config.source,
            "patternSetVersion": pattern_config.version,
            "patternParamsHash": pattern_config.hash,
        },
        "counters": counters.to_dict(),
        "patterns": report.to_dict(),
        "warnings": warnings.to_dict(),
    }
