"""Pattern hit aggregation across windows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from updown_core.models.patterns import PatternHit, WindowPatternResult
from updown_core.models.window import Window
from updown_core.patterns.registry import PATTERN_PRIORITY


def hit_sort_key(hit: PatternHit) -> tuple[int, str, str]:
    return (hit.window_start_ms, hit.market_slug, hit.side)


@dataclass
class PatternReport:
    """Per-pattern window counts and flat, deterministically sorted hits."""

    enabled: list[str]
    counts: dict[str, int] = field(default_factory=lambda: {pid: 0 for pid in PATTERN_PRIORITY})
    hits: dict[str, list[PatternHit]] = field(
        default_factory=lambda: {pid: [] for pid in PATTERN_PRIORITY}
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            pid: {
                "enabled": pid in self.enabled,
                "windowCount": self.counts[pid],
                "sideHitCount": len(self.hits[pid]),
                "hits": [h.model_dump() for h in self.hits[pid]],
            }
            for pid in PATTERN_PRIORITY
        }


def aggregate(
    evaluated: Iterable[tuple[Window, WindowPatternResult]],
    enabled: Sequence[str],
) -> PatternReport:
    """Count windows per pattern and flatten side hits.

    A window counts once for a pattern when either side hits it. Hits are
    sorted by ``(window_start_ms, market_slug, side)``.
    """
    report = PatternReport(enabled=list(enabled))
    for window, result in evaluated:
        for pid in result.patterns:
            if pid not in report.counts:
                continue
            report.counts[pid] += 1
            for side_hit in result.pattern_side_hits.get(pid, []):
                report.hits[pid].append(
                    PatternHit(
                        date=window.date,
                        market_slug=window.market_slug or window.window_id,
                        window_id=window.window_id,
                        window_start_ms=window.start_ms,
                        window_end_ms=window.end_ms,
                        side=side_hit.side,
                        metrics=side_hit.metrics,
                    )
                )
    for pid in report.hits:
        report.hits[pid].sort(key=hit_sort_key)
    return report
