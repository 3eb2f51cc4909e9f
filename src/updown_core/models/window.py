"""Window model — one market epoch with per-side odds and reference prices."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Sequence

Side = Literal["up", "down"]

SIDES: tuple[Side, Side] = ("up", "down")
DEFAULT_WINDOW_MS = 5 * 60 * 1000
# Fraction of the nominal duration both series must span to count as complete
COMPLETE_RATIO = 0.8


@dataclass(frozen=True)
class PricePoint:
    """One normalized observation."""

    ts: int  # epoch ms
    price: float


@dataclass(frozen=True)
class WindowMeta:
    """Bounds parsed from a ``<label>-<minutes>m-<epochSeconds>`` identifier."""

    label: str
    minutes: int
    start_ms: int

    @property
    def window_ms(self) -> int:
        return self.minutes * 60 * 1000

    @property
    def end_ms(self) -> int:
        return self.start_ms + self.window_ms


@dataclass
class Coverage:
    up_ms: int = 0
    down_ms: int = 0
    btc_ms: int = 0

    @property
    def odds_ms(self) -> int:
        return max(self.up_ms, self.down_ms)

    def to_dict(self) -> dict[str, int]:
        return {
            "upCoverageMs": self.up_ms,
            "downCoverageMs": self.down_ms,
            "oddsCoverageMs": self.odds_ms,
            "btcCoverageMs": self.btc_ms,
        }


def coverage_ms(points: Sequence[PricePoint]) -> int:
    """Span between the first and last point of a sorted series."""
    if len(points) <= 1:
        return 0
    return points[-1].ts - points[0].ts


def complete_min_ms(window_ms: int) -> int:
    """Minimum coverage for completeness: 240000 ms for a 5-minute window."""
    return int(window_ms * COMPLETE_RATIO)


@dataclass
class Window:
    """One market's fixed-duration trading window.

    ``side_points`` and ``btc_points`` may be filled in any order; call
    :meth:`finalize` before reading ``coverage`` or ``is_complete``.
    """

    date: str
    window_id: str
    source_key: str
    market_slug: str
    start_ms: int
    end_ms: int
    window_ms: int = DEFAULT_WINDOW_MS
    bounds_source: Literal["slug", "data"] = "slug"
    side_points: dict[str, list[PricePoint]] = field(
        default_factory=lambda: {"up": [], "down": []}
    )
    btc_points: list[PricePoint] = field(default_factory=list)
    sample_counts: dict[str, int] = field(default_factory=lambda: {"up": 0, "down": 0})
    coverage: Coverage = field(default_factory=Coverage)
    is_complete: bool = False

    @classmethod
    def from_meta(
        cls,
        date: str,
        source_key: str,
        market_slug: str,
        meta: WindowMeta,
    ) -> Window:
        return cls(
            date=date,
            window_id=source_key,
            source_key=source_key,
            market_slug=market_slug,
            start_ms=meta.start_ms,
            end_ms=meta.end_ms,
            window_ms=meta.window_ms,
            bounds_source="slug",
        )

    @property
    def has_points(self) -> bool:
        """True when both the reference series and at least one side have data."""
        return bool(self.btc_points) and any(self.side_points[s] for s in SIDES)

    def add_side_point(self, side: str, point: PricePoint, sample_count: int = 1) -> None:
        self.side_points[side].append(point)
        self.sample_counts[side] += max(1, sample_count)

    def finalize(self) -> None:
        """Sort every series and recompute coverage and completeness."""
        for side in SIDES:
            self.side_points[side].sort(key=lambda p: p.ts)
        self.btc_points.sort(key=lambda p: p.ts)

        self.coverage = Coverage(
            up_ms=coverage_ms(self.side_points["up"]),
            down_ms=coverage_ms(self.side_points["down"]),
            btc_ms=coverage_ms(self.btc_points),
        )
        threshold = complete_min_ms(self.window_ms)
        self.is_complete = (
            self.coverage.btc_ms >= threshold and self.coverage.odds_ms >= threshold
        )

    @property
    def label(self) -> str:
        start = datetime.fromtimestamp(self.start_ms / 1000, tz=timezone.utc)
        end = datetime.fromtimestamp(self.end_ms / 1000, tz=timezone.utc)
        return f"{start:%Y-%m-%d %H:%M} - {end:%H:%M}"

    def summary(self) -> dict:
        """Interval summary as served by the replay API (without pattern fields)."""
        return {
            "windowId": self.window_id,
            "sourceKey": self.source_key,
            "marketSlug": self.market_slug,
            "startMs": self.start_ms,
            "endMs": self.end_ms,
            "btcPoints": len(self.btc_points),
            "upPoints": len(self.side_points["up"]),
            "downPoints": len(self.side_points["down"]),
            "upSampleCount": self.sample_counts["up"],
            "downSampleCount": self.sample_counts["down"],
            **self.coverage.to_dict(),
            "isComplete": self.is_complete,
            "label": self.label,
        }
