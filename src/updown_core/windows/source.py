"""Window sources — one interface over the partitioned and legacy log layouts.

Partitioned layout::

    <root>/<date>/<window-id>/updown_state.jsonl
    <root>/<date>/<window-id>/btc_reference.jsonl

Legacy layout::

    <root>/<date>/updown_state.jsonl    (rows tagged with market_slug)
    <root>/<date>/btc_reference.jsonl   (untagged, matched by 5m bucket)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from updown_core.models.window import DEFAULT_WINDOW_MS, PricePoint, WindowMeta
from updown_core.normalize import (
    classify_side,
    floor_to_bucket,
    parse_window_id,
    reference_time_ms,
    sample_count,
    side_time_ms,
    to_finite_number,
    to_price,
)
from updown_core.windows.jsonl import iter_jsonl
from updown_core.windows.layout import (
    BTC_FILE,
    UNASSIGNED_DIR,
    UPDOWN_FILE,
    WINDOW_LOG_FILES,
    is_partitioned,
    window_dirs,
)
from updown_core.windows.warnings import WarningTracker

# Grid used to match untagged reference rows to legacy windows
REFERENCE_BUCKET_MS = 5 * 60 * 1000


@dataclass(frozen=True)
class WindowRef:
    """A candidate window: directory name or legacy market slug."""

    date: str
    key: str
    meta: WindowMeta | None


@dataclass(frozen=True)
class SideSample:
    side: str
    point: PricePoint
    sample_count: int = 1


@dataclass
class WindowPoints:
    """Raw, unsorted points read for one window."""

    side: list[SideSample] = field(default_factory=list)
    btc: list[PricePoint] = field(default_factory=list)
    # Last non-empty market_slug seen on the window's odds rows
    market_slug: str = ""


def parse_side_row(
    row: Mapping[str, Any],
    where: str,
    warnings: WarningTracker,
) -> SideSample | None:
    """Normalize one odds row, tallying the reason when it is skipped."""
    side = classify_side(row, row.get("up_token_id"), row.get("down_token_id"))
    if side is None:
        warnings.add("unknown_side", where)
        return None
    ts = side_time_ms(row)
    if ts is None:
        warnings.add("bad_timestamp", where)
        return None
    price = to_price(row)
    if price is None:
        warnings.add("bad_price", where)
        return None
    return SideSample(side=side, point=PricePoint(ts, price), sample_count=sample_count(row))


def parse_reference_row(
    row: Mapping[str, Any],
    where: str,
    warnings: WarningTracker,
) -> PricePoint | None:
    ts = reference_time_ms(row)
    if ts is None:
        warnings.add("bad_timestamp", where)
        return None
    price = to_finite_number(row.get("price"))
    if price is None:
        warnings.add("bad_price", where)
        return None
    return PricePoint(ts, price)


def _row_slug(row: Mapping[str, Any]) -> str:
    return str(row.get("market_slug") or "").strip()


class WindowSource(ABC):
    """Lists candidate windows for one date and yields their raw points."""

    layout: str

    def __init__(self, root: Path, date: str, warnings: WarningTracker) -> None:
        self.root = root
        self.date = date
        self.warnings = warnings

    @property
    def day_dir(self) -> Path:
        return self.root / self.date

    @abstractmethod
    def candidate_windows(self) -> list[WindowRef]:
        """Windows that may exist for this date, in a stable order."""
        ...

    @abstractmethod
    def points_for_window(self, ref: WindowRef) -> WindowPoints:
        ...

    @abstractmethod
    def files_for_window(self, key: str) -> dict[str, Path]:
        """Source files whose stats determine the cached result of window *key*."""
        ...

    @abstractmethod
    def relevant_files(self) -> list[Path]:
        """Every file whose change should invalidate this date's summary."""
        ...


class PartitionedWindowSource(WindowSource):
    """One subdirectory per window, named by the market slug."""

    layout = "partitioned"

    def candidate_windows(self) -> list[WindowRef]:
        refs = []
        for win_dir in window_dirs(self.day_dir):
            if win_dir.name == UNASSIGNED_DIR:
                continue
            if not any((win_dir / name).exists() for name in WINDOW_LOG_FILES):
                continue
            refs.append(WindowRef(self.date, win_dir.name, parse_window_id(win_dir.name)))
        return refs

    def points_for_window(self, ref: WindowRef) -> WindowPoints:
        win_dir = self.day_dir / ref.key
        points = WindowPoints()

        updown_path = win_dir / UPDOWN_FILE
        for line_no, row in iter_jsonl(updown_path, self.warnings):
            sample = parse_side_row(row, f"{updown_path}:{line_no}", self.warnings)
            if sample is None:
                continue
            slug = _row_slug(row)
            if slug:
                points.market_slug = slug
            points.side.append(sample)

        btc_path = win_dir / BTC_FILE
        for line_no, row in iter_jsonl(btc_path, self.warnings):
            point = parse_reference_row(row, f"{btc_path}:{line_no}", self.warnings)
            if point is not None:
                points.btc.append(point)

        return points

    def files_for_window(self, key: str) -> dict[str, Path]:
        win_dir = self.day_dir / key
        return {name: win_dir / name for name in WINDOW_LOG_FILES}

    def relevant_files(self) -> list[Path]:
        files = []
        for ref in self.candidate_windows():
            files.extend(p for p in self.files_for_window(ref.key).values() if p.exists())
        return files


class LegacyWindowSource(WindowSource):
    """Shared per-day files; windows discovered from each row's market_slug.

    Both files are scanned once, on first use, and the points are kept per
    slug for the lifetime of the source.
    """

    layout = "legacy"

    def __init__(self, root: Path, date: str, warnings: WarningTracker) -> None:
        super().__init__(root, date, warnings)
        self._points: dict[str, WindowPoints] | None = None

    def _scan(self) -> dict[str, WindowPoints]:
        if self._points is not None:
            return self._points

        by_slug: dict[str, WindowPoints] = {}
        updown_path = self.day_dir / UPDOWN_FILE
        for line_no, row in iter_jsonl(updown_path, self.warnings):
            where = f"{updown_path}:{line_no}"
            slug = _row_slug(row)
            if not slug:
                self.warnings.add("missing_market_slug", where)
                continue
            bucket = by_slug.setdefault(slug, WindowPoints(market_slug=slug))
            sample = parse_side_row(row, where, self.warnings)
            if sample is not None:
                bucket.side.append(sample)

        index = self._bucket_index(by_slug)
        btc_path = self.day_dir / BTC_FILE
        for line_no, row in iter_jsonl(btc_path, self.warnings):
            point = parse_reference_row(row, f"{btc_path}:{line_no}", self.warnings)
            if point is None:
                continue
            # A point may land in several windows when their bounds overlap
            for slug in index.get(floor_to_bucket(point.ts, REFERENCE_BUCKET_MS), ()):
                by_slug[slug].btc.append(point)

        self._points = by_slug
        return by_slug

    @staticmethod
    def _bounds(slug: str, points: WindowPoints) -> tuple[int, int] | None:
        meta = parse_window_id(slug)
        if meta is not None:
            return meta.start_ms, meta.end_ms
        if not points.side:
            return None
        start = min(s.point.ts for s in points.side)
        end = max(s.point.ts for s in points.side)
        if end <= start:
            end = start + DEFAULT_WINDOW_MS
        return start, end

    def _bucket_index(self, by_slug: dict[str, WindowPoints]) -> dict[int, list[str]]:
        """Map each reference bucket start to the windows whose bounds contain it."""
        index: dict[int, list[str]] = {}
        for slug, points in by_slug.items():
            bounds = self._bounds(slug, points)
            if bounds is None:
                continue
            start, end = bounds
            bucket = floor_to_bucket(start, REFERENCE_BUCKET_MS)
            if bucket < start:
                bucket += REFERENCE_BUCKET_MS
            while bucket < end:
                index.setdefault(bucket, []).append(slug)
                bucket += REFERENCE_BUCKET_MS
        return index

    def candidate_windows(self) -> list[WindowRef]:
        return [
            WindowRef(self.date, slug, parse_window_id(slug))
            for slug in self._scan()
        ]

    def points_for_window(self, ref: WindowRef) -> WindowPoints:
        return self._scan().get(ref.key, WindowPoints(market_slug=ref.key))

    def files_for_window(self, key: str) -> dict[str, Path]:
        return {name: self.day_dir / name for name in WINDOW_LOG_FILES}

    def relevant_files(self) -> list[Path]:
        return [self.day_dir / name for name in WINDOW_LOG_FILES if (self.day_dir / name).exists()]


def open_window_source(root: Path, date: str, warnings: WarningTracker) -> WindowSource:
    """Pick the layout for *date*; partitioned wins when both are present."""
    if is_partitioned(root / date):
        return PartitionedWindowSource(root, date, warnings)
    return LegacyWindowSource(root, date, warnings)
