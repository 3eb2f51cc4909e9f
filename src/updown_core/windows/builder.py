"""Window builder — turns a window source's raw points into finalized Windows."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from updown_core.logging import get_logger
from updown_core.models.window import DEFAULT_WINDOW_MS, Window
from updown_core.normalize import parse_window_id
from updown_core.windows.source import WindowPoints, WindowRef, WindowSource

log = get_logger(__name__)


@dataclass
class ScanCounters:
    """Window tallies for one scan (or accumulated over several dates)."""

    scanned_windows: int = 0
    valid_windows: int = 0
    complete_windows: int = 0
    counted_windows: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "scannedWindows": self.scanned_windows,
            "validWindows": self.valid_windows,
            "completeWindows": self.complete_windows,
            "countedWindows": self.counted_windows,
        }

    def add(self, other: ScanCounters) -> None:
        for name, value in asdict(other).items():
            setattr(self, name, getattr(self, name) + value)


def assemble_window(date: str, ref: WindowRef, points: WindowPoints) -> Window | None:
    """Build one finalized window, or None when it carries no reportable data.

    Bounds come from the reference key when it parses, then from the market
    slug seen on the rows, and finally from the extents of the data itself.
    """
    slug = points.market_slug
    meta = ref.meta
    window_id = ref.key
    if meta is None and slug:
        meta = parse_window_id(slug)
        window_id = slug

    if meta is not None:
        window = Window.from_meta(date, ref.key, slug or ref.key, meta)
        window.window_id = window_id
    else:
        stamps = [s.point.ts for s in points.side] + [p.ts for p in points.btc]
        if not stamps:
            return None
        start_ms, end_ms = min(stamps), max(stamps)
        if end_ms <= start_ms:
            end_ms = start_ms + DEFAULT_WINDOW_MS
        window = Window(
            date=date,
            window_id=f"window-{start_ms}-{end_ms}",
            source_key=ref.key,
            market_slug=slug,
            start_ms=start_ms,
            end_ms=end_ms,
            bounds_source="data",
        )

    for sample in points.side:
        window.add_side_point(sample.side, sample.point, sample.sample_count)
    window.btc_points.extend(points.btc)

    if not window.has_points:
        return None
    window.finalize()
    return window


def build_windows(
    source: WindowSource,
    counters: ScanCounters | None = None,
    minutes: int | None = None,
) -> list[Window]:
    """Reconstruct every reportable window for the source's date.

    Args:
        source: Partitioned or legacy window source.
        counters: Optional tallies to update in place.
        minutes: Keep only windows with this nominal duration. Windows whose
            bounds were derived from data have no nominal duration and are
            dropped when a filter is given.

    Returns:
        Finalized windows sorted by start time, then window id.
    """
    counters = counters if counters is not None else ScanCounters()
    windows: list[Window] = []

    for ref in source.candidate_windows():
        counters.scanned_windows += 1
        window = assemble_window(source.date, ref, source.points_for_window(ref))
        if window is None:
            continue
        if minutes is not None and (
            window.bounds_source != "slug" or window.window_ms != minutes * 60 * 1000
        ):
            continue
        counters.valid_windows += 1
        if window.is_complete:
            counters.complete_windows += 1
        windows.append(window)

    windows.sort(key=lambda w: (w.start_ms, w.window_id))
    log.debug(
        "windows_built",
        date=source.date,
        layout=source.layout,
        windows=len(windows),
        complete=sum(1 for w in windows if w.is_complete),
    )
    return windows
