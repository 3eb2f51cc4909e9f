"""Raw time-series slices for chart rendering (no pattern evaluation)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from updown_core.normalize import (
    classify_side,
    ptb_time_ms,
    reference_time_ms,
    sample_count,
    side_time_ms,
    to_finite_number,
    to_price,
    utc_date,
)
from updown_core.windows.jsonl import iter_jsonl
from updown_core.windows.layout import BTC_FILE, PTB_FILE, UPDOWN_FILE, is_date_name, is_partitioned
from updown_core.windows.warnings import WarningTracker


def day_range(start_ms: int, end_ms: int) -> list[str]:
    """Every UTC date touched by ``[start_ms, end_ms]``."""
    day = datetime.fromtimestamp(start_ms / 1000, tz=timezone.utc).date()
    last = datetime.fromtimestamp(end_ms / 1000, tz=timezone.utc).date()
    out = []
    while day <= last:
        out.append(day.isoformat())
        day += timedelta(days=1)
    return out


class _SeriesCollector:
    def __init__(self, start_ms: int, end_ms: int, warnings: WarningTracker) -> None:
        self.start_ms = start_ms
        self.end_ms = end_ms
        self.warnings = warnings
        self.btc: list[list[Any]] = []
        self.ptb: list[list[Any]] = []
        self.up: list[list[Any]] = []
        self.down: list[list[Any]] = []

    def _in_range(self, ts: int | None) -> bool:
        return ts is not None and self.start_ms <= ts <= self.end_ms

    def read_btc(self, path: Path) -> None:
        for _, row in iter_jsonl(path, self.warnings):
            ts = reference_time_ms(row)
            price = to_finite_number(row.get("price"))
            if price is None or not self._in_range(ts):
                continue
            self.btc.append([ts, price])

    def read_updown(self, path: Path, market_slug: str = "", default_slug: str = "") -> None:
        for _, row in iter_jsonl(path, self.warnings):
            ts = side_time_ms(row)
            price = to_price(row)
            if price is None or not self._in_range(ts):
                continue
            slug = str(row.get("market_slug") or "").strip()
            if market_slug and slug != market_slug:
                continue
            side = classify_side(row, row.get("up_token_id"), row.get("down_token_id"))
            point = [ts, price, slug or default_slug, sample_count(row), str(row.get("event_type") or "")]
            if side == "up":
                self.up.append(point)
            elif side == "down":
                self.down.append(point)

    def read_ptb(self, path: Path, market_slug: str = "") -> None:
        # Price-to-beat logs are optional; absence is not worth a warning
        if not path.is_file():
            return
        for _, row in iter_jsonl(path, self.warnings):
            ts = ptb_time_ms(row)
            price = to_finite_number(row.get("ptb_price"))
            if price is None or not self._in_range(ts):
                continue
            slug = str(row.get("market_slug") or "").strip()
            if market_slug and slug and slug != market_slug:
                continue
            self.ptb.append([
                ts,
                price,
                str(row.get("ptb_method") or ""),
                to_finite_number(row.get("window_start_ms")),
                to_finite_number(row.get("window_end_ms")),
            ])

    def result(self) -> dict[str, list[list[Any]]]:
        for series in (self.btc, self.ptb, self.up, self.down):
            series.sort(key=lambda p: p[0])
        return {"btc": self.btc, "ptb": self.ptb, "up": self.up, "down": self.down}


def build_series(
    root: Path,
    start_ms: int,
    end_ms: int,
    market_slug: str = "",
    window_key: str = "",
    date_hint: str = "",
    warnings: WarningTracker | None = None,
) -> dict[str, list[list[Any]]]:
    """Reference, price-to-beat and per-side odds series for ``[start_ms, end_ms]``.

    On a partitioned date the window directory named *window_key* (or
    *market_slug*) is read. On a legacy date every day the range touches is
    read and odds rows are filtered by *market_slug* when one is given.
    """
    warnings = warnings if warnings is not None else WarningTracker()
    collector = _SeriesCollector(start_ms, end_ms, warnings)
    date = date_hint if is_date_name(date_hint) else utc_date(start_ms)

    if is_partitioned(root / date):
        key = window_key or market_slug
        win_dir = root / date / key
        if key and win_dir.is_dir():
            collector.read_btc(win_dir / BTC_FILE)
            collector.read_updown(win_dir / UPDOWN_FILE, default_slug=key)
            collector.read_ptb(win_dir / PTB_FILE)
        else:
            warnings.add("missing_window_dir", str(win_dir))
        return collector.result()

    for day in day_range(start_ms, end_ms):
        day_dir = root / day
        collector.read_btc(day_dir / BTC_FILE)
        collector.read_updown(day_dir / UPDOWN_FILE, market_slug=market_slug)
        collector.read_ptb(day_dir / PTB_FILE, market_slug=market_slug)
    return collector.result()
