"""Row normalization — timestamps, prices, sides and window identifiers.

Collector rows are loosely typed: numbers may arrive as strings, epochs may
be seconds or milliseconds, and odds rows carry a mix of BBO and trade
fields. Everything here is a pure function over one row.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Mapping

from updown_core.models.window import WindowMeta

# Epoch values at or above this are already milliseconds (year ~3554 in seconds)
MS_EPOCH_CUTOFF = 50_000_000_000
PRICE_EPSILON = 1e-9

_WINDOW_ID_RE = re.compile(r"^(?P<label>.+)-(?P<minutes>\d+)m-(?P<start>\d{10})$")

SIDE_TIME_FIELDS = ("bucket_end_ms", "last_event_time_ms", "event_time_ms", "receive_time_ms")
REFERENCE_TIME_FIELDS = ("event_time_ms", "receive_time_ms")
PTB_TIME_FIELDS = ("tick_ts_ms", "boundary_ms", "window_start_ms", "receive_time_ms")


def to_finite_number(value: Any) -> float | None:
    """Coerce numbers and numeric strings to float; None for anything else."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        n = float(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            n = float(s)
        except ValueError:
            return None
    else:
        return None
    return n if math.isfinite(n) else None


def epoch_to_ms(value: Any) -> int | None:
    """Normalize an epoch (seconds or ms, numeric or string) or ISO date to ms."""
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        n = to_finite_number(s)
        if n is None:
            return _parse_iso_ms(s)
        value = n

    n = to_finite_number(value)
    if n is None:
        return None
    if n >= MS_EPOCH_CUTOFF:
        return math.floor(n)
    return math.floor(n * 1000)


def _parse_iso_ms(raw: str) -> int | None:
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def first_time_ms(row: Mapping[str, Any], fields: tuple[str, ...]) -> int | None:
    """Return the first field in *fields* that normalizes to a timestamp."""
    for name in fields:
        ts = epoch_to_ms(row.get(name))
        if ts is not None:
            return ts
    return None


def side_time_ms(row: Mapping[str, Any]) -> int | None:
    return first_time_ms(row, SIDE_TIME_FIELDS)


def reference_time_ms(row: Mapping[str, Any]) -> int | None:
    return first_time_ms(row, REFERENCE_TIME_FIELDS)


def ptb_time_ms(row: Mapping[str, Any]) -> int | None:
    return first_time_ms(row, PTB_TIME_FIELDS)


def to_price(row: Mapping[str, Any]) -> float | None:
    """Canonical odds price for an order-book row.

    The last trade wins when it sits inside the visible best bid/ask band;
    otherwise the mid is used.
    """
    last_trade = to_finite_number(row.get("last_trade_price"))
    best_bid = to_finite_number(row.get("best_bid"))
    best_ask = to_finite_number(row.get("best_ask"))
    mid = to_finite_number(row.get("mid"))
    if mid is None and best_bid is not None and best_ask is not None:
        mid = (best_bid + best_ask) / 2

    if last_trade is not None:
        if best_bid is not None and best_ask is not None:
            low = min(best_bid, best_ask) - PRICE_EPSILON
            high = max(best_bid, best_ask) + PRICE_EPSILON
            if low <= last_trade <= high:
                return last_trade
            return mid
        return last_trade

    return mid


def classify_side(
    row: Mapping[str, Any],
    up_token_id: str | None = None,
    down_token_id: str | None = None,
) -> str | None:
    """Return ``"up"``, ``"down"`` or None for a discarded row.

    With known outcome token ids, the row's asset id decides. Otherwise the
    ``side`` (or ``outcome``) label is matched case-insensitively.
    """
    if up_token_id or down_token_id:
        asset_id = row.get("asset_id") or row.get("token_id")
        if asset_id is not None:
            asset_id = str(asset_id).strip().lower()
            if up_token_id and asset_id == str(up_token_id).strip().lower():
                return "up"
            if down_token_id and asset_id == str(down_token_id).strip().lower():
                return "down"
            return None

    label = row.get("side") or row.get("outcome") or ""
    label = str(label).strip().lower()
    if label in ("up", "down"):
        return label
    return None


def parse_window_id(value: Any) -> WindowMeta | None:
    """Parse ``<label>-<minutes>m-<epochSeconds>``, e.g. ``btc-updown-5m-1771427100``."""
    m = _WINDOW_ID_RE.match(str(value or "").strip())
    if not m:
        return None
    minutes = int(m.group("minutes"))
    if minutes <= 0:
        return None
    return WindowMeta(
        label=m.group("label"),
        minutes=minutes,
        start_ms=int(m.group("start")) * 1000,
    )


def floor_to_bucket(ms: int, bucket_ms: int) -> int:
    return (ms // bucket_ms) * bucket_ms


def sample_count(row: Mapping[str, Any]) -> int:
    """Number of raw ticks folded into an aggregated row (at least 1)."""
    n = to_finite_number(row.get("sample_count"))
    if n is None:
        return 1
    return max(1, int(n))


def utc_date(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
