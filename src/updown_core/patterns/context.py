"""Per-side metrics shared by every pattern."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from updown_core.models.window import PricePoint

LAST_TWO_MIN_MS = 2 * 60 * 1000


def max_drawdown_abs(prices: Sequence[float]) -> float:
    """Largest absolute drop from a running high."""
    if len(prices) == 0:
        return 0.0
    arr = np.asarray(prices, dtype=np.float64)
    peak = np.maximum.accumulate(arr)
    return float(np.max(peak - arr))


@dataclass(frozen=True)
class SideContext:
    """One side's in-window series and the metrics derived from it."""

    points: tuple[PricePoint, ...]
    last2m: tuple[PricePoint, ...]
    final_price: float
    full_max: float
    last2m_high: float | None
    last2m_low: float | None
    max_drawdown_abs: float | None

    @classmethod
    def from_points(
        cls,
        points: Sequence[PricePoint],
        window_start_ms: int,
        window_end_ms: int,
    ) -> SideContext | None:
        """Build the context, or None when the side has no in-window points."""
        in_window = sorted(
            (p for p in points if window_start_ms <= p.ts <= window_end_ms),
            key=lambda p: p.ts,
        )
        if not in_window:
            return None

        prices = np.array([p.price for p in in_window], dtype=np.float64)
        last2m_start = window_end_ms - LAST_TWO_MIN_MS
        last2m = tuple(p for p in in_window if p.ts >= last2m_start)
        tail = prices[len(in_window) - len(last2m):]

        return cls(
            points=tuple(in_window),
            last2m=last2m,
            final_price=float(prices[-1]),
            full_max=float(prices.max()),
            last2m_high=float(tail.max()) if last2m else None,
            last2m_low=float(tail.min()) if last2m else None,
            max_drawdown_abs=max_drawdown_abs(tail) if last2m else None,
        )
