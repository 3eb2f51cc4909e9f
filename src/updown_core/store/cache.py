"""Bounded in-memory cache for per-date pattern summaries."""

from __future__ import annotations

import threading
from typing import Any, NamedTuple


class CacheKey(NamedTuple):
    date: str
    include_incomplete: bool
    config_hash: str
    day_signature: str


class PatternCache:
    """Thread-safe dict with insertion-order eviction.

    Once more than *max_entries* keys are held, the oldest inserted key is
    dropped. Reads do not refresh an entry's position.
    """

    def __init__(self, max_entries: int = 64) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._store: dict[CacheKey, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Any | None:
        """Return cached value or ``None`` if missing."""
        with self._lock:
            return self._store.get(key)

    def set(self, key: CacheKey, value: Any) -> None:
        """Store *value* under *key*, evicting the oldest entries past capacity."""
        with self._lock:
            self._store.pop(key, None)
            self._store[key] = value
            while len(self._store) > self._max_entries:
                oldest = next(iter(self._store))
                del self._store[oldest]

    def invalidate_date(self, date: str) -> int:
        """Drop every entry for *date*; returns how many were removed."""
        with self._lock:
            stale = [k for k in self._store if k.date == date]
            for k in stale:
                del self._store[k]
            return len(stale)

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
