"""Non-fatal scan warnings: counted per code, first N kept as samples."""

from __future__ import annotations

from collections import Counter
from typing import Any

from updown_core.logging import get_logger

log = get_logger(__name__)

DEFAULT_SAMPLE_LIMIT = 25


class WarningTracker:
    """Accumulates per-row and per-file problems without aborting a scan."""

    def __init__(self, sample_limit: int = DEFAULT_SAMPLE_LIMIT) -> None:
        self._sample_limit = sample_limit
        self._counts: Counter[str] = Counter()
        self._samples: list[dict[str, str]] = []

    def add(self, code: str, message: str) -> None:
        self._counts[code] += 1
        if len(self._samples) < self._sample_limit:
            self._samples.append({"code": code, "message": message})
        log.debug("scan_warning", code=code, detail=message)

    def count(self, code: str) -> int:
        return self._counts[code]

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def merge(self, other: WarningTracker) -> None:
        for code, n in other._counts.items():
            self._counts[code] += n
        room = self._sample_limit - len(self._samples)
        if room > 0:
            self._samples.extend(other._samples[:room])

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "byCode": dict(sorted(self._counts.items())),
            "samples": list(self._samples),
        }
