"""On-disk layout of the collector's log root."""

from __future__ import annotations

import re
from pathlib import Path

UPDOWN_FILE = "updown_state.jsonl"
BTC_FILE = "btc_reference.jsonl"
PTB_FILE = "ptb_reference.jsonl"
# Collector bucket for rows it could not attribute to a market
UNASSIGNED_DIR = "_unassigned"

WINDOW_LOG_FILES = (UPDOWN_FILE, BTC_FILE)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_date_name(name: str) -> bool:
    return bool(_DATE_RE.match(str(name or "")))


def list_dates(root: Path) -> list[str]:
    """Date partitions under *root*, oldest first."""
    if not root.is_dir():
        return []
    return sorted(p.name for p in root.iterdir() if p.is_dir() and is_date_name(p.name))


def window_dirs(day_dir: Path) -> list[Path]:
    """Non-hidden subdirectories of a date partition, sorted by name."""
    if not day_dir.is_dir():
        return []
    return sorted(
        (p for p in day_dir.iterdir() if p.is_dir() and not p.name.startswith(".")),
        key=lambda p: p.name,
    )


def is_partitioned(day_dir: Path) -> bool:
    """True when any window directory holds an odds or reference log."""
    for win_dir in window_dirs(day_dir):
        if any((win_dir / name).exists() for name in WINDOW_LOG_FILES):
            return True
    return False
