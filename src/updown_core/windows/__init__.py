"""Window reconstruction from collector event logs."""

from updown_core.windows.builder import ScanCounters, assemble_window, build_windows
from updown_core.windows.layout import list_dates
from updown_core.windows.series import build_series
from updown_core.windows.source import (
    LegacyWindowSource,
    PartitionedWindowSource,
    WindowRef,
    WindowSource,
    open_window_source,
)
from updown_core.windows.warnings import WarningTracker

__all__ = [
    "LegacyWindowSource",
    "PartitionedWindowSource",
    "ScanCounters",
    "WarningTracker",
    "WindowRef",
    "WindowSource",
    "assemble_window",
    "build_series",
    "build_windows",
    "list_dates",
    "open_window_source",
]
