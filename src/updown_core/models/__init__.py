"""Domain models — windows, points, pattern results and store documents."""

from updown_core.models.patterns import (
    PatternDefinition,
    PatternHit,
    PatternOutcome,
    PatternSetConfig,
    SideHit,
    WindowPatternResult,
)
from updown_core.models.window import (
    COMPLETE_RATIO,
    DEFAULT_WINDOW_MS,
    SIDES,
    Coverage,
    PricePoint,
    Window,
    WindowMeta,
)

__all__ = [
    "COMPLETE_RATIO",
    "Coverage",
    "DEFAULT_WINDOW_MS",
    "PatternDefinition",
    "PatternHit",
    "PatternOutcome",
    "PatternSetConfig",
    "PricePoint",
    "SIDES",
    "SideHit",
    "Window",
    "WindowMeta",
    "WindowPatternResult",
]
