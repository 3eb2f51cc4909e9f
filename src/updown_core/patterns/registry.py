"""Pattern registry — decorated classes are auto-registered."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from updown_core.patterns.base import Pattern

# Evaluation and reporting order. Later patterns may depend on earlier hits.
PATTERN_PRIORITY: tuple[str, ...] = ("extremeReversal", "lateVolatility", "peacefulFinish")

PATTERN_REGISTRY: dict[str, type[Pattern]] = {}


def register(cls: type[Pattern]) -> type[Pattern]:
    """Class decorator that adds a pattern to the global registry."""
    if not hasattr(cls, "name") or not cls.name:
        raise ValueError(f"Pattern class {cls.__name__} must define a 'name' attribute")
    if cls.name in PATTERN_REGISTRY:
        raise ValueError(f"Duplicate pattern name: {cls.name!r}")
    if cls.name not in PATTERN_PRIORITY:
        raise ValueError(f"Pattern {cls.name!r} has no slot in PATTERN_PRIORITY")
    PATTERN_REGISTRY[cls.name] = cls
    return cls
