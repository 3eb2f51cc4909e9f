"""Pattern framework."""

from updown_core.patterns.base import Pattern
from updown_core.patterns.config import (
    LoadedPatternConfig,
    PatternConfigSource,
    config_hash,
    default_pattern_config,
    load_pattern_config,
    normalize_pattern_config,
)
from updown_core.patterns.context import SideContext
from updown_core.patterns.evaluator import PatternEvaluator, evaluate_side
from updown_core.patterns.registry import PATTERN_PRIORITY, PATTERN_REGISTRY, register

__all__ = [
    "LoadedPatternConfig",
    "PATTERN_PRIORITY",
    "PATTERN_REGISTRY",
    "Pattern",
    "PatternConfigSource",
    "PatternEvaluator",
    "SideContext",
    "config_hash",
    "default_pattern_config",
    "evaluate_side",
    "load_pattern_config",
    "normalize_pattern_config",
    "register",
]
