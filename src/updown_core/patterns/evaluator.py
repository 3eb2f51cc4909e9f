"""Pattern evaluation — a sequential fold over the priority list."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import reduce
from typing import Mapping

import updown_core.patterns.library  # noqa: F401 - registers built-in patterns
from updown_core.models.patterns import (
    PatternOutcome,
    PatternSetConfig,
    SideHit,
    WindowPatternResult,
)
from updown_core.models.window import SIDES, Window
from updown_core.patterns.base import Pattern
from updown_core.patterns.context import SideContext
from updown_core.patterns.registry import PATTERN_PRIORITY, PATTERN_REGISTRY


@dataclass(frozen=True)
class SideEvaluation:
    """Accumulator carried from one pattern to the next for a single side."""

    hits: Mapping[str, bool] = field(default_factory=dict)
    outcomes: Mapping[str, PatternOutcome] = field(default_factory=dict)


def _step(ctx: SideContext):
    def apply(acc: SideEvaluation, pattern: Pattern) -> SideEvaluation:
        outcome = pattern.evaluate(ctx, acc.hits)
        return SideEvaluation(
            hits={**acc.hits, pattern.name: outcome.hit},
            outcomes={**acc.outcomes, pattern.name: outcome},
        )

    return apply


def evaluate_side(ctx: SideContext, patterns: list[Pattern]) -> SideEvaluation:
    """Run *patterns* (already in priority order) over one side."""
    return reduce(_step(ctx), patterns, SideEvaluation())


def build_patterns(config: PatternSetConfig) -> list[Pattern]:
    """Instantiate every enabled pattern in priority order."""
    patterns = []
    for pattern_id in PATTERN_PRIORITY:
        if not config.is_enabled(pattern_id):
            continue
        cls = PATTERN_REGISTRY.get(pattern_id)
        if cls is None:
            continue
        patterns.append(cls(**config.params_for(pattern_id)))
    return patterns


class PatternEvaluator:
    """Evaluates windows against one pattern config."""

    def __init__(self, config: PatternSetConfig) -> None:
        self.config = config
        self.patterns = build_patterns(config)

    @property
    def enabled_ids(self) -> list[str]:
        return [p.name for p in self.patterns]

    def evaluate_window(self, window: Window) -> WindowPatternResult:
        """Patterns hit on either side of *window*, in priority order."""
        side_hits: dict[str, list[SideHit]] = {pid: [] for pid in PATTERN_PRIORITY}

        for side in SIDES:
            ctx = SideContext.from_points(window.side_points[side], window.start_ms, window.end_ms)
            if ctx is None:
                continue
            evaluation = evaluate_side(ctx, self.patterns)
            for pattern in self.patterns:
                outcome = evaluation.outcomes[pattern.name]
                if outcome.hit:
                    side_hits[pattern.name].append(SideHit(side=side, metrics=outcome.metrics))

        present = [pid for pid in PATTERN_PRIORITY if side_hits[pid]]
        return WindowPatternResult(
            patterns=present,
            pattern_primary=present[0] if present else None,
            pattern_side_hits=side_hits,
        )
