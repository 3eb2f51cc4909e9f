"""Pattern abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from updown_core.models.patterns import PatternOutcome
from updown_core.normalize import to_finite_number
from updown_core.patterns.context import SideContext


class Pattern(ABC):
    """Base class for all price-trajectory patterns.

    Subclasses set the class-level attributes and implement evaluate().
    Instantiate with keyword params from the pattern config to override
    ``defaults``; values that are not finite numbers fall back to the default.
    """

    name: str
    defaults: dict[str, float]
    # (metric key, console label) pairs, in display order
    metric_labels: tuple[tuple[str, str], ...] = ()

    def __init__(self, **params: Any) -> None:
        self.params: dict[str, float] = {}
        for key, default in self.defaults.items():
            value = to_finite_number(params.get(key))
            self.params[key] = default if value is None else value

    @abstractmethod
    def evaluate(self, ctx: SideContext, prior_hits: Mapping[str, bool]) -> PatternOutcome:
        """Evaluate one side of one window.

        *prior_hits* holds the decisions of every enabled pattern that ranks
        ahead of this one for the same side.
        """
        ...
