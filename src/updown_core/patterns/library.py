"""Built-in 5m up/down patterns."""

from __future__ import annotations

from typing import Mapping

from updown_core.models.patterns import PatternOutcome
from updown_core.patterns.base import Pattern
from updown_core.patterns.context import SideContext
from updown_core.patterns.registry import register


@register
class ExtremeReversal(Pattern):
    """Side traded near certainty at some point, then settled near zero."""

    name = "extremeReversal"
    defaults = {"maxPriceThreshold": 0.98, "finalPriceThreshold": 0.01}
    metric_labels = (("max_price", "max"), ("final_price", "final"))

    def evaluate(self, ctx: SideContext, prior_hits: Mapping[str, bool]) -> PatternOutcome:
        hit = (
            ctx.full_max >= self.params["maxPriceThreshold"]
            and ctx.final_price <= self.params["finalPriceThreshold"]
        )
        return PatternOutcome(
            hit=hit,
            metrics={"max_price": ctx.full_max, "final_price": ctx.final_price},
        )


@register
class LateVolatility(Pattern):
    """Within the last two minutes the side rose to a high, then fell below a low."""

    name = "lateVolatility"
    defaults = {"highThreshold": 0.8, "lowThreshold": 0.4}
    metric_labels = (
        ("last2m_high", "last2m_high"),
        ("last2m_low", "last2m_low"),
        ("final_price", "final"),
    )

    def evaluate(self, ctx: SideContext, prior_hits: Mapping[str, bool]) -> PatternOutcome:
        high_seen = False
        hit = False
        for p in ctx.last2m:
            if p.price >= self.params["highThreshold"]:
                high_seen = True
            if high_seen and p.price < self.params["lowThreshold"]:
                hit = True
                break
        return PatternOutcome(
            hit=hit,
            metrics={
                "last2m_high": ctx.last2m_high,
                "last2m_low": ctx.last2m_low,
                "final_price": ctx.final_price,
            },
        )


@register
class PeacefulFinish(Pattern):
    """Side finished near 1 with a shallow last-two-minute drawdown.

    Never reported for a side on which lateVolatility already hit.
    """

    name = "peacefulFinish"
    defaults = {"finalPriceThreshold": 0.99, "maxDrawdownAbsThreshold": 0.1}
    metric_labels = (
        ("final_price", "final"),
        ("last2m_high", "last2m_high"),
        ("last2m_low", "last2m_low"),
        ("max_drawdown_abs", "max_drawdown_abs"),
    )

    def evaluate(self, ctx: SideContext, prior_hits: Mapping[str, bool]) -> PatternOutcome:
        hit = (
            len(ctx.last2m) > 0
            and ctx.final_price >= self.params["finalPriceThreshold"]
            and ctx.max_drawdown_abs is not None
            and ctx.max_drawdown_abs <= self.params["maxDrawdownAbsThreshold"]
            and not prior_hits.get("lateVolatility", False)
        )
        return PatternOutcome(
            hit=hit,
            metrics={
                "final_price": ctx.final_price,
                "last2m_high": ctx.last2m_high,
                "last2m_low": ctx.last2m_low,
                "max_drawdown_abs": ctx.max_drawdown_abs,
            },
        )
