"""Pattern aggregation and reporting."""

from updown_core.report.render import render_text
from updown_core.report.stats import build_report
from updown_core.report.summary import PatternReport, aggregate

__all__ = ["PatternReport", "aggregate", "build_report", "render_text"]
