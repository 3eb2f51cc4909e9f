"""Human-readable rendering of a pattern report."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import updown_core.patterns.library  # noqa: F401 - registers built-in patterns
from updown_core.patterns.registry import PATTERN_PRIORITY, PATTERN_REGISTRY


def fmt(value: Any, digits: int = 4) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.{digits}f}"
    return "-"


def format_utc_range(start_ms: int, end_ms: int) -> str:
    start = datetime.fromtimestamp(start_ms / 1000, tz=timezone.utc)
    end = datetime.fromtimestamp(end_ms / 1000, tz=timezone.utc)
    return f"{start:%Y-%m-%d %H:%M:%S} - {end:%H:%M:%S} UTC"


def format_hit(pattern_id: str, hit: dict[str, Any]) -> str:
    """One ``- <range> | side=<side> | <label>=<value> ...`` line."""
    parts = [
        format_utc_range(hit["window_start_ms"], hit["window_end_ms"]),
        f"side={hit['side']}",
    ]
    metrics = hit.get("metrics") or {}
    for key, label in PATTERN_REGISTRY[pattern_id].metric_labels:
        parts.append(f"{label}={fmt(metrics.get(key))}")
    return "- " + " | ".join(parts)


def render_text(report: dict[str, Any]) -> str:
    cfg = report["config"]
    counters = report["counters"]
    lines = [
        "=== Up/Down Pattern Stats ===",
        f"root: {cfg['root']}",
        f"dates: {', '.join(cfg['dates']) or '-'}",
        f"includeIncomplete: {str(cfg['includeIncomplete']).lower()}",
        f"patternConfig: {cfg['patternConfigSource'] or 'default'}",
        f"patternSetVersion: {cfg['patternSetVersion']}",
        f"patternParamsHash: {cfg['patternParamsHash'] or '-'}",
        "",
    ]
    lines.extend(f"{name}: {value}" for name, value in counters.items())
    lines.append("")

    patterns = report["patterns"]
    for pid in PATTERN_PRIORITY:
        suffix = "" if patterns[pid]["enabled"] else " (disabled)"
        lines.append(f"{pid}: {patterns[pid]['windowCount']}{suffix}")
    lines.append("")

    for pid in PATTERN_PRIORITY:
        hits = patterns[pid]["hits"]
        lines.append(f"[{pid}] side hits: {len(hits)}")
        if not hits:
            lines.append("- (none)")
        lines.extend(format_hit(pid, hit) for hit in hits)
        lines.append("")

    warnings = report["warnings"]
    if warnings["total"] > 0:
        lines.append("warnings:")
        lines.extend(f"- {code}: {n}" for code, n in warnings["byCode"].items())
        if warnings["samples"]:
            lines.append("warning samples:")
            lines.extend(f"- [{s['code']}] {s['message']}" for s in warnings["samples"])

    return "\n".join(lines).rstrip("\n") + "\n"
