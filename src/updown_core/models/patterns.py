"""Pattern configuration and result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Metrics = dict[str, float | None]


class PatternDefinition(BaseModel):
    enabled: bool = True
    params: dict[str, Any] = Field(default_factory=dict)


class PatternSetConfig(BaseModel):
    """A versioned, named set of pattern definitions."""

    model_config = ConfigDict(populate_by_name=True)

    pattern_set_version: str = Field(default="1", alias="patternSetVersion")
    patterns: dict[str, PatternDefinition] = Field(default_factory=dict)

    def is_enabled(self, pattern_id: str) -> bool:
        definition = self.patterns.get(pattern_id)
        return definition is not None and definition.enabled

    def params_for(self, pattern_id: str) -> dict[str, Any]:
        definition = self.patterns.get(pattern_id)
        return dict(definition.params) if definition else {}


@dataclass(frozen=True)
class PatternOutcome:
    """Result of one pattern on one side."""

    hit: bool
    metrics: Metrics = field(default_factory=dict)


class SideHit(BaseModel):
    side: str
    metrics: Metrics


class WindowPatternResult(BaseModel):
    """Patterns exhibited by one window, in priority order."""

    model_config = ConfigDict(populate_by_name=True)

    patterns: list[str] = Field(default_factory=list)
    pattern_primary: str | None = Field(default=None, alias="patternPrimary")
    pattern_side_hits: dict[str, list[SideHit]] = Field(
        default_factory=dict, alias="patternSideHits"
    )

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class PatternHit(BaseModel):
    """One (window, side, pattern) occurrence."""

    date: str
    market_slug: str
    window_id: str
    window_start_ms: int
    window_end_ms: int
    side: str
    metrics: Metrics
