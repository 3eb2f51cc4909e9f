"""Tests for pattern config, per-side metrics and the evaluator."""

from __future__ import annotations

import json

import pytest

from updown_core.models.patterns import PatternSetConfig
from updown_core.models.window import PricePoint, Window, WindowMeta
from updown_core.patterns import (
    PATTERN_PRIORITY,
    PATTERN_REGISTRY,
    Pattern,
    PatternConfigSource,
    PatternEvaluator,
    SideContext,
    config_hash,
    default_pattern_config,
    evaluate_side,
    load_pattern_config,
    normalize_pattern_config,
    register,
)
from updown_core.patterns.context import max_drawdown_abs
from updown_core.patterns.evaluator import build_patterns
from updown_core.windows import WarningTracker

START_MS = 1771427100 * 1000
END_MS = START_MS + 300_000


def _points(*pairs):
    """(offset_s, price) pairs relative to the window start."""
    return [PricePoint(START_MS + off * 1000, price) for off, price in pairs]


def _window(up=(), down=()):
    window = Window.from_meta(
        "2026-02-18", "btc-updown-5m-1771427100", "btc-updown-5m-1771427100",
        WindowMeta("btc-updown", 5, START_MS),
    )
    for p in _points(*up):
        window.add_side_point("up", p)
    for p in _points(*down):
        window.add_side_point("down", p)
    window.btc_points.extend(_points((0, 1.0), (300, 1.0)))
    window.finalize()
    return window


class TestRegistry:
    def test_builtins_registered_in_priority_order(self):
        assert PATTERN_PRIORITY == ("extremeReversal", "lateVolatility", "peacefulFinish")
        assert set(PATTERN_REGISTRY) == set(PATTERN_PRIORITY)

    def test_duplicate_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            register(PATTERN_REGISTRY["peacefulFinish"])

    def test_pattern_without_slot_rejected(self):
        class Unranked(Pattern):
            name = "unranked"
            defaults = {}

            def evaluate(self, ctx, prior_hits):
                raise NotImplementedError

        with pytest.raises(ValueError, match="PATTERN_PRIORITY"):
            register(Unranked)

    def test_non_finite_params_fall_back_to_defaults(self):
        pattern = PATTERN_REGISTRY["extremeReversal"](maxPriceThreshold="abc", finalPriceThreshold="0.02")
        assert pattern.params == {"maxPriceThreshold": 0.98, "finalPriceThreshold": 0.02}


class TestSideContext:
    def test_none_without_in_window_points(self):
        assert SideContext.from_points(_points((-10, 0.5), (310, 0.5)), START_MS, END_MS) is None

    def test_metrics(self):
        ctx = SideContext.from_points(
            _points((0, 0.2), (100, 0.9), (200, 0.7), (250, 0.95), (290, 0.85)),
            START_MS,
            END_MS,
        )
        assert ctx.full_max == 0.95
        assert ctx.final_price == 0.85
        assert [p.price for p in ctx.last2m] == [0.7, 0.95, 0.85]
        assert ctx.last2m_high == 0.95
        assert ctx.last2m_low == 0.7
        assert ctx.max_drawdown_abs == pytest.approx(0.1)

    def test_empty_last_two_minutes(self):
        ctx = SideContext.from_points(_points((0, 0.4), (60, 0.5)), START_MS, END_MS)
        assert ctx.last2m == ()
        assert ctx.last2m_high is None
        assert ctx.max_drawdown_abs is None

    def test_max_drawdown_abs(self):
        assert max_drawdown_abs([0.5, 0.9, 0.6, 0.8, 0.3]) == pytest.approx(0.6)
        assert max_drawdown_abs([0.1, 0.2, 0.3]) == 0.0
        assert max_drawdown_abs([]) == 0.0


class TestEvaluator:
    def test_extreme_reversal_on_down_side(self):
        window = _window(
            up=[(0, 0.5), (290, 0.99)],
            down=[(0, 0.5), (60, 0.99), (290, 0.005)],
        )
        result = PatternEvaluator(default_pattern_config()).evaluate_window(window)
        assert "extremeReversal" in result.patterns
        hits = result.pattern_side_hits["extremeReversal"]
        assert [h.side for h in hits] == ["down"]
        assert hits[0].metrics == {"max_price": 0.99, "final_price": 0.005}

    def test_late_volatility_suppresses_peaceful_finish(self):
        # Up spikes then crashes inside the last two minutes, then recovers to 1
        window = _window(up=[(0, 0.5), (200, 0.85), (230, 0.3), (240, 0.995), (299, 0.995)])
        ctx = SideContext.from_points(window.side_points["up"], START_MS, END_MS)
        loose = normalize_pattern_config(
            {"patterns": {"peacefulFinish": {"params": {"maxDrawdownAbsThreshold": 1.0}}}}
        )
        evaluation = evaluate_side(ctx, build_patterns(loose))
        assert evaluation.hits["lateVolatility"] is True
        assert evaluation.hits["peacefulFinish"] is False

        result = PatternEvaluator(loose).evaluate_window(window)
        assert result.patterns == ["lateVolatility"]
        assert result.pattern_primary == "lateVolatility"
        assert result.pattern_side_hits["peacefulFinish"] == []

    def test_peaceful_finish_when_calm(self):
        window = _window(up=[(0, 0.6), (200, 0.97), (250, 0.995), (299, 0.996)])
        result = PatternEvaluator(default_pattern_config()).evaluate_window(window)
        assert result.patterns == ["peacefulFinish"]
        assert result.pattern_side_hits["peacefulFinish"][0].side == "up"

    def test_disabled_pattern_never_reported(self):
        cfg = normalize_pattern_config({"patterns": {"peacefulFinish": {"enabled": False}}})
        evaluator = PatternEvaluator(cfg)
        assert evaluator.enabled_ids == ["extremeReversal", "lateVolatility"]
        window = _window(up=[(0, 0.6), (250, 0.995), (299, 0.996)])
        result = evaluator.evaluate_window(window)
        assert result.patterns == []
        assert result.pattern_primary is None

    def test_side_hit_keys_cover_every_pattern(self):
        result = PatternEvaluator(default_pattern_config()).evaluate_window(_window(up=[(0, 0.5)]))
        assert set(result.pattern_side_hits) == set(PATTERN_PRIORITY)

    def test_patterns_listed_in_priority_order(self):
        window = _window(
            up=[(0, 0.5), (200, 0.85), (230, 0.3), (299, 0.35)],
            down=[(0, 0.5), (100, 0.99), (299, 0.005)],
        )
        result = PatternEvaluator(default_pattern_config()).evaluate_window(window)
        assert result.patterns == ["extremeReversal", "lateVolatility"]
        assert result.pattern_primary == "extremeReversal"

    def test_api_shape(self):
        result = PatternEvaluator(default_pattern_config()).evaluate_window(_window(up=[(0, 0.5)]))
        data = result.to_api()
        assert set(data) == {"patterns", "patternPrimary", "patternSideHits"}


class TestPatternConfig:
    def test_defaults(self):
        cfg = default_pattern_config()
        assert cfg.pattern_set_version == "1"
        assert cfg.params_for("lateVolatility") == {"highThreshold": 0.8, "lowThreshold": 0.4}

    def test_unknown_ids_and_bad_types_ignored(self):
        cfg = normalize_pattern_config({
            "patternSetVersion": " 2 ",
            "patterns": {
                "madeUp": {"enabled": True},
                "extremeReversal": {"enabled": "no", "params": [1]},
            },
        })
        assert cfg.pattern_set_version == "2"
        assert "madeUp" not in cfg.patterns
        assert cfg.is_enabled("extremeReversal") is True
        assert cfg.params_for("extremeReversal") == {"maxPriceThreshold": 0.98, "finalPriceThreshold": 0.01}

    def test_hash_ignores_key_order(self):
        a = PatternSetConfig.model_validate({
            "patternSetVersion": "1",
            "patterns": {"lateVolatility": {"enabled": True, "params": {"highThreshold": 0.8, "lowThreshold": 0.4}}},
        })
        b = PatternSetConfig.model_validate({
            "patterns": {"lateVolatility": {"params": {"lowThreshold": 0.4, "highThreshold": 0.8}, "enabled": True}},
            "patternSetVersion": "1",
        })
        assert config_hash(a) == config_hash(b)

    def test_hash_changes_with_threshold(self):
        base = default_pattern_config()
        tweaked = normalize_pattern_config(
            {"patterns": {"lateVolatility": {"params": {"highThreshold": 0.85}}}}
        )
        assert config_hash(base) != config_hash(tweaked)

    def test_load_missing_file_uses_defaults(self, tmp_path):
        loaded = load_pattern_config(tmp_path / "absent.json")
        assert loaded.source == "default"
        assert loaded.hash == config_hash(default_pattern_config())

    def test_load_file(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({"patternSetVersion": "7"}))
        loaded = load_pattern_config(path)
        assert loaded.version == "7"
        assert loaded.source == str(path.resolve())

    def test_bad_json_warns_and_falls_back(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text("{broken")
        warnings = WarningTracker()
        loaded = load_pattern_config(path, warnings)
        assert warnings.count("bad_pattern_config_json") == 1
        assert loaded.source == "default"
        assert loaded.config == default_pattern_config()

    def test_non_object_json_warns(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text("[1, 2]")
        warnings = WarningTracker()
        loaded = load_pattern_config(path, warnings)
        assert warnings.count("bad_pattern_config_json") == 1
        assert loaded.source == "default"


class TestPatternConfigSource:
    def test_reloads_only_on_change(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({"patternSetVersion": "1"}))
        source = PatternConfigSource(path)
        first = source.current()
        assert source.current() is first

        path.write_text(json.dumps({"patternSetVersion": "22"}))
        second = source.current()
        assert second.version == "22"
        assert second.hash != first.hash

    def test_no_path_means_defaults(self):
        loaded = PatternConfigSource(None).current()
        assert loaded.source == "default"

    def test_bad_file_warnings_exposed(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text("nope")
        source = PatternConfigSource(path)
        source.current()
        assert source.warnings.count("bad_pattern_config_json") == 1
