"""Tests for the replay service and its HTTP API."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from updown_core.api import create_app
from updown_core.config.schema import AppConfig, PatternsConfig, ServerConfig, StorageConfig
from updown_core.patterns import PatternEvaluator
from updown_core.replay import ReplayService

DATE = "2026-02-18"
START_MS = 1771427100 * 1000
WINDOW_ID = "btc-updown-5m-1771427100"


@pytest.fixture
def app_config(log_root, tmp_path):
    return AppConfig(
        storage=StorageConfig(log_root=str(log_root)),
        patterns=PatternsConfig(config_path=str(tmp_path / "patterns.json")),
        server=ServerConfig(cache_size=8),
    )


@pytest.fixture
def service(app_config):
    return ReplayService.from_config(app_config)


@pytest.fixture
def client(app_config, service):
    return TestClient(create_app(app_config, service=service))


class TestReplayService:
    def test_list_dates_newest_first(self, log_root, service):
        for name in ("2026-02-17", "2026-02-19", "2026-02-18"):
            (log_root / name).mkdir()
        assert service.list_dates() == ["2026-02-19", "2026-02-18", "2026-02-17"]

    def test_resolve_date(self, log_root, service):
        assert service.resolve_date(None) is None
        (log_root / "2026-02-17").mkdir()
        (log_root / DATE).mkdir()
        assert service.resolve_date(None) == DATE
        assert service.resolve_date("2026-02-17") == "2026-02-17"
        assert service.resolve_date("garbage") == DATE
        assert service.resolve_date("2026-01-01") == DATE

    def test_intervals(self, service, complete_window):
        data = service.build_intervals(DATE)
        assert data["date"] == DATE
        assert data["layout"] == "partitioned"
        (interval,) = data["intervals"]
        assert interval["windowId"] == WINDOW_ID
        assert interval["sourceKey"] == WINDOW_ID
        assert interval["startMs"] == START_MS
        assert interval["isComplete"] is True
        assert interval["btcCoverageMs"] == 300_000
        assert interval["patterns"] == ["peacefulFinish"]
        assert interval["patternPrimary"] == "peacefulFinish"
        assert interval["patternSideHits"]["peacefulFinish"][0]["side"] == "up"

        summary = data["patternSummary"]
        assert summary["order"] == ["extremeReversal", "lateVolatility", "peacefulFinish"]
        assert summary["countedWindows"] == 1
        assert summary["includeIncomplete"] is False
        assert summary["patterns"]["peacefulFinish"] == {
            "enabled": True,
            "windowCount": 1,
            "sideHitCount": 1,
        }

    def test_incomplete_window_listed_without_patterns(self, service, write_window, flat_series):
        write_window(up=flat_series(0.995, start_ms=START_MS + 200_000), btc=flat_series(1.0))
        (interval,) = service.build_intervals(DATE)["intervals"]
        assert interval["isComplete"] is False
        assert interval["patterns"] == []
        assert interval["patternSideHits"]["peacefulFinish"] == []

        (interval,) = service.build_intervals(DATE, include_incomplete=True)["intervals"]
        assert interval["patterns"] == ["peacefulFinish"]

    def test_cached_until_logs_change(self, service, complete_window, monkeypatch):
        first = service.build_intervals(DATE)
        assert len(service.cache) == 1

        def fail(self, window):
            raise AssertionError("cache and store should have answered")

        monkeypatch.setattr(PatternEvaluator, "evaluate_window", fail)
        assert service.build_intervals(DATE) is first

        # A fresh in-memory cache still avoids evaluation via the persisted store
        service.cache.clear()
        assert service.build_intervals(DATE)["intervals"] == first["intervals"]
        monkeypatch.undo()

        with (complete_window / "btc_reference.jsonl").open("a") as f:
            f.write(json.dumps({"event_time_ms": START_MS + 300_000, "price": 97_001.0}) + "\n")
        updated = service.build_intervals(DATE)
        assert updated is not first
        assert updated["intervals"][0]["btcPoints"] == first["intervals"][0]["btcPoints"] + 1

    def test_pattern_config_change_recomputes(self, service, complete_window, app_config):
        service.build_intervals(DATE)
        with open(app_config.patterns.config_path, "w") as f:
            json.dump({"patterns": {"peacefulFinish": {"enabled": False}}}, f)
        data = service.build_intervals(DATE)
        assert data["intervals"][0]["patterns"] == []
        assert data["patternSummary"]["patterns"]["peacefulFinish"]["enabled"] is False

    def test_legacy_day_not_persisted(self, log_root, service, write_legacy_day):
        odds = [(WINDOW_ID, "up", START_MS + i * 10_000, 0.5) for i in range(31)]
        btc = [(START_MS + i * 10_000, 1.0) for i in range(31)]
        day_dir = write_legacy_day(odds=odds, btc=btc)
        data = service.build_intervals(DATE)
        assert data["layout"] == "legacy"
        assert len(data["intervals"]) == 1
        assert not (day_dir / ".pattern_store").exists()

    def test_series_rejects_empty_range(self, service):
        with pytest.raises(ValueError):
            service.build_series(START_MS, START_MS)

    def test_invalidate(self, service, complete_window):
        service.build_intervals(DATE)
        service.build_intervals(DATE, include_incomplete=True)
        assert service.invalidate(DATE) == 2
        assert len(service.cache) == 0
        service.build_intervals(DATE)
        assert service.invalidate() == 1


class TestApi:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["logRootExists"] is True

    def test_dates(self, client, complete_window):
        assert client.get("/api/dates").json() == {"dates": [DATE]}

    def test_intervals_default_to_latest(self, client, complete_window):
        data = client.get("/api/intervals").json()
        assert data["date"] == DATE
        assert data["intervals"][0]["windowId"] == WINDOW_ID

    def test_intervals_without_data(self, client):
        assert client.get("/api/intervals").json() == {"date": None, "intervals": []}

    def test_intervals_include_incomplete(self, client, write_window, flat_series):
        write_window(up=flat_series(0.995, start_ms=START_MS + 200_000), btc=flat_series(1.0))
        data = client.get("/api/intervals", params={"date": DATE, "includeIncomplete": "true"}).json()
        assert data["patternSummary"]["includeIncomplete"] is True
        assert data["intervals"][0]["patterns"] == ["peacefulFinish"]

    def test_series(self, client, complete_window):
        resp = client.get(
            "/api/series",
            params={"startMs": START_MS, "endMs": START_MS + 20_000, "windowId": WINDOW_ID},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert [p[0] for p in data["btc"]] == [START_MS, START_MS + 10_000, START_MS + 20_000]
        assert len(data["up"]) == 3
        assert len(data["down"]) == 3

    def test_series_source_key_wins(self, client, complete_window):
        resp = client.get(
            "/api/series",
            params={
                "startMs": START_MS,
                "endMs": START_MS + 20_000,
                "windowId": "window-1-2",
                "sourceKey": WINDOW_ID,
            },
        )
        assert len(resp.json()["btc"]) == 3

    @pytest.mark.parametrize(
        "params",
        [{}, {"startMs": START_MS}, {"startMs": START_MS, "endMs": START_MS}],
    )
    def test_series_invalid_range(self, client, params):
        resp = client.get("/api/series", params=params)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "invalid startMs/endMs"

    def test_cache_invalidate(self, client, service, complete_window):
        client.get("/api/intervals")
        assert len(service.cache) == 1
        resp = client.post("/api/cache/invalidate", params={"date": DATE})
        assert resp.json() == {"date": DATE, "removed": 1}
        assert len(service.cache) == 0
