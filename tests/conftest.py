"""Shared test fixtures.

Window fixtures default to ``btc-updown-5m-1771427100``, which opens at
2026-02-18 15:05:00 UTC and closes at 15:10:00.
"""

import json

import pytest

DATE = "2026-02-18"
WINDOW_START_S = 1771427100
WINDOW_ID = f"btc-updown-5m-{WINDOW_START_S}"
START_MS = WINDOW_START_S * 1000
END_MS = START_MS + 300_000


def _write_lines(path, rows, raw_lines=()):
    if not rows and not raw_lines:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row) + "\n")
        for line in raw_lines:
            f.write(line + "\n")


def _odds_row(side, ts, price, slug):
    row = {"side": side, "bucket_end_ms": ts, "mid": price, "sample_count": 1}
    if slug:
        row["market_slug"] = slug
    return row


@pytest.fixture
def log_root(tmp_path):
    """Empty collector log root."""
    root = tmp_path / "raw"
    root.mkdir()
    return root


@pytest.fixture
def write_window(log_root):
    """Write one partitioned window directory.

    ``up``, ``down`` and ``btc`` are sequences of ``(ts_ms, price)``. A file
    is only created when it gets at least one line.
    """

    def _write(
        window_id=WINDOW_ID,
        up=(),
        down=(),
        btc=(),
        date=DATE,
        slug=None,
        raw_updown_lines=(),
    ):
        win_dir = log_root / date / window_id
        win_dir.mkdir(parents=True, exist_ok=True)
        row_slug = window_id if slug is None else slug
        rows = [_odds_row("up", ts, p, row_slug) for ts, p in up]
        rows += [_odds_row("down", ts, p, row_slug) for ts, p in down]
        _write_lines(win_dir / "updown_state.jsonl", rows, raw_updown_lines)
        _write_lines(
            win_dir / "btc_reference.jsonl",
            [{"event_time_ms": ts, "price": p} for ts, p in btc],
        )
        return win_dir

    return _write


@pytest.fixture
def write_legacy_day(log_root):
    """Write shared per-day legacy files.

    ``odds`` is a sequence of ``(slug, side, ts_ms, price)``; an empty slug
    leaves ``market_slug`` off the row.
    """

    def _write(odds=(), btc=(), date=DATE):
        day_dir = log_root / date
        day_dir.mkdir(parents=True, exist_ok=True)
        _write_lines(
            day_dir / "updown_state.jsonl",
            [_odds_row(side, ts, p, slug) for slug, side, ts, p in odds],
        )
        _write_lines(
            day_dir / "btc_reference.jsonl",
            [{"event_time_ms": ts, "price": p} for ts, p in btc],
        )
        return day_dir

    return _write


@pytest.fixture
def flat_series():
    """``(ts, price)`` pairs every *step_ms* across ``[start_ms, end_ms]``."""

    def _series(price, start_ms=START_MS, end_ms=END_MS, step_ms=10_000):
        return [(ts, price) for ts in range(start_ms, end_ms + 1, step_ms)]

    return _series


@pytest.fixture
def complete_window(write_window, flat_series):
    """A fully covered window where up settles at 1 and down at 0."""
    return write_window(
        up=flat_series(0.995),
        down=flat_series(0.005),
        btc=flat_series(97_000.0),
    )
