"""Replay query layer shared by the HTTP API."""

from updown_core.replay.service import ReplayService, empty_result

__all__ = ["ReplayService", "empty_result"]
