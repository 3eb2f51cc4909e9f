"""HTTP API over the replay service."""

from updown_core.api.app import create_app

__all__ = ["create_app"]
