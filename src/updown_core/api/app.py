"""FastAPI application for the up/down replay UI backend."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from updown_core.config.loader import load_config
from updown_core.config.schema import AppConfig
from updown_core.logging import get_logger
from updown_core.replay import ReplayService

logger = get_logger(__name__)


def get_service(request: Request) -> ReplayService:
    return request.app.state.replay


def create_app(config: Optional[AppConfig] = None, service: Optional[ReplayService] = None) -> FastAPI:
    """Build the API around one :class:`ReplayService`.

    Handlers are plain ``def`` so FastAPI runs the blocking file scans in
    its threadpool.
    """
    config = config or load_config()
    service = service or ReplayService.from_config(config)

    app = FastAPI(
        title="Up/Down Replay API",
        description="Window summaries, pattern hits and raw series from collector logs",
        version="0.1.0",
    )
    app.state.config = config
    app.state.replay = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health_check(request: Request):
        """Health check endpoint."""
        svc = get_service(request)
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "logRoot": str(svc.log_root),
            "logRootExists": svc.log_root.is_dir(),
        }

    @app.get("/api/dates")
    def list_dates(request: Request):
        """Available date partitions, newest first."""
        return {"dates": get_service(request).list_dates()}

    @app.get("/api/intervals")
    def get_intervals(
        request: Request,
        date: Optional[str] = None,
        include_incomplete: bool = Query(False, alias="includeIncomplete"),
    ):
        """Interval summaries and pattern counts for one date (latest by default)."""
        svc = get_service(request)
        resolved = svc.resolve_date(date)
        if resolved is None:
            return {"date": None, "intervals": []}
        return svc.build_intervals(resolved, include_incomplete=include_incomplete)

    @app.get("/api/series")
    def get_series(
        request: Request,
        start_ms: Optional[int] = Query(None, alias="startMs"),
        end_ms: Optional[int] = Query(None, alias="endMs"),
        market_slug: str = Query("", alias="marketSlug"),
        window_id: str = Query("", alias="windowId"),
        source_key: str = Query("", alias="sourceKey"),
        date: str = "",
    ):
        """Raw reference, price-to-beat and odds series for a time range."""
        if start_ms is None or end_ms is None or end_ms <= start_ms:
            raise HTTPException(status_code=400, detail="invalid startMs/endMs")
        return get_service(request).build_series(
            start_ms,
            end_ms,
            market_slug=market_slug.strip(),
            window_id=(source_key or window_id).strip(),
            date_hint=date.strip(),
        )

    @app.post("/api/cache/invalidate")
    def invalidate_cache(request: Request, date: Optional[str] = None):
        """Drop cached summaries for one date, or all of them."""
        removed = get_service(request).invalidate(date or None)
        logger.info("cache_invalidate_requested", date=date, removed=removed)
        return {"date": date or None, "removed": removed}

    return app
