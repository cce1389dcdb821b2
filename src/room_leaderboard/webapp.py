"""FastAPI application exposing the leaderboard over HTTP."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import EngineSettings
from .engine import EngineResult, compute_from_dir
from .ingest import ScrapePayload, record_scrape
from .paths import get_data_dir
from .reporting import leaderboard_to_dict, render_markdown, session_log_to_dict

logger = logging.getLogger(__name__)


def create_app(
    *,
    data_dir: Optional[Path] = None,
    settings: Optional[EngineSettings] = None,
) -> FastAPI:
    """Instantiate the FastAPI application; every read recomputes from the logs."""
    resolved_data_dir = get_data_dir(data_dir)
    resolved_settings = settings or EngineSettings()

    app = FastAPI(title="Room Leaderboard", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.data_dir = resolved_data_dir
    app.state.settings = resolved_settings

    def _compute(request: Request) -> EngineResult:
        return compute_from_dir(request.app.state.data_dir, request.app.state.settings)

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        current: EngineSettings = request.app.state.settings
        return {
            "data_dir": str(request.app.state.data_dir),
            "grace_minutes": current.grace_period.total_seconds() / 60.0,
            "gap_minutes": current.gap_cap.total_seconds() / 60.0,
            "system_actors": list(current.system_actors),
        }

    @app.get("/api/leaderboard")
    def leaderboard(
        request: Request,
        limit: Optional[int] = Query(
            default=None, ge=1, description="Only return the top N users."
        ),
    ) -> Dict[str, Any]:
        document = leaderboard_to_dict(_compute(request).leaderboard)
        if limit is not None:
            document["users"] = document["users"][:limit]
        return document

    @app.get("/api/leaderboard.md")
    def leaderboard_markdown(request: Request) -> Dict[str, Any]:
        document = leaderboard_to_dict(_compute(request).leaderboard)
        return {"markdown": render_markdown(document)}

    @app.get("/api/session")
    def session(request: Request) -> Dict[str, Any]:
        return session_log_to_dict(_compute(request))

    @app.get("/api/users/{user}")
    def user_detail(user: str, request: Request) -> Dict[str, Any]:
        result = _compute(request)
        document = leaderboard_to_dict(result.leaderboard)
        entry = next((item for item in document["users"] if item["user"] == user), None)
        if entry is None:
            raise HTTPException(status_code=404, detail="User not found")
        session_doc = session_log_to_dict(result)
        return {
            **entry,
            "windows": session_doc["windows"].get(user, []),
        }

    @app.post("/api/scrapes")
    def create_scrape(payload: ScrapePayload, request: Request) -> Dict[str, Any]:
        try:
            outcome = record_scrape(
                request.app.state.data_dir, payload, request.app.state.settings
            )
        except OSError as exc:
            logger.exception("Failed to record scrape")
            raise HTTPException(status_code=500, detail="Failed to persist scrape.") from exc
        return {
            "activities_seen": outcome.activities_seen,
            "activities_added": outcome.activities_added,
            "users_present": outcome.users_present,
        }

    return app
