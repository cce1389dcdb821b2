"""Run the leaderboard API under uvicorn."""

from __future__ import annotations

import logging
import threading
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .config import EngineSettings
from .webapp import create_app

logger = logging.getLogger(__name__)

BROWSER_DELAY_SECONDS = 1.0


def leaderboard_url(host: str, port: int) -> str:
    return f"http://{host}:{port}/api/leaderboard"


def run_server(
    *,
    host: str = "127.0.0.1",
    port: int = 8766,
    data_dir: Optional[Path] = None,
    settings: Optional[EngineSettings] = None,
    open_browser: bool = False,
    log_level: str = "info",
) -> None:
    """Serve the API until interrupted; every request recomputes from the logs."""
    app = create_app(data_dir=data_dir, settings=settings or EngineSettings())
    url = leaderboard_url(host, port)
    logger.info("Serving leaderboard for %s at %s", app.state.data_dir, url)

    if open_browser:
        timer = threading.Timer(BROWSER_DELAY_SECONDS, webbrowser.open, args=(url,))
        timer.daemon = True
        timer.start()

    uvicorn.run(app, host=host, port=port, log_level=log_level)
