"""Helpers to launch the local HTTP API."""

from __future__ import annotations

import logging
import threading
import time
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .config import ServerSettings
from .paths import get_data_path
from .webapp import create_app


def run_server(
    *,
    data_path: Optional[Path] = None,
    settings: Optional[ServerSettings] = None,
    open_browser: bool = False,
    log_level: str = "info",
) -> None:
    """Start the FastAPI app and optionally open its dashboard endpoint."""
    resolved = settings or ServerSettings()
    app = create_app(data_path=data_path or get_data_path(), settings=resolved)

    if open_browser:
        url = f"http://{resolved.host}:{resolved.port}/api/dashboard"
        threading.Thread(
            target=_launch_browser_after_delay, args=(url,), daemon=True
        ).start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=resolved.host, port=resolved.port, log_level=log_level)


def _launch_browser_after_delay(url: str) -> None:
    time.sleep(1.0)
    try:
        webbrowser.open(url)
    except Exception:
        logging.getLogger(__name__).exception("Failed to launch browser for %s", url)
