"""
Admin dashboard launcher.

The dashboard is served by uvicorn on its own thread and event loop; match
cancels it triggers are handed back to the bot loop by the routes.
"""

from threading import Thread
from typing import Optional

import uvicorn

from config.settings import DASHBOARD_HOST, DASHBOARD_PASSWORD, DASHBOARD_PORT
from event_logger import log_event
from web.app import app


def build_dashboard_server(host: str = DASHBOARD_HOST, port: int = DASHBOARD_PORT) -> uvicorn.Server:
    config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    return uvicorn.Server(config)


def start_dashboard_server(
    password: Optional[str] = DASHBOARD_PASSWORD,
    host: str = DASHBOARD_HOST,
    port: int = DASHBOARD_PORT,
) -> Optional[Thread]:
    """
    Serve the dashboard from a daemon thread.

    Without a dashboard password nothing is started, since every route
    requires basic auth.

    Returns:
        The server thread, or None when the dashboard is disabled
    """
    if not password:
        print("ℹ️ Dashboard disabled (DASHBOARD_PASSWORD is not set)")
        return None

    server = build_dashboard_server(host, port)
    thread = Thread(target=server.run, name="cf-match-dashboard", daemon=True)
    thread.start()

    print(f"🌐 Dashboard at http://{host}:{port}")
    log_event("dashboard_started", host=host, port=port)
    return thread
