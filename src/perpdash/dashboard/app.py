"""FastAPI dashboard application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from perpdash.config import AppSettings
from perpdash.dashboard.routes import analysis, api


def create_dashboard_app(
    settings: AppSettings | None = None, lifespan: Any = None
) -> FastAPI:
    """Create and configure the FastAPI dashboard application.

    Args:
        settings: Application settings exposed to route handlers.
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        Configured FastAPI application. The fetcher and analyst slots on
        app.state are wired by the lifespan (or directly by tests).
    """
    app = FastAPI(
        title="Funding Rate Risk Dashboard",
        lifespan=lifespan,
    )

    app.state.settings = settings or AppSettings()
    app.state.fetcher = None
    app.state.store = None
    app.state.analyst = None

    app.include_router(api.router, prefix="/api")
    app.include_router(analysis.router, prefix="/api")

    return app
