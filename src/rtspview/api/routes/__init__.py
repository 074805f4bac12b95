"""API route registration."""

from __future__ import annotations

from fastapi import FastAPI

from rtspview.api.routes import cameras, health, playback, settings


def register_routes(app: FastAPI) -> None:
    """Register all API routers."""
    app.include_router(health.router)
    app.include_router(playback.router)
    app.include_router(cameras.router)
    app.include_router(settings.router)
