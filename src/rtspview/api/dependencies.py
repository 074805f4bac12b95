"""FastAPI dependency helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi import Request, status

from rtspview.api.errors import APIError, APIErrorCode

if TYPE_CHECKING:
    from rtspview.app import Application


async def get_viewer_app(request: Request) -> Application:
    """Get the viewer Application instance from request state."""
    app = cast("Application | None", getattr(request.app.state, "viewer", None))
    if app is None:
        raise APIError(
            "Application not initialized",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=APIErrorCode.APP_NOT_INITIALIZED,
        )
    return app
