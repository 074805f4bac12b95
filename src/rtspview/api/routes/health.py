"""Health endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from rtspview.api.dependencies import get_viewer_app
from rtspview.models.playback import state_name

if TYPE_CHECKING:
    from rtspview.app import Application

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    playback_state: str
    cameras: int
    uptime_s: float


@router.get("/health", response_model=HealthResponse)
async def health(app: Application = Depends(get_viewer_app)) -> HealthResponse:
    supervisor = app.supervisor
    return HealthResponse(
        status="shutting_down" if supervisor.released else "ok",
        playback_state=state_name(supervisor.state),
        cameras=len(supervisor.settings.value.cameras),
        uptime_s=app.uptime_seconds,
    )
