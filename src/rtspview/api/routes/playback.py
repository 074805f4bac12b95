"""Playback state and intent endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from rtspview.api.dependencies import get_viewer_app
from rtspview.models.playback import Error, Reconnecting, UiState, state_name
from rtspview.redaction import redact_rtsp_url

if TYPE_CHECKING:
    from rtspview.app import Application

router = APIRouter(tags=["playback"])


class PlaybackStateResponse(BaseModel):
    state: str
    attempt: int | None = None
    state_message: str | None = None
    recoverable: bool | None = None
    rtsp_url: str
    show_controls: bool
    is_muted: bool
    error_message: str | None = None


class SelectStreamRequest(BaseModel):
    uri: str


def state_response(ui: UiState) -> PlaybackStateResponse:
    response = PlaybackStateResponse(
        state=state_name(ui.playback_state),
        rtsp_url=redact_rtsp_url(ui.rtsp_url),
        show_controls=ui.show_controls,
        is_muted=ui.is_muted,
        error_message=ui.error_message,
    )
    match ui.playback_state:
        case Reconnecting(attempt=attempt):
            response.attempt = attempt
        case Error(message=message, recoverable=recoverable):
            response.state_message = message
            response.recoverable = recoverable
    return response


def _current(app: Application) -> PlaybackStateResponse:
    return state_response(app.supervisor.ui_state.value)


@router.get("/api/v1/state", response_model=PlaybackStateResponse)
async def get_state(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    """Return the published playback snapshot."""
    return _current(app)


@router.post("/api/v1/playback/start", response_model=PlaybackStateResponse)
async def start_playback(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.start_playback()
    return _current(app)


@router.post("/api/v1/playback/stop", response_model=PlaybackStateResponse)
async def stop_playback(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.stop_playback()
    return _current(app)


@router.post("/api/v1/playback/pause", response_model=PlaybackStateResponse)
async def pause(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.pause()
    return _current(app)


@router.post("/api/v1/playback/resume", response_model=PlaybackStateResponse)
async def resume(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.resume()
    return _current(app)


@router.post("/api/v1/playback/reconnect", response_model=PlaybackStateResponse)
async def reconnect(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    """Retry the current camera with a fresh attempt budget."""
    app.supervisor.reconnect()
    return _current(app)


@router.post("/api/v1/playback/mute", response_model=PlaybackStateResponse)
async def toggle_mute(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.toggle_mute()
    await app.supervisor.flush_writes()
    return _current(app)


@router.post("/api/v1/playback/next", response_model=PlaybackStateResponse)
async def next_camera(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.next_camera()
    await app.supervisor.flush_writes()
    return _current(app)


@router.post("/api/v1/playback/previous", response_model=PlaybackStateResponse)
async def previous_camera(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.previous_camera()
    await app.supervisor.flush_writes()
    return _current(app)


@router.post("/api/v1/playback/select", response_model=PlaybackStateResponse)
async def select_stream(
    payload: SelectStreamRequest,
    app: Application = Depends(get_viewer_app),
) -> PlaybackStateResponse:
    """Play an arbitrary stream URI without changing the saved selection."""
    app.supervisor.select_camera(payload.uri)
    return _current(app)


@router.post("/api/v1/controls/toggle", response_model=PlaybackStateResponse)
async def toggle_controls(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.toggle_controls()
    return _current(app)


@router.post("/api/v1/controls/show", response_model=PlaybackStateResponse)
async def show_controls(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.show_controls()
    return _current(app)


@router.post("/api/v1/controls/hide", response_model=PlaybackStateResponse)
async def hide_controls(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.hide_controls()
    return _current(app)


@router.delete("/api/v1/error", response_model=PlaybackStateResponse)
async def clear_error(app: Application = Depends(get_viewer_app)) -> PlaybackStateResponse:
    app.supervisor.clear_error()
    return _current(app)
