"""Camera CRUD endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from rtspview.api.dependencies import get_viewer_app
from rtspview.api.errors import APIError, APIErrorCode
from rtspview.models.enums import VideoDisplayMode
from rtspview.models.settings import AppSettings, CameraConfig
from rtspview.redaction import redact_rtsp_url

if TYPE_CHECKING:
    from rtspview.app import Application

router = APIRouter(tags=["cameras"])


class CameraCreate(BaseModel):
    name: str | None = None
    url: str = ""
    display_mode: VideoDisplayMode | None = None


class CameraUpdate(BaseModel):
    name: str | None = None
    url: str | None = None
    display_mode: VideoDisplayMode | None = None


class CurrentCameraRequest(BaseModel):
    index: int = Field(ge=0)


class CameraResponse(BaseModel):
    id: str
    name: str
    url: str
    display_mode: VideoDisplayMode
    current: bool


class CameraListResponse(BaseModel):
    cameras: list[CameraResponse]
    current_index: int | None


def _camera_response(camera: CameraConfig, *, current: bool) -> CameraResponse:
    return CameraResponse(
        id=camera.id,
        name=camera.name,
        url=redact_rtsp_url(camera.url),
        display_mode=camera.display_mode,
        current=current,
    )


def camera_list_response(settings: AppSettings) -> CameraListResponse:
    current = settings.current_camera
    return CameraListResponse(
        cameras=[
            _camera_response(camera, current=current is not None and camera.id == current.id)
            for camera in settings.cameras
        ],
        current_index=settings.current_camera_index if settings.cameras else None,
    )


@router.get("/api/v1/cameras", response_model=CameraListResponse)
async def list_cameras(app: Application = Depends(get_viewer_app)) -> CameraListResponse:
    """List configured cameras (credentials redacted)."""
    return camera_list_response(await app.editor.refresh())


@router.post("/api/v1/cameras", response_model=CameraResponse, status_code=status.HTTP_201_CREATED)
async def create_camera(
    payload: CameraCreate,
    app: Application = Depends(get_viewer_app),
) -> CameraResponse:
    editor = app.editor
    await editor.refresh()
    camera = await editor.add_camera(payload.url)
    if payload.name is not None or payload.display_mode is not None:
        camera = await editor.update_camera(
            camera.id, name=payload.name, display_mode=payload.display_mode
        )
    current = editor.settings.current_camera
    return _camera_response(camera, current=current is not None and current.id == camera.id)


@router.patch("/api/v1/cameras/{camera_id}", response_model=CameraResponse)
async def update_camera(
    camera_id: str,
    payload: CameraUpdate,
    app: Application = Depends(get_viewer_app),
) -> CameraResponse:
    editor = app.editor
    await editor.refresh()
    camera = await editor.update_camera(
        camera_id,
        name=payload.name,
        url=payload.url,
        display_mode=payload.display_mode,
    )
    current = editor.settings.current_camera
    return _camera_response(camera, current=current is not None and current.id == camera.id)


@router.delete("/api/v1/cameras/{camera_id}", response_model=CameraListResponse)
async def delete_camera(
    camera_id: str,
    app: Application = Depends(get_viewer_app),
) -> CameraListResponse:
    editor = app.editor
    await editor.refresh()
    await editor.remove_camera(camera_id)
    return camera_list_response(editor.settings)


@router.put("/api/v1/cameras/current", response_model=CameraListResponse)
async def select_current_camera(
    payload: CurrentCameraRequest,
    app: Application = Depends(get_viewer_app),
) -> CameraListResponse:
    """Select the active camera by position."""
    editor = app.editor
    settings = await editor.refresh()
    if payload.index >= len(settings.cameras):
        raise APIError(
            f"Camera index out of range: {payload.index}",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=APIErrorCode.BAD_REQUEST,
        )
    await editor.select_camera(payload.index)
    return camera_list_response(editor.settings)
