"""Settings endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from rtspview.api.dependencies import get_viewer_app
from rtspview.api.routes.cameras import CameraListResponse, camera_list_response
from rtspview.models.enums import BrightnessMode, VideoDisplayMode
from rtspview.models.settings import AppSettings

if TYPE_CHECKING:
    from rtspview.app import Application

router = APIRouter(tags=["settings"])


class SettingsResponse(BaseModel):
    cameras: CameraListResponse
    is_muted: bool
    allow_screen_off: bool
    brightness_mode: BrightnessMode
    custom_brightness: float
    video_display_mode: VideoDisplayMode
    auto_reconnect: bool
    reconnect_delay_ms: int


class SettingsPatch(BaseModel):
    allow_screen_off: bool | None = None
    brightness_mode: BrightnessMode | None = None
    custom_brightness: float | None = Field(default=None, ge=0.0, le=1.0)
    video_display_mode: VideoDisplayMode | None = None
    auto_reconnect: bool | None = None
    reconnect_delay_ms: int | None = Field(default=None, ge=0)


def settings_response(settings: AppSettings) -> SettingsResponse:
    return SettingsResponse(
        cameras=camera_list_response(settings),
        is_muted=settings.is_muted,
        allow_screen_off=settings.allow_screen_off,
        brightness_mode=settings.brightness_mode,
        custom_brightness=settings.custom_brightness,
        video_display_mode=settings.video_display_mode,
        auto_reconnect=settings.auto_reconnect,
        reconnect_delay_ms=settings.reconnect_delay_ms,
    )


@router.get("/api/v1/settings", response_model=SettingsResponse)
async def get_settings(app: Application = Depends(get_viewer_app)) -> SettingsResponse:
    """Return the resolved settings snapshot."""
    return settings_response(await app.editor.refresh())


@router.patch("/api/v1/settings", response_model=SettingsResponse)
async def patch_settings(
    payload: SettingsPatch,
    app: Application = Depends(get_viewer_app),
) -> SettingsResponse:
    """Update screen, brightness and reconnect fields.

    The reconnect delay is clamped to 1000-10000 ms like the settings form.
    """
    editor = app.editor
    await editor.refresh()
    if payload.allow_screen_off is not None:
        await editor.update_allow_screen_off(payload.allow_screen_off)
    if payload.brightness_mode is not None:
        await editor.update_brightness_mode(payload.brightness_mode)
    if payload.custom_brightness is not None:
        await editor.update_custom_brightness(payload.custom_brightness)
    if payload.video_display_mode is not None:
        await editor.update_video_display_mode(payload.video_display_mode)
    if payload.auto_reconnect is not None:
        await editor.update_auto_reconnect(payload.auto_reconnect)
    if payload.reconnect_delay_ms is not None:
        await editor.update_reconnect_delay(payload.reconnect_delay_ms)
    return settings_response(editor.settings)
