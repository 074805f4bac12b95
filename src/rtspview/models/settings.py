"""User-editable settings models."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field

from rtspview.models.enums import (
    BrightnessMode,
    BrightnessModeField,
    DisplayModeField,
    VideoDisplayMode,
)

DEFAULT_CUSTOM_BRIGHTNESS = 0.5
DEFAULT_RECONNECT_DELAY_MS = 3000


def _new_camera_id() -> str:
    return str(uuid.uuid4())


class CameraConfig(BaseModel):
    """A named stream source.

    `id` is generated once at creation and never reused; edits keep it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=_new_camera_id)
    name: str = ""
    url: str = ""
    display_mode: DisplayModeField = Field(default=VideoDisplayMode.FIT, alias="displayMode")


class AppSettings(BaseModel):
    """Immutable snapshot of all user settings."""

    model_config = ConfigDict(frozen=True)

    cameras: tuple[CameraConfig, ...] = ()
    current_camera_index: int = 0
    is_muted: bool = False
    allow_screen_off: bool = True
    brightness_mode: BrightnessModeField = BrightnessMode.AUTO
    custom_brightness: float = Field(default=DEFAULT_CUSTOM_BRIGHTNESS, ge=0.0, le=1.0)
    # Legacy global mode; only used as the default for cameras without their own.
    video_display_mode: DisplayModeField = VideoDisplayMode.FIT
    auto_reconnect: bool = True
    reconnect_delay_ms: int = Field(default=DEFAULT_RECONNECT_DELAY_MS, ge=0)

    @property
    def current_camera(self) -> CameraConfig | None:
        """Return the selected camera, or None when no camera is configured."""
        if 0 <= self.current_camera_index < len(self.cameras):
            return self.cameras[self.current_camera_index]
        return None

    @property
    def rtsp_url(self) -> str:
        """Stream URL of the selected camera ("" when none)."""
        camera = self.current_camera
        return camera.url if camera is not None else ""

    @property
    def has_multiple_cameras(self) -> bool:
        return len(self.cameras) > 1

    @property
    def reconnect_delay_s(self) -> float:
        return max(0, self.reconnect_delay_ms) / 1000.0
