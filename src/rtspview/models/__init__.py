"""Data models for rtspview."""

from rtspview.models.enums import (
    BrightnessMode,
    PlayerErrorCode,
    PlayerStateCode,
    VideoDisplayMode,
)
from rtspview.models.playback import (
    BUFFERING,
    IDLE,
    PAUSED,
    PLAYING,
    Buffering,
    Error,
    Idle,
    Paused,
    PlaybackState,
    PlayerError,
    Playing,
    Reconnecting,
    UiState,
    state_name,
)
from rtspview.models.settings import AppSettings, CameraConfig

__all__ = [
    "AppSettings",
    "BUFFERING",
    "BrightnessMode",
    "Buffering",
    "CameraConfig",
    "Error",
    "IDLE",
    "Idle",
    "PAUSED",
    "PLAYING",
    "Paused",
    "PlaybackState",
    "PlayerError",
    "PlayerErrorCode",
    "PlayerStateCode",
    "Playing",
    "Reconnecting",
    "UiState",
    "VideoDisplayMode",
    "state_name",
]
