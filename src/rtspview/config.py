"""Process-level runtime configuration (environment and `.env`)."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rtspview.player.ffplay import FfplayConfig
from rtspview.supervisor import MAX_RECONNECT_ATTEMPTS

DEFAULT_SETTINGS_PATH = Path("~/.config/rtspview/settings.yaml")


class RuntimeConfig(BaseSettings):
    """How the viewer process runs; user settings live in the settings store."""

    model_config = SettingsConfigDict(
        env_prefix="RTSPVIEW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    settings_path: Path = DEFAULT_SETTINGS_PATH
    player_backend: str = "ffplay"
    log_level: str = "INFO"
    max_reconnect_attempts: int = Field(default=MAX_RECONNECT_ATTEMPTS, ge=1)
    controls_hide_delay_s: float = Field(default=3.0, ge=0.0)

    api_enabled: bool = True
    api_host: str = "127.0.0.1"
    api_port: int = Field(default=8081, ge=1, le=65535)

    backlight_device: str | None = None  # e.g. "intel_backlight"

    ffplay_path: str = "ffplay"
    ffprobe_path: str = "ffprobe"
    rtsp_timeout_s: float = Field(default=5.0, gt=0.0)
    fullscreen: bool = True

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return str(value).upper()

    @field_validator("settings_path")
    @classmethod
    def _expand_path(cls, value: Path) -> Path:
        return value.expanduser()

    def player_config(self) -> dict[str, object]:
        """Backend config for the selected player backend."""
        if self.player_backend == "ffplay":
            return FfplayConfig(
                ffplay_path=self.ffplay_path,
                ffprobe_path=self.ffprobe_path,
                rtsp_timeout_s=self.rtsp_timeout_s,
                fullscreen=self.fullscreen,
            ).model_dump()
        return {}
