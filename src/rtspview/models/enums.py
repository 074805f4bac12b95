"""Centralized enums for type safety and IDE support."""

from enum import StrEnum
from typing import Annotated, Any, Self

from pydantic import BeforeValidator


class _ParseableEnum(StrEnum):
    @classmethod
    def from_string(cls, value: str) -> Self:
        """Parse a member from its value or name (case-insensitive).

        Raises:
            ValueError: If value matches no member
        """
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized or member.name.lower() == normalized:
                return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Invalid {cls.__name__} '{value}'. Valid values: {valid}")


class VideoDisplayMode(_ParseableEnum):
    """How video is scaled onto the playback surface."""

    FIT = "fit"
    FILL = "fill"
    CROP = "crop"


class BrightnessMode(_ParseableEnum):
    """Screen brightness policy while the viewer is running."""

    AUTO = "auto"
    MINIMUM = "minimum"
    CUSTOM = "custom"


class PlayerStateCode(StrEnum):
    """Pipeline-level states reported by a player backend."""

    IDLE = "idle"
    BUFFERING = "buffering"
    READY = "ready"
    ENDED = "ended"


class PlayerErrorCode(StrEnum):
    """Error classes reported by a player backend."""

    NETWORK_CONNECTION_FAILED = "network_connection_failed"
    NETWORK_CONNECTION_TIMEOUT = "network_connection_timeout"
    PARSING_CONTAINER_UNSUPPORTED = "parsing_container_unsupported"
    UNSPECIFIED = "unspecified"


def _lenient_display_mode(value: Any) -> VideoDisplayMode:
    if isinstance(value, VideoDisplayMode):
        return value
    if not value:
        return VideoDisplayMode.FIT
    try:
        return VideoDisplayMode.from_string(str(value))
    except ValueError:
        return VideoDisplayMode.FIT


def _strict_brightness_mode(value: Any) -> BrightnessMode:
    if isinstance(value, BrightnessMode):
        return value
    return BrightnessMode.from_string(str(value))


# Unknown display modes degrade to FIT instead of failing validation.
DisplayModeField = Annotated[VideoDisplayMode, BeforeValidator(_lenient_display_mode)]
BrightnessModeField = Annotated[BrightnessMode, BeforeValidator(_strict_brightness_mode)]
