"""Playback state models.

`PlaybackState` is a closed union of frozen dataclasses so that illegal
combinations (an attempt number outside reconnecting, an error without a
message) cannot be represented.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from rtspview.models.enums import PlayerErrorCode


@dataclass(frozen=True, slots=True)
class Idle:
    """No stream loaded, or playback stopped."""


@dataclass(frozen=True, slots=True)
class Buffering:
    """Stream is loading."""


@dataclass(frozen=True, slots=True)
class Playing:
    """Stream is actively playing."""


@dataclass(frozen=True, slots=True)
class Paused:
    """Stream is ready but not playing."""


@dataclass(frozen=True, slots=True)
class Error:
    """Playback failed."""

    message: str
    recoverable: bool = True


@dataclass(frozen=True, slots=True)
class Reconnecting:
    """Waiting to retry after a recoverable error."""

    attempt: int


PlaybackState: TypeAlias = Idle | Buffering | Playing | Paused | Error | Reconnecting

IDLE = Idle()
BUFFERING = Buffering()
PLAYING = Playing()
PAUSED = Paused()


def state_name(state: PlaybackState) -> str:
    """Return the lowercase state tag, e.g. "reconnecting"."""
    return type(state).__name__.lower()


@dataclass(frozen=True, slots=True)
class PlayerError:
    """Error reported by a player backend."""

    code: PlayerErrorCode
    message: str | None = None


@dataclass(frozen=True, slots=True)
class UiState:
    """Snapshot published to the presentation layer."""

    playback_state: PlaybackState = IDLE
    rtsp_url: str = ""
    show_controls: bool = False
    is_muted: bool = False
    error_message: str | None = None
