"""Interface definitions for rtspview collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rtspview.models.enums import PlayerStateCode
    from rtspview.models.playback import PlayerError
    from rtspview.models.settings import AppSettings


class PlayerListener(ABC):
    """Receives pipeline events from a player backend."""

    @abstractmethod
    def on_playback_state_changed(self, state: PlayerStateCode) -> None:
        raise NotImplementedError

    @abstractmethod
    def on_is_playing_changed(self, is_playing: bool) -> None:
        raise NotImplementedError

    @abstractmethod
    def on_player_error(self, error: PlayerError) -> None:
        raise NotImplementedError


class Player(ABC):
    """Opaque decode/render pipeline for a single stream URI.

    Implementations must make `stop()` and `release()` safe to call
    repeatedly. Events may be delivered from any thread.
    """

    @abstractmethod
    def add_listener(self, listener: PlayerListener) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_listener(self, listener: PlayerListener) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_source(self, uri: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def prepare(self) -> None:
        """Start loading the current source; progress is reported via events."""
        raise NotImplementedError

    @abstractmethod
    def play(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def pause(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def release(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Set output volume (0.0 muted, 1.0 full)."""
        raise NotImplementedError

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        raise NotImplementedError


class SettingsStore(ABC):
    """Durable settings document with a live snapshot stream."""

    @abstractmethod
    async def read_all(self) -> AppSettings:
        raise NotImplementedError

    @abstractmethod
    def live_snapshots(self) -> AsyncIterator[AppSettings]:
        """Yield the current snapshot, then one per completed write."""
        raise NotImplementedError

    @abstractmethod
    async def write_field(self, key: str, value: object) -> None:
        """Persist a single field. Writes are applied in call order."""
        raise NotImplementedError

    @abstractmethod
    async def write_all(self, settings: AppSettings) -> None:
        raise NotImplementedError


class DisplayController(ABC):
    """Screen power and brightness control. Pure side effects."""

    @abstractmethod
    def keep_screen_on(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def allow_screen_off(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_brightness(self, level: float | None) -> None:
        """Override brightness (0.0-1.0), or restore the system default when None."""
        raise NotImplementedError

    @abstractmethod
    def cleanup(self) -> None:
        """Restore defaults on exit."""
        raise NotImplementedError
