"""Mock player for testing."""

from __future__ import annotations

from rtspview.interfaces import Player, PlayerListener
from rtspview.models.enums import PlayerErrorCode, PlayerStateCode
from rtspview.models.playback import PlayerError


class MockPlayer(Player):
    """Mock implementation of the Player interface for testing.

    Records every call by name and lets tests drive pipeline events.
    Calls named in `fail_on` raise RuntimeError instead of running.
    """

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.fail_on = set(fail_on or ())
        self.calls: list[str] = []
        self.listeners: list[PlayerListener] = []
        self.source: str | None = None
        self.volume: float | None = None
        self.released = False
        self._is_playing = False

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    def count(self, name: str) -> int:
        return self.calls.count(name)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise RuntimeError(f"Simulated {name} failure")

    def add_listener(self, listener: PlayerListener) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener: PlayerListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def set_source(self, uri: str) -> None:
        self._record("set_source")
        self.source = uri

    def prepare(self) -> None:
        self._record("prepare")

    def play(self) -> None:
        self._record("play")

    def pause(self) -> None:
        self._record("pause")

    def stop(self) -> None:
        self._record("stop")
        if self._is_playing:
            self.emit_playing(False)

    def release(self) -> None:
        self._record("release")
        self.released = True

    def set_volume(self, volume: float) -> None:
        self._record("set_volume")
        self.volume = volume

    # Event drivers

    def emit_state(self, state: PlayerStateCode) -> None:
        for listener in list(self.listeners):
            listener.on_playback_state_changed(state)

    def emit_playing(self, playing: bool = True) -> None:
        self._is_playing = playing
        for listener in list(self.listeners):
            listener.on_is_playing_changed(playing)

    def emit_ready(self) -> None:
        """Pipeline became ready and started rendering."""
        self.emit_playing(True)
        self.emit_state(PlayerStateCode.READY)

    def emit_error(
        self,
        code: PlayerErrorCode = PlayerErrorCode.NETWORK_CONNECTION_FAILED,
        message: str | None = None,
    ) -> None:
        error = PlayerError(code, message)
        for listener in list(self.listeners):
            listener.on_player_error(error)


class MockPlayerFactory:
    """Zero-argument player factory that keeps every player it created."""

    def __init__(self, fail_on: set[str] | None = None, fail_create: bool = False) -> None:
        self.fail_on = fail_on
        self.fail_create = fail_create
        self.players: list[MockPlayer] = []

    def __call__(self) -> MockPlayer:
        if self.fail_create:
            raise RuntimeError("Simulated player creation failure")
        player = MockPlayer(self.fail_on)
        self.players.append(player)
        return player

    @property
    def last(self) -> MockPlayer:
        assert self.players, "no player created"
        return self.players[-1]
