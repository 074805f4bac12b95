"""Playback supervisor: the single owner of the live player pipeline.

Drives the player through the playback state machine, keeps it in step
with the selected camera from the settings store, and retries failed
streams on a fixed delay up to a bounded number of attempts.

Every transition happens on the event loop that owns the supervisor.
Player events raised on other threads are re-posted to that loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from rtspview.interfaces import Player, PlayerListener, SettingsStore
from rtspview.logging_setup import set_camera_name
from rtspview.models.enums import PlayerErrorCode, PlayerStateCode
from rtspview.models.playback import (
    BUFFERING,
    IDLE,
    PAUSED,
    PLAYING,
    Buffering,
    Error,
    Paused,
    PlaybackState,
    PlayerError,
    Playing,
    Reconnecting,
    UiState,
    state_name,
)
from rtspview.models.settings import AppSettings
from rtspview.redaction import redact_rtsp_url
from rtspview.registry import CameraRegistry
from rtspview.settings.codec import PreferenceKey
from rtspview.state_flow import StateFlow
from rtspview.timer import CancelableTimer

logger = logging.getLogger(__name__)

MAX_RECONNECT_ATTEMPTS = 10

NO_STREAM_STATE_MESSAGE = "No stream configured"
NO_STREAM_ERROR_MESSAGE = "Please configure an RTSP URL in settings"
MAX_ATTEMPTS_STATE_MESSAGE = "Max reconnection attempts reached"

_ERROR_MESSAGES: dict[PlayerErrorCode, str] = {
    PlayerErrorCode.NETWORK_CONNECTION_FAILED: "Network connection failed",
    PlayerErrorCode.NETWORK_CONNECTION_TIMEOUT: "Connection timeout",
    PlayerErrorCode.PARSING_CONTAINER_UNSUPPORTED: "Unsupported stream format",
}

_ACTIVE_STATES = (Buffering, Playing, Paused)

PlayerFactory = Callable[[], Player]


def describe_player_error(error: PlayerError) -> str:
    """Map a player error to the message shown to the user."""
    message = _ERROR_MESSAGES.get(error.code)
    if message is not None:
        return message
    return error.message or "Playback error"


class _PlayerEventSink(PlayerListener):
    """Forwards player events into the supervisor on its own loop.

    Lives exactly as long as one player handle; once detached every
    further event is dropped.
    """

    def __init__(self, supervisor: PlaybackSupervisor, loop: asyncio.AbstractEventLoop) -> None:
        self._supervisor = supervisor
        self._loop = loop
        self._detached = False

    def detach(self) -> None:
        self._detached = True

    def on_playback_state_changed(self, state: PlayerStateCode) -> None:
        self._post(self._supervisor._on_player_state, state)

    def on_is_playing_changed(self, is_playing: bool) -> None:
        self._post(self._supervisor._on_is_playing, is_playing)

    def on_player_error(self, error: PlayerError) -> None:
        self._post(self._supervisor._on_player_error, error)

    def _post(self, handler: Callable[[Any], None], arg: Any) -> None:
        if self._detached:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            handler(arg)
            return
        try:
            self._loop.call_soon_threadsafe(self._deliver, handler, arg)
        except RuntimeError:
            logger.debug("Dropping player event; event loop is closed")

    def _deliver(self, handler: Callable[[Any], None], arg: Any) -> None:
        if not self._detached:
            handler(arg)


class PlaybackSupervisor:
    """Owns one player handle and publishes `UiState` snapshots.

    Intent methods are synchronous and must be called on the supervisor's
    event loop. Settings writes they trigger run in the background and are
    applied by the store in call order.
    """

    def __init__(
        self,
        store: SettingsStore,
        player_factory: PlayerFactory,
        *,
        max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS,
        controls_hide_delay_s: float = 0.0,
    ) -> None:
        self._store = store
        self._player_factory = player_factory
        self._max_attempts = max_reconnect_attempts
        self._controls_hide_delay_s = controls_hide_delay_s

        self._ui: StateFlow[UiState] = StateFlow(UiState())
        self._settings: StateFlow[AppSettings] = StateFlow(AppSettings())
        self._settings_received = False

        self._player: Player | None = None
        self._sink: _PlayerEventSink | None = None
        self._loaded_uri: str | None = None
        self._attempt = 0

        self._reconnect_timer = CancelableTimer("reconnect")
        self._controls_timer = CancelableTimer("controls-hide")
        self._settings_task: asyncio.Task[None] | None = None
        self._write_tasks: set[asyncio.Task[None]] = set()
        self._released = False

    # Published state

    @property
    def ui_state(self) -> StateFlow[UiState]:
        return self._ui

    @property
    def settings(self) -> StateFlow[AppSettings]:
        return self._settings

    @property
    def state(self) -> PlaybackState:
        return self._ui.value.playback_state

    @property
    def reconnect_attempt(self) -> int:
        return self._attempt

    @property
    def loaded_uri(self) -> str | None:
        return self._loaded_uri

    @property
    def has_player(self) -> bool:
        return self._player is not None

    @property
    def released(self) -> bool:
        return self._released

    # Lifecycle

    async def start(self) -> None:
        """Apply the current settings, then follow the store's live snapshots."""
        if self._released:
            raise RuntimeError("Supervisor already released")
        if self._settings_task is not None:
            return
        self._apply_settings(await self._store.read_all())
        self._settings_task = asyncio.create_task(
            self._follow_settings(), name="supervisor:settings"
        )

    async def _follow_settings(self) -> None:
        async for settings in self._store.live_snapshots():
            if self._released:
                return
            self._apply_settings(settings)

    def release(self) -> None:
        """Tear down the pipeline. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        self._reconnect_timer.cancel()
        self._controls_timer.cancel()
        if self._settings_task is not None:
            self._settings_task.cancel()
        player, sink = self._player, self._sink
        self._player = None
        self._sink = None
        if sink is not None:
            sink.detach()
        if player is not None:
            try:
                if sink is not None:
                    player.remove_listener(sink)
                player.stop()
                player.release()
            except Exception as exc:
                logger.warning("Player teardown failed: %s", exc, exc_info=True)
        logger.info("Playback supervisor released")

    async def shutdown(self) -> None:
        """Release, then wait for background work to finish."""
        self.release()
        task = self._settings_task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self.flush_writes()

    async def flush_writes(self) -> None:
        """Wait for all settings writes issued so far."""
        while self._write_tasks:
            await asyncio.gather(*list(self._write_tasks), return_exceptions=True)

    # Intents

    def select_camera(self, uri: str) -> None:
        """Play `uri`; a no-op when it is already loaded and active."""
        if self._released:
            return
        if not uri.strip():
            self._reconnect_timer.cancel()
            self._publish(
                playback_state=Error(NO_STREAM_STATE_MESSAGE, recoverable=False),
                error_message=NO_STREAM_ERROR_MESSAGE,
            )
            return
        if uri == self._loaded_uri and isinstance(self.state, _ACTIVE_STATES):
            return
        self._start(uri, reset_attempts=True)

    def start_playback(self) -> None:
        self.select_camera(self._settings.value.rtsp_url)

    def stop_playback(self) -> None:
        if self._released:
            return
        self._reconnect_timer.cancel()
        self._attempt = 0
        # Idle first, so the player's own is_playing=False is not seen as a pause.
        self._publish(playback_state=IDLE)
        if self._player is not None:
            self._guarded(self._player.stop)
        logger.info("Playback stopped")

    def pause(self) -> None:
        if self._player is None or self._released:
            return
        if not self._guarded(self._player.pause):
            return
        if isinstance(self.state, (Playing, Buffering)):
            self._publish(playback_state=PAUSED)

    def resume(self) -> None:
        # State follows the player's own is-playing callback.
        if self._player is None or self._released:
            return
        self._guarded(self._player.play)

    def reconnect(self) -> None:
        """Restart the current camera with a fresh attempt budget."""
        if self._released:
            return
        self._attempt = 0
        uri = self._settings.value.rtsp_url
        if not uri.strip():
            self.select_camera(uri)
            return
        self._start(uri, reset_attempts=True)

    def toggle_mute(self) -> None:
        if self._released:
            return
        muted = not self._ui.value.is_muted
        player = self._player
        if player is not None:
            self._guarded(lambda: player.set_volume(0.0 if muted else 1.0))
        self._publish(is_muted=muted)
        self._persist(PreferenceKey.IS_MUTED, muted)

    def next_camera(self) -> None:
        self._navigate(CameraRegistry.next)

    def previous_camera(self) -> None:
        self._navigate(CameraRegistry.previous)

    def toggle_controls(self) -> None:
        if self._ui.value.show_controls:
            self.hide_controls()
        else:
            self.show_controls()

    def show_controls(self) -> None:
        self._publish(show_controls=True)
        if self._controls_hide_delay_s > 0 and not self._released:
            self._controls_timer.schedule(self._controls_hide_delay_s, self.hide_controls)

    def hide_controls(self) -> None:
        self._controls_timer.cancel()
        self._publish(show_controls=False)

    def clear_error(self) -> None:
        self._publish(error_message=None)

    # Internals

    def _navigate(self, step: Callable[[CameraRegistry], CameraRegistry]) -> None:
        if self._released:
            return
        registry = CameraRegistry.from_settings(self._settings.value)
        moved = step(registry)
        if moved.current_index == registry.current_index:
            return
        # Playback restarts when the store publishes the new selection.
        self._persist(PreferenceKey.CURRENT_CAMERA_INDEX, moved.current_index)

    def _apply_settings(self, settings: AppSettings) -> None:
        first = not self._settings_received
        self._settings_received = True
        self._settings.set(settings)

        if first:
            self._publish(is_muted=settings.is_muted)
            player = self._player
            if player is not None:
                volume = 0.0 if settings.is_muted else 1.0
                self._guarded(lambda: player.set_volume(volume))

        uri = settings.rtsp_url
        if uri.strip():
            if uri != self._loaded_uri:
                self._start(uri, reset_attempts=True)
        elif self._loaded_uri is not None:
            self.stop_playback()
            self._loaded_uri = None
            self._publish(rtsp_url="")

    def _start(self, uri: str, *, reset_attempts: bool) -> None:
        self._reconnect_timer.cancel()
        if reset_attempts:
            self._attempt = 0
        self._loaded_uri = uri
        camera = self._settings.value.current_camera
        if camera is not None and camera.url == uri:
            set_camera_name(camera.name)
        self._publish(playback_state=BUFFERING, rtsp_url=uri, error_message=None)
        logger.info(
            "Starting playback: %s",
            redact_rtsp_url(uri),
            extra={"kind": "event", "event_type": "playback_start", "attempt": self._attempt},
        )

        def _load() -> None:
            player = self._ensure_player()
            player.set_source(uri)
            player.prepare()
            player.play()

        self._guarded(_load)

    def _ensure_player(self) -> Player:
        if self._player is not None:
            return self._player
        player = self._player_factory()
        sink = _PlayerEventSink(self, asyncio.get_running_loop())
        player.add_listener(sink)
        self._player = player
        self._sink = sink
        # The UI flag holds the persisted mute, or a newer toggle still being written.
        player.set_volume(0.0 if self._ui.value.is_muted else 1.0)
        logger.debug("Created player %s", type(player).__name__)
        return player

    def _guarded(self, action: Callable[[], None]) -> bool:
        """Run a player call; failures become player errors."""
        try:
            action()
        except Exception as exc:
            logger.debug("Player call failed: %s", exc, exc_info=True)
            self._on_player_error(PlayerError(PlayerErrorCode.UNSPECIFIED, str(exc) or None))
            return False
        return True

    def _schedule_reconnect(self, uri: str) -> None:
        self._attempt += 1
        if self._attempt > self._max_attempts:
            self._reconnect_timer.cancel()
            logger.error(
                "Giving up after %d reconnection attempts",
                self._max_attempts,
                extra={"kind": "event", "event_type": "reconnect_exhausted"},
            )
            self._publish(
                playback_state=Error(MAX_ATTEMPTS_STATE_MESSAGE, recoverable=True),
                error_message=f"Could not reconnect after {self._max_attempts} attempts",
            )
            return

        delay_s = self._settings.value.reconnect_delay_s
        self._publish(playback_state=Reconnecting(self._attempt))
        logger.warning(
            "Reconnecting in %.1fs (attempt %d/%d)",
            delay_s,
            self._attempt,
            self._max_attempts,
            extra={"kind": "event", "event_type": "reconnect_scheduled", "attempt": self._attempt},
        )
        self._reconnect_timer.schedule(delay_s, lambda: self._retry(uri))

    def _retry(self, uri: str) -> None:
        if self._released:
            return
        self._start(uri, reset_attempts=False)

    def _persist(self, key: PreferenceKey, value: object) -> None:
        task = asyncio.get_running_loop().create_task(
            self._store.write_field(key.value, value), name=f"settings-write:{key.value}"
        )
        self._write_tasks.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task[None]) -> None:
        self._write_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Settings write failed: %s", exc, exc_info=exc)

    def _publish(self, **changes: Any) -> None:
        before = self._ui.value.playback_state
        self._ui.update(lambda ui: replace(ui, **changes))
        after = self._ui.value.playback_state
        if after != before:
            logger.debug("Playback state %s -> %s", state_name(before), state_name(after))

    # Player events (always on the supervisor's loop)

    def _on_player_state(self, code: PlayerStateCode) -> None:
        if self._released:
            return
        match code:
            case PlayerStateCode.IDLE:
                # A failed pipeline drops to idle right after reporting its error.
                if not isinstance(self.state, (Error, Reconnecting)):
                    self._publish(playback_state=IDLE)
            case PlayerStateCode.BUFFERING:
                self._publish(playback_state=BUFFERING, error_message=None)
            case PlayerStateCode.READY:
                if self._player is not None and self._player.is_playing:
                    self._attempt = 0
                    self._publish(playback_state=PLAYING, error_message=None)
                else:
                    self._publish(playback_state=PAUSED, error_message=None)
            case PlayerStateCode.ENDED:
                self._reconnect_timer.cancel()
                self._publish(playback_state=IDLE)
                logger.info("Stream ended")

    def _on_is_playing(self, is_playing: bool) -> None:
        if self._released:
            return
        if is_playing:
            if self._attempt:
                logger.info("Stream recovered after %d attempt(s)", self._attempt)
            self._attempt = 0
            self._publish(playback_state=PLAYING, error_message=None)
        elif isinstance(self.state, Playing):
            self._publish(playback_state=PAUSED)

    def _on_player_error(self, error: PlayerError) -> None:
        if self._released:
            return
        message = describe_player_error(error)
        logger.warning(
            "Playback error: %s",
            message,
            extra={"kind": "event", "event_type": "playback_error", "error_code": str(error.code)},
        )
        self._publish(playback_state=Error(message, recoverable=True), error_message=message)
        if self._settings.value.auto_reconnect and self._loaded_uri:
            self._schedule_reconnect(self._loaded_uri)
