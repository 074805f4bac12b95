"""Main application that wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal
import time

from rtspview.api import APIServer, create_app
from rtspview.config import RuntimeConfig
from rtspview.display import NoopDisplay, SysfsBacklightDisplay, apply_screen_settings
from rtspview.interfaces import DisplayController
from rtspview.player import PlayerFactory, load_player_factory
from rtspview.settings.editor import SettingsEditor
from rtspview.settings.store import PreferencesSettingsStore
from rtspview.settings.yaml_store import YamlSettingsStore
from rtspview.supervisor import PlaybackSupervisor

logger = logging.getLogger(__name__)


class Application:
    """Owns the viewer components and their lifecycle.

    Handles component creation, signal handling, and graceful shutdown.
    Components may be injected (tests); otherwise they are built from config.
    """

    def __init__(
        self,
        config: RuntimeConfig,
        *,
        store: PreferencesSettingsStore | None = None,
        player_factory: PlayerFactory | None = None,
        display: DisplayController | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._player_factory = player_factory
        self._display = display

        self._supervisor: PlaybackSupervisor | None = None
        self._editor: SettingsEditor | None = None
        self._api_server: APIServer | None = None
        self._display_task: asyncio.Task[None] | None = None
        self._start_time: float | None = None

        self._shutdown_event = asyncio.Event()
        self._shutdown_started = False
        self._shutdown_complete = False

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """Run until a shutdown signal or `request_shutdown()`."""
        logger.info("Starting rtspview...")
        await self.start()
        if install_signal_handlers:
            self._setup_signal_handlers()
        logger.info("Viewer started")
        try:
            await self._shutdown_event.wait()
        finally:
            await self.shutdown()

    async def start(self) -> None:
        """Create components and start playback and the control surface."""
        self._create_components()
        supervisor = self.supervisor

        await supervisor.start()
        await self.editor.refresh()
        self._display_task = asyncio.create_task(self._follow_display_policy(), name="display")

        if self._api_server is not None:
            await self._api_server.start()
        self._start_time = time.time()

    def _create_components(self) -> None:
        config = self._config
        if self._store is None:
            self._store = YamlSettingsStore(config.settings_path)
            logger.info("Settings file: %s", config.settings_path)
        if self._player_factory is None:
            self._player_factory = load_player_factory(
                config.player_backend, config.player_config()
            )
        if self._display is None:
            self._display = self._create_display(config)

        self._supervisor = PlaybackSupervisor(
            self._store,
            self._player_factory,
            max_reconnect_attempts=config.max_reconnect_attempts,
            controls_hide_delay_s=config.controls_hide_delay_s,
        )
        self._editor = SettingsEditor(self._store)

        if config.api_enabled:
            self._api_server = APIServer(
                app=create_app(self),
                host=config.api_host,
                port=config.api_port,
            )
        logger.info("All components created")

    @staticmethod
    def _create_display(config: RuntimeConfig) -> DisplayController:
        if config.backlight_device:
            return SysfsBacklightDisplay(config.backlight_device)
        return NoopDisplay()

    async def _follow_display_policy(self) -> None:
        display = self._require_display()
        async for settings in self.supervisor.settings.subscribe():
            try:
                await asyncio.to_thread(apply_screen_settings, display, settings)
            except Exception as exc:
                logger.error("Failed to apply screen settings: %s", exc, exc_info=True)

    def _setup_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        if self._shutdown_started:
            logger.warning("Shutdown already in progress, ignoring signal")
            return
        logger.info("Received signal %s, initiating shutdown...", sig.name)
        self.request_shutdown()

    def request_shutdown(self) -> None:
        self._shutdown_started = True
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Graceful shutdown of all components. Safe to call more than once."""
        if self._shutdown_complete:
            return
        self._shutdown_complete = True
        logger.info("Shutting down...")

        # Stop API server first to prevent new intents during shutdown.
        if self._api_server is not None:
            await self._api_server.stop()

        if self._display_task is not None:
            self._display_task.cancel()
            try:
                await self._display_task
            except asyncio.CancelledError:
                pass

        if self._supervisor is not None:
            await self._supervisor.shutdown()

        if self._display is not None:
            await asyncio.to_thread(self._display.cleanup)

        logger.info("Shutdown complete")

    def _require_display(self) -> DisplayController:
        if self._display is None:
            raise RuntimeError("Display not initialized")
        return self._display

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    @property
    def supervisor(self) -> PlaybackSupervisor:
        if self._supervisor is None:
            raise RuntimeError("Supervisor not initialized")
        return self._supervisor

    @property
    def editor(self) -> SettingsEditor:
        if self._editor is None:
            raise RuntimeError("Settings editor not initialized")
        return self._editor

    @property
    def store(self) -> PreferencesSettingsStore:
        if self._store is None:
            raise RuntimeError("Settings store not initialized")
        return self._store

    @property
    def uptime_seconds(self) -> float:
        if self._start_time is None:
            return 0.0
        return time.time() - self._start_time
