"""Player backend driving `ffprobe` and `ffplay` subprocesses.

The stream is probed first so connection problems surface as classified
errors before a window opens. `ffplay` has no control channel, so pause
suspends the process and a volume change relaunches it.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import signal
from collections import deque
from collections.abc import Sequence

from pydantic import BaseModel, Field

from rtspview.interfaces import Player, PlayerListener
from rtspview.models.enums import PlayerErrorCode, PlayerStateCode
from rtspview.models.playback import PlayerError
from rtspview.player.registry import PlayerFactory, player_backend
from rtspview.redaction import redact_rtsp_url

logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES = 20
_TERMINATE_TIMEOUT_S = 3.0

_NETWORK_FAILURE_MARKERS = (
    "connection refused",
    "no route to host",
    "network is unreachable",
    "host is down",
    "connection reset",
    "name or service not known",
    "failed to resolve",
    "temporary failure in name resolution",
    "server returned 4",
    "server returned 5",
    "401 unauthorized",
    "404 not found",
)
_TIMEOUT_MARKERS = ("timed out", "timeout")
_UNSUPPORTED_MARKERS = (
    "invalid data found when processing input",
    "could not find codec parameters",
    "unsupported",
    "no decoder",
    "decoder not found",
)


class FfplayConfig(BaseModel):
    """Settings for the ffplay backend."""

    ffplay_path: str = "ffplay"
    ffprobe_path: str = "ffprobe"
    rtsp_timeout_s: float = Field(default=5.0, gt=0)
    fullscreen: bool = True
    window_title: str = "rtspview"
    extra_flags: list[str] = Field(default_factory=list)


def classify_ffmpeg_error(stderr_text: str, url: str | None = None) -> PlayerError:
    """Classify ffmpeg-family stderr output into a player error."""
    text = stderr_text.lower()
    if any(marker in text for marker in _NETWORK_FAILURE_MARKERS):
        code = PlayerErrorCode.NETWORK_CONNECTION_FAILED
    elif any(marker in text for marker in _TIMEOUT_MARKERS):
        code = PlayerErrorCode.NETWORK_CONNECTION_TIMEOUT
    elif any(marker in text for marker in _UNSUPPORTED_MARKERS):
        code = PlayerErrorCode.PARSING_CONTAINER_UNSUPPORTED
    else:
        code = PlayerErrorCode.UNSPECIFIED

    lines = [line.strip() for line in stderr_text.splitlines() if line.strip()]
    message = lines[-1] if lines else None
    if message and url:
        message = message.replace(url, redact_rtsp_url(url))
    return PlayerError(code, message)


def build_probe_command(config: FfplayConfig, url: str) -> list[str]:
    return [
        config.ffprobe_path,
        "-v",
        "error",
        "-rtsp_transport",
        "tcp",
        "-timeout",
        str(int(config.rtsp_timeout_s * 1_000_000)),
        "-show_entries",
        "stream=codec_type",
        "-of",
        "csv=p=0",
        url,
    ]


def build_viewer_command(config: FfplayConfig, url: str, volume: float) -> list[str]:
    cmd = [
        config.ffplay_path,
        "-hide_banner",
        "-loglevel",
        "error",
        "-nostats",
        "-rtsp_transport",
        "tcp",
        "-fflags",
        "nobuffer",
        "-flags",
        "low_delay",
        "-framedrop",
        "-window_title",
        config.window_title,
    ]
    if config.fullscreen:
        cmd.append("-fs")
    if volume <= 0.0:
        cmd.append("-an")
    else:
        cmd.extend(["-volume", str(round(min(volume, 1.0) * 100))])
    cmd.extend(config.extra_flags)
    cmd.append(url)
    return cmd


def _format_cmd(cmd: Sequence[str], url: str) -> str:
    return shlex.join([redact_rtsp_url(part) if part == url else part for part in cmd])


class FfplayPlayer(Player):
    """Plays one RTSP stream through an `ffplay` window.

    Must be driven from a running event loop; all listener callbacks are
    invoked on that loop.
    """

    def __init__(self, config: FfplayConfig) -> None:
        self._config = config
        self._listeners: list[PlayerListener] = []
        self._uri: str | None = None
        self._volume = 1.0
        self._want_playing = True
        self._is_playing = False
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self._proc: asyncio.subprocess.Process | None = None
        self._relaunch = False
        self._stderr_tail: deque[str] = deque(maxlen=_STDERR_TAIL_LINES)
        self._stderr_task: asyncio.Task[None] | None = None

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def volume(self) -> float:
        return self._volume

    def add_listener(self, listener: PlayerListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: PlayerListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_source(self, uri: str) -> None:
        self.stop()
        self._uri = uri

    def prepare(self) -> None:
        if not self._uri:
            raise ValueError("No source set")
        self.stop()
        self._generation += 1
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._uri, self._generation), name="ffplay:session"
        )

    def play(self) -> None:
        self._want_playing = True
        proc = self._proc
        if proc is None or proc.returncode is not None or self._is_playing:
            return
        proc.send_signal(signal.SIGCONT)
        self._set_playing(True)

    def pause(self) -> None:
        self._want_playing = False
        proc = self._proc
        if proc is None or proc.returncode is not None or not self._is_playing:
            return
        proc.send_signal(signal.SIGSTOP)
        self._set_playing(False)

    def set_volume(self, volume: float) -> None:
        volume = min(1.0, max(0.0, volume))
        if volume == self._volume:
            return
        self._volume = volume
        proc = self._proc
        if proc is not None and proc.returncode is None:
            logger.debug("Relaunching ffplay for volume %.2f", volume)
            self._relaunch = True
            self._terminate(proc)

    def stop(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        proc, self._proc = self._proc, None
        if proc is not None and proc.returncode is None:
            self._terminate(proc)
        self._relaunch = False
        self._set_playing(False)

    def release(self) -> None:
        self.stop()
        self._listeners.clear()
        self._uri = None

    # Session

    async def _run(self, uri: str, generation: int) -> None:
        self._emit_state(PlayerStateCode.BUFFERING)
        error = await self._probe(uri)
        if generation != self._generation:
            return
        if error is not None:
            self._emit_error(error)
            return

        while True:
            try:
                proc = await self._spawn_viewer(uri)
            except OSError as exc:
                self._emit_error(
                    PlayerError(PlayerErrorCode.UNSPECIFIED, f"Cannot start ffplay: {exc}")
                )
                return
            if generation != self._generation:
                self._terminate(proc)
                return
            self._proc = proc
            if self._relaunch:
                self._relaunch = False
                if not self._want_playing:
                    proc.send_signal(signal.SIGSTOP)
            else:
                if self._want_playing:
                    self._set_playing(True)
                else:
                    proc.send_signal(signal.SIGSTOP)
                self._emit_state(PlayerStateCode.READY)

            returncode = await proc.wait()
            if generation != self._generation:
                return
            if self._relaunch:
                continue
            self._proc = None
            self._set_playing(False)
            if returncode == 0:
                self._emit_state(PlayerStateCode.ENDED)
            else:
                await self._drain_stderr()
                error = classify_ffmpeg_error("\n".join(self._stderr_tail), uri)
                if error.message is None:
                    error = PlayerError(error.code, f"ffplay exited with status {returncode}")
                self._emit_error(error)
            return

    async def _probe(self, uri: str) -> PlayerError | None:
        cmd = build_probe_command(self._config, uri)
        logger.debug("Probing stream: %s", _format_cmd(cmd, uri))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return PlayerError(PlayerErrorCode.UNSPECIFIED, f"Cannot start ffprobe: {exc}")

        try:
            _, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._config.rtsp_timeout_s + 1.0
            )
        except TimeoutError:
            return PlayerError(
                PlayerErrorCode.NETWORK_CONNECTION_TIMEOUT,
                f"Stream probe timed out after {self._config.rtsp_timeout_s:.0f}s",
            )
        finally:
            if proc.returncode is None:
                proc.kill()

        if proc.returncode == 0:
            return None
        return classify_ffmpeg_error(stderr.decode(errors="replace"), uri)

    async def _spawn_viewer(self, uri: str) -> asyncio.subprocess.Process:
        cmd = build_viewer_command(self._config, uri, self._volume)
        logger.debug("Launching viewer: %s", _format_cmd(cmd, uri))
        self._stderr_tail.clear()
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        if proc.stderr is not None:
            self._stderr_task = asyncio.get_running_loop().create_task(
                self._collect_stderr(proc.stderr), name="ffplay:stderr"
            )
        return proc

    async def _drain_stderr(self) -> None:
        task = self._stderr_task
        if task is None:
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=1.0)
        except TimeoutError:
            logger.debug("ffplay stderr still open after exit")

    async def _collect_stderr(self, stream: asyncio.StreamReader) -> None:
        async for raw in stream:
            line = raw.decode(errors="replace").rstrip()
            if line:
                self._stderr_tail.append(line)

    def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        try:
            # A suspended process only acts on SIGTERM once continued.
            proc.send_signal(signal.SIGCONT)
            proc.terminate()
        except ProcessLookupError:
            return
        asyncio.get_running_loop().create_task(self._reap(proc), name="ffplay:reap")

    async def _reap(self, proc: asyncio.subprocess.Process) -> None:
        try:
            await asyncio.wait_for(proc.wait(), timeout=_TERMINATE_TIMEOUT_S)
        except TimeoutError:
            logger.warning("ffplay did not terminate, killing (PID: %s)", proc.pid)
            try:
                proc.kill()
            except ProcessLookupError:
                pass

    # Events

    def _set_playing(self, playing: bool) -> None:
        if playing == self._is_playing:
            return
        self._is_playing = playing
        for listener in list(self._listeners):
            listener.on_is_playing_changed(playing)

    def _emit_state(self, state: PlayerStateCode) -> None:
        for listener in list(self._listeners):
            listener.on_playback_state_changed(state)

    def _emit_error(self, error: PlayerError) -> None:
        logger.debug("ffplay error (%s): %s", error.code, error.message)
        for listener in list(self._listeners):
            listener.on_player_error(error)


@player_backend("ffplay")
class FfplayBackend:
    config_cls = FfplayConfig

    @classmethod
    def create(cls, config: FfplayConfig) -> PlayerFactory:
        return lambda: FfplayPlayer(config)
