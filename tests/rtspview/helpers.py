"""Shared test helpers."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

from rtspview.models.playback import PlaybackState, UiState
from rtspview.state_flow import StateFlow


def camera_prefs(*urls: str, index: int = 0, **fields: Any) -> dict[str, Any]:
    """Preference document with one camera per URL (ids cam-1, cam-2, ...).

    The reconnect delay defaults to 0 so retries fire on the next loop turn.
    """
    cameras = [
        {"id": f"cam-{n}", "name": f"Camera {n}", "url": url, "displayMode": "fit"}
        for n, url in enumerate(urls, start=1)
    ]
    prefs: dict[str, Any] = {
        "cameras_json": json.dumps(cameras),
        "current_camera_index": index,
        "reconnect_delay_ms": 0,
    }
    prefs.update(fields)
    return prefs


async def wait_for_retry(supervisor: Any) -> None:
    """Wait until the supervisor's scheduled reconnect (if any) has fired."""
    await supervisor._reconnect_timer.wait()


async def wait_until(predicate: Callable[[], bool], *, timeout_s: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_s
    while not predicate():
        if loop.time() >= deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.001)


class StateRecorder:
    """Collects every distinct playback state published on a UI flow."""

    def __init__(self, flow: StateFlow[UiState]) -> None:
        self.states: list[PlaybackState] = [flow.value.playback_state]
        flow.add_listener(self._on_ui)

    def _on_ui(self, ui: UiState) -> None:
        if ui.playback_state != self.states[-1]:
            self.states.append(ui.playback_state)
