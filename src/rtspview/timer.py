"""One-slot cancelable delayed action."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CancelableTimer:
    """Runs a callback after a delay unless canceled first.

    Holds at most one pending action; scheduling a new one cancels the
    previous. Cancellation always wins: once `cancel()` returns, the
    pending callback will never run, even if its delay already elapsed.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._token = 0

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, delay_s: float, callback: Callable[[], None]) -> None:
        """Run `callback` on the running loop after `delay_s` seconds."""
        self.cancel()
        token = self._token
        self._task = asyncio.get_running_loop().create_task(
            self._fire_after(max(0.0, delay_s), callback, token),
            name=f"timer:{self._name}",
        )

    def cancel(self) -> None:
        self._token += 1
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()

    async def wait(self) -> None:
        """Wait until the pending action (if any) fires or is canceled."""
        task = self._task
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _fire_after(self, delay_s: float, callback: Callable[[], None], token: int) -> None:
        await asyncio.sleep(delay_s)
        if token != self._token:
            return
        self._task = None
        try:
            callback()
        except Exception as exc:
            logger.error("Timer %s callback failed: %s", self._name, exc, exc_info=True)
