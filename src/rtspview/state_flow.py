"""Current-value snapshot publisher."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateFlow(Generic[T]):
    """Holds the latest snapshot and publishes changes to observers.

    Equal values are not republished. Synchronous listeners run inline on
    every change; async subscribers are conflated to the latest value.
    """

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._listeners: list[Callable[[T], None]] = []
        self._queues: set[asyncio.Queue[T]] = set()

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if value == self._value:
            return
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as exc:
                logger.error("State listener failed: %s", exc, exc_info=True)
        for queue in self._queues:
            _offer_latest(queue, value)

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))

    def add_listener(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register a synchronous listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def subscribe(self) -> AsyncIterator[T]:
        """Yield the current value, then every subsequent change."""
        queue: asyncio.Queue[T] = asyncio.Queue(maxsize=1)
        queue.put_nowait(self._value)
        self._queues.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.discard(queue)


def _offer_latest(queue: asyncio.Queue[T], value: T) -> None:
    try:
        queue.put_nowait(value)
    except asyncio.QueueFull:
        try:
            _ = queue.get_nowait()
        except asyncio.QueueEmpty:
            pass
        queue.put_nowait(value)
