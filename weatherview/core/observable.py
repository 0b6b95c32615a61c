from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class Observable(Generic[T]):
    """A value holder that publishes every assignment to its observers.

    Observers either register a synchronous listener with ``subscribe`` or
    iterate ``updates()`` from a coroutine. Both receive changes in the order
    they were applied.
    """

    def __init__(self, initial: T, *, name: str = "") -> None:
        self._value = initial
        self._name = name
        self._listeners: list[Listener[T]] = []
        self._queues: dict[asyncio.Queue[T], asyncio.AbstractEventLoop] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Listener for %r failed", self._name or self)
        current = _running_loop()
        for queue, loop in list(self._queues.items()):
            if loop is current:
                queue.put_nowait(value)
            elif not loop.is_closed():
                # Assignments made from worker threads are handed to the consumer's loop.
                loop.call_soon_threadsafe(queue.put_nowait, value)

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def updates(self) -> AsyncIterator[T]:
        queue: asyncio.Queue[T] = asyncio.Queue()
        self._queues[queue] = asyncio.get_running_loop()
        try:
            yield self._value
            while True:
                yield await queue.get()
        finally:
            self._queues.pop(queue, None)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
