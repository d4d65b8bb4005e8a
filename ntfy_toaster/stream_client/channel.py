"""
Dispatch Channel

Per-topic conduit between a subscription (producer) and its dispatcher
(consumer). Unbounded and FIFO. Closing the channel drops anything still
queued so a cancelled topic never delivers another event.
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, Optional

from ntfy_toaster.models.event import Event

_CLOSED = object()


class DispatchChannel:
    """Single-producer, single-consumer queue of Events with an end marker."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return 0 if self._closed else self._queue.qsize()

    def put(self, event: Event) -> bool:
        """Enqueue an event. Returns False if the channel is already closed."""
        if self._closed:
            return False
        self._queue.put_nowait(event)
        return True

    def close(self) -> None:
        """End the stream, discarding undelivered events. Idempotent."""
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> Optional[Event]:
        """Wait for the next event, or None once the channel is closed."""
        if self._closed:
            return None
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            return None
        return item  # type: ignore[return-value]

    async def __aiter__(self) -> AsyncIterator[Event]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event
