"""
Topic Subscription

Keeps one topic's stream alive until cancelled:

    CONNECTING -> STREAMING -> DISCONNECTED -> CONNECTING ...
    any state -> CANCELLED once cancel() is called

A failed connect waits the short connect backoff; any end of an
established stream waits the longer disconnect backoff. Every wait,
connect and read is raced against the cancellation signal.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Optional

import aiohttp

from ntfy_toaster.core.types import (
    BackoffPolicy,
    ConnectError,
    Sleep,
    default_sleep,
)
from ntfy_toaster.models.topic import Topic
from ntfy_toaster.stream_client.channel import DispatchChannel
from ntfy_toaster.stream_client.reader import (
    Continuing,
    Ended,
    Failed,
    ReadResult,
    StreamReader,
)

logger = logging.getLogger(__name__)


class SubscriptionState(str, Enum):
    """Lifecycle state of a topic subscription."""

    CONNECTING = "connecting"
    STREAMING = "streaming"
    DISCONNECTED = "disconnected"
    CANCELLED = "cancelled"


@dataclass
class SubscriptionStats:
    connect_attempts: int = 0
    connect_failures: int = 0
    disconnects: int = 0
    events_forwarded: int = 0


class _Cancelled(Exception):
    """Internal: the cancellation signal won a race."""


class TopicSubscription:
    """
    Long-lived reconnect loop for a single topic.

    Events read from the stream are forwarded, in wire order, onto the
    subscription's DispatchChannel. Once cancel() is called nothing more
    is forwarded and the channel is closed.
    """

    def __init__(
        self,
        topic: Topic,
        reader: StreamReader,
        channel: DispatchChannel,
        *,
        backoff: Optional[BackoffPolicy] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._topic = topic
        self._reader = reader
        self._channel = channel
        self._backoff = backoff or BackoffPolicy()
        self._sleep = sleep or default_sleep

        self._cancelled = asyncio.Event()
        self._state = SubscriptionState.CONNECTING
        self._stats = SubscriptionStats()

    @property
    def topic(self) -> Topic:
        return self._topic

    @property
    def channel(self) -> DispatchChannel:
        return self._channel

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def stats(self) -> SubscriptionStats:
        return self._stats

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Signal the subscription to stop. Safe to call repeatedly."""
        if not self._cancelled.is_set():
            logger.info(f"Stopping subscription to {self._topic.stream_url}")
        self._cancelled.set()
        self._channel.close()

    async def run(self) -> None:
        """Run the reconnect loop until cancelled."""
        try:
            while not self._cancelled.is_set():
                self._state = SubscriptionState.CONNECTING
                self._stats.connect_attempts += 1
                try:
                    response = await self._connect()
                except ConnectError as e:
                    self._stats.connect_failures += 1
                    logger.error(
                        f"Error subscribing to {self._topic.stream_url}: {e}",
                        extra={"topic": self._topic.key},
                    )
                    await self._race(self._sleep(self._backoff.connect_delay))
                    continue

                self._state = SubscriptionState.STREAMING
                await self._stream(response)

                self._state = SubscriptionState.DISCONNECTED
                self._stats.disconnects += 1
                await self._race(self._sleep(self._backoff.disconnect_delay))
                logger.info(f"Reconnecting to {self._topic.stream_url}")

        except _Cancelled:
            pass
        finally:
            self._state = SubscriptionState.CANCELLED
            self._cancelled.set()
            self._channel.close()

    async def _connect(self) -> aiohttp.ClientResponse:
        task = asyncio.ensure_future(self._reader.connect())
        try:
            return await self._race(task)
        except _Cancelled:
            # The connect may have completed in the same loop iteration
            if task.done() and not task.cancelled() and task.exception() is None:
                task.result().close()
            raise

    async def _stream(self, response: aiohttp.ClientResponse) -> None:
        """Forward read results until the stream ends or we are cancelled."""
        results: asyncio.Queue[ReadResult] = asyncio.Queue()
        read_task = asyncio.create_task(
            self._reader.pump(response, results.put_nowait),
            name=f"read:{self._topic.key}",
        )
        cancel_wait = asyncio.ensure_future(self._cancelled.wait())
        getter: Optional[asyncio.Future[ReadResult]] = None
        try:
            while True:
                if results.empty():
                    getter = asyncio.ensure_future(results.get())
                    await asyncio.wait(
                        {getter, cancel_wait}, return_when=asyncio.FIRST_COMPLETED
                    )
                    if not getter.done():
                        raise _Cancelled()
                    result = getter.result()
                else:
                    result = results.get_nowait()

                if self._cancelled.is_set():
                    raise _Cancelled()

                if isinstance(result, Continuing):
                    self._channel.put(result.event)
                    self._stats.events_forwarded += 1
                elif isinstance(result, Failed):
                    logger.warning(
                        "Stream failed, will reconnect",
                        extra={"topic": self._topic.key, "error": result.reason},
                    )
                    return
                elif isinstance(result, Ended):
                    return
        finally:
            if getter is not None and not getter.done():
                getter.cancel()
            cancel_wait.cancel()
            read_task.cancel()
            # Closing the response unblocks a read parked on the socket
            response.close()

    async def _race(self, aw: Awaitable[Any]) -> Any:
        """
        Await ``aw`` unless cancellation fires first.

        Raises:
            _Cancelled: If the cancellation signal is set before or while
                waiting. The pending awaitable is cancelled.
        """
        if self._cancelled.is_set():
            if asyncio.isfuture(aw):
                aw.cancel()
            elif asyncio.iscoroutine(aw):
                aw.close()
            raise _Cancelled()

        work = asyncio.ensure_future(aw)
        signal = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait({work, signal}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            signal.cancel()
            if not work.done():
                work.cancel()

        if self._cancelled.is_set():
            if work.done() and not work.cancelled():
                work.exception()  # retrieved; a late ConnectError is moot
            raise _Cancelled()
        return work.result()
