"""
Message Dispatcher

Drains one topic's DispatchChannel and hands ``message`` events to the
notification renderer. Other event kinds (open, keepalive, ...) are only
logged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ntfy_toaster.models.event import Event
from ntfy_toaster.models.topic import Topic
from ntfy_toaster.stream_client.channel import DispatchChannel

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationRenderer(Protocol):
    """Turns a message event into something the user sees."""

    async def render(self, event: Event, source_url: str) -> None:
        """Render ``event``, attributing it to ``source_url``."""
        ...


@dataclass
class DispatcherStats:
    received: int = 0
    rendered: int = 0
    ignored: int = 0
    render_errors: int = 0


class MessageDispatcher:
    """
    Per-topic consumer. Runs until its channel is closed, which happens when
    the owning subscription is cancelled.
    """

    def __init__(
        self,
        topic: Topic,
        channel: DispatchChannel,
        renderer: NotificationRenderer,
    ) -> None:
        self._topic = topic
        self._channel = channel
        self._renderer = renderer
        self._stats = DispatcherStats()

    @property
    def stats(self) -> DispatcherStats:
        return self._stats

    async def run(self) -> None:
        async for event in self._channel:
            await self._dispatch(event)

        logger.debug(
            "Dispatcher finished",
            extra={"topic": self._topic.key, "received": self._stats.received},
        )

    async def _dispatch(self, event: Event) -> None:
        self._stats.received += 1

        if not event.is_message:
            # open / keepalive / poll_request
            logger.debug(
                f"Received {event.kind or 'unknown'} event for topic {self._topic.url}",
                extra={"topic": self._topic.key},
            )
            self._stats.ignored += 1
            return

        logger.info(
            f"Received message for topic {self._topic.url}",
            extra={"topic": self._topic.key, "event_id": event.id},
        )

        try:
            await self._renderer.render(event, self._topic.url)
            self._stats.rendered += 1
        except Exception as e:
            self._stats.render_errors += 1
            logger.error(
                f"Error showing notification: {e}",
                extra={"topic": self._topic.key, "event_id": event.id},
                exc_info=True,
            )
