"""
Subscription Supervisor

Owns the map of live topic subscriptions and rebuilds it from each new
configuration snapshot. Reconciliation is a full stop/start: every tracked
subscription is cancelled and one fresh subscription + dispatcher pair is
started per topic in the snapshot, even for topics that did not change.

Usage:
    supervisor = SubscriptionSupervisor(session, renderer)
    await supervisor.reconcile(snapshot)
    ...
    await supervisor.shutdown()
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

from ntfy_toaster.core.types import BackoffPolicy, Sleep
from ntfy_toaster.dispatcher import MessageDispatcher, NotificationRenderer
from ntfy_toaster.models.topic import ConfigSnapshot, Topic
from ntfy_toaster.stream_client.channel import DispatchChannel
from ntfy_toaster.stream_client.reader import StreamReader
from ntfy_toaster.stream_client.subscription import TopicSubscription

logger = logging.getLogger(__name__)


@dataclass
class SubscriptionHandle:
    """The supervisor's live state for one topic."""

    topic: Topic
    subscription: TopicSubscription
    dispatcher: MessageDispatcher
    subscription_task: asyncio.Task[None]
    dispatcher_task: asyncio.Task[None]

    @property
    def tasks(self) -> tuple[asyncio.Task[None], ...]:
        return (self.subscription_task, self.dispatcher_task)

    def cancel(self) -> None:
        """Stop the subscription; its dispatcher ends when the channel closes."""
        self.subscription.cancel()


@dataclass
class SupervisorStats:
    reconciliations: int = 0
    subscriptions_started: int = 0
    subscriptions_cancelled: int = 0


class SubscriptionSupervisor:
    """
    Keeps exactly one subscription per configured topic.

    Args:
        session:  Shared aiohttp session used by every stream reader.
        renderer: Receives message events from every topic's dispatcher.
        backoff:  Reconnect delays handed to each subscription.
        sleep:    Waiting primitive for backoff (tests inject a fake).
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        renderer: NotificationRenderer,
        *,
        backoff: Optional[BackoffPolicy] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._session = session
        self._renderer = renderer
        self._backoff = backoff or BackoffPolicy()
        self._sleep = sleep

        self._handles: dict[str, SubscriptionHandle] = {}
        self._lock = asyncio.Lock()
        # every subscription/dispatcher task not yet finished, live or retired
        self._tasks: set[asyncio.Task[None]] = set()
        self._stats = SupervisorStats()
        self._closed = False

    @property
    def topics(self) -> frozenset[str]:
        """Keys of the topics with a live subscription."""
        return frozenset(self._handles)

    def handle(self, key: str) -> Optional[SubscriptionHandle]:
        return self._handles.get(key)

    async def reconcile(self, snapshot: ConfigSnapshot) -> None:
        """
        Replace every live subscription with one per topic in ``snapshot``.

        Serialized: concurrent calls run one after another.
        """
        async with self._lock:
            if self._closed:
                logger.warning("Ignoring reconcile after shutdown")
                return

            self._cancel_all()

            handles: dict[str, SubscriptionHandle] = {}
            for topic in snapshot:
                handles[topic.key] = self._start(topic)
            self._handles = handles

            self._stats.reconciliations += 1
            logger.info(
                f"Subscribed to {len(handles)} topic(s)",
                extra={"topics": sorted(handles)},
            )

    async def shutdown(self, timeout: Optional[float] = 5.0) -> None:
        """
        Cancel every subscription and wait up to ``timeout`` seconds for the
        tasks to finish. Tasks still running after that are hard-cancelled.
        """
        async with self._lock:
            self._closed = True
            self._cancel_all()

        pending = set(self._tasks)
        if not pending:
            return

        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(
                f"{len(still_running)} task(s) did not stop in time and were cancelled"
            )
            await asyncio.gather(*still_running, return_exceptions=True)

    def get_stats(self) -> dict[str, Any]:
        """Per-topic state and counters."""
        topics: dict[str, Any] = {}
        for key, handle in self._handles.items():
            sub_stats = handle.subscription.stats
            disp_stats = handle.dispatcher.stats
            topics[key] = {
                "url": handle.topic.url,
                "state": handle.subscription.state.value,
                "connect_attempts": sub_stats.connect_attempts,
                "connect_failures": sub_stats.connect_failures,
                "disconnects": sub_stats.disconnects,
                "events_forwarded": sub_stats.events_forwarded,
                "rendered": disp_stats.rendered,
                "ignored": disp_stats.ignored,
            }

        return {
            "reconciliations": self._stats.reconciliations,
            "subscriptions_started": self._stats.subscriptions_started,
            "subscriptions_cancelled": self._stats.subscriptions_cancelled,
            "topics": topics,
        }

    def _start(self, topic: Topic) -> SubscriptionHandle:
        channel = DispatchChannel()
        subscription = TopicSubscription(
            topic,
            StreamReader(self._session, topic),
            channel,
            backoff=self._backoff,
            sleep=self._sleep,
        )
        dispatcher = MessageDispatcher(topic, channel, self._renderer)

        handle = SubscriptionHandle(
            topic=topic,
            subscription=subscription,
            dispatcher=dispatcher,
            subscription_task=asyncio.create_task(
                subscription.run(), name=f"subscription:{topic.key}"
            ),
            dispatcher_task=asyncio.create_task(
                dispatcher.run(), name=f"dispatcher:{topic.key}"
            ),
        )
        for task in handle.tasks:
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

        self._stats.subscriptions_started += 1
        return handle

    def _cancel_all(self) -> None:
        if self._handles:
            logger.info(f"Cancelling {len(self._handles)} subscriptions")
        for handle in self._handles.values():
            handle.cancel()
            self._stats.subscriptions_cancelled += 1
        self._handles = {}

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Task {task.get_name()} crashed: {exc}",
                exc_info=exc,
            )
