"""
Notification Sinks

Where formatted notifications end up. Desktop toast backends live outside
this package and only need to satisfy NotificationSink.
"""
from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from ntfy_toaster.models.notification import Notification

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    """Displays a notification to the user."""

    async def show(self, notification: Notification) -> None:
        ...


class LoggingSink:
    """Writes notifications to the log instead of the desktop."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level
        self.shown = 0

    async def show(self, notification: Notification) -> None:
        self.shown += 1
        actions = ", ".join(a.label for a in notification.actions) or "none"
        logger.log(
            self._level,
            f"[{notification.app_id}] {notification.title} | "
            f"{notification.message!r} ({notification.attribution}, actions: {actions})",
        )
