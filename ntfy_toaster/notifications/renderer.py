"""
Toast Renderer

Glue between the dispatcher and a notification sink: format, then show.
"""
from __future__ import annotations

from ntfy_toaster.models.event import Event
from ntfy_toaster.notifications.formatter import DEFAULT_APP_NAME, format_notification
from ntfy_toaster.notifications.sink import NotificationSink


class ToastRenderer:
    """NotificationRenderer that formats events into toasts for ``sink``."""

    def __init__(
        self,
        sink: NotificationSink,
        *,
        icon_dir: str = "",
        app_name: str = DEFAULT_APP_NAME,
    ) -> None:
        self._sink = sink
        self._icon_dir = icon_dir
        self._app_name = app_name

    async def render(self, event: Event, source_url: str) -> None:
        notification = format_notification(
            event,
            source_url,
            icon_dir=self._icon_dir,
            app_name=self._app_name,
        )
        await self._sink.show(notification)
