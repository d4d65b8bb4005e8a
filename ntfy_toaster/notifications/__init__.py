"""
Notification formatting and display.
"""
from ntfy_toaster.notifications.formatter import format_notification
from ntfy_toaster.notifications.renderer import ToastRenderer
from ntfy_toaster.notifications.sink import LoggingSink, NotificationSink

__all__ = [
    "LoggingSink",
    "NotificationSink",
    "ToastRenderer",
    "format_notification",
]
