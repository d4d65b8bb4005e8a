"""
Ntfy Toaster Data Models
"""
from ntfy_toaster.models.event import MESSAGE_EVENT, Event, decode_event
from ntfy_toaster.models.notification import Notification, NotificationAction
from ntfy_toaster.models.topic import ConfigSnapshot, Topic

__all__ = [
    "MESSAGE_EVENT",
    "ConfigSnapshot",
    "Event",
    "Notification",
    "NotificationAction",
    "Topic",
    "decode_event",
]
