"""
Notification Model

What the formatter hands to a notification sink: a fully resolved toast.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationAction:
    """A button on the toast that opens ``url``."""

    label: str
    url: str


@dataclass(frozen=True)
class Notification:
    app_id: str
    title: str
    message: str
    icon: str
    attribution: str
    activation_url: str
    actions: tuple[NotificationAction, ...] = ()
