"""
Notification Formatter

Builds the toast for a message event:

- tags that are emoji shortcodes ("warning", "tada", "+1") become emoji in
  front of the title, the rest are appended to the body as #hashtags
- priority picks the app id suffix and the icon
- ``click`` and ``attachment.url`` become action buttons
"""
from __future__ import annotations

import os
from urllib.parse import urlparse

import emoji

from ntfy_toaster.models.event import Event
from ntfy_toaster.models.notification import Notification, NotificationAction

DEFAULT_APP_NAME = "Ntfy Toaster"

DEFAULT_ICON = "ntfy.ico"

# priority -> (app id suffix, icon file); 3 is the default priority
PRIORITY_STYLES: dict[int, tuple[str, str]] = {
    1: (" (Min Prio)", "ntfy_minprio.ico"),
    2: (" (Low Prio)", "ntfy_lowprio.ico"),
    4: (" (High Prio)", "ntfy_highprio.ico"),
    5: (" (Max Prio)", "ntfy_maxprio.ico"),
}


def tag_to_emoji(tag: str) -> str | None:
    """Return the emoji for a shortcode tag, or None if it is not one."""
    shortcode = f":{tag}:"
    rendered = emoji.emojize(shortcode, language="alias")
    if rendered == shortcode:
        return None
    return rendered


def strip_protocol(url: str) -> str:
    """Host part of ``url``; the input unchanged if it has none."""
    return urlparse(url).netloc or url


def format_notification(
    event: Event,
    source_url: str,
    *,
    icon_dir: str = "",
    app_name: str = DEFAULT_APP_NAME,
) -> Notification:
    title = event.title or ""
    message = event.message or ""

    emojis: list[str] = []
    hashtags: list[str] = []
    for tag in event.tags:
        rendered = tag_to_emoji(tag)
        if rendered is not None:
            emojis.append(rendered)
        else:
            hashtags.append(f"#{tag}")

    if emojis:
        title = " ".join(emojis) + (f" {title}" if title else "")
    if hashtags:
        message = f"{message}\n{' '.join(hashtags)}" if message else " ".join(hashtags)

    app_id = app_name
    icon = DEFAULT_ICON
    if event.priority in PRIORITY_STYLES:
        suffix, icon = PRIORITY_STYLES[event.priority]
        app_id += suffix

    actions: list[NotificationAction] = []
    if event.click:
        actions.append(NotificationAction(label="Go to Event Source", url=event.click))
    if event.attachment_url:
        actions.append(
            NotificationAction(label="View Attachment", url=event.attachment_url)
        )

    return Notification(
        app_id=app_id,
        title=title,
        message=message,
        icon=os.path.join(icon_dir, icon) if icon_dir else icon,
        attribution=f"via {strip_protocol(source_url)}",
        activation_url=source_url,
        actions=tuple(actions),
    )
