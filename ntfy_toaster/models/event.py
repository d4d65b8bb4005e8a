"""
Stream Event Model

One decoded JSON object from a topic's newline-delimited stream. The wire
format is semi-structured: well-known fields are lifted into attributes,
anything else stays in ``raw`` and is otherwise ignored.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ntfy_toaster.core.types import DecodeError

MESSAGE_EVENT = "message"


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _priority(value: Any) -> Optional[int]:
    # JSON numbers may arrive as 4 or 4.0; bools are ints in Python
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    if value != int(value) or not 1 <= value <= 5:
        return None
    return int(value)


@dataclass(frozen=True)
class Event:
    """A single event received on a topic stream."""

    kind: Optional[str] = None
    id: Optional[str] = None
    topic: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    tags: tuple[str, ...] = ()
    priority: Optional[int] = None
    click: Optional[str] = None
    attachment_url: Optional[str] = None
    raw: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        """Lift the known fields out of a decoded object, ignoring bad types."""
        tags = data.get("tags")
        if isinstance(tags, list):
            tags = tuple(t for t in tags if isinstance(t, str))
        else:
            tags = ()

        attachment = data.get("attachment")
        attachment_url = None
        if isinstance(attachment, Mapping):
            attachment_url = _str_or_none(attachment.get("url"))

        return cls(
            kind=_str_or_none(data.get("event")),
            id=_str_or_none(data.get("id")),
            topic=_str_or_none(data.get("topic")),
            title=_str_or_none(data.get("title")),
            message=_str_or_none(data.get("message")),
            tags=tags,
            priority=_priority(data.get("priority")),
            click=_str_or_none(data.get("click")),
            attachment_url=attachment_url,
            raw=MappingProxyType(dict(data)),
        )

    @property
    def is_message(self) -> bool:
        return self.kind == MESSAGE_EVENT


def decode_event(line: str | bytes) -> Event:
    """
    Decode one stream line into an Event.

    Raises:
        DecodeError: If the line is not valid JSON or not a JSON object.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Line is not valid UTF-8: {exc}") from exc

    try:
        data = json.loads(line)
    except (ValueError, RecursionError) as exc:
        raise DecodeError(f"Failed to parse line as JSON: {exc}", line=line) from exc

    if not isinstance(data, dict):
        raise DecodeError(
            f"Expected a JSON object, got {type(data).__name__}", line=line
        )

    try:
        return Event.from_dict(data)
    except Exception as exc:
        raise DecodeError(f"Could not read event fields: {exc}", line=line) from exc
