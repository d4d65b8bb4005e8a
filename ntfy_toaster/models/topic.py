"""
Topic Configuration Models

A Topic is one remote event source; a ConfigSnapshot is the full set of
topics read from the configuration file at one point in time. Both are
immutable: replacing the snapshot is the unit of reconfiguration.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping
from urllib.parse import urlparse

from ntfy_toaster.core.types import ValidationError


@dataclass(frozen=True)
class Topic:
    """
    One subscribable topic endpoint.

    Equality covers key, URL and token, so a changed URL or token for the
    same key is a different desired subscription.
    """

    key: str
    url: str
    token: str = ""

    def __post_init__(self) -> None:
        if not self.key:
            raise ValidationError("Topic key is required", field="key")
        if not self.url:
            raise ValidationError(
                "Topic URL is required", field="url", context={"topic": self.key}
            )

        parsed = urlparse(self.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError(
                "Topic URL must be an http(s) URL",
                field="url",
                value=self.url,
                context={"topic": self.key},
            )

        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "url", self.url.rstrip("/"))

    @property
    def stream_url(self) -> str:
        """Newline-delimited JSON endpoint for this topic."""
        return f"{self.url}/json"

    @property
    def headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    @property
    def host(self) -> str:
        return urlparse(self.url).netloc

    def __repr__(self) -> str:
        # Keep tokens out of logs
        masked = "***" if self.token else ""
        return f"Topic(key={self.key!r}, url={self.url!r}, token={masked!r})"


@dataclass(frozen=True)
class ConfigSnapshot:
    """Immutable mapping of topic key to Topic."""

    topics: Mapping[str, Topic] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for key, topic in self.topics.items():
            if key != topic.key:
                raise ValidationError(
                    "Topic key does not match its mapping key",
                    field="key",
                    value=topic.key,
                    context={"mapping_key": key},
                )
        object.__setattr__(self, "topics", MappingProxyType(dict(self.topics)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ConfigSnapshot":
        """
        Build a snapshot from the configuration document.

        Expected shape::

            {"topics": {"alerts": {"url": "https://ntfy.sh/alerts", "token": "tk_..."}}}

        Raises:
            ValidationError: If the document or any topic entry is malformed.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValidationError(
                "Configuration document must be a mapping", value=data
            )

        raw_topics = data.get("topics") or {}
        if not isinstance(raw_topics, Mapping):
            raise ValidationError(
                "'topics' must be a mapping of name to topic", field="topics"
            )

        topics: dict[str, Topic] = {}
        for key, entry in raw_topics.items():
            if not isinstance(entry, Mapping):
                raise ValidationError(
                    "Topic entry must be a mapping",
                    field=f"topics.{key}",
                    value=entry,
                )
            url = entry.get("url", "")
            token = entry.get("token") or ""
            if not isinstance(url, str) or not isinstance(token, str):
                raise ValidationError(
                    "Topic url and token must be strings", field=f"topics.{key}"
                )
            topics[str(key)] = Topic(key=str(key), url=url, token=token)

        return cls(topics=topics)

    @property
    def keys(self) -> frozenset[str]:
        return frozenset(self.topics)

    def __len__(self) -> int:
        return len(self.topics)

    def __iter__(self) -> Iterator[Topic]:
        return iter(self.topics.values())
