"""
Core Type Definitions and Exceptions

Error taxonomy and retry policy shared by the stream client, the
supervisor and the configuration store.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

# Fixed reconnect delays. A failed connect is retried quickly; a stream that
# was up and then ended waits longer so servers that recycle long-lived
# connections are not hammered.
CONNECT_BACKOFF_SECONDS = 5.0
DISCONNECT_BACKOFF_SECONDS = 15.0

Sleep = Callable[[float], Awaitable[None]]


class NtfyToasterError(Exception):
    """Base exception for all ntfy toaster errors."""

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class ValidationError(NtfyToasterError):
    """Raised when a configuration value fails validation."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        if field:
            ctx["field"] = field
        if value is not None:
            ctx["value"] = repr(value)[:100]  # Truncate long values
        super().__init__(message, ctx)
        self.field = field
        self.value = value


class ConfigurationError(NtfyToasterError):
    """Raised when the topic configuration cannot be read or parsed."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        if path:
            ctx["path"] = path
        super().__init__(message, ctx)
        self.path = path


class ConnectError(NtfyToasterError):
    """Raised when a topic endpoint cannot be reached."""

    def __init__(
        self,
        message: str,
        url: str,
        status: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        ctx["url"] = url
        if status is not None:
            ctx["status"] = status
        super().__init__(message, ctx)
        self.url = url
        self.status = status


class StreamError(NtfyToasterError):
    """Raised when reading an established stream fails."""

    def __init__(
        self,
        message: str,
        url: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        ctx["url"] = url
        super().__init__(message, ctx)
        self.url = url


class DecodeError(NtfyToasterError):
    """Raised when a single stream line is not a JSON object."""

    def __init__(
        self,
        message: str,
        line: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        if line:
            ctx["line"] = line[:100]
        super().__init__(message, ctx)
        self.line = line


@dataclass(frozen=True)
class BackoffPolicy:
    """Fixed-interval reconnect delays for a topic subscription."""

    connect_delay: float = CONNECT_BACKOFF_SECONDS
    disconnect_delay: float = DISCONNECT_BACKOFF_SECONDS

    def __post_init__(self) -> None:
        if self.connect_delay < 0:
            raise ValidationError(
                "connect_delay must not be negative",
                field="connect_delay",
                value=self.connect_delay,
            )
        if self.disconnect_delay < 0:
            raise ValidationError(
                "disconnect_delay must not be negative",
                field="disconnect_delay",
                value=self.disconnect_delay,
            )


async def default_sleep(delay: float) -> None:
    """Wait ``delay`` seconds on the running loop."""
    await asyncio.sleep(delay)
