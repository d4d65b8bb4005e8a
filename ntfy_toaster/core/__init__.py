"""
Ntfy Toaster Core Utilities

Shared exceptions and the reconnect policy.
"""
from ntfy_toaster.core.types import (
    CONNECT_BACKOFF_SECONDS,
    DISCONNECT_BACKOFF_SECONDS,
    BackoffPolicy,
    ConfigurationError,
    ConnectError,
    DecodeError,
    NtfyToasterError,
    Sleep,
    StreamError,
    ValidationError,
    default_sleep,
)

__all__ = [
    "CONNECT_BACKOFF_SECONDS",
    "DISCONNECT_BACKOFF_SECONDS",
    "BackoffPolicy",
    "ConfigurationError",
    "ConnectError",
    "DecodeError",
    "NtfyToasterError",
    "Sleep",
    "StreamError",
    "ValidationError",
    "default_sleep",
]
