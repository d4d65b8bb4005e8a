"""
Ntfy Toaster Configuration

Process-level settings. All environment variables MUST be defined here.
No os.getenv() calls allowed elsewhere. The topic list itself lives in the
JSON configuration file handled by config_store.
"""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from dotenv import load_dotenv

from ntfy_toaster.core.types import (
    CONNECT_BACKOFF_SECONDS,
    DISCONNECT_BACKOFF_SECONDS,
    BackoffPolicy,
    ConfigurationError,
)

load_dotenv()


def _optional_env(name: str, default: str = "") -> str:
    """Get an optional environment variable with a default."""
    return os.environ.get(name, default)


def _optional_env_float(name: str, default: float) -> float:
    """Get an optional float environment variable with a default."""
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"Invalid numeric value for {name}: {value}")


def _default_config_dir() -> str:
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or os.path.expanduser("~")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return os.path.join(base, "ntfytoaster")


@dataclass(frozen=True)
class TopicFileConfig:
    """Location and polling of the topic configuration file."""

    directory: str
    name: str = "config.json"
    poll_interval: float = 1.0

    @property
    def path(self) -> str:
        return os.path.join(self.directory, self.name)

    @property
    def icon_dir(self) -> str:
        return os.path.join(self.directory, "assets")


@dataclass(frozen=True)
class StreamConfig:
    """Reconnect timing for topic streams."""

    connect_backoff: float = CONNECT_BACKOFF_SECONDS
    disconnect_backoff: float = DISCONNECT_BACKOFF_SECONDS

    @property
    def backoff(self) -> BackoffPolicy:
        return BackoffPolicy(
            connect_delay=self.connect_backoff,
            disconnect_delay=self.disconnect_backoff,
        )


@dataclass(frozen=True)
class Settings:
    """Root configuration container."""

    topic_file: TopicFileConfig
    stream: StreamConfig
    log_level: str = "INFO"
    app_name: str = "Ntfy Toaster"


def load_settings() -> Settings:
    """Load all settings from environment variables."""
    topic_file = TopicFileConfig(
        directory=_optional_env("NTFY_TOASTER_CONFIG_DIR", _default_config_dir()),
        name=_optional_env("NTFY_TOASTER_CONFIG_NAME", "config.json"),
        poll_interval=_optional_env_float("NTFY_TOASTER_CONFIG_POLL_INTERVAL", 1.0),
    )

    stream = StreamConfig(
        connect_backoff=_optional_env_float(
            "NTFY_TOASTER_CONNECT_BACKOFF", CONNECT_BACKOFF_SECONDS
        ),
        disconnect_backoff=_optional_env_float(
            "NTFY_TOASTER_DISCONNECT_BACKOFF", DISCONNECT_BACKOFF_SECONDS
        ),
    )

    return Settings(
        topic_file=topic_file,
        stream=stream,
        log_level=_optional_env("NTFY_TOASTER_LOG_LEVEL", "INFO").upper(),
        app_name=_optional_env("NTFY_TOASTER_APP_NAME", "Ntfy Toaster"),
    )


settings = load_settings()
