"""
Topic Configuration Store

Loads the topic configuration file into immutable snapshots and watches it
for changes.

File format (JSON)::

    {
      "topics": {
        "alerts": {"url": "https://ntfy.sh/alerts", "token": "tk_optional"}
      }
    }

A failure on the first load is fatal to the caller. A failure on reload
keeps the previous snapshot active.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Awaitable, Callable, Optional

from ntfy_toaster.core.types import (
    ConfigurationError,
    Sleep,
    ValidationError,
    default_sleep,
)
from ntfy_toaster.models.topic import ConfigSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "topics": {
        "your_topic": {
            "url": "https://ntfy.example.com/your_topic",
            "token": "",
        }
    }
}

ChangeCallback = Callable[[], Awaitable[None]]


def load_config(path: str) -> ConfigSnapshot:
    """
    Read and validate the configuration file.

    Raises:
        ConfigurationError: If the file cannot be read, is not JSON, or
            describes invalid topics.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Could not read config file: {e}", path=path) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Could not parse config file: {e}", path=path) from e

    try:
        return ConfigSnapshot.from_dict(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config: {e}", path=path) from e


def write_default_config(path: str) -> bool:
    """Create a placeholder config if none exists. Returns True if written."""
    if os.path.exists(path):
        return False

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(DEFAULT_CONFIG, f, indent=2)
        f.write("\n")

    logger.info(f"Default config created, please configure it in {path}")
    return True


class ConfigStore:
    """
    Holds the current configuration snapshot.

    Snapshots are immutable and replaced by a single reference swap on the
    event loop, so readers always see either the old or the new one.
    """

    def __init__(self, path: str) -> None:
        self._path = path
        self._snapshot: Optional[ConfigSnapshot] = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def current(self) -> ConfigSnapshot:
        if self._snapshot is None:
            raise ConfigurationError("Configuration not loaded", path=self._path)
        return self._snapshot

    def load(self) -> ConfigSnapshot:
        """Initial load. Errors propagate."""
        self._snapshot = load_config(self._path)
        logger.info(
            f"Loaded {len(self._snapshot)} topic(s) from {self._path}",
        )
        return self._snapshot

    def reload(self) -> Optional[ConfigSnapshot]:
        """Reload after a change. Returns None and keeps the old snapshot on error."""
        try:
            snapshot = load_config(self._path)
        except ConfigurationError as e:
            logger.error(f"Error reloading config: {e}")
            return None

        self._snapshot = snapshot
        logger.info(f"Reloaded {len(snapshot)} topic(s) from {self._path}")
        return snapshot


class ConfigWatcher:
    """
    Polls the configuration file and calls ``on_change`` when its
    modification time or size changes.
    """

    def __init__(
        self,
        path: str,
        on_change: ChangeCallback,
        *,
        interval: float = 1.0,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._path = path
        self._on_change = on_change
        self._interval = interval
        self._sleep = sleep or default_sleep

        self._signature: Optional[tuple[int, int]] = self._stat()
        self._task: Optional[asyncio.Task[None]] = None
        self.changes_seen = 0

    def _stat(self) -> Optional[tuple[int, int]]:
        try:
            st = os.stat(self._path)
        except OSError:
            return None
        return (st.st_mtime_ns, st.st_size)

    async def check(self) -> bool:
        """Poll once. Returns True if a change was detected and handled."""
        signature = self._stat()
        if signature == self._signature:
            return False

        self._signature = signature
        if signature is None:
            logger.warning(f"Config file {self._path} disappeared")
            return False

        self.changes_seen += 1
        try:
            await self._on_change()
        except Exception as e:
            logger.error(
                "Config change handler failed",
                extra={"path": self._path, "error": str(e)},
                exc_info=True,
            )
        return True

    async def run(self) -> None:
        logger.info(f"Watching {self._path} for changes")
        while True:
            await self._sleep(self._interval)
            await self.check()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="config-watcher")

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
