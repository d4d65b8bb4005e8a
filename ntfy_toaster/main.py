"""
Ntfy Toaster Entry Point

Subscribes to every topic in the configuration file and shows a desktop
notification for each message event. Edits to the configuration file are
picked up while running.

Usage:
    python -m ntfy_toaster.main
    python -m ntfy_toaster.main --config ~/.config/ntfytoaster/config.json
    python -m ntfy_toaster.main --log-level DEBUG
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import TYPE_CHECKING, Optional

import aiohttp

if TYPE_CHECKING:
    from ntfy_toaster.config_store import ConfigStore
    from ntfy_toaster.supervisor import SubscriptionSupervisor

logger = logging.getLogger(__name__)


async def apply_config_change(
    store: ConfigStore, supervisor: SubscriptionSupervisor
) -> bool:
    """
    Reload the topic file and reconcile the supervisor against it.

    A file that fails to load leaves the previous snapshot and its running
    subscriptions in place. Returns True if a reconcile happened.
    """
    snapshot = store.reload()
    if snapshot is None:
        logger.warning("Keeping previous topics after failed reload")
        return False

    await supervisor.reconcile(snapshot)
    return True


async def main(config_path: Optional[str] = None) -> int:
    """
    Run until SIGINT/SIGTERM.

    1. Creates the default config file if there is none
    2. Loads the topics (fatal on error)
    3. Starts one subscription per topic
    4. Re-reconciles whenever the config file changes
    """
    from ntfy_toaster.config import settings
    from ntfy_toaster.config_store import ConfigStore, ConfigWatcher, write_default_config
    from ntfy_toaster.core.types import ConfigurationError
    from ntfy_toaster.notifications import LoggingSink, ToastRenderer
    from ntfy_toaster.supervisor import SubscriptionSupervisor

    path = config_path or settings.topic_file.path
    write_default_config(path)

    store = ConfigStore(path)
    try:
        snapshot = store.load()
    except ConfigurationError as e:
        logger.error(f"Error loading config: {e}")
        return 1

    renderer = ToastRenderer(
        LoggingSink(),
        icon_dir=settings.topic_file.icon_dir,
        app_name=settings.app_name,
    )

    # Streams are long-lived: no total timeout
    timeout = aiohttp.ClientTimeout(total=None)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        supervisor = SubscriptionSupervisor(
            session,
            renderer,
            backoff=settings.stream.backoff,
        )
        await supervisor.reconcile(snapshot)

        async def handle_config_change() -> None:
            await apply_config_change(store, supervisor)

        watcher = ConfigWatcher(
            path,
            handle_config_change,
            interval=settings.topic_file.poll_interval,
        )
        watcher.start()

        shutdown_event = asyncio.Event()

        def signal_handler() -> None:
            logger.info("Shutdown signal received")
            shutdown_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, signal_handler)
            except NotImplementedError:
                # Windows event loops; KeyboardInterrupt still stops asyncio.run
                pass

        try:
            await shutdown_event.wait()
        finally:
            logger.info("Shutting down...")
            await watcher.stop()

            stats = supervisor.get_stats()
            await supervisor.shutdown()

            logger.info(
                "Final stats",
                extra={
                    "reconciliations": stats["reconciliations"],
                    "subscriptions_started": stats["subscriptions_started"],
                    "config_changes": watcher.changes_seen,
                },
            )

    return 0


def cli(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="ntfy-toaster",
        description="Desktop notifications for ntfy topics",
    )
    parser.add_argument("--config", help="Path to the topic configuration file")
    parser.add_argument("--log-level", help="Logging level (default from env or INFO)")
    args = parser.parse_args(argv)

    from ntfy_toaster.config import settings

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        sys.exit(asyncio.run(main(args.config)))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    cli()
