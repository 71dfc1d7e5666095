"""Main script for running the live monitor without the HTTP API."""

import asyncio
import logging

from .infrastructure.config import MonitorConfig, configure_logging
from .infrastructure.dependencies import ServiceContainer

logger = logging.getLogger(__name__)


async def main():
    """Poll tracked creators until interrupted."""
    config = MonitorConfig.from_env()
    configure_logging(config.log_level)

    print("Live Monitor - Twitch and YouTube went-live notifications")
    print("---------------------------------------------------------")

    container = ServiceContainer(config)
    creators, _ = container.get_creator_repository().counts
    if not creators:
        logger.warning("⚠️ No creators tracked - set LIVE_MONITOR_CREATORS_FILE to a JSON list of creators")

    live_sync_service = container.get_live_sync_service()
    await live_sync_service.start()
    try:
        # Runs until cancelled by Ctrl+C
        await asyncio.Event().wait()
    finally:
        # Clean up
        await container.shutdown()


def run():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    run()
