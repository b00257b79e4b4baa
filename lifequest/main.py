"""
LifeQuest - Application Entry Point
===================================

Bootstrap
---------
- Logging setup
- Config validation
- ApplicationContext initialization (storage, restore, daily reset loop)
- Runs until SIGTERM / SIGINT, then shuts down gracefully

Run with ``python -m lifequest.main`` or the ``lifequest`` console script.
"""

import asyncio
import signal
import sys

from lifequest.core.config.config import Config
from lifequest.core.infra.application_context import ApplicationContext
from lifequest.core.logging.logger import get_logger, setup_logging, shutdown_logging

logger = get_logger(__name__)


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop: asyncio.Event) -> None:
    """Set `stop` on SIGTERM / SIGINT where the platform supports it."""
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, stop.set)
            logger.debug("%s handler installed", sig.name)
        except NotImplementedError:
            logger.debug("%s not supported on this platform (likely Windows)", sig.name)


async def main() -> None:
    """
    LifeQuest entry point.

    Lifecycle:
        1. Validate configuration
        2. Initialize infrastructure and restore progress
        3. Wait for a stop signal
        4. Shut down gracefully
    """
    logger.info("========== LIFEQUEST INITIALIZATION START ==========")

    try:
        Config.validate()
        Config.ensure_directories()
        logger.info("✓ Configuration validated", extra={"config": Config.get_config_summary()})
    except Exception as exc:
        logger.critical(f"Configuration validation failed: {exc}")
        raise

    context = ApplicationContext()
    stop = asyncio.Event()
    _install_signal_handlers(asyncio.get_running_loop(), stop)

    try:
        tracker = await context.initialize()
        summary = tracker.get_progress_summary()
        logger.info(
            "LifeQuest running",
            extra={
                "level": summary["progression"]["level"],
                "total_xp": summary["profile"]["total_xp"],
                "last_reset_date": summary["last_reset_date"],
            },
        )
        await stop.wait()

    except asyncio.CancelledError:
        logger.warning("Asyncio task cancellation received; shutting down gracefully.")
        raise

    finally:
        await context.shutdown()
        logger.info("========== SHUTDOWN COMPLETE ==========")


def run() -> None:
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Stopped via keyboard interrupt.")
    except Exception as exc:
        logger.critical(f"Startup failure: {exc}", exc_info=True)
        sys.exit(1)
    finally:
        shutdown_logging()


if __name__ == "__main__":
    run()
