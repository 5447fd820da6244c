"""Main entry point for Slack Thread Tracker."""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from slack_sdk.web.async_client import AsyncWebClient

from thread_tracker import __version__
from thread_tracker.bot.core import ThreadTrackerBot
from thread_tracker.config import load_config
from thread_tracker.config.settings import Settings
from thread_tracker.exceptions import ConfigurationError
from thread_tracker.slack import SlackGateway
from thread_tracker.threads import (
    BackfillReconciler,
    BackfillResult,
    LiveEventReconciler,
    ThreadParser,
    ThreadQueryService,
    ThreadRegistry,
)


def setup_logging(debug: bool = False) -> None:
    """Configure structured logging."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if not debug
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Slack Thread Tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", action="version", version=f"Slack Thread Tracker {__version__}"
    )

    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    parser.add_argument("--config-file", type=Path, help="Path to a .env file")

    return parser.parse_args(argv)


def create_application(
    config: Settings, client: Optional[AsyncWebClient] = None
) -> Dict[str, Any]:
    """Create and wire the application components."""
    logger = structlog.get_logger()
    logger.info("Creating application components")

    if client is None:
        client = AsyncWebClient(token=config.slack_bot_token_str)

    parser = ThreadParser(
        rename_prefixes=config.rename_prefixes,
        close_keywords=config.close_keywords,
    )
    registry = ThreadRegistry(parser)
    gateway = SlackGateway(client)

    backfill = BackfillReconciler(
        registry=registry,
        gateway=gateway,
        parser=parser,
        lookback_days=config.backfill_days,
        history_limit=config.history_limit,
        replies_limit=config.replies_limit,
    )
    live_reconciler = LiveEventReconciler(
        registry=registry,
        gateway=gateway,
        parser=parser,
        replies_limit=config.replies_limit,
    )
    query_service = ThreadQueryService(registry=registry, gateway=gateway)

    dependencies = {
        "registry": registry,
        "gateway": gateway,
        "parser": parser,
        "live_reconciler": live_reconciler,
        "query_service": query_service,
    }
    bot = ThreadTrackerBot(config, dependencies)

    logger.info("Application components created successfully")

    return {
        "bot": bot,
        "config": config,
        "registry": registry,
        "backfill": backfill,
        **dependencies,
    }


async def run_backfill(app: Dict[str, Any]) -> BackfillResult:
    """Run the startup backfill and report the resulting thread count."""
    logger = structlog.get_logger()
    backfill: BackfillReconciler = app["backfill"]

    result = await backfill.run()
    logger.info("Thread registry initialized", thread_count=result.thread_count)
    return result


async def run_application(app: Dict[str, Any]) -> None:
    """Run the application with graceful shutdown handling.

    The Socket Mode connection is opened before the backfill pass. Replies
    that arrive while backfill is still scanning are handled by the live
    reconciler's rebuild path, which fetches the full thread itself.
    """
    logger = structlog.get_logger()
    bot: ThreadTrackerBot = app["bot"]

    shutdown_event = asyncio.Event()

    def signal_handler(signum: int, frame: Any) -> None:
        logger.info("Shutdown signal received", signal=signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("Starting Slack Thread Tracker")

        await bot.initialize()

        bot_task = asyncio.create_task(bot.start(), name="bot")
        shutdown_task = asyncio.create_task(shutdown_event.wait(), name="shutdown")
        backfill_task = asyncio.create_task(run_backfill(app), name="backfill")
        stop_tasks = {bot_task, shutdown_task}

        # Backfill runs alongside the bot; a shutdown or bot failure cancels it
        done, _ = await asyncio.wait(
            stop_tasks | {backfill_task}, return_when=asyncio.FIRST_COMPLETED
        )

        if not done & stop_tasks:
            exc = backfill_task.exception()
            if exc is None:
                logger.info("Bot ready to receive events")
            else:
                logger.error(
                    "Startup backfill failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            # Wait for the bot to exit or a shutdown signal
            done, _ = await asyncio.wait(
                stop_tasks, return_when=asyncio.FIRST_COMPLETED
            )

        pending = [
            task
            for task in (bot_task, shutdown_task, backfill_task)
            if not task.done()
        ]

        for task in done:
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is not None:
                logger.error(
                    "Task failed",
                    task=task.get_name(),
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        if bot.is_running:
            await bot.stop()

        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    except Exception as e:
        logger.error("Application error", error=str(e))
        raise
    finally:
        logger.info("Shutting down application")

        try:
            if bot.is_running:
                await bot.stop()
        except Exception as e:
            logger.error("Error during shutdown", error=str(e))

        logger.info("Application shutdown complete")


async def main() -> None:
    """Main application entry point."""
    args = parse_args()
    setup_logging(debug=args.debug)

    logger = structlog.get_logger()
    logger.info("Starting Slack Thread Tracker", version=__version__)

    try:
        config = load_config(config_file=args.config_file)

        logger.info(
            "Configuration loaded",
            environment="production" if config.is_production else "development",
            backfill_days=config.backfill_days,
            debug=config.debug,
        )
        logging.getLogger().setLevel(
            logging.DEBUG if args.debug else config.log_level
        )

        app = create_application(config)
        await run_application(app)

    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e))
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error", error=str(e))
        sys.exit(1)


def run() -> None:
    """Synchronous entry point for the console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
    sys.exit(0)


if __name__ == "__main__":
    run()
