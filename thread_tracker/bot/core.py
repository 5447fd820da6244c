"""Main Slack bot class.

Features:
- Slack Bolt App with Socket Mode
- Message event and slash command registration
- Graceful shutdown
"""

from typing import Any, Dict, Optional

import structlog
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.app.async_app import AsyncApp

from ..config.settings import Settings
from ..exceptions import SlackError
from .handlers import MY_THREADS_COMMAND, ThreadTrackerHandlers

logger = structlog.get_logger()


class ThreadTrackerBot:
    """Owns the Bolt app and its Socket Mode connection."""

    def __init__(self, settings: Settings, dependencies: Dict[str, Any]):
        """Initialize bot with settings and dependencies."""
        self.settings = settings
        self.deps = dependencies
        self.app: Optional[AsyncApp] = None
        self.socket_handler: Optional[AsyncSocketModeHandler] = None
        self.is_running = False
        self.handlers = ThreadTrackerHandlers(
            live_reconciler=dependencies["live_reconciler"],
            query_service=dependencies["query_service"],
        )

    async def initialize(self) -> None:
        """Initialize bot application. Idempotent, safe to call multiple times."""
        if self.app is not None:
            return

        logger.info("Initializing Slack bot")

        self.app = AsyncApp(
            token=self.settings.slack_bot_token_str,
            signing_secret=(
                self.settings.slack_signing_secret.get_secret_value()
                if self.settings.slack_signing_secret
                else None
            ),
        )
        self._register_handlers()

        logger.info("Bot initialization complete")

    def _register_handlers(self) -> None:
        """Register the message listener and the thread list command."""
        self.app.event("message")(self.handlers.handle_message)
        self.app.command(MY_THREADS_COMMAND)(self.handlers.my_threads)

    async def start(self) -> None:
        """Start the bot with Socket Mode."""
        if self.is_running:
            logger.warning("Bot is already running")
            return

        await self.initialize()

        logger.info("Starting bot", mode="socket_mode")

        try:
            self.is_running = True

            self.socket_handler = AsyncSocketModeHandler(
                self.app, self.settings.slack_app_token_str
            )

            # start_async() blocks until the connection is closed
            await self.socket_handler.start_async()

        except Exception as e:
            logger.error("Error running bot", error=str(e))
            raise SlackError(f"Failed to start bot: {str(e)}") from e
        finally:
            self.is_running = False

    async def stop(self) -> None:
        """Gracefully stop the bot."""
        if not self.is_running:
            logger.warning("Bot is not running")
            return

        logger.info("Stopping bot")

        try:
            self.is_running = False

            if self.socket_handler:
                await self.socket_handler.close_async()

            logger.info("Bot stopped successfully")
        except Exception as e:
            logger.error("Error stopping bot", error=str(e))
            raise SlackError(f"Failed to stop bot: {str(e)}") from e
