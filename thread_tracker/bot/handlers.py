"""Bolt listeners for message events and the ``/mythreads`` command."""

from typing import Any, Callable, Dict

import structlog

from ..threads.live import LiveEventReconciler
from ..threads.query import ThreadQueryService, render_thread_list

logger = structlog.get_logger()

MY_THREADS_COMMAND = "/mythreads"
QUERY_ERROR_MESSAGE = "An error occurred while fetching your threads."


class ThreadTrackerHandlers:
    """Routes Slack updates to the reconcilers and the query service."""

    def __init__(
        self,
        live_reconciler: LiveEventReconciler,
        query_service: ThreadQueryService,
    ) -> None:
        self.live_reconciler = live_reconciler
        self.query_service = query_service

    async def handle_message(self, event: Dict[str, Any], **kwargs: Any) -> None:
        """Feed a ``message`` event to the live reconciler."""
        try:
            outcome = await self.live_reconciler.handle_message(event)
        except Exception:
            logger.exception(
                "Failed to process message event",
                channel=event.get("channel"),
                ts=event.get("ts"),
            )
            return

        logger.debug(
            "Message event processed",
            channel=event.get("channel"),
            ts=event.get("ts"),
            outcome=outcome.value,
        )

    async def my_threads(
        self,
        ack: Callable,
        command: Dict[str, Any],
        respond: Callable,
        **kwargs: Any,
    ) -> None:
        """List the caller's open, manually renamed threads: /mythreads."""
        await ack()
        user_id = command.get("user_id", "")

        try:
            listings = await self.query_service.list_user_threads(user_id)
            text = render_thread_list(listings)
        except Exception as e:
            logger.error(
                "Error processing thread list command", user_id=user_id, error=str(e)
            )
            text = QUERY_ERROR_MESSAGE

        await respond(text=text, response_type="ephemeral")
