"""Live reconciliation of Slack message events.

Each message event is classified and applied to the registry:

- events with a subtype (edits, deletions, bot and system messages) are
  ignored
- root messages (no ``thread_ts``, or ``thread_ts == ts``) are ignored
  until a reply arrives
- a reply to a known thread is merged as a single-message update
- a reply to an unknown thread triggers a rebuild: the full reply list is
  fetched and the thread is reconstructed the same way backfill does it

The rebuild path moves a key from unknown to rebuilding to known. It is
what makes the registry eventually consistent: anything backfill missed,
or anything that raced with it, is repaired by the next reply. Two replies
arriving close together may both start a rebuild for the same key; both
upsert a complete snapshot, so they converge on the same record.
"""

import time
from collections import Counter
from enum import Enum
from typing import Any, Callable, Dict

import structlog

from ..slack.gateway import SlackGateway
from .models import ThreadKey
from .parser import ThreadParser
from .reconstruct import build_snapshot
from .registry import ThreadRegistry

logger = structlog.get_logger()


class EventOutcome(str, Enum):
    """What handling a single message event did."""

    IGNORED_SUBTYPE = "ignored_subtype"
    IGNORED_INCOMPLETE = "ignored_incomplete"
    IGNORED_ROOT = "ignored_root"
    UPDATED = "updated"
    RENAMED = "renamed"
    REBUILT = "rebuilt"
    REBUILD_EMPTY = "rebuild_empty"
    REBUILD_FAILED = "rebuild_failed"


class LiveEventReconciler:
    """Applies message events to the thread registry as they arrive."""

    def __init__(
        self,
        registry: ThreadRegistry,
        gateway: SlackGateway,
        parser: ThreadParser,
        replies_limit: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry
        self.gateway = gateway
        self.parser = parser
        self.replies_limit = replies_limit
        self.clock = clock
        self._rebuilding: Counter[ThreadKey] = Counter()

    def is_rebuilding(self, channel: str, root_ts: str) -> bool:
        return self._rebuilding[ThreadKey(channel, root_ts)] > 0

    async def handle_message(self, event: Dict[str, Any]) -> EventOutcome:
        """Classify one ``message`` event and update the registry."""
        if event.get("subtype"):
            return EventOutcome.IGNORED_SUBTYPE

        channel = event.get("channel")
        ts = event.get("ts")
        user = event.get("user")
        if not (channel and ts and user) or "text" not in event:
            return EventOutcome.IGNORED_INCOMPLETE

        thread_ts = event.get("thread_ts")
        if not thread_ts or thread_ts == ts:
            logger.debug("Root message ignored until reply", channel=channel, ts=ts)
            return EventOutcome.IGNORED_ROOT

        text = event.get("text") or ""
        if self.registry.get(channel, thread_ts) is None:
            return await self._rebuild(channel, thread_ts)
        return self._apply_reply(channel, thread_ts, user, text)

    def _apply_reply(
        self, channel: str, thread_ts: str, user: str, text: str
    ) -> EventOutcome:
        new_name = self.parser.extract_rename_command(text)
        thread = self.registry.upsert(
            channel,
            thread_ts,
            new_name or "",
            new_name is not None,
            {user},
            text,
            self.clock(),
        )

        if new_name:
            logger.info(
                "Thread renamed", channel=channel, root_ts=thread_ts, name=thread.name
            )
            return EventOutcome.RENAMED

        logger.debug(
            "Thread updated",
            channel=channel,
            root_ts=thread_ts,
            status=thread.status.value,
        )
        return EventOutcome.UPDATED

    async def _rebuild(self, channel: str, thread_ts: str) -> EventOutcome:
        key = ThreadKey(channel, thread_ts)
        if self._rebuilding[key]:
            logger.info(
                "Concurrent rebuild for thread", channel=channel, root_ts=thread_ts
            )
        else:
            logger.info("Unknown thread, rebuilding", channel=channel, root_ts=thread_ts)

        self._rebuilding[key] += 1
        try:
            try:
                replies = await self.gateway.fetch_replies(
                    channel, thread_ts, self.replies_limit
                )
            except Exception as e:
                logger.error(
                    "Failed to rebuild thread",
                    channel=channel,
                    root_ts=thread_ts,
                    error=str(e),
                )
                return EventOutcome.REBUILD_FAILED

            snapshot = build_snapshot(replies, self.parser, self.clock())
            if snapshot is None:
                logger.warning(
                    "Unable to fetch thread messages",
                    channel=channel,
                    root_ts=thread_ts,
                )
                return EventOutcome.REBUILD_EMPTY

            self.registry.apply_snapshot(channel, thread_ts, snapshot)
            logger.info("Thread rebuilt", channel=channel, root_ts=thread_ts)
            return EventOutcome.REBUILT
        finally:
            self._rebuilding[key] -= 1
            if not self._rebuilding[key]:
                del self._rebuilding[key]

