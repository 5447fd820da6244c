"""In-memory registry of tracked threads.

The registry is the only mutable shared state in the application. It is
constructed empty at startup, filled by the backfill pass, extended by live
message events, and discarded at shutdown. Every write goes through
``upsert`` so the naming and status rules are applied in one place:

- participants only ever grow (set union)
- the latest call wins for ``last_message_text``; ``status`` is re-derived
  from it on every write
- a renamed update replaces the name and sets the sticky rename flag; an
  unrenamed update never touches an established name
- ``created_at`` is fixed when the record is first created

``upsert`` never awaits, so under asyncio a read-modify-write on one key
cannot interleave with another update to the same key.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from .models import Thread, ThreadKey, ThreadSnapshot, ThreadStatus
from .parser import UNTITLED_THREAD_NAME, ThreadParser

logger = structlog.get_logger()


class ThreadRegistry:
    """Authoritative map of threads keyed by (channel, root_ts)."""

    def __init__(self, parser: Optional[ThreadParser] = None) -> None:
        self.parser = parser or ThreadParser()
        self._threads: Dict[ThreadKey, Thread] = {}

    def _derive_status(self, last_message_text: str) -> ThreadStatus:
        if self.parser.is_close_signal(last_message_text):
            return ThreadStatus.CLOSED
        return ThreadStatus.OPEN

    def upsert(
        self,
        channel: str,
        root_ts: str,
        name: str,
        is_renamed: bool,
        participants: Iterable[str],
        last_message_text: Optional[str],
        created_at: float,
    ) -> Thread:
        """Create or merge the record for ``(channel, root_ts)``."""
        key = ThreadKey(channel, root_ts)
        text = last_message_text or ""
        thread = self._threads.get(key)

        if thread is None:
            thread = Thread(
                channel=channel,
                root_ts=root_ts,
                name=name.strip() or UNTITLED_THREAD_NAME,
                is_manually_renamed=is_renamed,
                participants=set(participants),
                last_message_text=text,
                status=self._derive_status(text),
                created_at=created_at,
            )
            self._threads[key] = thread
            logger.debug(
                "Thread created",
                channel=channel,
                root_ts=root_ts,
                name=thread.name,
                status=thread.status.value,
            )
            return thread

        thread.participants.update(participants)
        thread.last_message_text = text
        thread.status = self._derive_status(text)

        if is_renamed and name.strip():
            thread.name = name.strip()
            thread.is_manually_renamed = True

        logger.debug(
            "Thread updated",
            channel=channel,
            root_ts=root_ts,
            name=thread.name,
            status=thread.status.value,
            participants=len(thread.participants),
        )
        return thread

    def apply_snapshot(
        self, channel: str, root_ts: str, snapshot: ThreadSnapshot
    ) -> Thread:
        """Upsert a fully reconstructed thread state."""
        return self.upsert(
            channel,
            root_ts,
            snapshot.name,
            snapshot.is_manually_renamed,
            snapshot.participants,
            snapshot.last_message_text,
            snapshot.created_at,
        )

    def get(self, channel: str, root_ts: str) -> Optional[Thread]:
        return self._threads.get(ThreadKey(channel, root_ts))

    def query_open_threads_for_user(self, user_id: str) -> List[Thread]:
        """Open threads the user has posted in."""
        return [
            thread
            for thread in self._threads.values()
            if thread.is_open and user_id in thread.participants
        ]

    def query_open_renamed_threads_for_user(self, user_id: str) -> List[Thread]:
        """Open threads the user has posted in that were manually renamed."""
        return [
            thread
            for thread in self.query_open_threads_for_user(user_id)
            if thread.is_manually_renamed
        ]

    def count(self) -> int:
        return len(self._threads)

    def clear(self) -> None:
        self._threads.clear()

    def __len__(self) -> int:
        return len(self._threads)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return ThreadKey(*key) in self._threads
