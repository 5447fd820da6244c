"""Read-only lookups behind the ``/mythreads`` command."""

import time
from dataclasses import dataclass
from typing import List, Optional

import structlog

from ..bot.utils.slack_format import channel_mention, escape_mrkdwn, link
from ..slack.gateway import SlackGateway
from .registry import ThreadRegistry

logger = structlog.get_logger()

NO_THREADS_MESSAGE = "You don't have any manually renamed open threads at the moment."


@dataclass
class ThreadListing:
    """One line of a user's thread list."""

    name: str
    channel: str
    root_ts: str
    created_at: float
    age: str
    permalink: Optional[str] = None

    @property
    def link_unavailable(self) -> bool:
        return self.permalink is None


def format_time_ago(created_at: float, now: Optional[float] = None) -> str:
    """Coarse age: whole hours under a day, whole days after that."""
    if now is None:
        now = time.time()
    elapsed = max(0, int(now - created_at))

    hours = elapsed // 3600
    if hours < 24:
        return f"{hours}h ago"
    return f"{elapsed // 86400}d ago"


class ThreadQueryService:
    """Lists a user's open, manually renamed threads with permalinks."""

    def __init__(self, registry: ThreadRegistry, gateway: SlackGateway) -> None:
        self.registry = registry
        self.gateway = gateway

    async def list_user_threads(
        self, user_id: str, now: Optional[float] = None
    ) -> List[ThreadListing]:
        """Newest threads first. A failed permalink lookup only drops the link."""
        if now is None:
            now = time.time()

        threads = sorted(
            self.registry.query_open_renamed_threads_for_user(user_id),
            key=lambda t: (t.created_at, t.root_ts),
            reverse=True,
        )

        listings: List[ThreadListing] = []
        for thread in threads:
            permalink: Optional[str]
            try:
                permalink = await self.gateway.resolve_permalink(
                    thread.channel, thread.root_ts
                )
            except Exception as e:
                logger.error(
                    "Error fetching permalink",
                    channel=thread.channel,
                    root_ts=thread.root_ts,
                    error=str(e),
                )
                permalink = None

            listings.append(
                ThreadListing(
                    name=thread.name,
                    channel=thread.channel,
                    root_ts=thread.root_ts,
                    created_at=thread.created_at,
                    age=format_time_ago(thread.created_at, now),
                    permalink=permalink,
                )
            )
        return listings


def render_thread_list(listings: List[ThreadListing]) -> str:
    """Slack mrkdwn reply for ``/mythreads``."""
    if not listings:
        return NO_THREADS_MESSAGE

    lines = [f"You have *{len(listings)} open thread(s)*:", ""]
    for item in listings:
        where = f"in {channel_mention(item.channel)} ({item.age})"
        if item.link_unavailable:
            lines.append(f"• {escape_mrkdwn(item.name)} {where} (link unavailable)")
        else:
            lines.append(f"• {link(item.permalink, item.name)} {where}")
    return "\n".join(lines)
