"""Thin async wrapper over the Slack Web API calls the tracker needs.

Errors are not handled here: ``SlackApiError`` and transport errors reach
the caller, which decides what unit of work to skip.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog
from slack_sdk.web.async_client import AsyncWebClient

logger = structlog.get_logger()

CHANNEL_TYPES = "public_channel,private_channel"
CHANNEL_PAGE_SIZE = 200


@dataclass(frozen=True)
class ChannelInfo:
    """A channel the bot can read."""

    id: str
    name: str


class SlackGateway:
    """Channel listing, history, replies and permalinks."""

    def __init__(self, client: AsyncWebClient) -> None:
        self.client = client

    async def list_channels(self) -> List[ChannelInfo]:
        """List non-archived channels the bot is a member of."""
        channels: List[ChannelInfo] = []
        cursor = None
        while True:
            kwargs: Dict[str, Any] = {
                "types": CHANNEL_TYPES,
                "exclude_archived": True,
                "limit": CHANNEL_PAGE_SIZE,
            }
            if cursor:
                kwargs["cursor"] = cursor
            response = await self.client.conversations_list(**kwargs)
            for channel in response.get("channels") or []:
                if channel.get("is_member") and channel.get("id"):
                    channels.append(
                        ChannelInfo(id=channel["id"], name=channel.get("name", ""))
                    )
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break
        return channels

    async def fetch_history(
        self, channel: str, oldest: float, limit: int
    ) -> List[Dict[str, Any]]:
        """Top-level channel messages newer than ``oldest`` (seconds)."""
        response = await self.client.conversations_history(
            channel=channel,
            oldest=str(int(oldest)),
            limit=limit,
        )
        return list(response.get("messages") or [])

    async def fetch_replies(
        self, channel: str, root_ts: str, limit: int
    ) -> List[Dict[str, Any]]:
        """All messages of a thread, oldest first, root included."""
        response = await self.client.conversations_replies(
            channel=channel,
            ts=root_ts,
            limit=limit,
        )
        return list(response.get("messages") or [])

    async def resolve_permalink(self, channel: str, message_ts: str) -> Optional[str]:
        """Permalink to a message, or None if Slack did not return one."""
        response = await self.client.chat_getPermalink(
            channel=channel, message_ts=message_ts
        )
        permalink = response.get("permalink")
        if not permalink:
            logger.warning(
                "Permalink missing from response", channel=channel, message_ts=message_ts
            )
            return None
        return str(permalink)
