"""Startup backfill of recent thread history."""

import time
from dataclasses import dataclass
from typing import Optional

import structlog

from ..slack.gateway import ChannelInfo, SlackGateway
from .parser import ThreadParser
from .reconstruct import build_snapshot, ts_to_seconds
from .registry import ThreadRegistry

logger = structlog.get_logger()

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class BackfillResult:
    """Summary of a backfill run."""

    channels_scanned: int = 0
    threads_found: int = 0
    threads_reconstructed: int = 0
    failed: int = 0
    thread_count: int = 0


class BackfillReconciler:
    """Rebuilds threads from recent channel history, once, at startup.

    Backfill is best effort. A failure listing history for one channel or
    replies for one thread is logged and counted; the scan moves on.
    """

    def __init__(
        self,
        registry: ThreadRegistry,
        gateway: SlackGateway,
        parser: ThreadParser,
        lookback_days: int = 1,
        history_limit: int = 1000,
        replies_limit: int = 1000,
    ) -> None:
        self.registry = registry
        self.gateway = gateway
        self.parser = parser
        self.lookback_days = lookback_days
        self.history_limit = history_limit
        self.replies_limit = replies_limit

    async def run(self, now: Optional[float] = None) -> BackfillResult:
        """Scan every member channel and upsert each thread found."""
        result = BackfillResult()
        if now is None:
            now = time.time()
        oldest = int(now) - self.lookback_days * SECONDS_PER_DAY

        logger.info("Starting backfill", days=self.lookback_days, oldest=oldest)

        try:
            channels = await self.gateway.list_channels()
        except Exception as e:
            result.failed += 1
            logger.error("Failed to list channels", error=str(e))
            result.thread_count = self.registry.count()
            return result

        logger.info("Channels found", count=len(channels))

        for channel in channels:
            await self._scan_channel(channel, oldest, result)

        result.thread_count = self.registry.count()
        logger.info(
            "Backfill complete",
            channels=result.channels_scanned,
            threads_found=result.threads_found,
            reconstructed=result.threads_reconstructed,
            failed=result.failed,
            thread_count=result.thread_count,
        )
        return result

    async def _scan_channel(
        self, channel: ChannelInfo, oldest: int, result: BackfillResult
    ) -> None:
        logger.info("Scanning channel", channel=channel.name, channel_id=channel.id)

        try:
            messages = await self.gateway.fetch_history(
                channel.id, oldest, self.history_limit
            )
        except Exception as e:
            result.failed += 1
            logger.error(
                "Failed to fetch channel history",
                channel_id=channel.id,
                error=str(e),
            )
            return

        result.channels_scanned += 1
        roots = [
            msg
            for msg in messages
            if msg.get("ts") and (msg.get("reply_count") or 0) > 0
        ]
        result.threads_found += len(roots)
        logger.debug("Threads found", channel_id=channel.id, count=len(roots))

        for root in roots:
            try:
                if await self._reconstruct(channel.id, root["ts"]):
                    result.threads_reconstructed += 1
            except Exception as e:
                result.failed += 1
                logger.error(
                    "Failed to fetch thread replies",
                    channel_id=channel.id,
                    root_ts=root["ts"],
                    error=str(e),
                )

    async def _reconstruct(self, channel_id: str, root_ts: str) -> bool:
        replies = await self.gateway.fetch_replies(
            channel_id, root_ts, self.replies_limit
        )
        if not replies:
            return False

        created_at = ts_to_seconds(replies[0].get("ts"), ts_to_seconds(root_ts))
        snapshot = build_snapshot(replies, self.parser, created_at)
        if snapshot is None:
            return False

        self.registry.apply_snapshot(channel_id, root_ts, snapshot)
        return True
