"""Tests for the startup backfill pass."""

from unittest.mock import AsyncMock

import pytest
from slack_sdk.errors import SlackApiError

from thread_tracker.slack.gateway import ChannelInfo
from thread_tracker.threads.backfill import SECONDS_PER_DAY, BackfillReconciler
from thread_tracker.threads.models import ThreadStatus
from thread_tracker.threads.parser import UNTITLED_THREAD_NAME, ThreadParser
from thread_tracker.threads.registry import ThreadRegistry

NOW = 1_700_100_000.0


def _slack_error(error: str = "channel_not_found") -> SlackApiError:
    return SlackApiError(message=error, response={"ok": False, "error": error})


@pytest.fixture
def parser() -> ThreadParser:
    return ThreadParser()


@pytest.fixture
def registry(parser) -> ThreadRegistry:
    return ThreadRegistry(parser)


@pytest.fixture
def gateway() -> AsyncMock:
    gw = AsyncMock()
    gw.list_channels = AsyncMock(return_value=[ChannelInfo(id="C01", name="general")])
    gw.fetch_history = AsyncMock(
        return_value=[
            {"ts": "1700000000.000100", "text": "Deploy plan", "reply_count": 2},
            {"ts": "1700000100.000100", "text": "lonely root", "reply_count": 0},
            {"ts": "1700000200.000100", "text": "no count"},
        ]
    )
    gw.fetch_replies = AsyncMock(
        return_value=[
            {"ts": "1700000000.000100", "user": "U01", "text": "Deploy plan"},
            {"ts": "1700000050.000100", "user": "U02", "text": "looks good"},
            {"ts": "1700000060.000100", "user": "U01", "text": "close"},
        ]
    )
    return gw


@pytest.fixture
def backfill(registry, gateway, parser) -> BackfillReconciler:
    return BackfillReconciler(
        registry=registry,
        gateway=gateway,
        parser=parser,
        lookback_days=2,
        history_limit=500,
        replies_limit=300,
    )


class TestBackfillRun:
    """Backfill reconstructs threads from channel history."""

    async def test_reconstructs_closed_thread(self, backfill, registry):
        result = await backfill.run(now=NOW)

        thread = registry.get("C01", "1700000000.000100")
        assert thread is not None
        assert thread.status is ThreadStatus.CLOSED
        assert thread.participants == {"U01", "U02"}
        assert thread.name == "Deploy plan"
        assert thread.is_manually_renamed is False
        assert thread.created_at == 1700000000.0001
        assert result.thread_count == 1
        assert result.threads_found == 1
        assert result.threads_reconstructed == 1
        assert result.channels_scanned == 1
        assert result.failed == 0

    async def test_lookback_window_and_limits(self, backfill, gateway):
        await backfill.run(now=NOW)

        gateway.fetch_history.assert_awaited_once_with(
            "C01", int(NOW) - 2 * SECONDS_PER_DAY, 500
        )
        gateway.fetch_replies.assert_awaited_once_with(
            "C01", "1700000000.000100", 300
        )

    async def test_roots_without_replies_are_skipped(self, backfill, registry):
        await backfill.run(now=NOW)
        assert registry.get("C01", "1700000100.000100") is None
        assert registry.get("C01", "1700000200.000100") is None

    async def test_latest_rename_wins(self, backfill, registry, gateway):
        gateway.fetch_replies.return_value = [
            {"ts": "1700000000.000100", "user": "U01", "text": "hello"},
            {"ts": "1700000001.000100", "user": "U02", "text": "name: Foo"},
            {"ts": "1700000002.000100", "user": "U03", "text": "rename: Bar"},
        ]
        await backfill.run(now=NOW)

        thread = registry.get("C01", "1700000000.000100")
        assert thread.name == "Bar"
        assert thread.is_manually_renamed is True
        assert thread.participants == {"U01", "U02", "U03"}
        assert thread.status is ThreadStatus.OPEN

    async def test_empty_root_text_gets_fallback_name(self, backfill, registry, gateway):
        gateway.fetch_replies.return_value = [
            {"ts": "1700000000.000100", "user": "U01"},
            {"ts": "1700000001.000100", "user": "U02", "text": "reply"},
        ]
        await backfill.run(now=NOW)
        assert registry.get("C01", "1700000000.000100").name == UNTITLED_THREAD_NAME

    async def test_empty_reply_list_is_skipped(self, backfill, registry, gateway):
        gateway.fetch_replies.return_value = []
        result = await backfill.run(now=NOW)
        assert registry.count() == 0
        assert result.threads_found == 1
        assert result.threads_reconstructed == 0
        assert result.failed == 0

    async def test_replayed_backfill_keeps_manual_rename(self, backfill, registry, gateway):
        gateway.fetch_replies.return_value = [
            {"ts": "1700000000.000100", "user": "U01", "text": "Deploy plan"},
            {"ts": "1700000001.000100", "user": "U02", "text": "name: Release"},
        ]
        await backfill.run(now=NOW)
        gateway.fetch_replies.return_value = [
            {"ts": "1700000000.000100", "user": "U01", "text": "Deploy plan"},
            {"ts": "1700000003.000100", "user": "U04", "text": "ok"},
        ]
        await backfill.run(now=NOW)

        thread = registry.get("C01", "1700000000.000100")
        assert thread.name == "Release"
        assert thread.is_manually_renamed is True
        assert thread.participants == {"U01", "U02", "U04"}


class TestBackfillFailures:
    """Failures skip one unit of work and never abort the scan."""

    async def test_history_failure_skips_channel(self, backfill, registry, gateway):
        gateway.list_channels.return_value = [
            ChannelInfo(id="C01", name="broken"),
            ChannelInfo(id="C02", name="fine"),
        ]
        history = gateway.fetch_history.return_value
        gateway.fetch_history.side_effect = [_slack_error(), history]

        result = await backfill.run(now=NOW)

        assert result.failed == 1
        assert result.channels_scanned == 1
        assert registry.get("C02", "1700000000.000100") is not None
        assert registry.get("C01", "1700000000.000100") is None

    async def test_replies_failure_skips_thread(self, backfill, registry, gateway):
        gateway.fetch_history.return_value = [
            {"ts": "1.000001", "text": "a", "reply_count": 1},
            {"ts": "2.000001", "text": "b", "reply_count": 1},
        ]
        gateway.fetch_replies.side_effect = [
            RuntimeError("connection reset"),
            [
                {"ts": "2.000001", "user": "U01", "text": "b"},
                {"ts": "3.000001", "user": "U02", "text": "reply"},
            ],
        ]

        result = await backfill.run(now=NOW)

        assert result.failed == 1
        assert result.threads_reconstructed == 1
        assert registry.get("C01", "1.000001") is None
        assert registry.get("C01", "2.000001") is not None

    async def test_channel_list_failure_returns_empty_result(self, backfill, gateway):
        gateway.list_channels.side_effect = _slack_error("invalid_auth")

        result = await backfill.run(now=NOW)

        assert result.failed == 1
        assert result.thread_count == 0
        gateway.fetch_history.assert_not_awaited()

    async def test_no_channels(self, backfill, gateway):
        gateway.list_channels.return_value = []
        result = await backfill.run(now=NOW)
        assert result.thread_count == 0
        assert result.channels_scanned == 0
