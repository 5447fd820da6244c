"""Tests for the /mythreads query surface."""

from unittest.mock import AsyncMock

import pytest
from slack_sdk.errors import SlackApiError

from thread_tracker.threads.parser import ThreadParser
from thread_tracker.threads.query import (
    NO_THREADS_MESSAGE,
    ThreadListing,
    ThreadQueryService,
    format_time_ago,
    render_thread_list,
)
from thread_tracker.threads.registry import ThreadRegistry

NOW = 1_700_000_000.0
HOUR = 3600
DAY = 86400


@pytest.fixture
def registry() -> ThreadRegistry:
    return ThreadRegistry(ThreadParser())


@pytest.fixture
def gateway() -> AsyncMock:
    gw = AsyncMock()

    async def permalink(channel, message_ts):
        return f"https://example.slack.com/archives/{channel}/p{message_ts.replace('.', '')}"

    gw.resolve_permalink = AsyncMock(side_effect=permalink)
    return gw


@pytest.fixture
def service(registry, gateway) -> ThreadQueryService:
    return ThreadQueryService(registry=registry, gateway=gateway)


def _add(registry, root_ts, created_at, name="Named", renamed=True, user="U01", text="hi"):
    return registry.upsert("C01", root_ts, name, renamed, {user}, text, created_at)


class TestFormatTimeAgo:
    """Ages are floored to hours under a day, days after."""

    def test_zero(self):
        assert format_time_ago(NOW, NOW) == "0h ago"

    def test_minutes_floor_to_hours(self):
        assert format_time_ago(NOW - 59 * 60, NOW) == "0h ago"
        assert format_time_ago(NOW - (4 * HOUR + 59 * 60), NOW) == "4h ago"

    def test_just_under_a_day(self):
        assert format_time_ago(NOW - (DAY - 1), NOW) == "23h ago"

    def test_days(self):
        assert format_time_ago(NOW - DAY, NOW) == "1d ago"
        assert format_time_ago(NOW - (3 * DAY + 23 * HOUR), NOW) == "3d ago"

    def test_future_clamps_to_zero(self):
        assert format_time_ago(NOW + 500, NOW) == "0h ago"


class TestListUserThreads:
    """Listings combine registry queries with permalinks."""

    async def test_no_threads_is_empty(self, service):
        assert await service.list_user_threads("U01", now=NOW) == []

    async def test_only_open_renamed_threads_for_user(self, service, registry):
        _add(registry, "1.0", NOW - HOUR, name="Mine")
        _add(registry, "2.0", NOW - HOUR, renamed=False)
        _add(registry, "3.0", NOW - HOUR, text="close")
        _add(registry, "4.0", NOW - HOUR, user="U02")

        listings = await service.list_user_threads("U01", now=NOW)

        assert [item.root_ts for item in listings] == ["1.0"]
        assert listings[0].name == "Mine"
        assert listings[0].age == "1h ago"
        assert listings[0].permalink.endswith("/C01/p10")
        assert listings[0].link_unavailable is False

    async def test_newest_first(self, service, registry):
        _add(registry, "1.0", NOW - 3 * DAY)
        _add(registry, "2.0", NOW - HOUR)
        _add(registry, "3.0", NOW - DAY)

        listings = await service.list_user_threads("U01", now=NOW)

        assert [item.root_ts for item in listings] == ["2.0", "3.0", "1.0"]

    async def test_permalink_failure_is_per_thread(self, service, registry, gateway):
        _add(registry, "1.0", NOW - 2 * HOUR, name="Broken")
        _add(registry, "2.0", NOW - HOUR, name="Fine")

        async def permalink(channel, message_ts):
            if message_ts == "1.0":
                raise SlackApiError(
                    message="message_not_found",
                    response={"ok": False, "error": "message_not_found"},
                )
            return "https://example.slack.com/fine"

        gateway.resolve_permalink.side_effect = permalink

        listings = await service.list_user_threads("U01", now=NOW)

        assert [item.name for item in listings] == ["Fine", "Broken"]
        assert listings[0].permalink == "https://example.slack.com/fine"
        assert listings[1].permalink is None
        assert listings[1].link_unavailable is True
        assert listings[1].age == "2h ago"


class TestRenderThreadList:
    """Rendering the Slack response text."""

    def test_empty(self):
        assert render_thread_list([]) == NO_THREADS_MESSAGE

    def test_lines(self):
        listings = [
            ThreadListing(
                name="Release <prep>",
                channel="C01",
                root_ts="1.0",
                created_at=NOW,
                age="4h ago",
                permalink="https://example.slack.com/p1",
            ),
            ThreadListing(
                name="Budget & plan",
                channel="C02",
                root_ts="2.0",
                created_at=NOW,
                age="3d ago",
            ),
        ]

        text = render_thread_list(listings)

        assert text.splitlines() == [
            "You have *2 open thread(s)*:",
            "",
            "• <https://example.slack.com/p1|Release &lt;prep&gt;> in <#C01> (4h ago)",
            "• Budget &amp; plan in <#C02> (3d ago) (link unavailable)",
        ]
