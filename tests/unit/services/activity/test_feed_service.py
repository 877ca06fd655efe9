"""Unit tests for the feed read path."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from activity_feed.services.activity.cache import ActivityCache
from activity_feed.services.activity.exceptions import (
    DirectoryUnavailableError,
    RefreshRateLimitedError,
)
from activity_feed.services.activity.feed import ActivityFeedService
from activity_feed.services.activity.pagination import FeedFilter
from activity_feed.services.activity.refresh_gate import RefreshGate
from activity_feed.services.activity.refresher import ActivityRefresher
from activity_feed.services.activity.types import ActivityKind
from tests.helpers.factories import make_activity


class SwitchableDirectory:
    def __init__(self, members) -> None:
        self.members = members
        self.down = False

    async def list_members_with_external_username(self):
        if self.down:
            raise DirectoryUnavailableError("db down")
        return self.members


@pytest.fixture
def events(clock):
    now = clock()
    return [
        make_activity(f"ev-{i}", now - timedelta(minutes=i), kind=kind)
        for i, kind in enumerate(
            [
                ActivityKind.COMMIT,
                ActivityKind.ISSUE,
                ActivityKind.COMMIT,
                ActivityKind.PULL_REQUEST,
                ActivityKind.STAR,
            ]
        )
    ]


@pytest.fixture
def batch(events) -> AsyncMock:
    batch = AsyncMock()
    batch.fetch_all.return_value = events
    return batch


@pytest.fixture
def directory(members) -> SwitchableDirectory:
    return SwitchableDirectory(members)


@pytest.fixture
def cache(memory_store, clock) -> ActivityCache:
    return ActivityCache(memory_store, clock=clock)


@pytest.fixture
def feed(memory_store, timer, cache, directory, batch) -> ActivityFeedService:
    refresher = ActivityRefresher(directory, batch, cache)
    gate = RefreshGate(memory_store, cooldown_seconds=600, clock=timer)
    return ActivityFeedService(cache, refresher, gate)


class TestReadPath:
    @pytest.mark.anyio
    async def test_cold_cache_fetches_synchronously(self, feed, batch):
        page = await feed.get_page("u1", limit=2)

        assert page.cached is False
        assert [e.id for e in page.activities] == ["ev-0", "ev-1"]
        assert page.total == 5
        assert page.has_more is True
        assert page.next_cursor == "2"
        batch.fetch_all.assert_awaited_once()

    @pytest.mark.anyio
    async def test_warm_cache_is_served_without_fetching(self, feed, batch):
        await feed.get_page("u1")
        batch.fetch_all.reset_mock()

        page = await feed.get_page("u2", limit=2, offset=4)

        assert page.cached is True
        assert [e.id for e in page.activities] == ["ev-4"]
        assert page.has_more is False
        assert page.next_cursor is None
        batch.fetch_all.assert_not_called()

    @pytest.mark.anyio
    async def test_filter_applies_before_pagination(self, feed):
        page = await feed.get_page("u1", limit=1, feed_filter=FeedFilter.COMMITS)

        assert [e.id for e in page.activities] == ["ev-0"]
        assert page.total == 2
        assert page.has_more is True

    @pytest.mark.anyio
    async def test_empty_directory_gives_empty_page(self, feed, directory):
        directory.members = []

        page = await feed.get_page("u1")

        assert page.activities == []
        assert page.total == 0
        assert page.cached is False

    @pytest.mark.anyio
    async def test_directory_down_on_cold_cache_raises(self, feed, directory):
        directory.down = True

        with pytest.raises(DirectoryUnavailableError):
            await feed.get_page("u1")


class TestManualRefresh:
    @pytest.mark.anyio
    async def test_refresh_rebuilds_and_is_not_cached(self, feed, batch):
        await feed.get_page("u1")

        page = await feed.get_page("u1", refresh=True)

        assert page.cached is False
        assert batch.fetch_all.await_count == 2

    @pytest.mark.anyio
    async def test_second_refresh_inside_cooldown_is_rate_limited(self, feed, timer):
        await feed.get_page("u1", refresh=True)
        timer.advance(300)

        with pytest.raises(RefreshRateLimitedError) as exc_info:
            await feed.get_page("u1", refresh=True)

        assert exc_info.value.remaining_seconds == 300

    @pytest.mark.anyio
    async def test_denied_refresh_keeps_cache(self, feed, timer, cache):
        await feed.get_page("u1", refresh=True)
        timer.advance(10)

        with pytest.raises(RefreshRateLimitedError):
            await feed.get_page("u1", refresh=True)

        assert await cache.read() is not None

    @pytest.mark.anyio
    async def test_directory_failure_restores_previous_entry_and_token(
        self, feed, directory, cache, timer
    ):
        previous = (await feed.get_page("u1")).activities
        directory.down = True

        with pytest.raises(DirectoryUnavailableError):
            await feed.get_page("u1", refresh=True)

        entry = await cache.read()
        assert entry is not None
        assert entry.events == previous

        directory.down = False
        timer.advance(1)
        page = await feed.get_page("u1", refresh=True)
        assert page.cached is False
