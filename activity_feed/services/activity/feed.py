"""Read path of the activity feed.

- refresh=False, cache present -> page from cache, cached=True
- refresh=False, cache absent  -> synchronous refresh, page from result, cached=False
- refresh=True                 -> cooldown check, clear, synchronous refresh, cached=False
"""

import logging
from dataclasses import dataclass

from activity_feed.services.activity.cache import ActivityCache
from activity_feed.services.activity.exceptions import (
    DirectoryUnavailableError,
    RefreshRateLimitedError,
)
from activity_feed.services.activity.pagination import FeedFilter, filter_events, paginate
from activity_feed.services.activity.refresh_gate import RefreshGate
from activity_feed.services.activity.refresher import ActivityRefresher
from activity_feed.services.activity.types import ActivityCacheEntry, ActivityEvent

logger = logging.getLogger(__name__)


@dataclass
class FeedPage:
    activities: list[ActivityEvent]
    total: int
    has_more: bool
    next_cursor: str | None
    cached: bool


class ActivityFeedService:
    def __init__(
        self,
        cache: ActivityCache,
        refresher: ActivityRefresher,
        gate: RefreshGate,
    ) -> None:
        self.cache = cache
        self.refresher = refresher
        self.gate = gate

    async def get_page(
        self,
        requester_id: str,
        limit: int = 30,
        offset: int = 0,
        refresh: bool = False,
        feed_filter: FeedFilter = FeedFilter.ALL,
    ) -> FeedPage:
        """
        Serve one page of the merged feed.

        Raises:
            RefreshRateLimitedError: refresh=True inside the requester's cooldown
            DirectoryUnavailableError: a refresh was needed and the directory is down
        """
        if refresh:
            entry = await self._manual_refresh(requester_id)
            cached = False
        else:
            entry = await self.cache.read()
            cached = entry is not None
            if entry is None:
                entry = await self.refresher.refresh("cold read")

        events = entry.events if entry is not None else []
        page = paginate(filter_events(events, feed_filter), offset, limit)
        return FeedPage(
            activities=page.items,
            total=page.total,
            has_more=page.has_more,
            next_cursor=page.next_cursor,
            cached=cached,
        )

    async def _manual_refresh(self, requester_id: str) -> ActivityCacheEntry | None:
        decision = await self.gate.try_consume(requester_id)
        if not decision.allowed:
            logger.info(
                f"Manual refresh by {requester_id} denied, "
                f"{decision.remaining_seconds}s of cooldown left"
            )
            raise RefreshRateLimitedError(decision.remaining_seconds)

        previous = await self.cache.read()
        await self.cache.clear()
        try:
            return await self.refresher.refresh(f"manual:{requester_id}")
        except DirectoryUnavailableError:
            if previous is not None:
                await self.cache.restore(previous)
            await self.gate.release(requester_id)
            raise
