"""Full refresh of the activity cache.

Reads the member directory, runs the batch fetcher and writes the cache. The
scheduler and the manual refresh path share one instance, and only one
refresh runs at a time: a caller that arrives while a refresh is in flight
waits for it and gets its result instead of starting another one.
"""

import asyncio
import logging
from datetime import datetime

from activity_feed.services.activity.batch import BatchFetcher
from activity_feed.services.activity.cache import ActivityCache
from activity_feed.services.activity.directory import MemberDirectory
from activity_feed.services.activity.types import ActivityCacheEntry

logger = logging.getLogger(__name__)


class ActivityRefresher:
    def __init__(
        self,
        directory: MemberDirectory,
        batch_fetcher: BatchFetcher,
        cache: ActivityCache,
    ) -> None:
        self.directory = directory
        self.batch_fetcher = batch_fetcher
        self.cache = cache
        self._lock = asyncio.Lock()
        self.last_refreshed_at: datetime | None = None

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    async def refresh(self, reason: str = "manual") -> ActivityCacheEntry | None:
        """
        Rebuild the cached feed.

        Returns:
            The new entry, or None when the directory has no fetchable members

        Raises:
            DirectoryUnavailableError: The directory could not be read; the
                cache is left as it was
        """
        if self._lock.locked():
            logger.info(f"Refresh ({reason}) waiting for the refresh already in progress")
            async with self._lock:
                pass
            entry = await self.cache.read()
            if entry is not None:
                return entry

        async with self._lock:
            return await self._run(reason)

    async def _run(self, reason: str) -> ActivityCacheEntry | None:
        members = await self.directory.list_members_with_external_username()
        if not members:
            logger.info(f"Refresh ({reason}) skipped: no members with a GitHub username")
            return None

        events = await self.batch_fetcher.fetch_all(members)
        entry = await self.cache.write(events)
        self.last_refreshed_at = entry.cached_at
        logger.info(f"Refresh ({reason}) cached {len(entry.events)} events for {len(members)} members")
        return entry
