"""Construction of the long-lived objects behind the feed.

Everything is built once from settings when the application starts and kept
on `app.state.runtime`. Tests build their own runtime with fakes.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncEngine

from activity_feed.config.settings import Settings
from activity_feed.core.database import build_engine, build_session_maker
from activity_feed.services.activity.batch import BatchFetcher
from activity_feed.services.activity.cache import ActivityCache
from activity_feed.services.activity.directory import MemberDirectory, SqlMemberDirectory
from activity_feed.services.activity.feed import ActivityFeedService
from activity_feed.services.activity.fetcher import MemberActivityFetcher
from activity_feed.services.activity.refresh_gate import RefreshGate
from activity_feed.services.activity.refresher import ActivityRefresher
from activity_feed.services.activity.store import CacheStore, build_cache_store
from activity_feed.services.github.credentials import CredentialPool
from activity_feed.services.scheduler import PreemptiveRefreshScheduler

logger = logging.getLogger(__name__)


@dataclass
class FeedRuntime:
    settings: Settings
    pool: CredentialPool
    store: CacheStore
    cache: ActivityCache
    refresher: ActivityRefresher
    gate: RefreshGate
    feed: ActivityFeedService
    scheduler: PreemptiveRefreshScheduler
    engine: AsyncEngine | None = None

    async def aclose(self) -> None:
        self.scheduler.stop()
        await self.store.close()
        if self.engine is not None:
            await self.engine.dispose()


def build_runtime(
    settings: Settings,
    directory: MemberDirectory | None = None,
    cache_store: CacheStore | None = None,
) -> FeedRuntime:
    """
    Wire the feed from configuration.

    Raises:
        CredentialConfigError: No GitHub credential is configured
    """
    pool = CredentialPool.from_settings(settings)

    engine = None
    if directory is None:
        engine = build_engine(settings.database_url)
        directory = SqlMemberDirectory(build_session_maker(engine))

    store = cache_store if cache_store is not None else build_cache_store(settings)

    cache = ActivityCache(
        store,
        entry_ttl_seconds=settings.activity_cache_ttl_seconds,
        memory_ttl_seconds=settings.memory_cache_ttl_seconds,
    )
    fetcher = MemberActivityFetcher(
        pool,
        trailing_window=timedelta(hours=settings.trailing_window_hours),
        max_events=settings.max_events_per_member,
        sub_call_timeout=settings.sub_call_timeout_seconds,
    )
    batch_fetcher = BatchFetcher(
        fetcher,
        pool_size=len(pool),
        member_timeout=settings.member_fetch_timeout_seconds,
    )
    refresher = ActivityRefresher(directory, batch_fetcher, cache)
    gate = RefreshGate(store, cooldown_seconds=settings.manual_refresh_cooldown_seconds)
    scheduler = PreemptiveRefreshScheduler(
        refresher,
        cache,
        pool,
        freshness_threshold=timedelta(minutes=settings.freshness_threshold_minutes),
        interval=timedelta(minutes=settings.refresh_interval_minutes),
        reset_interval=timedelta(minutes=settings.credential_reset_interval_minutes),
        enabled=settings.scheduler_enabled,
    )

    logger.info(f"Activity feed runtime built with {len(pool)} GitHub credentials")
    return FeedRuntime(
        settings=settings,
        pool=pool,
        store=store,
        cache=cache,
        refresher=refresher,
        gate=gate,
        feed=ActivityFeedService(cache, refresher, gate),
        scheduler=scheduler,
        engine=engine,
    )
