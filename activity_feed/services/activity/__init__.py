"""
Activity feed pipeline.

Module structure:
- normalizer.py: raw GitHub event -> ActivityEvent mapping and id derivation
- fetcher.py: per-member fetch over one credential
- batch.py: batched, failure-isolated fetch of all members
- store.py: key-value store (Redis or in-process)
- cache.py: the cached feed entry with its age
- pagination.py: filter and slice helpers
- refresh_gate.py: per-requester manual refresh cooldown
- directory.py: read-only member directory
- refresher.py: single-flight full refresh
- feed.py: read path used by the API
"""

from activity_feed.services.activity.batch import Batch, BatchFetcher, BatchReport, plan_batches
from activity_feed.services.activity.cache import ActivityCache
from activity_feed.services.activity.directory import MemberDirectory, SqlMemberDirectory
from activity_feed.services.activity.exceptions import (
    ActivityFetchError,
    CacheStoreError,
    DirectoryUnavailableError,
    RefreshRateLimitedError,
)
from activity_feed.services.activity.feed import ActivityFeedService, FeedPage
from activity_feed.services.activity.fetcher import MemberActivityFetcher
from activity_feed.services.activity.pagination import FeedFilter, Page, filter_events, paginate
from activity_feed.services.activity.refresh_gate import GateDecision, RefreshGate
from activity_feed.services.activity.refresher import ActivityRefresher
from activity_feed.services.activity.store import (
    CacheStore,
    MemoryCacheStore,
    RedisCacheStore,
    build_cache_store,
)
from activity_feed.services.activity.types import (
    ActivityCacheEntry,
    ActivityEvent,
    ActivityKind,
    Actor,
    Member,
)

__all__ = [
    "ActivityCache",
    "ActivityCacheEntry",
    "ActivityEvent",
    "ActivityFeedService",
    "ActivityFetchError",
    "ActivityKind",
    "ActivityRefresher",
    "Actor",
    "Batch",
    "BatchFetcher",
    "BatchReport",
    "CacheStore",
    "CacheStoreError",
    "DirectoryUnavailableError",
    "FeedFilter",
    "FeedPage",
    "GateDecision",
    "Member",
    "MemberActivityFetcher",
    "MemberDirectory",
    "MemoryCacheStore",
    "Page",
    "RedisCacheStore",
    "RefreshGate",
    "RefreshRateLimitedError",
    "SqlMemberDirectory",
    "build_cache_store",
    "filter_events",
    "paginate",
    "plan_batches",
]
