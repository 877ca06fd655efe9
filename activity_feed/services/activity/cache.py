"""
Activity cache: the merged feed plus the time it was computed.

Two tiers:
- An in-process reference, served for `memory_ttl_seconds` without touching the store
- The cache store (Redis when configured), shared between instances

The entry is replaced wholesale on every write. The in-process reference is
swapped in one assignment, so concurrent readers see either the previous
entry or the new one. Store failures never reach the caller: a failed read
looks like an absent entry, a failed write is logged.

Stored payloads are gzip-compressed JSON, base64-encoded. Plain JSON is also
accepted on read.
"""

import base64
import binascii
import gzip
import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError

from activity_feed.services.activity.exceptions import CacheStoreError
from activity_feed.services.activity.normalizer import sort_newest_first
from activity_feed.services.activity.store import ACTIVITY_CACHE_KEY, CacheStore
from activity_feed.services.activity.types import ActivityCacheEntry, ActivityEvent

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


def encode_entry(entry: ActivityCacheEntry) -> str:
    raw = entry.model_dump_json(by_alias=True).encode()
    return base64.b64encode(gzip.compress(raw)).decode("ascii")


def decode_entry(payload: str) -> ActivityCacheEntry:
    """Decode a stored entry. Raises pydantic.ValidationError on malformed data."""
    try:
        text = gzip.decompress(base64.b64decode(payload, validate=True)).decode()
    except (binascii.Error, OSError, EOFError, UnicodeDecodeError):
        text = payload
    return ActivityCacheEntry.model_validate_json(text)


class ActivityCache:
    """Stores the merged activity stream and reports its age."""

    def __init__(
        self,
        store: CacheStore,
        entry_ttl_seconds: int = 86400,
        memory_ttl_seconds: int = 300,
        key: str = ACTIVITY_CACHE_KEY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.entry_ttl_seconds = entry_ttl_seconds
        self.memory_ttl = timedelta(seconds=memory_ttl_seconds)
        self.key = key
        self.clock = clock
        self._local: tuple[ActivityCacheEntry, datetime] | None = None

    def _install(self, entry: ActivityCacheEntry) -> None:
        self._local = (entry, self.clock())

    async def _persist(self, entry: ActivityCacheEntry) -> None:
        try:
            await self.store.set(self.key, encode_entry(entry), self.entry_ttl_seconds)
        except CacheStoreError as e:
            logger.warning(f"Activity cache write failed, serving from memory only: {e}")

    async def read(self, force_fresh: bool = False) -> ActivityCacheEntry | None:
        """
        Return the current entry.

        Returns None ("absent") when `force_fresh` is set, when nothing is
        cached, or when the store cannot be read.
        """
        if force_fresh:
            return None

        local = self._local
        if local is not None and self.clock() - local[1] < self.memory_ttl:
            return local[0]

        try:
            payload = await self.store.get(self.key)
        except CacheStoreError as e:
            logger.warning(f"Activity cache read failed, treating as absent: {e}")
            return None

        if payload is None:
            self._local = None
            return None

        try:
            entry = decode_entry(payload)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable activity cache entry: {e.error_count()} errors")
            return None

        self._install(entry)
        return entry

    async def write(self, events: Iterable[ActivityEvent]) -> ActivityCacheEntry:
        """Replace the entry with `events` (re-sorted newest-first) stamped now."""
        entry = ActivityCacheEntry(events=sort_newest_first(events), cached_at=self.clock())
        self._install(entry)
        await self._persist(entry)
        return entry

    async def restore(self, entry: ActivityCacheEntry) -> None:
        """Put a previously read entry back unchanged, keeping its cached_at."""
        self._install(entry)
        await self._persist(entry)

    async def age(self) -> timedelta | None:
        """now - cached_at, or None when there is no entry."""
        entry = await self.read()
        if entry is None:
            return None
        return self.clock() - entry.cached_at

    async def clear(self) -> None:
        """Drop the entry from both tiers."""
        self._local = None
        try:
            await self.store.delete(self.key)
        except CacheStoreError as e:
            logger.warning(f"Activity cache clear failed: {e}")
