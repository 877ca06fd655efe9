"""
Key-value store behind the activity cache and the refresh gate.

Two implementations:
- RedisCacheStore: the shared cache service, used when REDIS_URL is set
- MemoryCacheStore: in-process fallback for single-instance deployments and tests

Both keep string values with a per-key TTL.
"""

import logging
import time
from collections.abc import Callable
from typing import Protocol

import redis.asyncio as redis
from cachetools import TLRUCache  # type: ignore[import-untyped]
from redis.exceptions import RedisError

from activity_feed.config.settings import Settings
from activity_feed.services.activity.exceptions import CacheStoreError

logger = logging.getLogger(__name__)

ACTIVITY_CACHE_KEY = "activity_feed:global"
REFRESH_COOLDOWN_PREFIX = "activity_feed:refresh:"


class CacheStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool: ...

    async def delete(self, key: str) -> None: ...

    async def close(self) -> None: ...


def _expires_at(_key: str, value: tuple[str, float], now: float) -> float:
    return now + value[1]


class MemoryCacheStore:
    """In-process store with per-key expiry (cachetools TLRUCache)."""

    def __init__(self, maxsize: int = 4096, timer: Callable[[], float] = time.monotonic) -> None:
        self._cache: TLRUCache[str, tuple[str, float]] = TLRUCache(
            maxsize=maxsize,
            ttu=_expires_at,
            timer=timer,
        )

    async def get(self, key: str) -> str | None:
        item = self._cache.get(key)
        return item[0] if item is not None else None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._cache[key] = (value, float(ttl_seconds))

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        if key in self._cache:
            return False
        self._cache[key] = (value, float(ttl_seconds))
        return True

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def close(self) -> None:
        self._cache.clear()


class RedisCacheStore:
    """Store backed by the shared Redis service."""

    def __init__(self, url: str) -> None:
        self._client = redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        try:
            value: str | None = await self._client.get(key)
            return value
        except RedisError as e:
            raise CacheStoreError(f"Redis GET {key} failed: {e}") from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise CacheStoreError(f"Redis SET {key} failed: {e}") from e

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """SET NX EX: check and write in one command."""
        try:
            return bool(await self._client.set(key, value, ex=ttl_seconds, nx=True))
        except RedisError as e:
            raise CacheStoreError(f"Redis SET NX {key} failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            raise CacheStoreError(f"Redis DEL {key} failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()


def build_cache_store(settings: Settings) -> CacheStore:
    """Pick the store implementation from configuration."""
    if settings.redis_enabled:
        logger.info("Activity cache store: Redis")
        return RedisCacheStore(settings.redis_url)
    logger.info("Activity cache store: in-process (REDIS_URL not set)")
    return MemoryCacheStore()
