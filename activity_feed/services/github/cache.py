"""
Shared TTL caches for slowly-changing GitHub lookups.

Events are never cached here: the activity stream is always fetched live and
cached as a whole by the activity cache. What is cached are the per-user
lookups behind the contribution summary, shared by every credential.

Keys are the call's positional arguments, lowercased, since GitHub logins and
repository names are case-insensitive. Keyword arguments (timeouts) are not
part of the key.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any, Concatenate, ParamSpec, TypeVar

from cachetools import TTLCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

LANGUAGES = "languages"
PROFILES = "profiles"


@dataclass
class NamedCache:
    entries: TTLCache[tuple[str, ...], Any]
    hits: int = 0
    misses: int = 0


_caches: dict[str, NamedCache] = {
    LANGUAGES: NamedCache(TTLCache(maxsize=500, ttl=3600)),
    PROFILES: NamedCache(TTLCache(maxsize=200, ttl=600)),
}


def _key(func_name: str, args: tuple[Any, ...]) -> tuple[str, ...]:
    return (func_name, *(str(arg).lower() for arg in args))


def cached_github_call(
    name: str,
) -> Callable[
    [Callable[Concatenate[Any, P], Awaitable[T]]],
    Callable[Concatenate[Any, P], Awaitable[T]],
]:
    """
    Cache an async read-operations method in the named cache.

    The bound instance is not part of the key, so a hit is served no matter
    which credential asks and is not charged to any of them. Exceptions are
    not cached.
    """
    cache = _caches[name]

    def decorator(
        func: Callable[Concatenate[Any, P], Awaitable[T]],
    ) -> Callable[Concatenate[Any, P], Awaitable[T]]:
        @wraps(func)
        async def wrapper(self: Any, *args: P.args, **kwargs: P.kwargs) -> T:
            key = _key(func.__name__, args)
            if key in cache.entries:
                cache.hits += 1
                cached: T = cache.entries[key]
                return cached

            cache.misses += 1
            result = await func(self, *args, **kwargs)
            cache.entries[key] = result
            return result

        return wrapper

    return decorator


def get_cache(name: str) -> TTLCache[tuple[str, ...], Any]:
    return _caches[name].entries


def clear_all_caches() -> None:
    """Drop every cached lookup and reset the counters."""
    for cache in _caches.values():
        cache.entries.clear()
        cache.hits = 0
        cache.misses = 0
    logger.debug("Cleared GitHub lookup caches")


def get_cache_stats() -> dict[str, dict[str, int]]:
    return {
        name: {
            "size": len(cache.entries),
            "maxsize": cache.entries.maxsize,
            "hits": cache.hits,
            "misses": cache.misses,
        }
        for name, cache in _caches.items()
    }
