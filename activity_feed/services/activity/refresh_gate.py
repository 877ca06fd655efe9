"""Per-requester cooldown in front of the manual full refresh.

The last refresh time of each requester is kept in the cache store under its
own key, with a TTL equal to the cooldown. Expiry is also checked lazily on
lookup, so a store that keeps the key slightly longer does not extend the
cooldown.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from activity_feed.services.activity.exceptions import CacheStoreError
from activity_feed.services.activity.store import REFRESH_COOLDOWN_PREFIX, CacheStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    remaining_seconds: int = 0


class RefreshGate:
    """Allows one manual refresh per requester per cooldown window."""

    def __init__(
        self,
        store: CacheStore,
        cooldown_seconds: int = 600,
        clock: Callable[[], float] = time.time,
        prefix: str = REFRESH_COOLDOWN_PREFIX,
    ) -> None:
        self.store = store
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock
        self.prefix = prefix

    def _key(self, requester_id: str) -> str:
        return f"{self.prefix}{requester_id}"

    async def _last_refresh_at(self, requester_id: str) -> float | None:
        raw = await self.store.get(self._key(requester_id))
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            return None

    async def try_consume(self, requester_id: str) -> GateDecision:
        """
        Allow and record a refresh, or deny with the seconds left in the cooldown.

        The record is claimed with a single set-if-absent, so two concurrent
        requests from one requester cannot both pass. If the store is
        unavailable the refresh is allowed.
        """
        now = self.clock()
        key = self._key(requester_id)

        try:
            if await self.store.set_if_absent(key, str(now), self.cooldown_seconds):
                return GateDecision(allowed=True)
            last = await self._last_refresh_at(requester_id)
        except CacheStoreError as e:
            logger.warning(f"Refresh cooldown lookup failed for {requester_id}, allowing: {e}")
            return GateDecision(allowed=True)

        if last is not None:
            elapsed = now - last
            if elapsed < self.cooldown_seconds:
                remaining = max(1, math.ceil(self.cooldown_seconds - elapsed))
                return GateDecision(allowed=False, remaining_seconds=remaining)

        # Record outlived its cooldown or is unreadable
        try:
            await self.store.set(key, str(now), self.cooldown_seconds)
        except CacheStoreError as e:
            logger.warning(f"Refresh cooldown not recorded for {requester_id}: {e}")

        return GateDecision(allowed=True)

    async def release(self, requester_id: str) -> None:
        """Give the token back after a refresh that could not run."""
        try:
            await self.store.delete(self._key(requester_id))
        except CacheStoreError as e:
            logger.warning(f"Refresh cooldown release failed for {requester_id}: {e}")
