"""Preemptive refresh of the activity cache using APScheduler.

Runs inside the FastAPI process. On every tick the cached feed is rebuilt if
it is absent or older than the freshness threshold, so readers rarely hit a
cold cache. A second job resets the credential call counters once per
upstream rate-limit window.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from activity_feed.services.activity.cache import ActivityCache
from activity_feed.services.activity.refresher import ActivityRefresher
from activity_feed.services.github.credentials import CredentialPool

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "preemptive_refresh"
RESET_JOB_ID = "reset_credential_usage"
FIRST_TICK_DELAY_SECONDS = 5


class SchedulerState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class PreemptiveRefreshScheduler:
    """Owns the APScheduler instance and the refresh tick."""

    def __init__(
        self,
        refresher: ActivityRefresher,
        cache: ActivityCache,
        pool: CredentialPool,
        freshness_threshold: timedelta = timedelta(minutes=60),
        interval: timedelta = timedelta(minutes=60),
        reset_interval: timedelta = timedelta(minutes=60),
        enabled: bool = True,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.refresher = refresher
        self.cache = cache
        self.pool = pool
        self.freshness_threshold = freshness_threshold
        self.interval = interval
        self.reset_interval = reset_interval
        self.enabled = enabled
        self.clock = clock

        self.state = SchedulerState.IDLE
        self.last_run_at: datetime | None = None
        self.last_result: str | None = None
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Register the jobs and start. Calling start on a running scheduler is a no-op.

        Must be called with a running event loop.
        """
        if not self.enabled:
            logger.info("[scheduler] Disabled via SCHEDULER_ENABLED=false")
            return
        if self.running:
            return

        self._scheduler = AsyncIOScheduler(timezone=UTC)

        self._scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval.total_seconds()),
            id=REFRESH_JOB_ID,
            name="Activity Feed Preemptive Refresh",
            next_run_time=self.clock() + timedelta(seconds=FIRST_TICK_DELAY_SECONDS),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

        self._scheduler.add_job(
            self.reset_credential_usage,
            trigger=IntervalTrigger(seconds=self.reset_interval.total_seconds()),
            id=RESET_JOB_ID,
            name="Credential Usage Reset",
            replace_existing=True,
        )

        self._scheduler.start()
        logger.info(
            f"[scheduler] Started: refresh every {self.interval}, "
            f"stale after {self.freshness_threshold}, "
            f"credential reset every {self.reset_interval}"
        )

    def stop(self) -> None:
        """Shut the scheduler down. Safe to call when it is not running."""
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("[scheduler] Stopped")
        self._scheduler = None

    async def is_stale(self) -> bool:
        age = await self.cache.age()
        return age is None or age >= self.freshness_threshold

    async def tick(self) -> bool:
        """
        One scheduled check.

        Returns True if a refresh ran successfully. Failures are logged and
        left for the next tick.
        """
        if self.state is SchedulerState.REFRESHING or self.refresher.in_progress:
            logger.info("[scheduler] Tick skipped: refresh already in progress")
            return False

        if not await self.is_stale():
            logger.debug("[scheduler] Tick: cache is fresh")
            return False

        return await self._refresh("scheduled")

    async def force_refresh(self) -> bool:
        """Refresh now regardless of the cache age."""
        return await self._refresh("forced")

    async def _refresh(self, reason: str) -> bool:
        self.state = SchedulerState.REFRESHING
        self.last_run_at = self.clock()
        logger.info(f"[scheduler] Refresh ({reason}): starting")
        try:
            entry = await self.refresher.refresh(reason)
        except Exception as e:
            self.last_result = f"failed: {e}"
            logger.exception(f"[scheduler] Refresh ({reason}): failed with error: {e}")
            return False
        finally:
            self.state = SchedulerState.IDLE

        if entry is None:
            self.last_result = "skipped: no members"
        else:
            self.last_result = f"ok: {len(entry.events)} events"
        logger.info(f"[scheduler] Refresh ({reason}): {self.last_result}")
        return True

    def reset_credential_usage(self) -> None:
        self.pool.reset_usage()
        logger.info(f"[scheduler] Credential usage reset for {len(self.pool)} credentials")

    def status(self) -> dict[str, Any]:
        next_run_at = None
        if self._scheduler is not None and self._scheduler.running:
            job = self._scheduler.get_job(REFRESH_JOB_ID)
            if job is not None:
                next_run_at = job.next_run_time

        return {
            "running": self.running,
            "state": self.state.value,
            "interval_minutes": self.interval.total_seconds() / 60,
            "freshness_threshold_minutes": self.freshness_threshold.total_seconds() / 60,
            "last_run_at": self.last_run_at,
            "last_result": self.last_result,
            "next_run_at": next_run_at,
        }
