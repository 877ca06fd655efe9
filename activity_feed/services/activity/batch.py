"""Batch fetcher: turns a member list into one merged, newest-first stream.

Members are split into contiguous batches the size of the credential pool.
Each batch gets the next purpose in the cycle, so neighbouring batches are
charged to different credentials. All batches run concurrently, as do all
members inside a batch. A member that fails or times out contributes nothing
and never aborts the run.
"""

import asyncio
import logging
import math
import time
from collections.abc import Sequence
from dataclasses import dataclass

from activity_feed.services.activity.fetcher import MemberActivityFetcher
from activity_feed.services.activity.normalizer import sort_newest_first
from activity_feed.services.activity.types import ActivityEvent, Member
from activity_feed.services.github.credentials import PURPOSE_CYCLE, Purpose

logger = logging.getLogger(__name__)


@dataclass
class Batch:
    index: int
    purpose: Purpose
    members: list[Member]


@dataclass
class BatchReport:
    """Outcome of one batch run."""

    members: int = 0
    batches: int = 0
    failed: int = 0
    events: int = 0
    duration_seconds: float = 0.0


def plan_batches(members: Sequence[Member], pool_size: int) -> list[Batch]:
    """
    Partition members into ceil(len / pool_size) contiguous batches.

    Batch i is assigned PURPOSE_CYCLE[i % len(PURPOSE_CYCLE)].
    """
    if pool_size < 1:
        raise ValueError("pool_size must be at least 1")

    batch_count = math.ceil(len(members) / pool_size)
    return [
        Batch(
            index=i,
            purpose=PURPOSE_CYCLE[i % len(PURPOSE_CYCLE)],
            members=list(members[i * pool_size : (i + 1) * pool_size]),
        )
        for i in range(batch_count)
    ]


class BatchFetcher:
    """Fetch every eligible member exactly once and merge the results."""

    def __init__(
        self,
        fetcher: MemberActivityFetcher,
        pool_size: int,
        member_timeout: float = 20.0,
    ) -> None:
        self.fetcher = fetcher
        self.pool_size = pool_size
        self.member_timeout = member_timeout
        self.last_report: BatchReport | None = None

    async def fetch_all(self, members: Sequence[Member]) -> list[ActivityEvent]:
        """
        Fetch all members with a username and return one newest-first list.

        Completes once every member has been attempted once; failed members
        are not retried within the run.
        """
        started = time.monotonic()
        eligible = [member for member in members if member.is_fetchable]
        batches = plan_batches(eligible, self.pool_size)

        batch_results = await asyncio.gather(*(self._run_batch(batch) for batch in batches))

        events: list[ActivityEvent] = []
        failed = 0
        for member_results in batch_results:
            for member_events, member_failed in member_results:
                events.extend(member_events)
                failed += int(member_failed)

        merged = sort_newest_first(events)
        self.last_report = BatchReport(
            members=len(eligible),
            batches=len(batches),
            failed=failed,
            events=len(merged),
            duration_seconds=round(time.monotonic() - started, 2),
        )
        logger.info(
            f"Batch fetch: {len(merged)} events from {len(eligible)} members "
            f"in {len(batches)} batches ({failed} failed, "
            f"{self.last_report.duration_seconds}s)"
        )
        return merged

    async def _run_batch(self, batch: Batch) -> list[tuple[list[ActivityEvent], bool]]:
        logger.debug(
            f"Batch {batch.index}: {len(batch.members)} members with purpose {batch.purpose.value}"
        )
        return list(
            await asyncio.gather(
                *(self._fetch_member(member, batch.purpose) for member in batch.members)
            )
        )

    async def _fetch_member(
        self,
        member: Member,
        purpose: Purpose,
    ) -> tuple[list[ActivityEvent], bool]:
        try:
            events = await asyncio.wait_for(
                self.fetcher.fetch(member, purpose),
                timeout=self.member_timeout,
            )
            return events, False
        except TimeoutError:
            logger.warning(
                f"Activity fetch for {member.external_username} timed out after "
                f"{self.member_timeout}s"
            )
            return [], True
        except Exception as e:
            logger.warning(f"Activity fetch for {member.external_username} failed: {e}")
            return [], True
