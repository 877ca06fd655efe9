"""Per-member activity fetcher.

Fetches one member's public events with the credential mapped to the given
purpose, resolves the commits behind pushes and returns the member's
normalized events for the trailing window, newest first and capped.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from activity_feed.services.activity.exceptions import ActivityFetchError
from activity_feed.services.activity.normalizer import (
    normalize_events,
    parse_timestamp,
    sort_newest_first,
    within_window,
)
from activity_feed.services.activity.types import ActivityEvent, Member
from activity_feed.services.github.constants import PUSH_EVENT, SUPPORTED_EVENT_TYPES
from activity_feed.services.github.credentials import CredentialPool, Purpose
from activity_feed.services.github.exceptions import GitHubAPIError, GitHubNotFoundError
from activity_feed.services.github.read_operations import GitHubReadOperations
from activity_feed.services.github.types import PushCommit

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


class MemberActivityFetcher:
    """Fetch and normalize the recent activity of a single member."""

    def __init__(
        self,
        pool: CredentialPool,
        trailing_window: timedelta = timedelta(hours=36),
        max_events: int = 30,
        sub_call_timeout: float = 5.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.pool = pool
        self.trailing_window = trailing_window
        self.max_events = max_events
        self.sub_call_timeout = sub_call_timeout
        self.clock = clock

    async def fetch(self, member: Member, purpose: Purpose = Purpose.PRIMARY) -> list[ActivityEvent]:
        """
        Fetch a member's events inside the trailing window.

        Returns:
            Events newest-first, at most `max_events`; empty when the member has
            no username or does not exist upstream

        Raises:
            ActivityFetchError: For any upstream failure other than "not found"
        """
        if not member.is_fetchable:
            return []

        username = member.external_username.strip()  # type: ignore[union-attr]
        github = GitHubReadOperations(self.pool.select_for_purpose(purpose), self.pool)

        try:
            raw_events = await github.get_user_events(username)
        except GitHubNotFoundError:
            logger.debug(f"No GitHub user {username}, contributing no activity")
            return []
        except (GitHubAPIError, httpx.HTTPError) as e:
            raise ActivityFetchError(username, e) from e

        now = self.clock()
        cutoff = now - self.trailing_window
        recent = [
            raw
            for raw in raw_events
            if raw.get("type") in SUPPORTED_EVENT_TYPES
            and (occurred_at := parse_timestamp(raw.get("created_at"))) is not None
            and occurred_at >= cutoff
        ]

        push_commits = await self._resolve_push_commits(github, recent)
        events = within_window(normalize_events(member, recent, push_commits), now, self.trailing_window)
        return sort_newest_first(events)[: self.max_events]

    async def _resolve_push_commits(
        self,
        github: GitHubReadOperations,
        raw_events: list[dict[str, Any]],
    ) -> dict[str, list[PushCommit] | None]:
        pushes = [raw for raw in raw_events if raw.get("type") == PUSH_EVENT]
        if not pushes:
            return {}

        results = await asyncio.gather(*(self._push_commits_or_none(github, raw) for raw in pushes))
        return {str(raw.get("id")): commits for raw, commits in zip(pushes, results, strict=True)}

    async def _push_commits_or_none(
        self,
        github: GitHubReadOperations,
        raw: dict[str, Any],
    ) -> list[PushCommit] | None:
        repository = (raw.get("repo") or {}).get("name")
        if not repository:
            return None
        try:
            return await asyncio.wait_for(
                github.get_push_commits(
                    repository, raw.get("payload") or {}, timeout=self.sub_call_timeout
                ),
                timeout=self.sub_call_timeout,
            )
        except TimeoutError:
            logger.debug(f"Commit lookup for push to {repository} timed out")
            return None
