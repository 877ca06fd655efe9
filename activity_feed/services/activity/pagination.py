"""Pure helpers over an already-sorted event list."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from activity_feed.services.activity.types import ActivityEvent, ActivityKind


class FeedFilter(str, Enum):
    ALL = "all"
    COMMITS = "commits"
    PULL_REQUESTS = "pull_requests"
    ISSUES = "issues"


FILTER_KINDS: dict[FeedFilter, ActivityKind] = {
    FeedFilter.COMMITS: ActivityKind.COMMIT,
    FeedFilter.PULL_REQUESTS: ActivityKind.PULL_REQUEST,
    FeedFilter.ISSUES: ActivityKind.ISSUE,
}


@dataclass(frozen=True)
class Page:
    items: list[ActivityEvent]
    total: int
    has_more: bool
    next_cursor: str | None


def filter_events(events: Sequence[ActivityEvent], feed_filter: FeedFilter) -> list[ActivityEvent]:
    """Keep events of the filtered kind. Relative order is preserved."""
    if feed_filter is FeedFilter.ALL:
        return list(events)
    kind = FILTER_KINDS[feed_filter]
    return [event for event in events if event.kind is kind]


def paginate(events: Sequence[ActivityEvent], offset: int, limit: int) -> Page:
    """Slice [offset, offset + limit); has_more iff offset + limit < total."""
    if offset < 0 or limit < 0:
        raise ValueError("offset and limit must be non-negative")

    end = offset + limit
    has_more = end < len(events)
    return Page(
        items=list(events[offset:end]),
        total=len(events),
        has_more=has_more,
        next_cursor=str(end) if has_more else None,
    )
