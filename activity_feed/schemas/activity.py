"""Response schemas of the activity feed endpoints.

All public responses use camelCase keys, matching the cached event payload.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from activity_feed.services.activity.types import ActivityEvent


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeedResponse(CamelModel):
    """One page of the merged community feed."""

    activities: list[ActivityEvent]
    total: int = Field(description="Number of events after filtering, across all pages")
    has_more: bool
    next_cursor: str | None = Field(
        default=None,
        description="Offset of the next page, present only when has_more is true",
    )
    cached: bool = Field(description="True when served from an existing cache entry")


class RateLimitedResponse(CamelModel):
    """Body of a 429 returned when a manual refresh is inside its cooldown."""

    error: str = "rate_limited"
    message: str
    remaining_time: int = Field(description="Seconds until a manual refresh is allowed again")
    rate_limited: bool = True


class ContributionSummaryResponse(CamelModel):
    username: str
    public_repos: int
    followers: int
    total_pull_requests: int
    total_issues: int
    languages: dict[str, int] = Field(
        default_factory=dict,
        description="Language name -> percentage of bytes across the user's repositories",
    )


class CredentialUsage(BaseModel):
    token: str
    purpose: str
    usage: int
    limit: int
    percentage: float
    rate_limit_remaining: int | None


class SchedulerStatus(BaseModel):
    running: bool
    state: str
    interval_minutes: float
    freshness_threshold_minutes: float
    last_run_at: datetime | None
    last_result: str | None
    next_run_at: datetime | None


class FeedStatusResponse(BaseModel):
    """Operator view of the feed: cache, scheduler and credential usage."""

    cache_present: bool
    cache_age_seconds: float | None
    cached_events: int
    refresh_in_progress: bool
    scheduler: SchedulerStatus
    credentials: list[CredentialUsage]
    any_credential_near_limit: bool


class RefreshTriggerResponse(BaseModel):
    refreshed: bool
    events: int
    cached_at: datetime | None
