"""Pydantic schemas for API responses."""

from activity_feed.schemas.activity import (
    ContributionSummaryResponse,
    CredentialUsage,
    FeedResponse,
    FeedStatusResponse,
    RateLimitedResponse,
    RefreshTriggerResponse,
    SchedulerStatus,
)

__all__ = [
    "ContributionSummaryResponse",
    "CredentialUsage",
    "FeedResponse",
    "FeedStatusResponse",
    "RateLimitedResponse",
    "RefreshTriggerResponse",
    "SchedulerStatus",
]
