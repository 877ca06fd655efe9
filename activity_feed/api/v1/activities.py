"""
Community activity feed endpoints.

The feed is served from the shared cache. A cold cache is filled on the
request that finds it empty; `refresh=true` forces a full rebuild and is
limited to one per requester per cooldown window.
"""

import logging
import time

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse

from activity_feed.api.deps import FeedService, RequesterId, Runtime
from activity_feed.schemas.activity import (
    ContributionSummaryResponse,
    FeedResponse,
    RateLimitedResponse,
)
from activity_feed.services.activity.exceptions import (
    DirectoryUnavailableError,
    RefreshRateLimitedError,
)
from activity_feed.services.activity.pagination import FeedFilter
from activity_feed.services.github import (
    GitHubAPIError,
    GitHubRateLimitError,
    GitHubReadOperations,
    Purpose,
    fetch_contribution_summary,
)

router = APIRouter(prefix="/activities", tags=["activities"])
logger = logging.getLogger(__name__)


def _rate_limited_response(e: RefreshRateLimitedError) -> JSONResponse:
    minutes = -(-e.remaining_seconds // 60)
    body = RateLimitedResponse(
        message=f"Manual refresh is limited. Try again in {minutes} minute(s).",
        remaining_time=e.remaining_seconds,
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=body.model_dump(by_alias=True),
        headers={"Retry-After": str(e.remaining_seconds)},
    )


def _upstream_error_detail(e: GitHubAPIError) -> str:
    if isinstance(e, GitHubRateLimitError):
        wait = e.retry_after
        if wait is None and e.rate_limit_reset:
            wait = max(0, e.rate_limit_reset - int(time.time()))
        if wait is not None:
            return f"{e.message}. Retry in {-(-wait // 60)} minute(s)."
    return e.message


@router.get(
    "",
    response_model=FeedResponse,
    response_model_by_alias=True,
    responses={status.HTTP_429_TOO_MANY_REQUESTS: {"model": RateLimitedResponse}},
)
async def list_activities(
    requester_id: RequesterId,
    feed: FeedService,
    limit: int = Query(default=30, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    refresh: bool = Query(default=False),
    feed_filter: FeedFilter = Query(default=FeedFilter.ALL, alias="filter"),
):
    """
    Get one page of the merged community activity feed.

    Returns newest-first events of all members with a GitHub username.
    """
    try:
        page = await feed.get_page(
            requester_id,
            limit=limit,
            offset=offset,
            refresh=refresh,
            feed_filter=feed_filter,
        )
    except RefreshRateLimitedError as e:
        return _rate_limited_response(e)
    except DirectoryUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Member directory is unavailable, try again later",
        ) from None

    return FeedResponse(
        activities=page.activities,
        total=page.total,
        has_more=page.has_more,
        next_cursor=page.next_cursor,
        cached=page.cached,
    )


@router.get(
    "/contributions/{username}",
    response_model=ContributionSummaryResponse,
    response_model_by_alias=True,
)
async def get_contributions(
    username: str,
    _requester_id: RequesterId,
    runtime: Runtime,
) -> ContributionSummaryResponse:
    """Aggregate public contribution figures for one GitHub user."""
    github = GitHubReadOperations(runtime.pool.select_for_purpose(Purpose.SECONDARY), runtime.pool)

    try:
        summary = await fetch_contribution_summary(
            github,
            username,
            sub_call_timeout=runtime.settings.sub_call_timeout_seconds,
        )
    except GitHubAPIError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=_upstream_error_detail(e),
        ) from None

    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"GitHub user '{username}' not found",
        )

    return ContributionSummaryResponse(
        username=summary.username,
        public_repos=summary.public_repos,
        followers=summary.followers,
        total_pull_requests=summary.total_pull_requests,
        total_issues=summary.total_issues,
        languages=summary.languages,
    )
