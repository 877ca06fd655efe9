"""Access to the runtime built at startup."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from activity_feed.config.settings import Settings
from activity_feed.services.activity.feed import ActivityFeedService
from activity_feed.services.runtime import FeedRuntime


def get_runtime(request: Request) -> FeedRuntime:
    runtime: FeedRuntime | None = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Activity feed is not initialised",
        )
    return runtime


def get_settings(runtime: FeedRuntime = Depends(get_runtime)) -> Settings:
    return runtime.settings


def get_feed_service(runtime: FeedRuntime = Depends(get_runtime)) -> ActivityFeedService:
    return runtime.feed


Runtime = Annotated[FeedRuntime, Depends(get_runtime)]
FeedService = Annotated[ActivityFeedService, Depends(get_feed_service)]
