"""Internal API endpoints: protected by shared secret, not user auth.

Operator and cron endpoints for the activity feed. They bypass requester
auth and instead validate a shared secret via the X-Cron-Secret header.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, HTTPException, status

from activity_feed.api.deps import Runtime, get_settings
from activity_feed.config.settings import Settings
from activity_feed.schemas.activity import (
    CredentialUsage,
    FeedStatusResponse,
    RefreshTriggerResponse,
    SchedulerStatus,
)

logger = logging.getLogger(__name__)


def _verify_cron_secret(
    x_cron_secret: str = Header(...),
    settings: Settings = Depends(get_settings),
) -> None:
    """Validate the X-Cron-Secret header against the configured secret."""
    if not settings.cron_secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cron secret not configured",
        )
    if x_cron_secret != settings.cron_secret:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid cron secret",
        )


router = APIRouter(
    prefix="/internal/activity-feed",
    tags=["internal"],
    dependencies=[Depends(_verify_cron_secret)],
)


@router.get("/status", response_model=FeedStatusResponse)
async def feed_status(runtime: Runtime) -> FeedStatusResponse:
    """Cache age, scheduler state and credential usage."""
    entry = await runtime.cache.read()
    age = await runtime.cache.age() if entry is not None else None

    return FeedStatusResponse(
        cache_present=entry is not None,
        cache_age_seconds=age.total_seconds() if age is not None else None,
        cached_events=len(entry.events) if entry is not None else 0,
        refresh_in_progress=runtime.refresher.in_progress,
        scheduler=SchedulerStatus(**runtime.scheduler.status()),
        credentials=[CredentialUsage(**asdict(s)) for s in runtime.pool.stats()],
        any_credential_near_limit=runtime.pool.is_any_near_limit(),
    )


@router.post("/refresh", response_model=RefreshTriggerResponse)
async def trigger_refresh(runtime: Runtime) -> RefreshTriggerResponse:
    """
    Rebuild the feed now, ignoring cache age and requester cooldowns.

    Called by external cron as a backup to the in-process scheduler.
    """
    refreshed = await runtime.scheduler.force_refresh()
    entry = await runtime.cache.read()

    return RefreshTriggerResponse(
        refreshed=refreshed,
        events=len(entry.events) if entry is not None else 0,
        cached_at=entry.cached_at if entry is not None else None,
    )


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cache(runtime: Runtime) -> None:
    """Drop the cached feed. The next read rebuilds it."""
    await runtime.cache.clear()
    logger.info("Activity cache cleared by operator")
