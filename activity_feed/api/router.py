from fastapi import APIRouter

from activity_feed.api.v1 import activities, internal

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(activities.router)
api_router.include_router(internal.router)
