from activity_feed.api.v1 import activities, internal

__all__ = [
    "activities",
    "internal",
]
