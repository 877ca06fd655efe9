"""API dependencies - re-exports from submodules."""

from .auth import (
    RequesterId,
    decode_requester_id,
    get_requester_id,
    security,
)
from .runtime import (
    FeedService,
    Runtime,
    get_feed_service,
    get_runtime,
    get_settings,
)

__all__ = [
    # Auth
    "security",
    "decode_requester_id",
    "get_requester_id",
    "RequesterId",
    # Runtime
    "get_runtime",
    "get_settings",
    "get_feed_service",
    "Runtime",
    "FeedService",
]
