"""Configuration package."""

from activity_feed.config.settings import Settings, settings

__all__ = [
    "Settings",
    "settings",
]
