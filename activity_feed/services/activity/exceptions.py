"""Exceptions for the activity feed pipeline."""


class ActivityFetchError(Exception):
    """Fetching one member's activity failed for a reason other than "not found"."""

    def __init__(self, username: str, cause: Exception):
        self.username = username
        self.cause = cause
        super().__init__(f"Activity fetch failed for {username}: {cause}")


class DirectoryUnavailableError(Exception):
    """The member directory could not be read; the refresh attempt is aborted."""


class CacheStoreError(Exception):
    """The shared cache service failed or could not be reached."""


class RefreshRateLimitedError(Exception):
    """A manual refresh was requested again inside the requester's cooldown window."""

    def __init__(self, remaining_seconds: int):
        self.remaining_seconds = remaining_seconds
        super().__init__(f"Manual refresh available again in {remaining_seconds} seconds")
