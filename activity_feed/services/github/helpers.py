"""Response inspection shared by the GitHub read operations."""

import logging
from dataclasses import dataclass

import httpx

from activity_feed.services.github.exceptions import (
    GitHubAPIError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)

logger = logging.getLogger(__name__)


def _header_int(response: httpx.Response, name: str) -> int | None:
    value = response.headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate-limit headers of one response. Missing or malformed headers read as None."""

    remaining: int | None
    reset: int | None
    retry_after: int | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "RateLimitInfo":
        return cls(
            remaining=_header_int(response, "X-RateLimit-Remaining"),
            reset=_header_int(response, "X-RateLimit-Reset"),
            retry_after=_header_int(response, "Retry-After"),
        )

    @property
    def is_exhausted(self) -> bool:
        return self.remaining == 0


def raise_for_github_status(response: httpx.Response, resource: str) -> None:
    """
    Map a non-200 GitHub response to an exception.

    Args:
        response: Response to inspect
        resource: Requested path, for error context (e.g. "users/octocat/events")

    Raises:
        GitHubNotFoundError: 404
        GitHubRateLimitError: 429, or 403 with no calls left or a Retry-After header
        GitHubAPIError: Any other non-200 status
    """
    if response.status_code == 200:
        return
    if response.status_code == 404:
        raise GitHubNotFoundError(resource)
    if response.status_code == 401:
        raise GitHubAPIError("Invalid or expired GitHub token", 401)

    if response.status_code in (403, 429):
        limits = RateLimitInfo.from_response(response)
        if response.status_code == 429 or limits.is_exhausted or limits.retry_after is not None:
            logger.warning(f"GitHub rate limit hit on {resource}")
            raise GitHubRateLimitError(
                resource,
                response.status_code,
                rate_limit_reset=limits.reset,
                retry_after=limits.retry_after,
            )
        raise GitHubAPIError("GitHub API forbidden", 403)

    raise GitHubAPIError(f"GitHub API error: {response.status_code}", response.status_code)


def has_next_page(response: httpx.Response) -> bool:
    return "next" in response.links
