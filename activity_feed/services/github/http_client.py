"""
Process-wide HTTP client for GitHub.

One AsyncClient serves every credential in the pool. The bearer token is
sent per request, so a batch running under one credential reuses connections
opened by another.
"""

import logging

import httpx

from activity_feed.services.github.constants import (
    API_VERSION,
    CONNECT_TIMEOUT_SECONDS,
    MAX_CONNECTIONS,
    REQUEST_TIMEOUT_SECONDS,
    USER_AGENT,
)

logger = logging.getLogger(__name__)

_client: httpx.AsyncClient | None = None


def get_github_client() -> httpx.AsyncClient:
    """Return the shared client, creating it on first use or after close."""
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS, connect=CONNECT_TIMEOUT_SECONDS),
            limits=httpx.Limits(
                max_connections=MAX_CONNECTIONS,
                max_keepalive_connections=MAX_CONNECTIONS // 2,
            ),
            headers={
                "User-Agent": USER_AGENT,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
            http2=True,
        )
        logger.debug(f"Opened GitHub HTTP client (max {MAX_CONNECTIONS} connections)")
    return _client


async def close_github_client() -> None:
    """Close the shared client on shutdown. A later call to get_github_client reopens it."""
    global _client
    if _client is None:
        return
    if not _client.is_closed:
        await _client.aclose()
        logger.debug("Closed GitHub HTTP client")
    _client = None
