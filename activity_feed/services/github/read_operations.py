"""
GitHub API read operations.

Provides the read-only calls the activity feed needs:
- Public event feed of a user
- Commits behind a push (payload or compare endpoint)
- User profile and repository list
- Language statistics per repository
- Search counts through GraphQL
"""

import logging
from typing import Any

import httpx

from activity_feed.services.github.cache import LANGUAGES, PROFILES, cached_github_call
from activity_feed.services.github.constants import (
    BASE_URL,
    EVENTS_PER_PAGE,
    GRAPHQL_URL,
    MAX_REPO_PAGES,
    SEARCH_ISSUE_COUNT_QUERY,
)
from activity_feed.services.github.credentials import Credential, CredentialPool
from activity_feed.services.github.exceptions import GitHubAPIError, GitHubNotFoundError
from activity_feed.services.github.helpers import (
    RateLimitInfo,
    has_next_page,
    raise_for_github_status,
)
from activity_feed.services.github.http_client import get_github_client
from activity_feed.services.github.types import GitHubRepo, GitHubUserProfile, PushCommit

logger = logging.getLogger(__name__)


class GitHubReadOperations:
    """
    Read-only operations for GitHub API, bound to one credential.

    Every request is charged to the credential in the pool and the last
    X-RateLimit-Remaining value is recorded against it.
    """

    def __init__(self, credential: Credential, pool: CredentialPool | None = None):
        self.credential = credential
        self.pool = pool
        self._headers = {"Authorization": f"Bearer {credential.token}"}

    def _track(self, response: httpx.Response) -> None:
        if self.pool is None:
            return
        remaining = RateLimitInfo.from_response(response).remaining
        self.pool.observe_rate_limit(self.credential, remaining)

    async def _get(
        self,
        url: str,
        params: dict[str, str | int] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        if self.pool is not None:
            self.pool.record_call(self.credential)
        client = get_github_client()
        kwargs: dict[str, Any] = {"headers": self._headers}
        if params:
            kwargs["params"] = params
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = await client.get(url, **kwargs)
        self._track(response)
        return response

    async def get_user_events(
        self,
        username: str,
        per_page: int = EVENTS_PER_PAGE,
    ) -> list[dict[str, Any]]:
        """
        Fetch the public event feed of a user, newest first.

        Raises:
            GitHubNotFoundError: If the user does not exist
            GitHubAPIError: For any other non-200 response
        """
        response = await self._get(
            f"{BASE_URL}/users/{username}/events/public",
            params={"per_page": min(per_page, 100)},
        )
        raise_for_github_status(response, f"users/{username}/events")

        events: list[dict[str, Any]] = response.json()
        return events

    async def get_push_commits(
        self,
        repo_full_name: str,
        payload: dict[str, Any],
        timeout: float = 5.0,
    ) -> list[PushCommit] | None:
        """
        Resolve the commits behind a push event.

        Uses the commits embedded in the payload when present. Otherwise asks
        the compare endpoint for `before...head`. Returns None when the
        commits cannot be obtained (timeout, transport error, non-200), in
        which case the caller falls back to a summary.
        """
        embedded = payload.get("commits") or []
        if embedded:
            return [
                PushCommit(
                    sha=commit.get("sha", ""),
                    message=(commit.get("message") or "Pushed commit").strip(),
                )
                for commit in embedded
            ]

        before = payload.get("before")
        head = payload.get("head")
        if not before or not head:
            return None

        try:
            response = await self._get(
                f"{BASE_URL}/repos/{repo_full_name}/compare/{before}...{head}",
                timeout=timeout,
            )
        except (httpx.TimeoutException, httpx.RequestError) as e:
            logger.debug(f"Compare {repo_full_name} {before[:7]}...{head[:7]} failed: {e}")
            return None

        if response.status_code != 200:
            return None

        commits = response.json().get("commits", [])
        return [
            PushCommit(
                sha=commit.get("sha", ""),
                message=(commit.get("commit", {}).get("message") or "Pushed commit").strip(),
            )
            for commit in commits
        ]

    @cached_github_call(PROFILES)
    async def get_user_profile(self, username: str) -> GitHubUserProfile | None:
        """
        Fetch a user's public profile.

        Returns:
            GitHubUserProfile, or None if the user does not exist
        """
        response = await self._get(f"{BASE_URL}/users/{username}", timeout=10.0)

        try:
            raise_for_github_status(response, f"users/{username}")
        except GitHubNotFoundError:
            return None

        data = response.json()
        return GitHubUserProfile(
            username=data["login"],
            name=data.get("name") or data["login"],
            avatar_url=data.get("avatar_url"),
            public_repos=data.get("public_repos", 0),
            followers=data.get("followers", 0),
            following=data.get("following", 0),
            bio=data.get("bio"),
            location=data.get("location"),
            company=data.get("company"),
            created_at=data.get("created_at"),
        )

    async def get_user_repos(self, username: str) -> list[GitHubRepo]:
        """
        Fetch repositories owned by a user, most recently updated first.

        Follows the Link header for at most MAX_REPO_PAGES pages.
        """
        repos: list[GitHubRepo] = []
        page = 1

        while page <= MAX_REPO_PAGES:
            response = await self._get(
                f"{BASE_URL}/users/{username}/repos",
                params={"type": "owner", "sort": "updated", "per_page": 100, "page": page},
            )
            raise_for_github_status(response, f"users/{username}/repos")

            for data in response.json():
                repos.append(
                    GitHubRepo(
                        name=data["name"],
                        full_name=data["full_name"],
                        language=data.get("language"),
                        stars_count=data.get("stargazers_count", 0),
                        forks_count=data.get("forks_count", 0),
                        pushed_at=data.get("pushed_at"),
                    )
                )

            if not has_next_page(response):
                break
            page += 1

        return repos

    @cached_github_call(LANGUAGES)
    async def get_repo_languages(
        self,
        owner: str,
        repo: str,
        timeout: float = 5.0,
    ) -> dict[str, int]:
        """
        Fetch the byte count per language for a repository.

        Results are cached for 1 hour - language breakdown rarely changes.
        """
        response = await self._get(
            f"{BASE_URL}/repos/{owner}/{repo}/languages",
            timeout=timeout,
        )
        raise_for_github_status(response, f"repos/{owner}/{repo}/languages")

        data: dict[str, int] = response.json()
        return data

    async def count_search_issues(self, query: str) -> int:
        """
        Count issues or pull requests matching a search query via GraphQL.

        Example query: "author:octocat is:pr"
        """
        if self.pool is not None:
            self.pool.record_call(self.credential)

        client = get_github_client()
        response = await client.post(
            GRAPHQL_URL,
            headers=self._headers,
            json={"query": SEARCH_ISSUE_COUNT_QUERY, "variables": {"q": query}},
            timeout=15.0,
        )
        self._track(response)
        raise_for_github_status(response, "graphql")

        body = response.json()
        if body.get("errors"):
            raise GitHubAPIError(f"GraphQL error: {body['errors'][0].get('message')}", 200)

        count = ((body.get("data") or {}).get("search") or {}).get("issueCount", 0)
        return count if isinstance(count, int) else 0
