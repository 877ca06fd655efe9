"""Contribution summary for a single GitHub user.

Combines the profile, the language mix across the user's repositories and
the pull request / issue totals from GraphQL search. Language sub-calls run
concurrently with an individual timeout each; a slow or failing repository
contributes nothing instead of failing the summary.
"""

import asyncio
import logging

import httpx

from activity_feed.services.github.constants import LANGUAGE_REPO_LIMIT
from activity_feed.services.github.exceptions import GitHubAPIError
from activity_feed.services.github.read_operations import GitHubReadOperations
from activity_feed.services.github.types import ContributionSummary

logger = logging.getLogger(__name__)


def language_percentages(byte_counts: list[dict[str, int]]) -> dict[str, int]:
    """Sum per-repository byte counts and convert to rounded percentages."""
    totals: dict[str, int] = {}
    for counts in byte_counts:
        for language, size in counts.items():
            totals[language] = totals.get(language, 0) + size

    total_size = sum(totals.values())
    if total_size == 0:
        return {}

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return {language: round((size / total_size) * 100) for language, size in ordered}


async def _languages_or_empty(
    github: GitHubReadOperations,
    owner: str,
    repo: str,
    timeout: float,
) -> dict[str, int]:
    try:
        return await asyncio.wait_for(
            github.get_repo_languages(owner, repo, timeout=timeout),
            timeout=timeout,
        )
    except (TimeoutError, GitHubAPIError, httpx.HTTPError) as e:
        logger.debug(f"Languages for {owner}/{repo} skipped: {e}")
        return {}


async def _count_or_zero(github: GitHubReadOperations, query: str) -> int:
    try:
        return await github.count_search_issues(query)
    except (GitHubAPIError, httpx.HTTPError) as e:
        logger.warning(f"Search count failed for {query!r}: {e}")
        return 0


async def fetch_contribution_summary(
    github: GitHubReadOperations,
    username: str,
    sub_call_timeout: float = 5.0,
) -> ContributionSummary | None:
    """
    Build a contribution summary for a user.

    Returns:
        ContributionSummary, or None if the user does not exist on GitHub
    """
    profile = await github.get_user_profile(username)
    if profile is None:
        return None

    repos = await github.get_user_repos(username)
    owner = profile.username

    language_results, pr_count, issue_count = await asyncio.gather(
        asyncio.gather(
            *(
                _languages_or_empty(github, owner, repo.name, sub_call_timeout)
                for repo in repos[:LANGUAGE_REPO_LIMIT]
            )
        ),
        _count_or_zero(github, f"author:{username} is:pr"),
        _count_or_zero(github, f"author:{username} is:issue"),
    )

    return ContributionSummary(
        username=profile.username,
        public_repos=profile.public_repos,
        followers=profile.followers,
        total_pull_requests=pr_count,
        total_issues=issue_count,
        languages=language_percentages(list(language_results)),
    )
