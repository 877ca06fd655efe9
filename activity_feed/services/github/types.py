"""Data types for GitHub API responses."""

from dataclasses import dataclass, field


@dataclass
class GitHubUserProfile:
    """Normalized GitHub user profile."""

    username: str
    name: str
    avatar_url: str | None
    public_repos: int
    followers: int
    following: int
    bio: str | None = None
    location: str | None = None
    company: str | None = None
    created_at: str | None = None


@dataclass
class GitHubRepo:
    """Repository entry from a user's repository list."""

    name: str
    full_name: str
    language: str | None
    stars_count: int
    forks_count: int
    pushed_at: str | None


@dataclass
class PushCommit:
    """One commit of a push, as far as it could be resolved."""

    sha: str
    message: str


@dataclass
class ContributionSummary:
    """Aggregated contribution figures for one GitHub user."""

    username: str
    public_repos: int
    followers: int
    total_pull_requests: int
    total_issues: int
    languages: dict[str, int] = field(default_factory=dict)  # language -> percentage
