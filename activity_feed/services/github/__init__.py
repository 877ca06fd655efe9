"""
GitHub service package.

Usage: `from activity_feed.services.github import CredentialPool, GitHubReadOperations`

Module structure:
- credentials.py: Credential pool and purpose-based selection
- read_operations.py: Read-only API operations bound to one credential
- contributions.py: Per-user contribution summary
- helpers.py: Rate limit handling and error utilities
- types.py: Data types and response models
- exceptions.py: Custom exceptions
- constants.py: API constants and configuration
"""

from activity_feed.services.github.cache import clear_all_caches as clear_github_caches
from activity_feed.services.github.cache import get_cache_stats as get_github_cache_stats
from activity_feed.services.github.contributions import fetch_contribution_summary
from activity_feed.services.github.credentials import (
    PURPOSE_CYCLE,
    Credential,
    CredentialPool,
    CredentialStats,
    Purpose,
)
from activity_feed.services.github.exceptions import (
    CredentialConfigError,
    GitHubAPIError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)
from activity_feed.services.github.helpers import RateLimitInfo, raise_for_github_status
from activity_feed.services.github.http_client import close_github_client
from activity_feed.services.github.read_operations import GitHubReadOperations
from activity_feed.services.github.types import (
    ContributionSummary,
    GitHubRepo,
    GitHubUserProfile,
    PushCommit,
)

__all__ = [
    # Credentials
    "Credential",
    "CredentialPool",
    "CredentialStats",
    "Purpose",
    "PURPOSE_CYCLE",
    # Operations
    "GitHubReadOperations",
    "fetch_contribution_summary",
    # HTTP client lifecycle
    "close_github_client",
    # Cache management
    "clear_github_caches",
    "get_github_cache_stats",
    # Utilities
    "raise_for_github_status",
    "RateLimitInfo",
    # Exceptions
    "CredentialConfigError",
    "GitHubAPIError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    # Types
    "ContributionSummary",
    "GitHubRepo",
    "GitHubUserProfile",
    "PushCommit",
]
