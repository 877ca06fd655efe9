"""Exceptions raised by the GitHub read layer."""


class GitHubAPIError(Exception):
    """GitHub answered with an unusable status, or a GraphQL error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        rate_limit_reset: int | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.rate_limit_reset = rate_limit_reset  # epoch seconds
        super().__init__(message)


class GitHubNotFoundError(GitHubAPIError):
    """The user or repository does not exist (404).

    The activity feed treats this as "no data" rather than a failure.
    """

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"GitHub resource not found: {resource}", 404)


class GitHubRateLimitError(GitHubAPIError):
    """The credential ran out of calls (primary limit) or hit a secondary limit."""

    def __init__(
        self,
        resource: str,
        status_code: int,
        rate_limit_reset: int | None = None,
        retry_after: int | None = None,
    ):
        self.resource = resource
        self.retry_after = retry_after
        super().__init__("GitHub API rate limit exceeded", status_code, rate_limit_reset)


class CredentialConfigError(Exception):
    """No usable GitHub credential was configured."""
