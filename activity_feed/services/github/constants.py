"""Constants for GitHub service."""

BASE_URL = "https://api.github.com"
GRAPHQL_URL = "https://api.github.com/graphql"
API_VERSION = "2022-11-28"
USER_AGENT = "activity-feed"

# Public events endpoint returns at most 100 per page; 50 covers a 36h window
# for all but the busiest members
EVENTS_PER_PAGE = 50

# Repositories are listed 100 per page; stop after this many pages per member
MAX_REPO_PAGES = 5

# Languages are summed over the most recently updated repositories only
LANGUAGE_REPO_LIMIT = 30

# Upstream event type -> feed kind. Types missing here are dropped.
PUSH_EVENT = "PushEvent"
PULL_REQUEST_EVENT = "PullRequestEvent"
ISSUES_EVENT = "IssuesEvent"
CREATE_EVENT = "CreateEvent"
FORK_EVENT = "ForkEvent"
WATCH_EVENT = "WatchEvent"

SUPPORTED_EVENT_TYPES: frozenset[str] = frozenset(
    {
        PUSH_EVENT,
        PULL_REQUEST_EVENT,
        ISSUES_EVENT,
        CREATE_EVENT,
        FORK_EVENT,
        WATCH_EVENT,
    }
)

SEARCH_ISSUE_COUNT_QUERY = """
query($q: String!) {
  search(type: ISSUE, query: $q, first: 1) {
    issueCount
  }
}
"""

# Shared HTTP client
REQUEST_TIMEOUT_SECONDS = 30.0
CONNECT_TIMEOUT_SECONDS = 5.0
MAX_CONNECTIONS = 40
