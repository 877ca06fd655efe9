# Services package

from activity_feed.services.activity.directory import MemberDirectory, SqlMemberDirectory
from activity_feed.services.runtime import FeedRuntime, build_runtime
from activity_feed.services.scheduler import PreemptiveRefreshScheduler, SchedulerState

__all__ = [
    # Wiring
    "FeedRuntime",
    "build_runtime",
    # Member directory
    "MemberDirectory",
    "SqlMemberDirectory",
    # Background refresh
    "PreemptiveRefreshScheduler",
    "SchedulerState",
]
