"""Data types for the merged activity feed."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


@dataclass(frozen=True)
class Member:
    """A community member as supplied by the member directory (read-only)."""

    id: str
    display_name: str
    external_username: str | None = None
    avatar_url: str | None = None

    @property
    def is_fetchable(self) -> bool:
        return bool(self.external_username and self.external_username.strip())


class ActivityKind(str, Enum):
    COMMIT = "commit"
    PULL_REQUEST = "pull_request"
    ISSUE = "issue"
    FORK = "fork"
    STAR = "star"
    CREATE = "create"


class FeedModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Actor(FeedModel):
    name: str
    username: str | None = None
    avatar_url: str | None = None


class ActivityEvent(FeedModel):
    """One entry of the merged feed. Never edited after creation."""

    id: str
    kind: ActivityKind
    message: str
    repository: str
    occurred_at: datetime
    actor: Actor


class ActivityCacheEntry(FeedModel):
    """The cached feed: events newest-first plus the time they were computed."""

    events: list[ActivityEvent]
    cached_at: datetime
