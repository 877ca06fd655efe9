"""
Normalization of raw GitHub events into feed events.

Each supported upstream event becomes exactly one ActivityEvent, except a
push, which becomes one commit event per commit when the commits behind it
are known and a single "Pushed k commits" summary otherwise. Event ids are
derived from (member, time, kind, repository, commit index, rank) so the
same upstream event always yields the same id, and two upstream events of
one member never share one.
"""

import hashlib
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from activity_feed.services.activity.types import ActivityEvent, ActivityKind, Actor, Member
from activity_feed.services.github.constants import (
    CREATE_EVENT,
    FORK_EVENT,
    ISSUES_EVENT,
    PULL_REQUEST_EVENT,
    PUSH_EVENT,
    WATCH_EVENT,
)
from activity_feed.services.github.types import PushCommit

EVENT_KINDS: dict[str, ActivityKind] = {
    PUSH_EVENT: ActivityKind.COMMIT,
    PULL_REQUEST_EVENT: ActivityKind.PULL_REQUEST,
    ISSUES_EVENT: ActivityKind.ISSUE,
    CREATE_EVENT: ActivityKind.CREATE,
    FORK_EVENT: ActivityKind.FORK,
    WATCH_EVENT: ActivityKind.STAR,
}


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp ("2024-05-01T10:00:00Z") into an aware datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def derive_event_id(
    member_id: str,
    occurred_at: datetime,
    kind: ActivityKind,
    repository: str,
    index: int,
    rank: int = 0,
) -> str:
    """
    Deterministic id for a feed event.

    `index` is the commit position inside a push. `rank` separates upstream
    events of one member that share time, kind and repository, in upstream
    order; the first of them has rank 0.
    """
    parts = [
        member_id,
        occurred_at.astimezone(UTC).isoformat(),
        kind.value,
        repository,
        str(index),
    ]
    if rank:
        parts.append(f"r{rank}")
    key = "|".join(parts)
    return f"gh-{hashlib.sha1(key.encode()).hexdigest()[:20]}"


def _repository(raw: Mapping[str, Any]) -> str:
    return (raw.get("repo") or {}).get("name") or "Unknown"


def _actor_for(member: Member, raw: Mapping[str, Any]) -> Actor:
    raw_actor = raw.get("actor") or {}
    return Actor(
        name=member.display_name or member.external_username or "Anonymous",
        username=member.external_username,
        avatar_url=member.avatar_url or raw_actor.get("avatar_url"),
    )


def _first_line(message: str) -> str:
    return message.strip().splitlines()[0] if message.strip() else message


def _push_size(payload: Mapping[str, Any]) -> int:
    return (
        payload.get("size")
        or payload.get("distinct_size")
        or len(payload.get("commits") or [])
        or 1
    )


def normalize_event(
    member: Member,
    raw: Mapping[str, Any],
    push_commits: list[PushCommit] | None = None,
    rank: int = 0,
) -> list[ActivityEvent]:
    """
    Map one raw upstream event to feed events.

    Args:
        member: The member the event belongs to
        raw: Event object from the public events endpoint
        push_commits: Commits behind a push, when they could be resolved
        rank: Position among this member's upstream events with the same time,
            kind and repository

    Returns:
        Zero events for unsupported or undated input, one event for most types,
        one per commit for a resolved push
    """
    occurred_at = parse_timestamp(raw.get("created_at"))
    if occurred_at is None:
        return []

    event_type = raw.get("type")
    kind = EVENT_KINDS.get(event_type)  # type: ignore[arg-type]
    if kind is None:
        return []

    repository = _repository(raw)
    payload: Mapping[str, Any] = raw.get("payload") or {}
    actor = _actor_for(member, raw)

    def single(message: str) -> list[ActivityEvent]:
        return [
            ActivityEvent(
                id=derive_event_id(member.id, occurred_at, kind, repository, 0, rank),
                kind=kind,
                message=message,
                repository=repository,
                occurred_at=occurred_at,
                actor=actor,
            )
        ]

    if event_type == PUSH_EVENT:
        if push_commits:
            return [
                ActivityEvent(
                    id=derive_event_id(member.id, occurred_at, kind, repository, index, rank),
                    kind=kind,
                    message=_first_line(commit.message) or "Pushed commit",
                    repository=repository,
                    occurred_at=occurred_at,
                    actor=actor,
                )
                for index, commit in enumerate(push_commits)
            ]
        size = _push_size(payload)
        return single(f"Pushed {size} commit{'s' if size != 1 else ''}")

    if event_type == PULL_REQUEST_EVENT:
        title = (payload.get("pull_request") or {}).get("title")
        return single(title or f"{payload.get('action') or 'updated'} pull request")

    if event_type == ISSUES_EVENT:
        title = (payload.get("issue") or {}).get("title")
        return single(title or f"{payload.get('action') or 'updated'} issue")

    if event_type == CREATE_EVENT:
        return single(f"Created {payload.get('ref_type') or 'resource'}")

    if event_type == FORK_EVENT:
        return single("Forked repository")

    return single("Starred repository")


def normalize_events(
    member: Member,
    raw_events: Iterable[Mapping[str, Any]],
    push_commits: Mapping[str, list[PushCommit] | None] | None = None,
) -> list[ActivityEvent]:
    """
    Normalize a member's raw events, in upstream order.

    `push_commits` is keyed by upstream event id. Events sharing time, kind and
    repository are ranked in the order they arrive so each keeps its own id.
    """
    resolved = push_commits or {}
    seen: Counter[tuple[datetime, ActivityKind, str]] = Counter()
    events: list[ActivityEvent] = []
    for raw in raw_events:
        rank = 0
        occurred_at = parse_timestamp(raw.get("created_at"))
        kind = EVENT_KINDS.get(raw.get("type"))  # type: ignore[arg-type]
        if occurred_at is not None and kind is not None:
            key = (occurred_at, kind, _repository(raw))
            rank = seen[key]
            seen[key] += 1
        events.extend(normalize_event(member, raw, resolved.get(str(raw.get("id"))), rank))
    return events


def within_window(
    events: Iterable[ActivityEvent],
    now: datetime,
    window: timedelta,
) -> list[ActivityEvent]:
    """Keep events that occurred inside the trailing window ending at `now`."""
    cutoff = now - window
    return [event for event in events if event.occurred_at >= cutoff]


def sort_newest_first(events: Iterable[ActivityEvent]) -> list[ActivityEvent]:
    """Sort by occurrence time, newest first. Ties are ordered by id so output is deterministic."""
    return sorted(events, key=lambda event: (event.occurred_at, event.id), reverse=True)
