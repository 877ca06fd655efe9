"""Unit tests for the SQL member directory (SQLite via aiosqlite)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from activity_feed.core.database import build_engine, build_session_maker, init_db
from activity_feed.models.member import MemberRecord
from activity_feed.services.activity.directory import SqlMemberDirectory
from activity_feed.services.activity.exceptions import DirectoryUnavailableError

CREATED = datetime(2025, 6, 1, tzinfo=UTC)


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'members.db'}")
    yield engine
    await engine.dispose()


@pytest.mark.anyio
async def test_lists_members_with_github_username(engine):
    await init_db(engine)
    session_maker = build_session_maker(engine)
    async with session_maker() as session:
        session.add_all(
            [
                MemberRecord(id="u1", name="Alice", github_username="alice", created_at=CREATED),
                MemberRecord(
                    id="u2",
                    name=None,
                    github_username="bob",
                    avatar_url="https://a/bob.png",
                    created_at=CREATED + timedelta(days=1),
                ),
                MemberRecord(id="u3", name="No GitHub", github_username=None, created_at=CREATED),
                MemberRecord(id="u4", name="Blank", github_username="  ", created_at=CREATED),
            ]
        )
        await session.commit()

    members = await SqlMemberDirectory(session_maker).list_members_with_external_username()

    assert [m.id for m in members] == ["u1", "u2"]
    assert members[0].display_name == "Alice"
    assert members[1].display_name == "bob"
    assert members[1].avatar_url == "https://a/bob.png"
    assert all(m.is_fetchable for m in members)


@pytest.mark.anyio
async def test_empty_directory(engine):
    await init_db(engine)
    directory = SqlMemberDirectory(build_session_maker(engine))

    assert await directory.list_members_with_external_username() == []


@pytest.mark.anyio
async def test_database_failure_is_directory_unavailable(engine):
    # No schema: the query fails with an OperationalError
    directory = SqlMemberDirectory(build_session_maker(engine))

    with pytest.raises(DirectoryUnavailableError):
        await directory.list_members_with_external_username()
