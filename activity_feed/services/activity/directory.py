"""Member directory access.

The directory is owned elsewhere; this module only lists members that have a
GitHub username. Any database failure surfaces as DirectoryUnavailableError
so a refresh can be aborted without touching the cached feed.
"""

import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from activity_feed.models.member import MemberRecord
from activity_feed.services.activity.exceptions import DirectoryUnavailableError
from activity_feed.services.activity.types import Member

logger = logging.getLogger(__name__)


class MemberDirectory(Protocol):
    async def list_members_with_external_username(self) -> list[Member]: ...


class SqlMemberDirectory:
    """Reads members from the `users` table."""

    def __init__(self, session_maker: sessionmaker) -> None:  # type: ignore[type-arg]
        self.session_maker = session_maker

    async def list_members_with_external_username(self) -> list[Member]:
        statement = (
            select(MemberRecord)
            .where(MemberRecord.github_username.is_not(None))  # type: ignore[union-attr]
            .order_by(MemberRecord.created_at, MemberRecord.id)
        )

        try:
            session: AsyncSession
            async with self.session_maker() as session:
                result = await session.execute(statement)
                records = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Member directory unavailable: {e}")
            raise DirectoryUnavailableError(str(e)) from e

        return [
            Member(
                id=record.id,
                display_name=record.name or record.github_username or "Anonymous",
                external_username=record.github_username.strip(),
                avatar_url=record.avatar_url,
            )
            for record in records
            if record.github_username and record.github_username.strip()
        ]
