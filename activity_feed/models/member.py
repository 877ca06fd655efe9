from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class MemberRecord(SQLModel, table=True):
    """
    Read model of the community user directory.

    The table is owned by the directory service; this service only reads the
    columns it needs and never writes.
    """

    __tablename__ = "users"

    id: str = Field(primary_key=True, max_length=64)
    name: str | None = Field(default=None, max_length=255)
    github_username: str | None = Field(default=None, max_length=255, index=True)
    avatar_url: str | None = Field(default=None, max_length=500)
    created_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[call-overload]
    )
