from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel


def build_engine(database_url: str) -> AsyncEngine:
    """Create the engine for the member directory database.

    Pool sizing only applies to server databases; SQLite uses its own pool.
    """
    kwargs: dict[str, object] = {
        "echo": False,
        "future": True,
        "pool_pre_ping": True,  # Detects stale connections before use
    }
    if not database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=5,
            max_overflow=5,
            pool_recycle=300,
            pool_timeout=10,  # Fail fast: a slow directory aborts the refresh, not the feed
        )
    return create_async_engine(database_url, **kwargs)


def build_session_maker(engine: AsyncEngine) -> sessionmaker:  # type: ignore[type-arg]
    return sessionmaker(  # type: ignore[call-overload]
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create the directory table. Only used in debug mode for a local SQLite file."""
    from activity_feed.models import MemberRecord  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
