"""Database connection and session management."""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from readshelf.core.config import settings
from readshelf.infrastructure.database.models import Base


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine.

    SQLite does not enforce foreign keys unless asked to on every connection,
    and the shelf/library cascades depend on them.
    """
    kwargs: dict = {"echo": echo, "future": True}
    if database_url.startswith("sqlite"):
        new_engine = create_async_engine(database_url, **kwargs)

        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return new_engine

    kwargs["pool_timeout"] = settings.database_pool_timeout
    kwargs["pool_pre_ping"] = True
    return create_async_engine(database_url, **kwargs)


engine = build_engine(settings.database_url, echo=settings.database_echo)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with async_session_maker() as session:
        yield session


async def init_db(target: AsyncEngine | None = None) -> None:
    """Initialize database tables."""
    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
