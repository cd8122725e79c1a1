"""Shared fixtures: a throwaway SQLite database per test and an ASGI client."""

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from readshelf.core.security import create_access_token
from readshelf.domain.entities import User
from readshelf.infrastructure.database.connection import build_engine, get_db, init_db
from readshelf.infrastructure.database.repository import UserRepository

DEFAULT_SHELF_NAME = "All Books"


@pytest.fixture
async def engine(tmp_path):
    db_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'readshelf.db'}")
    await init_db(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as db_session:
        yield db_session


@pytest.fixture
def make_user(session_maker):
    """Register a profile (and its default shelf) directly through the store."""

    async def _make_user(user_id: str) -> User:
        async with session_maker() as db_session:
            return await UserRepository(db_session).create_with_default_shelf(
                User(id=user_id, username=f"{user_id}-name", email=f"{user_id}@example.com"),
                DEFAULT_SHELF_NAME,
            )

    return _make_user


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    from readshelf.main import app

    async def override_get_db():
        async with session_maker() as db_session:
            yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _auth_headers
