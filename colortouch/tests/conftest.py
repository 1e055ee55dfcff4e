"""Async test fixtures for ColorTouch tests using in-memory SQLite."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from colortouch.auth import AuthUser, issue_session_token
from colortouch.config import settings
from colortouch.database import get_db
from colortouch.models.base import Base
from colortouch.sync.mirror import LocalMirror
from colortouch.sync.queue import ChangeQueue
from colortouch.sync.store import LocalStore

TEST_USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture(autouse=True)
def auth_secret(monkeypatch):
    monkeypatch.setattr(settings, "auth_secret", "test-secret")
    return "test-secret"


@pytest.fixture
def auth_headers():
    token = issue_session_token(settings, AuthUser(user_id=TEST_USER_ID, email="jane@test.com"))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_token():
    return issue_session_token(settings, AuthUser(user_id=TEST_USER_ID))


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine):
    """HTTPX async test client against the ColorTouch app."""
    from colortouch.app import app

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def local_store():
    store = LocalStore("sqlite+aiosqlite:///:memory:")
    await store.init()
    yield store
    await store.dispose()


@pytest.fixture
def queue(local_store):
    return ChangeQueue(local_store)


@pytest.fixture
def mirror(local_store):
    return LocalMirror(local_store)
