"""
Centralized Test Configuration.

In-memory SQLite per test, an in-process Redis stand-in for the revoked-token
store, and bearer headers for each finance role.
"""

import time

import pytest
from httpx import AsyncClient, ASGITransport
from cogniflow.app.main import app
from cogniflow.app.db.session import get_db, Base
from cogniflow.app.core.redis_client import get_redis
from cogniflow.tests.helpers import engine, TestingSessionLocal, create_user, token_headers
from cogniflow.app.models.enums import UserRole
import cogniflow.app.core.redis_client as redis_client_module


class MockRedis:
    """Implements the handful of async Redis calls the app makes, with expiry."""

    def __init__(self):
        self.store = {}
        self.expires = {}

    def _expire_stale(self):
        now = time.monotonic()
        for key in [k for k, deadline in self.expires.items() if deadline <= now]:
            self.store.pop(key, None)
            self.expires.pop(key, None)

    async def ping(self):
        return True

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.expires[key] = time.monotonic() + int(ttl)
        return True

    async def exists(self, key):
        self._expire_stale()
        return 1 if key in self.store else 0

    async def ttl(self, key):
        self._expire_stale()
        if key not in self.store:
            return -2
        return int(self.expires[key] - time.monotonic())

    async def flushdb(self):
        self.store = {}
        self.expires = {}

    async def aclose(self):
        await self.flushdb()


@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Route the app at the test database and the mock Redis for the whole session."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client

@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session

# Tokens per role
@pytest.fixture
async def admin_headers(db_session):
    return token_headers(await create_user(db_session, "admin", UserRole.ADMIN))

@pytest.fixture
async def accountant_headers(db_session):
    return token_headers(await create_user(db_session, "accountant", UserRole.ACCOUNTANT))

@pytest.fixture
async def manager_headers(db_session):
    return token_headers(await create_user(db_session, "manager", UserRole.MANAGER))
