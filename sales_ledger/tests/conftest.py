"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from sales_ledger.app.main import app
from sales_ledger.app.db.session import get_db, Base
from sales_ledger.app.core.redis_client import get_redis
from sales_ledger.app.services.email_service import get_email_service
from sales_ledger.tests.helpers import (
    ADMIN_SUB, CUSTOMER_SUB, OTHER_CUSTOMER_SUB, FakeEmailService, auth_headers, make_token
)

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def apply_overrides(session_factory, mock_redis, email_service):
    """Route the app's dependencies to the per-test database, Redis and mail fakes."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_email_service] = lambda: email_service
    yield

    app.dependency_overrides = {}


@pytest.fixture
async def client(apply_overrides):
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def admin_headers():
    return auth_headers(make_token(ADMIN_SUB, groups=["Admin"], username="admin"))


@pytest.fixture
def customer_headers():
    return auth_headers(make_token(CUSTOMER_SUB, username="acme-ltd"))


@pytest.fixture
def other_customer_headers():
    return auth_headers(make_token(OTHER_CUSTOMER_SUB, username="globex"))
