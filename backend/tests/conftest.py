"""
Centralized Test Configuration.
"""

import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.tests.factories import create_user, create_captain

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# In-memory Redis double for the sweeper lock (expiry is not simulated)
class MockRedis:
    def __init__(self):
        self.store = {}

    async def set(self, key, value, ex=None, px=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
def apply_overrides():
    """Route the app's database dependency to the test session."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

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


@pytest.fixture
async def guest(db_session):
    return await create_user(db_session, "guest@example.com")


@pytest.fixture
async def captains(db_session):
    """Three captains created one minute apart, each with one live R1 boat."""
    base = datetime.utcnow() - timedelta(days=1)
    return [
        await create_captain(db_session, f"c{i}@example.com", created_at=base + timedelta(minutes=i))
        for i in (1, 2, 3)
    ]


@pytest.fixture
def session_factory():
    """Session factory bound to the test database, for code that opens its own sessions."""
    return TestingSessionLocal
