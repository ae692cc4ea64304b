"""
Shared test fixtures.

Tests run against an in-memory SQLite database (aiosqlite) created fresh for
every test. API tests drive the FastAPI app through httpx's ASGI transport.
"""

import os

os.environ["PYTHON_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RESEND_API_KEY"] = ""

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import schoolhub.modules  # noqa: E402, F401
from schoolhub.core.auth import AdminScope, TokenContext  # noqa: E402
from schoolhub.core.database import Base, get_db  # noqa: E402
from schoolhub.core.rate_limit import reset_memory_store  # noqa: E402
from schoolhub.core.security import hash_password, issue_short_token  # noqa: E402
from schoolhub.main import app  # noqa: E402
from schoolhub.modules.schools.repository import SchoolRepository  # noqa: E402
from schoolhub.modules.users.models import User, UserRole  # noqa: E402
from schoolhub.modules.users.repository import UserRepository  # noqa: E402

TEST_PASSWORD = "Password123!"


@pytest_asyncio.fixture
async def session_maker():
    """Fresh in-memory database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    """HTTP client bound to the app; every request gets its own session."""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_rate_limits():
    reset_memory_store()
    yield
    reset_memory_store()


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.incr = AsyncMock(return_value=1)
    redis.expire = AsyncMock()
    redis.ttl = AsyncMock(return_value=300)
    return redis


# ============================================
# Data factories
# ============================================


@pytest_asyncio.fixture
async def superadmin(db_session) -> User:
    return await UserRepository.create(
        db_session,
        username="root",
        email="root@schoolhub.dev",
        password_hash=hash_password(TEST_PASSWORD),
        role=UserRole.SUPERADMIN,
    )


@pytest_asyncio.fixture
async def school(db_session, superadmin):
    return await SchoolRepository.create(
        db_session,
        name="north high",
        address="1 north road",
        capacity=500,
        created_by=superadmin.id,
    )


@pytest_asyncio.fixture
async def other_school(db_session, superadmin):
    return await SchoolRepository.create(
        db_session,
        name="south high",
        address="9 south road",
        capacity=300,
        created_by=superadmin.id,
    )


@pytest_asyncio.fixture
async def admin(db_session, school) -> User:
    return await UserRepository.create(
        db_session,
        username="alice",
        email="alice@schoolhub.dev",
        password_hash=hash_password(TEST_PASSWORD),
        role=UserRole.ADMIN,
        school_ids=[school.id],
    )


# ============================================
# Tokens and scopes
# ============================================


def short_token_for(user: User) -> str:
    return issue_short_token(
        user_id=user.id,
        user_key=user.id,
        session_id="test-session",
        device_id="test-device",
        role=user.role.value,
        school_ids=user.school_ids,
    )


def token_context_for(user: User) -> TokenContext:
    return TokenContext(
        user_id=user.id,
        user_key=user.id,
        role_claim=user.role.value,
        school_ids=tuple(user.school_ids),
    )


@pytest.fixture
def superadmin_headers(superadmin) -> dict[str, str]:
    return {"token": short_token_for(superadmin)}


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return {"token": short_token_for(admin)}


@pytest.fixture
def superadmin_token(superadmin) -> TokenContext:
    return token_context_for(superadmin)


@pytest.fixture
def scope(school, superadmin_token) -> AdminScope:
    """Admin scope on ``school``."""
    return AdminScope(school_id=school.id, token=superadmin_token)


@pytest.fixture
def other_scope(other_school, superadmin_token) -> AdminScope:
    return AdminScope(school_id=other_school.id, token=superadmin_token)


@pytest.fixture
def headers_for():
    """Build request headers carrying a short token for any user."""

    def _headers(user: User) -> dict[str, str]:
        return {"token": short_token_for(user)}

    return _headers
