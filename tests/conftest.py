"""
Test Configuration and Utilities

Fixtures for the account and support ticket tests:
- Fresh in-memory SQLite database per test
- User factory and caller contexts
- HTTP client bound to the test database
"""

import os

# Settings are read at import time, so the environment comes first
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests-only-0123456789")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TESTING"] = "true"
os.environ["EMAIL_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import httpx
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from database.models import Base, User
from utils.auth import CallerContext, create_session_token
import utils.auth.password as password_module
from utils.auth.password import hash_password_sync

# Cheap hashes keep the suite fast; the algorithm is unchanged
password_module.BCRYPT_ROUNDS = 4

DEFAULT_PASSWORD = "secret123"


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
async def test_db_engine():
    """In-memory SQLite engine with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_db_engine):
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_session(session_factory):
    """Database session for calling operations directly."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def make_user(session_factory):
    """Factory inserting a user straight into the database."""
    async def _make_user(
        email: str,
        name: str = "Test User",
        password: str = DEFAULT_PASSWORD,
        is_admin: bool = False,
    ) -> User:
        async with session_factory() as session:
            user = User(
                email=email,
                name=name,
                password_hash=hash_password_sync(password),
                is_admin=is_admin,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make_user


def caller_for(user: User) -> CallerContext:
    return CallerContext(
        user_id=user.id,
        email=user.email,
        name=user.name,
        is_admin=bool(user.is_admin),
    )


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_session_token(user.id, user.email)}"}


@pytest.fixture
async def alice(make_user):
    return await make_user("alice@example.com", name="Alice")


@pytest.fixture
async def bob(make_user):
    return await make_user("bob@example.com", name="Bob")


@pytest.fixture
async def admin(make_user):
    return await make_user("admin@example.com", name="Admin", is_admin=True)


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
async def client(session_factory):
    """HTTP client for the app, sharing the test database."""
    from api.app import app
    from database.core.async_connection import get_session

    async def _get_test_session():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_test_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
