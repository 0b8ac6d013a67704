"""
Pytest fixtures for dcmaint API testing infrastructure.

This module provides:
1. Database fixtures (in-memory SQLite through aiosqlite)
2. Attachment store and change feed fixtures
3. Authentication fixtures (real JWTs for each role)
4. HTTP client fixtures
"""

import os
from collections.abc import AsyncGenerator
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set environment variables BEFORE any imports that might load settings
# This must happen at module level, not in fixtures, to run before test collection
os.environ.setdefault("DCMAINT_ENVIRONMENT", "testing")
os.environ.setdefault("DCMAINT_SECRET_KEY", "test-secret-key-for-testing-must-be-32-chars")
os.environ.setdefault("DCMAINT_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DCMAINT_REDIS_URL", "redis://localhost:6380/0")
os.environ.setdefault("DCMAINT_ADMIN_EMAILS", "admin@dcmaint.test")

from dcmaint.core.auth import UserPrincipal  # noqa: E402
from dcmaint.core.database import enable_sqlite_foreign_keys, get_db, reset_db_state  # noqa: E402
from dcmaint.core.pubsub import reset_change_feed  # noqa: E402
from dcmaint.core.security import create_access_token, get_password_hash  # noqa: E402
from dcmaint.models.enums import UserRole  # noqa: E402
from dcmaint.models.orm import Base, User  # noqa: E402
from dcmaint.services.attachment_store import (  # noqa: E402
    AttachmentStore,
    get_attachment_store,
    reset_attachment_store,
)

# Small sizes so multi-chunk, multi-batch uploads stay fast
TEST_CHUNK_SIZE = 64
TEST_BATCH_SIZE = 4

TEST_PASSWORD = "SecurePassword123!"


# ==================== STATE RESET ====================


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level singletons around every test."""
    reset_db_state()
    reset_change_feed()
    reset_attachment_store()
    yield
    reset_db_state()
    reset_change_feed()
    reset_attachment_store()


# ==================== DATABASE FIXTURES ====================


@pytest_asyncio.fixture
async def async_engine():
    """
    In-memory SQLite engine with the schema created.

    StaticPool keeps a single connection so every session sees the same
    in-memory database. Foreign keys are enforced as in production.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for test setup and assertions."""
    async with session_factory() as session:
        yield session


# ==================== STORE FIXTURES ====================


@pytest.fixture
def store(session_factory) -> AttachmentStore:
    """Attachment store with small chunks and batches."""
    return AttachmentStore(
        session_factory,
        chunk_size=TEST_CHUNK_SIZE,
        batch_size=TEST_BATCH_SIZE,
    )


# ==================== AUTH FIXTURES ====================


async def create_test_user(
    db: AsyncSession,
    email: str,
    role: UserRole | None = None,
    password: str = TEST_PASSWORD,
    is_active: bool = True,
) -> User:
    """Insert a user and commit."""
    user = User(
        email=email,
        name=email.split("@")[0].title(),
        hashed_password=get_password_hash(password),
        role=role,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def make_principal(role: UserRole, email: str | None = None) -> UserPrincipal:
    return UserPrincipal(
        user_id=uuid4(),
        email=email or f"{role.value}.session@dcmaint.test",
        role=role,
        name=role.value.title(),
    )


def auth_headers(principal: UserPrincipal) -> dict[str, str]:
    """Bearer headers carrying a real access token for the principal."""
    token = create_access_token(
        {
            "sub": str(principal.user_id),
            "email": principal.email,
            "name": principal.name,
            "role": principal.role.value,
        }
    )
    return {"Authorization": f"Bearer {token}"}


async def register_principal(db: AsyncSession, principal: UserPrincipal) -> User:
    """Insert the account behind a principal so active-user checks find it."""
    user = User(
        id=principal.user_id,
        email=principal.email,
        name=principal.name,
        role=principal.role,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
def admin_principal() -> UserPrincipal:
    return make_principal(UserRole.ADMIN)


@pytest.fixture
def engineer_principal() -> UserPrincipal:
    return make_principal(UserRole.ENGINEER)


@pytest.fixture
def standby_principal() -> UserPrincipal:
    return make_principal(UserRole.STANDBY_ENGINEER)


@pytest_asyncio.fixture
async def admin_headers(db_session, admin_principal) -> dict[str, str]:
    await register_principal(db_session, admin_principal)
    return auth_headers(admin_principal)


@pytest_asyncio.fixture
async def engineer_headers(db_session, engineer_principal) -> dict[str, str]:
    await register_principal(db_session, engineer_principal)
    return auth_headers(engineer_principal)


@pytest_asyncio.fixture
async def standby_headers(db_session, standby_principal) -> dict[str, str]:
    await register_principal(db_session, standby_principal)
    return auth_headers(standby_principal)


@pytest.fixture
def user_factory(db_session):
    """Factory fixture that inserts committed users."""

    async def _create(
        email: str,
        role: UserRole | None = None,
        password: str = TEST_PASSWORD,
        is_active: bool = True,
    ) -> User:
        return await create_test_user(db_session, email, role, password, is_active)

    return _create


@pytest.fixture
def headers_for():
    """Build bearer headers for an arbitrary principal."""
    return auth_headers


# ==================== CLIENT FIXTURES ====================


@pytest_asyncio.fixture
async def app(session_factory, store):
    """Application wired to the test database and store."""
    from dcmaint.main import app as fastapi_app

    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = _get_test_db
    fastapi_app.dependency_overrides[get_attachment_store] = lambda: store
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ==================== TEST DATA FIXTURES ====================


@pytest.fixture
def sample_pdf() -> bytes:
    """A small PDF-looking payload spanning several test chunks."""
    return b"%PDF-1.4\n" + bytes(range(256)) * 3 + b"\n%%EOF\n"


@pytest.fixture
def sample_metadata(admin_principal) -> dict[str, Any]:
    """Metadata fields for AttachmentCreate."""
    return {
        "file_name": "daily-report.pdf",
        "file_type": "application/pdf",
        "file_size": 0,
        "category": "Laporan Harian",
        "custom_category": None,
        "description": "Genset inspection",
        "uploaded_by": admin_principal.user_id,
        "uploaded_by_email": admin_principal.email,
    }


# ==================== MARKERS ====================


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, mocked dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite database)")
