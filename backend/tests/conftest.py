from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from expensehub.db import get_session
from expensehub.main import app
from expensehub.models import SQLModel
from expensehub.models.enums import UserRole
from expensehub.schemas.auth import AuthContext

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A fresh in-memory database per test, shared by every connection of the engine."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


@pytest.fixture
def employee() -> AuthContext:
    return AuthContext(user_id=uuid.uuid4(), role=UserRole.EMPLOYEE)


@pytest.fixture
def other_employee() -> AuthContext:
    return AuthContext(user_id=uuid.uuid4(), role=UserRole.EMPLOYEE)


@pytest.fixture
def vendor() -> AuthContext:
    return AuthContext(user_id=uuid.uuid4(), role=UserRole.VENDOR)


@pytest.fixture
def other_vendor() -> AuthContext:
    return AuthContext(user_id=uuid.uuid4(), role=UserRole.VENDOR)


@pytest.fixture
def manager() -> AuthContext:
    return AuthContext(user_id=uuid.uuid4(), role=UserRole.MANAGER)


@pytest.fixture
def admin() -> AuthContext:
    return AuthContext(user_id=uuid.uuid4(), role=UserRole.ADMIN)
