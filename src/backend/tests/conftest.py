"""
Pytest fixtures for Sliich backend tests.
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ANALYTICS_TIMEZONE", "UTC")
os.environ.setdefault("WEEK_START_DAY", "6")

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with the full schema, per test."""
    import models  # noqa: F401
    from db.base import Base
    from db.session import create_engine

    test_engine = create_engine(TEST_DATABASE_URL)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    from db.session import create_session_factory

    return create_session_factory(engine)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """Create mock database session."""
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    return session


# =============================================================================
# Fan-out
# =============================================================================


@pytest.fixture
def fanout() -> Any:
    """Isolated fan-out hub (the module-level one is shared by the app)."""
    from services.fanout import MessageFanout

    return MessageFanout(queue_size=10)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_profile(db_session: AsyncSession) -> Callable[..., Awaitable[Any]]:
    """Insert a profile and commit it."""
    from models.profile import Profile

    async def _make_profile(
        profile_id: str,
        username: Optional[str] = None,
        allow_anonymous_messages: bool = True,
    ) -> Profile:
        profile = Profile(
            id=profile_id,
            username=username or f"user_{profile_id}",
            allow_anonymous_messages=allow_anonymous_messages,
        )
        db_session.add(profile)
        await db_session.commit()
        return profile

    return _make_profile


@pytest.fixture
def make_message(db_session: AsyncSession) -> Callable[..., Awaitable[Any]]:
    """Insert a message with an explicit timestamp."""
    from models.message import Message

    async def _make_message(
        recipient_id: str,
        created_at: datetime,
        content: str = "hello",
    ) -> Message:
        message = Message(recipient_id=recipient_id, content=content, created_at=created_at)
        db_session.add(message)
        await db_session.commit()
        return message

    return _make_message


@pytest.fixture
def sample_poll_data() -> dict[str, Any]:
    """Sample poll payload."""
    return {
        "question": "Which feature should ship next?",
        "options": ["Dark mode", "Reactions", "Threads"],
    }


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
async def app(session_factory: async_sessionmaker[AsyncSession], fanout: Any) -> Any:
    """FastAPI application wired to the test database and fan-out hub."""
    from api.deps import get_db_session_factory
    from db.session import get_db
    from main import app as fastapi_app
    from services.fanout import get_fanout

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_db_session_factory] = lambda: session_factory
    fastapi_app.dependency_overrides[get_fanout] = lambda: fanout
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Origin": "http://localhost:3000"},
    ) as ac:
        yield ac


@pytest.fixture
def token_for() -> Callable[[str], str]:
    from core.security import create_access_token

    return create_access_token


@pytest.fixture
def auth_headers_for(token_for: Callable[[str], str]) -> Callable[[str], dict[str, str]]:
    """Generate authentication headers for a profile id."""

    def _headers(profile_id: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token_for(profile_id)}",
            "Content-Type": "application/json",
        }

    return _headers
