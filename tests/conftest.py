"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Test Database Configuration:
    Tests use an in-memory SQLite database through aiosqlite. Every test gets
    a fresh engine, so no test can see another test's rows.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from notesync.backend.models import note as _note_model  # noqa: F401
from notesync.backend.models import sync_state as _state_model  # noqa: F401
from notesync.backend.models.base import Base
from notesync.backend.schemas.note import Note

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


# =============================================================================
# Database Engine Fixtures
# =============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create an in-memory test database engine with all tables.

    StaticPool keeps a single connection so the in-memory database
    survives across sessions.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the test engine."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# =============================================================================
# Database Session Fixtures
# =============================================================================


@pytest.fixture
async def db_session(
    db_session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a database session for a single test.

    Usage:
        async def test_list_notes(db_session: AsyncSession):
            repo = NoteRepository(db_session)
            assert await repo.list_notes() == []
    """
    async with db_session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Note Fixtures
# =============================================================================


def _make_note(note_id: str, minutes: int = 0, **fields) -> Note:
    fields.setdefault("title", f"Note {note_id}")
    fields.setdefault("content", f"# Note {note_id}")
    return Note(
        id=note_id,
        created_at=BASE_TIME,
        updated_at=BASE_TIME + timedelta(minutes=minutes),
        **fields,
    )


@pytest.fixture
def make_note():
    """
    Factory for notes whose updated_at is BASE_TIME plus the given minutes.

    Usage:
        def test_newer_wins(make_note):
            older = make_note("a", minutes=1)
            newer = make_note("a", minutes=5, content="edited")
    """
    return _make_note


# =============================================================================
# Utility Fixtures
# =============================================================================


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"
