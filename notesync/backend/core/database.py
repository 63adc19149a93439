"""
Database Configuration.

SQLAlchemy async engine and session management for the local SQLite store.
Uses lazy initialization so importing the package never touches the disk.
"""

from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from notesync.backend.core.logging import get_logger

logger = get_logger(__name__)

# Module-level state for lazy initialization
_engine: Any = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def _create_engine() -> Any:
    """Create async SQLAlchemy engine, making sure the database directory exists."""
    from notesync.backend.core.config import get_app_config, get_database_url

    url = get_database_url()
    Path(url.removeprefix("sqlite+aiosqlite:///")).parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(
        url,
        echo=get_app_config().database.echo,
    )
    logger.debug("Database engine created", extra={"url": url})
    return engine


def get_engine() -> Any:
    """
    Get the database engine, creating it on first use.

    Returns:
        SQLAlchemy async engine instance
    """
    global _engine
    if _engine is None:
        _engine = _create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the session factory, creating it on first use.

    Returns:
        SQLAlchemy async session factory
    """
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _async_session_factory


async def init_database() -> None:
    """Create the notes and sync_state tables if they do not exist yet."""
    from notesync.backend.models import note as _note_model  # noqa: F401
    from notesync.backend.models import sync_state as _state_model  # noqa: F401
    from notesync.backend.models.base import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("Database tables ensured")


async def dispose_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None
