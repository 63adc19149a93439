"""
SQL Stores.

SQLAlchemy-backed implementations of the storage interfaces. Each call opens
its own session and commits, so one put_all is one transaction: readers see
either the old collection or the new one.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notesync.backend.core.exceptions import DatabaseError
from notesync.backend.core.logging import get_logger
from notesync.backend.repositories.note import NoteRepository
from notesync.backend.repositories.sync_state import SyncStateRepository
from notesync.backend.schemas.note import Note
from notesync.backend.storage.base import NoteStore, SyncStateStore

logger = get_logger(__name__)


class SqlNoteStore(NoteStore):
    """Note collection stored in the notes table."""

    backend_name = "sql"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__()
        self._session_factory = session_factory

    async def load_all(self) -> list[Note]:
        try:
            async with self._session_factory() as session:
                return await NoteRepository(session).list_notes()
        except SQLAlchemyError as e:
            logger.error("Failed to load notes", extra={"error": str(e)})
            raise DatabaseError("Failed to load notes") from e

    async def put_all(self, notes: list[Note]) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await NoteRepository(session).replace_all(notes)
        except SQLAlchemyError as e:
            logger.error("Failed to save notes", extra={"count": len(notes), "error": str(e)})
            raise DatabaseError("Failed to save notes") from e
        logger.debug("Notes saved", extra={"count": len(notes), "backend": self.backend_name})


class SqlSyncStateStore(SyncStateStore):
    """Markers stored in the sync_state table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> str | None:
        try:
            async with self._session_factory() as session:
                return await SyncStateRepository(session).get_value(key)
        except SQLAlchemyError as e:
            logger.error("Failed to read sync state", extra={"key": key, "error": str(e)})
            raise DatabaseError(f"Failed to read sync state: {key}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await SyncStateRepository(session).set_value(key, value)
        except SQLAlchemyError as e:
            logger.error("Failed to save sync state", extra={"key": key, "error": str(e)})
            raise DatabaseError(f"Failed to save sync state: {key}") from e

    async def delete(self, key: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await SyncStateRepository(session).delete_value(key)
        except SQLAlchemyError as e:
            logger.error("Failed to delete sync state", extra={"key": key, "error": str(e)})
            raise DatabaseError(f"Failed to delete sync state: {key}") from e
