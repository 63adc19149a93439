"""
Base Repository.

Base class for all repositories with common read operations.
"""

from typing import Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from notesync.backend.core.logging import get_logger
from notesync.backend.models.base import Base

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common operations.

    Subclasses set the model class and its primary key column name:

        class NoteRepository(BaseRepository[NoteRecord]):
            model = NoteRecord
    """

    model: type[ModelType]
    key_column: str = "id"

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def _key(self):
        return getattr(self.model, self.key_column)

    async def get_by_id_or_none(self, id: str) -> ModelType | None:
        """Get a single record by primary key, returning None if not found."""
        result = await self.session.execute(
            select(self.model).where(self._key == id)
        )
        return result.scalar_one_or_none()

    async def delete_all(self) -> None:
        """Delete every record of this model."""
        await self.session.execute(delete(self.model))
        await self.session.flush()
