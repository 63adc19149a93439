"""
Note Repository.

Data access layer for the local notes table. The sync engine reads and
rewrites the collection wholesale, so the repository works on whole lists.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notesync.backend.models.note import NoteRecord
from notesync.backend.repositories.base import BaseRepository
from notesync.backend.schemas.note import Note


class NoteRepository(BaseRepository[NoteRecord]):
    """
    Repository for NoteRecord.

    Converts between table rows and Note schemas so callers never
    handle ORM instances.
    """

    model = NoteRecord

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_notes(self) -> list[Note]:
        """Every stored note, tombstones included, oldest first."""
        result = await self.session.execute(
            select(NoteRecord).order_by(NoteRecord.created_at, NoteRecord.id)
        )
        return [Note.model_validate(row) for row in result.scalars().all()]

    async def replace_all(self, notes: list[Note]) -> None:
        """
        Replace the stored collection with the given notes.

        Runs inside the caller's transaction; nothing is visible to other
        sessions until it commits.
        """
        await self.delete_all()
        self.session.add_all([_to_record(note) for note in notes])
        await self.session.flush()


def _to_record(note: Note) -> NoteRecord:
    return NoteRecord(
        id=note.id,
        title=note.title,
        content=note.content,
        created_at=note.created_at,
        updated_at=note.updated_at,
        color=note.color,
        deleted=note.deleted,
        window_state=note.window_state.model_dump() if note.window_state else None,
    )
