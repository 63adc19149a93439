"""
Sync State Repository.

Key/value access to persisted sync markers.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from notesync.backend.models.sync_state import SyncStateEntry
from notesync.backend.repositories.base import BaseRepository


class SyncStateRepository(BaseRepository[SyncStateEntry]):
    """Repository for SyncStateEntry."""

    model = SyncStateEntry
    key_column = "key"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_value(self, key: str) -> str | None:
        entry = await self.get_by_id_or_none(key)
        return entry.value if entry else None

    async def set_value(self, key: str, value: str) -> None:
        entry = await self.get_by_id_or_none(key)
        if entry is None:
            self.session.add(SyncStateEntry(key=key, value=value))
        else:
            entry.value = value
        await self.session.flush()

    async def delete_value(self, key: str) -> None:
        entry = await self.get_by_id_or_none(key)
        if entry is not None:
            await self.session.delete(entry)
            await self.session.flush()
