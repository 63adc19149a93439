"""
In-Memory Stores.

Process-local stores used by tests and by secondary contexts that only
forward sync requests. Nothing survives a restart.
"""

from notesync.backend.schemas.note import Note
from notesync.backend.storage.base import NoteStore, SyncStateStore


class InMemoryNoteStore(NoteStore):
    """Note collection kept in a dict keyed by id."""

    backend_name = "memory"

    def __init__(self, notes: list[Note] | None = None) -> None:
        super().__init__()
        self._notes: dict[str, Note] = {note.id: note for note in notes or []}
        self.put_count = 0

    async def load_all(self) -> list[Note]:
        return list(self._notes.values())

    async def put_all(self, notes: list[Note]) -> None:
        self._notes = {note.id: note for note in notes}
        self.put_count += 1


class InMemorySyncStateStore(SyncStateStore):
    """Markers kept in a plain dict."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(values or {})

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value

    async def delete(self, key: str) -> None:
        self.values.pop(key, None)
