"""
Storage Interfaces.

Contracts for the two pieces of local state the sync engine touches:

    NoteStore       - the whole note collection, read and rewritten wholesale
    SyncStateStore  - small string markers that survive restarts

Every read-modify-write of the note collection must run inside
`async with store.exclusive():` so local edits and merge results never
interleave.
"""

import asyncio
from abc import ABC, abstractmethod

from notesync.backend.schemas.note import Note


class NoteStore(ABC):
    """Keyed collection of notes, tombstones included."""

    backend_name: str = "abstract"

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    def exclusive(self) -> asyncio.Lock:
        """Lock guarding one read-modify-write of the whole collection."""
        return self._lock

    @abstractmethod
    async def load_all(self) -> list[Note]:
        """Return every stored note, tombstones included."""
        ...

    @abstractmethod
    async def put_all(self, notes: list[Note]) -> None:
        """Replace the stored collection with exactly these notes."""
        ...

    async def close(self) -> None:
        """Release any underlying resources."""
        return None


class SyncStateStore(ABC):
    """Persisted key/value markers."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...
