"""
JSON File Stores.

Single-document stores compatible with the desktop app's notes.json
({"notes": [...]}) plus a sibling sync_state.json for markers.

Writes go to a temporary file that is then renamed over the target, so a
crash mid-write leaves the previous document intact. File I/O runs in a
worker thread to keep the event loop responsive.
"""

import asyncio
import json
import os
from pathlib import Path

from pydantic import BaseModel, ValidationError

from notesync.backend.core.exceptions import DatabaseError
from notesync.backend.core.logging import get_logger
from notesync.backend.schemas.note import Note
from notesync.backend.storage.base import NoteStore, SyncStateStore

logger = get_logger(__name__)


class NotesDocument(BaseModel):
    notes: list[Note] = []


def _write_atomic(path: Path, data: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(data, encoding="utf-8")
    os.replace(tmp_path, path)


def _read_text(path: Path) -> str | None:
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8")


class JsonFileNoteStore(NoteStore):
    """Note collection stored in one JSON document."""

    backend_name = "json"

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path)

    async def load_all(self) -> list[Note]:
        raw = await asyncio.to_thread(_read_text, self.path)
        if raw is None or not raw.strip():
            return []
        try:
            return NotesDocument.model_validate_json(raw).notes
        except ValidationError as e:
            logger.error("Notes file is corrupt", extra={"path": str(self.path), "error": str(e)})
            raise DatabaseError(f"Notes file is corrupt: {self.path}") from e

    async def put_all(self, notes: list[Note]) -> None:
        document = NotesDocument(notes=notes).model_dump_json(indent=2, exclude_none=True)
        try:
            await asyncio.to_thread(_write_atomic, self.path, document)
        except OSError as e:
            logger.error("Failed to write notes file", extra={"path": str(self.path), "error": str(e)})
            raise DatabaseError(f"Failed to write notes file: {self.path}") from e
        logger.debug("Notes saved", extra={"count": len(notes), "backend": self.backend_name})


class JsonFileSyncStateStore(SyncStateStore):
    """Markers stored in a flat JSON object."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def _load(self) -> dict[str, str]:
        raw = await asyncio.to_thread(_read_text, self.path)
        if raw is None or not raw.strip():
            return {}
        try:
            values = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Sync state file is corrupt", extra={"path": str(self.path), "error": str(e)})
            raise DatabaseError(f"Sync state file is corrupt: {self.path}") from e
        if not isinstance(values, dict):
            raise DatabaseError(f"Sync state file is corrupt: {self.path}")
        return values

    async def _save(self, values: dict[str, str]) -> None:
        try:
            await asyncio.to_thread(_write_atomic, self.path, json.dumps(values, indent=2))
        except OSError as e:
            logger.error("Failed to write sync state file", extra={"path": str(self.path), "error": str(e)})
            raise DatabaseError(f"Failed to write sync state file: {self.path}") from e

    async def get(self, key: str) -> str | None:
        return (await self._load()).get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            values = await self._load()
            values[key] = value
            await self._save(values)

    async def delete(self, key: str) -> None:
        async with self._lock:
            values = await self._load()
            if values.pop(key, None) is not None:
                await self._save(values)
