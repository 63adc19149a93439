"""
Local storage backends.

select_storage() checks the runtime once at start-up and returns the
note store and marker store pair the rest of the application uses.
"""

from dataclasses import dataclass
from pathlib import Path

from notesync.backend.core.logging import get_logger, log_with_source
from notesync.backend.storage.base import NoteStore, SyncStateStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class Storage:
    notes: NoteStore
    state: SyncStateStore


def detect_backend(configured: str, json_path: Path) -> str:
    """
    Resolve the configured backend name.

    "auto" selects the JSON document when a notes.json written by the
    desktop app already exists, and SQLite otherwise.
    """
    if configured != "auto":
        return configured
    return "json" if json_path.exists() else "sql"


async def select_storage() -> Storage:
    """Build the storage pair for this process from storage.yaml."""
    from notesync.backend.core.config import find_project_root, get_app_config

    config = get_app_config().storage
    json_path = Path(config.json_path)
    if not json_path.is_absolute():
        json_path = find_project_root() / json_path

    backend = detect_backend(config.backend, json_path)

    if backend == "json":
        from notesync.backend.storage.json_file import JsonFileNoteStore, JsonFileSyncStateStore

        storage = Storage(
            notes=JsonFileNoteStore(json_path),
            state=JsonFileSyncStateStore(json_path.with_name("sync_state.json")),
        )
    else:
        from notesync.backend.core.database import get_session_factory, init_database
        from notesync.backend.storage.sql import SqlNoteStore, SqlSyncStateStore

        await init_database()
        factory = get_session_factory()
        storage = Storage(notes=SqlNoteStore(factory), state=SqlSyncStateStore(factory))

    log_with_source(logger, "storage", "info", "Storage selected", backend=backend, path=str(json_path))
    return storage


__all__ = ["NoteStore", "Storage", "SyncStateStore", "detect_backend", "select_storage"]
