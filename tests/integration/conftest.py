"""
Integration Test Fixtures.

Fixtures for integration tests: real SQLite stores on the in-memory test
engine, real JSON files under tmp_path, and several "devices" syncing
through one shared remote.
"""

from dataclasses import dataclass
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notesync.backend.events.channel import InProcessSignalChannel
from notesync.backend.remote.memory import InMemoryBlobChannel, InMemoryBlobStore
from notesync.backend.services.note import NoteService
from notesync.backend.storage.json_file import JsonFileNoteStore, JsonFileSyncStateStore
from notesync.backend.storage.memory import InMemoryNoteStore, InMemorySyncStateStore
from notesync.backend.storage.sql import SqlNoteStore, SqlSyncStateStore
from notesync.backend.sync.orchestrator import ExecutionContext, SyncOrchestrator
from notesync.backend.sync.prompt import FixedAnswerPrompt
from notesync.backend.sync.session import SyncSession


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def sql_note_store(db_session_factory: async_sessionmaker[AsyncSession]) -> SqlNoteStore:
    return SqlNoteStore(db_session_factory)


@pytest.fixture
def sql_state_store(db_session_factory: async_sessionmaker[AsyncSession]) -> SqlSyncStateStore:
    return SqlSyncStateStore(db_session_factory)


@pytest.fixture
def notes_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "notes.json"


@pytest.fixture
def json_note_store(notes_path: Path) -> JsonFileNoteStore:
    return JsonFileNoteStore(notes_path)


@pytest.fixture
def json_state_store(notes_path: Path) -> JsonFileSyncStateStore:
    return JsonFileSyncStateStore(notes_path.with_name("sync_state.json"))


# =============================================================================
# Multi-Device Fixtures
# =============================================================================


@dataclass
class Device:
    """One installation: its own local stores, sharing the remote with others."""

    name: str
    store: InMemoryNoteStore
    session: SyncSession
    channel: InMemoryBlobChannel
    prompt: FixedAnswerPrompt
    orchestrator: SyncOrchestrator
    notes: NoteService

    async def sync(self):
        return await self.orchestrator.run_cycle()

    async def live_notes(self) -> dict[str, str]:
        return {note.id: note.content for note in await self.notes.get_notes()}


@pytest.fixture
def shared_remote() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def make_device(shared_remote: InMemoryBlobStore):
    """Factory for devices signed in to the shared remote."""

    def _make(name: str, account: str = "alice@example.com", switch_on_change: bool = False) -> Device:
        store = InMemoryNoteStore()
        session = SyncSession(InMemorySyncStateStore())
        channel = InMemoryBlobChannel(shared_remote, account=account)
        prompt = FixedAnswerPrompt(switch_on_change)
        orchestrator = SyncOrchestrator(
            store=store,
            channel=channel,
            session=session,
            prompt=prompt,
            signals=InProcessSignalChannel(),
            context=ExecutionContext(name=name, is_main=True),
            remote_timeout=1.0,
        )
        return Device(
            name=name,
            store=store,
            session=session,
            channel=channel,
            prompt=prompt,
            orchestrator=orchestrator,
            notes=NoteService(store),
        )

    return _make
