"""
Integration Tests for the SQLite Stores.

Runs the SQL note and marker stores, and the repositories under them,
against the in-memory aiosqlite engine from the root conftest.
"""

from datetime import datetime

import pytest

from notesync.backend.core.exceptions import DatabaseError
from notesync.backend.models.sync_state import SyncStateEntry
from notesync.backend.repositories.note import NoteRepository
from notesync.backend.repositories.sync_state import SyncStateRepository
from notesync.backend.schemas.note import WindowState


class TestSqlNoteStore:
    """Whole-collection reads and writes."""

    @pytest.mark.asyncio
    async def test_empty_store(self, sql_note_store):
        assert await sql_note_store.load_all() == []

    @pytest.mark.asyncio
    async def test_put_all_then_load_all(self, sql_note_store, make_note):
        notes = [
            make_note("a", minutes=3, window_state=WindowState(x=5, y=6, width=300, height=400)),
            make_note("b", deleted=True),
        ]

        await sql_note_store.put_all(notes)

        assert await sql_note_store.load_all() == notes

    @pytest.mark.asyncio
    async def test_put_all_replaces_collection(self, sql_note_store, make_note):
        await sql_note_store.put_all([make_note("a"), make_note("b")])

        await sql_note_store.put_all([make_note("b", minutes=1, content="edited")])

        stored = await sql_note_store.load_all()
        assert [(n.id, n.content) for n in stored] == [("b", "edited")]

    @pytest.mark.asyncio
    async def test_updated_at_is_kept_verbatim(self, sql_note_store, make_note):
        """The row keeps the timestamp written by the device that made the edit."""
        note = make_note("a").model_copy(update={"updated_at": datetime(2026, 1, 1, 12, 0, 0, 123000)})

        await sql_note_store.put_all([note])

        assert (await sql_note_store.load_all())[0].updated_at == note.updated_at

    @pytest.mark.asyncio
    async def test_put_all_with_empty_list_clears(self, sql_note_store, make_note):
        await sql_note_store.put_all([make_note("a")])

        await sql_note_store.put_all([])

        assert await sql_note_store.load_all() == []


class TestSqlSyncStateStore:
    """Persisted markers."""

    @pytest.mark.asyncio
    async def test_missing_key(self, sql_state_store):
        assert await sql_state_store.get("last_synced_identity") is None

    @pytest.mark.asyncio
    async def test_set_overwrites(self, sql_state_store):
        await sql_state_store.set("last_synced_identity", "alice@example.com")
        await sql_state_store.set("last_synced_identity", "bob@example.com")

        assert await sql_state_store.get("last_synced_identity") == "bob@example.com"

    @pytest.mark.asyncio
    async def test_delete(self, sql_state_store):
        await sql_state_store.set("has_previous_session", "true")

        await sql_state_store.delete("has_previous_session")
        await sql_state_store.delete("has_previous_session")

        assert await sql_state_store.get("has_previous_session") is None


class TestRepositories:
    """Repository helpers used under the stores."""

    @pytest.mark.asyncio
    async def test_replace_all_keeps_tombstones(self, db_session, make_note):
        repo = NoteRepository(db_session)
        await repo.replace_all([make_note("a"), make_note("b", deleted=True)])

        notes = await repo.list_notes()

        assert [(n.id, n.deleted) for n in notes] == [("a", False), ("b", True)]

    @pytest.mark.asyncio
    async def test_missing_record_is_none(self, db_session):
        assert await NoteRepository(db_session).get_by_id_or_none("missing") is None

    @pytest.mark.asyncio
    async def test_state_repository_uses_key_column(self, db_session):
        repo = SyncStateRepository(db_session)
        await repo.set_value("k", "v")

        entry = await repo.get_by_id_or_none("k")

        assert entry.key == "k"
        assert entry.value == "v"


class TestSqlStoreFailures:
    """SQLAlchemy errors surface as DatabaseError."""

    @pytest.fixture
    async def dropped_state_table(self, db_engine):
        async with db_engine.begin() as conn:
            await conn.run_sync(SyncStateEntry.__table__.drop)

    @pytest.mark.asyncio
    @pytest.mark.usefixtures("dropped_state_table")
    async def test_state_store_wraps_errors(self, sql_state_store):
        with pytest.raises(DatabaseError, match="last_synced_identity"):
            await sql_state_store.set("last_synced_identity", "alice@example.com")

        with pytest.raises(DatabaseError):
            await sql_state_store.get("last_synced_identity")

        with pytest.raises(DatabaseError):
            await sql_state_store.delete("last_synced_identity")
