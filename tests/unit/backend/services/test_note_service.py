"""
Unit Tests for Note Service.

Tests the NoteService business rules against an in-memory store.
"""

from unittest.mock import MagicMock

import pytest

from notesync.backend.core.exceptions import NotFoundError, ValidationError
from notesync.backend.core.utils import DEFAULT_NOTE_TITLE
from notesync.backend.schemas.note import DEFAULT_NOTE_COLOR
from notesync.backend.services.note import DEFAULT_WINDOW_STATE, NoteService


@pytest.fixture
def sync_hook():
    """Stand-in for SyncService.request_background_sync."""
    return MagicMock()


@pytest.fixture
def service(note_store, sync_hook):
    return NoteService(note_store, on_mutation=sync_hook)


class TestNoteServiceCreate:
    """Tests for note creation."""

    @pytest.mark.asyncio
    async def test_create_note_defaults(self, service, note_store):
        """A new note is empty, titled and stored."""
        note = await service.create_note()

        assert note.title == DEFAULT_NOTE_TITLE
        assert note.content == ""
        assert note.color == DEFAULT_NOTE_COLOR
        assert note.deleted is False
        assert note.created_at == note.updated_at
        assert note.window_state == DEFAULT_WINDOW_STATE
        assert await note_store.load_all() == [note]

    @pytest.mark.asyncio
    async def test_create_note_ids_are_unique(self, service):
        first = await service.create_note()
        second = await service.create_note()

        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_create_note_schedules_sync(self, service, sync_hook):
        await service.create_note()

        sync_hook.assert_called_once_with("create")

    @pytest.mark.asyncio
    async def test_import_markdown_derives_title(self, service):
        note = await service.import_markdown("\n\n## Shopping list\n- milk\n")

        assert note.title == "Shopping list"
        assert note.content.startswith("\n\n## Shopping")

    @pytest.mark.asyncio
    async def test_import_markdown_keeps_given_title(self, service):
        note = await service.import_markdown("# Heading", title="todo.md")

        assert note.title == "todo.md"


class TestNoteServiceGet:
    """Tests for reading notes."""

    @pytest.mark.asyncio
    async def test_get_notes_hides_tombstones(self, service, note_store, make_note):
        await note_store.put_all([make_note("live"), make_note("gone", deleted=True)])

        notes = await service.get_notes()

        assert [note.id for note in notes] == ["live"]

    @pytest.mark.asyncio
    async def test_get_notes_newest_first(self, service, note_store, make_note):
        await note_store.put_all([make_note("old", minutes=1), make_note("new", minutes=9)])

        notes = await service.get_notes()

        assert [note.id for note in notes] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_get_note_returns_none_for_tombstone(self, service, note_store, make_note):
        await note_store.put_all([make_note("gone", deleted=True)])

        assert await service.get_note("gone") is None
        assert await service.get_note("missing") is None


class TestNoteServiceSave:
    """Tests for saving notes."""

    @pytest.mark.asyncio
    async def test_save_bumps_updated_at_and_title(self, service, note_store, make_note):
        original = make_note("a", content="# Old")
        await note_store.put_all([original])

        saved = await service.save_note(original.model_copy(update={"content": "# Fresh title\nbody"}))

        assert saved.title == "Fresh title"
        assert saved.updated_at > original.updated_at
        assert saved.created_at == original.created_at
        assert await note_store.load_all() == [saved]

    @pytest.mark.asyncio
    async def test_save_revives_tombstone(self, service, note_store, make_note):
        await note_store.put_all([make_note("a", deleted=True)])

        saved = await service.save_note(make_note("a", deleted=True, content="back"))

        assert saved.deleted is False
        assert await service.get_note("a") == saved

    @pytest.mark.asyncio
    async def test_save_inserts_unknown_note(self, service, note_store, make_note, sync_hook):
        await service.save_note(make_note("new"))

        assert [note.id for note in await note_store.load_all()] == ["new"]
        sync_hook.assert_called_once_with("save")


class TestNoteServiceDelete:
    """Tests for tombstoning."""

    @pytest.mark.asyncio
    async def test_delete_note_tombstones(self, service, note_store, make_note):
        original = make_note("a")
        await note_store.put_all([original])

        assert await service.delete_note("a") is True

        stored = (await note_store.load_all())[0]
        assert stored.deleted is True
        assert stored.updated_at > original.updated_at

    @pytest.mark.asyncio
    async def test_delete_unknown_note(self, service, note_store, sync_hook):
        assert await service.delete_note("missing") is False
        assert note_store.put_count == 0
        sync_hook.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_notes_single_write(self, service, note_store, make_note, sync_hook):
        await note_store.put_all([make_note("a"), make_note("b"), make_note("c")])

        deleted = await service.delete_notes(["a", "c", "missing"])

        assert deleted == 2
        assert note_store.put_count == 2
        assert [n.id for n in await service.get_notes()] == ["b"]
        sync_hook.assert_called_once_with("delete")

    @pytest.mark.asyncio
    async def test_delete_notes_shares_timestamp(self, service, note_store, make_note):
        await note_store.put_all([make_note("a"), make_note("b")])

        await service.delete_notes(["a", "b"])

        stamps = {note.updated_at for note in await note_store.load_all()}
        assert len(stamps) == 1


class TestNoteServiceWindowState:
    """Tests for window geometry updates."""

    @pytest.mark.asyncio
    async def test_update_window_state(self, service, note_store, make_note):
        await note_store.put_all([make_note("a")])

        moved = await service.update_window_state("a", x=10, y=20, width=500, height=600)

        assert moved.window_state.x == 10
        assert moved.window_state.height == 600
        assert (await note_store.load_all())[0] == moved

    @pytest.mark.asyncio
    async def test_update_window_state_missing_note(self, service):
        with pytest.raises(NotFoundError):
            await service.update_window_state("missing", x=0, y=0, width=300, height=400)

    @pytest.mark.asyncio
    async def test_update_window_state_rejects_zero_size(self, service, note_store, make_note):
        await note_store.put_all([make_note("a")])

        with pytest.raises(ValidationError):
            await service.update_window_state("a", x=0, y=0, width=0, height=400)


class TestNoteServiceSearch:
    """Tests for filtering notes."""

    @pytest.mark.asyncio
    async def test_search_matches_title_or_content(self, service, note_store, make_note):
        await note_store.put_all([
            make_note("a", title="Groceries", content="# Groceries\n- Milk"),
            make_note("b", minutes=5, title="Office", content="# Office\nmilk for the team"),
            make_note("c", title="Ideas", content="# Ideas"),
            make_note("d", title="Old milk", deleted=True),
        ])

        found = await service.search_notes("MILK")

        assert [note.id for note in found] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_blank_query_returns_all_live(self, service, note_store, make_note):
        await note_store.put_all([make_note("a"), make_note("b", deleted=True)])

        assert [note.id for note in await service.search_notes("  ")] == ["a"]


class TestNoteServiceExport:
    """Tests for markdown export."""

    @pytest.mark.asyncio
    async def test_export_is_named_after_title(self, service, note_store, make_note):
        await note_store.put_all([make_note("a", content="## Plans 2026/Q1\n- ship")])

        export = await service.export_markdown("a")

        assert export.filename == "Plans 2026_Q1.md"
        assert export.content == "## Plans 2026/Q1\n- ship"

    @pytest.mark.asyncio
    async def test_export_of_empty_note_uses_default_title(self, service, note_store, make_note):
        await note_store.put_all([make_note("a", content="")])

        export = await service.export_markdown("a")

        assert export.filename == f"{DEFAULT_NOTE_TITLE}.md"

    @pytest.mark.asyncio
    async def test_export_missing_note(self, service, note_store, make_note):
        await note_store.put_all([make_note("gone", deleted=True)])

        with pytest.raises(NotFoundError):
            await service.export_markdown("gone")


class TestNoteServiceColor:
    """Tests for color changes."""

    @pytest.mark.asyncio
    async def test_set_color(self, service, note_store, make_note, sync_hook):
        original = make_note("a")
        await note_store.put_all([original])

        colored = await service.set_color("a", "#DBEAFE")

        assert colored.color == "#dbeafe"
        assert colored.updated_at > original.updated_at
        assert (await note_store.load_all())[0] == colored
        sync_hook.assert_called_once_with("color")

    @pytest.mark.asyncio
    async def test_set_color_rejects_non_hex(self, service, note_store, make_note, sync_hook):
        await note_store.put_all([make_note("a")])

        with pytest.raises(ValidationError) as exc_info:
            await service.set_color("a", "blue")

        assert exc_info.value.details == {"color": "blue"}
        assert note_store.put_count == 1
        sync_hook.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_color_missing_note(self, service):
        with pytest.raises(NotFoundError):
            await service.set_color("missing", "#fff")
