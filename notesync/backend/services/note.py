"""
Note Service.

Local note operations used by the UI layer. Every mutation is one
read-modify-write of the whole collection under the store's lock, and
schedules a background sync once the local write is done.

Deletes are soft: the note is kept as a tombstone (deleted=True with a
fresh updated_at) so the deletion reaches other devices.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from notesync.backend.core.exceptions import NotFoundError, ValidationError
from notesync.backend.core.utils import DEFAULT_NOTE_TITLE, extract_title, generate_note_id, utc_now
from notesync.backend.schemas.note import Note, WindowState
from notesync.backend.services.base import BaseService
from notesync.backend.storage.base import NoteStore

DEFAULT_WINDOW_STATE = WindowState(x=100, y=100, width=300, height=400)

SyncHook = Callable[[str], None]

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_UNSAFE_FILENAME_CHARS = re.compile(r"[\\/:*?\"<>|]")


@dataclass(frozen=True)
class MarkdownExport:
    filename: str
    content: str


class NoteService(BaseService):
    """
    Service for note business logic.

    Usage:
        service = NoteService(store, on_mutation=sync.request_background_sync)
        note = await service.create_note()
        await service.save_note(note.model_copy(update={"content": "# Groceries"}))
    """

    def __init__(self, store: NoteStore, on_mutation: SyncHook | None = None) -> None:
        super().__init__(store)
        self._on_mutation = on_mutation

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_notes(self) -> list[Note]:
        """Live notes, most recently updated first."""
        notes = await self.store.load_all()
        live = [note for note in notes if not note.deleted]
        return sorted(live, key=lambda note: note.updated_at, reverse=True)

    async def get_note(self, note_id: str) -> Note | None:
        """
        Get a live note by ID.

        Returns:
            The note, or None if it does not exist or is tombstoned
        """
        for note in await self.store.load_all():
            if note.id == note_id:
                return None if note.deleted else note
        return None

    async def search_notes(self, query: str) -> list[Note]:
        """Live notes whose title or content contains query, case-insensitively."""
        notes = await self.get_notes()
        needle = query.strip().lower()
        if not needle:
            return notes
        return [n for n in notes if needle in n.title.lower() or needle in n.content.lower()]

    async def export_markdown(self, note_id: str) -> MarkdownExport:
        """
        Markdown file for a live note, named after its title.

        Raises:
            NotFoundError: If no live note has this id
        """
        note = await self.get_note(note_id)
        if note is None:
            raise NotFoundError(f"Note {note_id} not found")
        title = extract_title(note.content)
        filename = _UNSAFE_FILENAME_CHARS.sub("_", title).strip() or DEFAULT_NOTE_TITLE
        return MarkdownExport(filename=f"{filename}.md", content=note.content)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_note(self) -> Note:
        now = utc_now()
        note = Note(
            id=generate_note_id(),
            title=DEFAULT_NOTE_TITLE,
            content="",
            created_at=now,
            updated_at=now,
            window_state=DEFAULT_WINDOW_STATE,
        )
        async with self.store.exclusive():
            notes = await self.store.load_all()
            await self.store.put_all([*notes, note])

        self._log_operation("Note created", note_id=note.id)
        self._notify("create")
        return note

    async def import_markdown(self, content: str, title: str | None = None) -> Note:
        """
        Create a note from the content of a markdown file.

        The title is derived from the content unless one is given.
        """
        now = utc_now()
        note = Note(
            id=generate_note_id(),
            title=title.strip() if title and title.strip() else extract_title(content),
            content=content,
            created_at=now,
            updated_at=now,
            window_state=DEFAULT_WINDOW_STATE,
        )
        async with self.store.exclusive():
            notes = await self.store.load_all()
            await self.store.put_all([*notes, note])

        self._log_operation("Note imported", note_id=note.id, length=len(content))
        self._notify("import")
        return note

    async def save_note(self, note: Note) -> Note:
        """
        Insert or update a note.

        The saved note gets a fresh updated_at, its title derived from the
        content, and is live again even if it was tombstoned.

        Returns:
            The note as stored
        """
        self._validate_required({"id": note.id}, ["id"])
        saved = note.model_copy(
            update={
                "title": extract_title(note.content),
                "updated_at": utc_now(),
                "deleted": False,
            }
        )
        async with self.store.exclusive():
            notes = await self.store.load_all()
            others = [existing for existing in notes if existing.id != saved.id]
            await self.store.put_all([*others, saved])

        self._log_debug("Note saved", note_id=saved.id)
        self._notify("save")
        return saved

    async def delete_note(self, note_id: str) -> bool:
        """
        Tombstone one note.

        Returns:
            False if no live note has this id
        """
        return await self.delete_notes([note_id]) == 1

    async def delete_notes(self, note_ids: list[str]) -> int:
        """
        Tombstone several notes with one write. Unknown ids are ignored.

        Returns:
            Number of notes tombstoned
        """
        targets = set(note_ids)
        now = utc_now()
        async with self.store.exclusive():
            notes = await self.store.load_all()
            updated = []
            deleted = 0
            for note in notes:
                if note.id in targets and not note.deleted:
                    note = note.model_copy(update={"deleted": True, "updated_at": now})
                    deleted += 1
                updated.append(note)
            if deleted:
                await self.store.put_all(updated)

        if deleted:
            self._log_operation("Notes deleted", count=deleted)
            self._notify("delete")
        return deleted

    async def update_window_state(self, note_id: str, x: int, y: int, width: int, height: int) -> Note:
        """
        Remember where a note's window was.

        Raises:
            NotFoundError: If no live note has this id
            ValidationError: If width or height is not positive
        """
        self._validate_positive({"width": width, "height": height})
        state = WindowState(x=x, y=y, width=width, height=height)
        async with self.store.exclusive():
            notes = await self.store.load_all()
            target = next((n for n in notes if n.id == note_id and not n.deleted), None)
            if target is None:
                raise NotFoundError(f"Note {note_id} not found")
            moved = target.model_copy(update={"window_state": state, "updated_at": utc_now()})
            await self.store.put_all([moved if n.id == note_id else n for n in notes])

        self._log_debug("Window state updated", note_id=note_id)
        self._notify("window")
        return moved

    async def set_color(self, note_id: str, color: str) -> Note:
        """
        Change a note's color tag.

        Raises:
            NotFoundError: If no live note has this id
            ValidationError: If color is not a #rgb or #rrggbb value
        """
        if not _HEX_COLOR.match(color or ""):
            raise ValidationError("Color must be a hex value like #fef3c7", details={"color": color})
        async with self.store.exclusive():
            notes = await self.store.load_all()
            target = next((n for n in notes if n.id == note_id and not n.deleted), None)
            if target is None:
                raise NotFoundError(f"Note {note_id} not found")
            colored = target.model_copy(update={"color": color.lower(), "updated_at": utc_now()})
            await self.store.put_all([colored if n.id == note_id else n for n in notes])

        self._log_debug("Note color changed", note_id=note_id, color=colored.color)
        self._notify("color")
        return colored

    def _notify(self, reason: str) -> None:
        if self._on_mutation is not None:
            self._on_mutation(reason)
