# Pydantic schemas package
from notesync.backend.schemas.note import (
    DEFAULT_NOTE_COLOR,
    Note,
    WindowState,
    notes_from_json,
    notes_to_json,
)

__all__ = [
    "DEFAULT_NOTE_COLOR",
    "Note",
    "WindowState",
    "notes_from_json",
    "notes_to_json",
]
