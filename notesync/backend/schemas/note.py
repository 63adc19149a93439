"""
Note Schemas.

Pydantic models for the unit of synchronization and its wire format.

The remote sync file is a JSON array of notes written by every client
(desktop and browser), so field names and timestamp formatting follow
that shared format: ISO 8601 UTC strings with a trailing Z.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer, field_validator

from notesync.backend.core.utils import format_utc, to_naive_utc

DEFAULT_NOTE_COLOR = "#fef3c7"


class WindowState(BaseModel):
    """Last known window geometry. Cosmetic only."""

    x: int
    y: int
    width: int
    height: int

    model_config = ConfigDict(frozen=True, from_attributes=True)


class Note(BaseModel):
    """
    A markdown note, live or tombstoned.

    updated_at is the only ordering key used to resolve conflicts between
    devices. Instances are immutable; use model_copy(update=...) to derive
    a changed note.
    """

    id: str = Field(min_length=1, description="Opaque id assigned by the creating device")
    title: str = Field(default="", description="Derived display title")
    content: str = Field(default="", description="Markdown source")
    created_at: datetime = Field(description="Creation timestamp (UTC)")
    updated_at: datetime = Field(description="Last mutation timestamp (UTC)")
    color: str = Field(default=DEFAULT_NOTE_COLOR, description="Display color tag")
    deleted: bool = Field(default=False, description="Tombstone flag")
    window_state: WindowState | None = Field(default=None, description="Last window geometry")

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @field_validator("deleted", mode="before")
    @classmethod
    def _missing_flag_is_live(cls, value: object) -> object:
        return False if value is None else value

    @field_validator("color", mode="before")
    @classmethod
    def _default_color(cls, value: object) -> object:
        return value or DEFAULT_NOTE_COLOR

    @field_serializer("created_at", "updated_at", when_used="json")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_utc(value)


_NOTE_LIST = TypeAdapter(list[Note])


def notes_from_json(data: bytes | str | None) -> list[Note]:
    """Parse a serialized note collection. Empty input yields an empty list."""
    if data is None:
        return []
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    if text.strip() in ("", "null"):
        return []
    return _NOTE_LIST.validate_json(text)


def notes_to_json(notes: list[Note]) -> bytes:
    """Serialize a note collection to the shared JSON array format."""
    return _NOTE_LIST.dump_json(notes, exclude_none=True)
