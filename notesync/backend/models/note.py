"""
Note Model.

Local table holding every note the device knows about, tombstones included.
"""

from typing import Any

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notesync.backend.models.base import Base, TimestampMixin


class NoteRecord(TimestampMixin, Base):
    """
    Note database model.

    Rows are never physically deleted by the sync engine; a deleted note is
    kept with deleted=True so the deletion reaches every other device.
    """

    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )
    color: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )
    deleted: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )
    window_state: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<NoteRecord(id={self.id}, title={self.title!r}, deleted={self.deleted})>"
