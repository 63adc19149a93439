"""
Sync State Model.

Small key/value table for markers that must survive restarts
(last synced account, previous session, stored remote credentials).
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notesync.backend.models.base import Base


class SyncStateEntry(Base):
    """One persisted sync marker."""

    __tablename__ = "sync_state"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<SyncStateEntry(key={self.key!r})>"
