"""
Event Schemas.

Standardized event envelope and the signals exchanged between execution
contexts. All events published on the signal channel use EventEnvelope.

Naming convention for event_type: domain.entity.action (dot notation)

Usage:
    from notesync.backend.events.schemas import SyncRequested

    event = SyncRequested(source="note-window", payload={"context": "note-window"})
"""

from uuid import uuid4

from pydantic import BaseModel, Field

from notesync.backend.core.utils import utc_now


class EventEnvelope(BaseModel):
    """Base event envelope. All events inherit from this.

    Fields:
        event_id: Unique event identifier (auto-generated UUID)
        event_type: Domain event type in dot notation (e.g. notes.sync.requested)
        event_version: Schema version for forward compatibility
        timestamp: ISO 8601 UTC timestamp
        source: Execution context that published the event
        correlation_id: ID tying the event to the log records that caused it
        payload: Event-specific data
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str
    event_version: int = 1
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    source: str
    correlation_id: str = Field(default_factory=lambda: uuid4().hex)
    payload: dict = Field(default_factory=dict)


class SyncRequested(EventEnvelope):
    """Published by a secondary context that wants the main context to sync."""

    event_type: str = "notes.sync.requested"
