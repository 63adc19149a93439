"""
Core Utilities.

Shared utility functions used across the backend.
All modules should import utilities from this module.
"""

import re
from datetime import datetime, timezone
from uuid import uuid4

DEFAULT_NOTE_TITLE = "New Note"
TITLE_MAX_LENGTH = 50

_HEADING_MARKER = re.compile(r"^#+\s*")


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application are timezone-naive and assumed
    to be UTC. Timestamps coming from other devices are normalized to the
    same form before they are compared.

    Truncated to milliseconds, the precision of the sync document, so a
    note compares equal to its own uploaded copy.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are returned as-is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def format_utc(value: datetime) -> str:
    """Format a naive UTC datetime as ISO 8601 with millisecond precision and a Z suffix."""
    return value.isoformat(timespec="milliseconds") + "Z"


def generate_note_id() -> str:
    """Short random note id, unique enough across devices."""
    return uuid4().hex[:12]


def extract_title(content: str | None) -> str:
    """
    Derive a note title from its markdown content.

    First line with text once heading markers are stripped, at most 50
    characters. Bare markers such as "## " are skipped.
    """
    for line in (content or "").split("\n"):
        title = _HEADING_MARKER.sub("", line.strip()).strip()
        if title:
            return title[:TITLE_MAX_LENGTH]
    return DEFAULT_NOTE_TITLE
