"""
Merge Engine.

Reconciles the local note collection with the remote one using
last-writer-wins on updated_at. Pure function: no I/O, never fails.

Rules:
    - every local note is kept unless a remote note with the same id has a
      strictly greater updated_at
    - remote notes with unknown ids are added as-is
    - equal timestamps keep the local note

Tombstones are ordinary notes here, which is what carries a deletion from
one device to the others.
"""

from notesync.backend.schemas.note import Note


def merge_notes(local: list[Note], remote: list[Note]) -> list[Note]:
    """
    Merge two note collections into one with a single note per id.

    Args:
        local: Notes held by this device, tombstones included
        remote: Notes read from the remote sync document, tombstones included

    Returns:
        Merged collection. Order carries no meaning.
    """
    merged: dict[str, Note] = {note.id: note for note in local}

    for remote_note in remote:
        local_note = merged.get(remote_note.id)
        if local_note is None or remote_note.updated_at > local_note.updated_at:
            merged[remote_note.id] = remote_note

    return list(merged.values())
