"""
NoteSync.

- backend/core/: Configuration, logging, exceptions, resilience, database
- backend/models/, repositories/: SQLite tables and their data access
- backend/schemas/: Note and its shared JSON format
- backend/storage/: Local note stores (SQLite or notes.json)
- backend/remote/: Remote blob channels (Google Drive, in-memory)
- backend/events/: Signals between execution contexts
- backend/sync/: Merge, orchestration and scheduling of sync cycles
- backend/services/: Local note operations
"""
