"""
Note synchronization engine.

    merge         - last-writer-wins merge of two note collections
    session       - synchronization identity and its lifecycle
    prompt        - account-switch confirmation
    orchestrator  - one sync cycle
    trigger       - single-flight scheduling of cycles
    service       - entry points used by the UI layer
"""

from notesync.backend.sync.merge import merge_notes
from notesync.backend.sync.orchestrator import (
    CycleReport,
    ExecutionContext,
    SyncOrchestrator,
    SyncOutcome,
)
from notesync.backend.sync.session import SessionState, SyncSession
from notesync.backend.sync.trigger import SyncTriggerPolicy

__all__ = [
    "CycleReport",
    "ExecutionContext",
    "SessionState",
    "SyncOrchestrator",
    "SyncOutcome",
    "SyncSession",
    "SyncTriggerPolicy",
    "merge_notes",
]
