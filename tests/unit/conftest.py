"""
Unit Test Fixtures.

Fixtures for unit tests. Remote stores and prompts are replaced by the
in-memory implementations; nothing touches the network or the disk.
"""

import pytest

from notesync.backend.events.channel import InProcessSignalChannel
from notesync.backend.remote.memory import InMemoryBlobChannel, InMemoryBlobStore
from notesync.backend.storage.memory import InMemoryNoteStore, InMemorySyncStateStore
from notesync.backend.sync.orchestrator import ExecutionContext, SyncOrchestrator
from notesync.backend.sync.prompt import FixedAnswerPrompt
from notesync.backend.sync.session import SyncSession


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def note_store() -> InMemoryNoteStore:
    return InMemoryNoteStore()


@pytest.fixture
def state_store() -> InMemorySyncStateStore:
    return InMemorySyncStateStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def remote(blob_store: InMemoryBlobStore) -> InMemoryBlobChannel:
    """Remote channel signed in as alice."""
    return InMemoryBlobChannel(blob_store, account="alice@example.com")


@pytest.fixture
def signals() -> InProcessSignalChannel:
    return InProcessSignalChannel()


@pytest.fixture
def session(state_store: InMemorySyncStateStore) -> SyncSession:
    return SyncSession(state_store)


@pytest.fixture
def merge_prompt() -> FixedAnswerPrompt:
    """Prompt that always chooses to merge on an account change."""
    return FixedAnswerPrompt(False)


@pytest.fixture
def orchestrator(note_store, remote, session, merge_prompt, signals) -> SyncOrchestrator:
    """Orchestrator for the main context with a short remote timeout."""
    return SyncOrchestrator(
        store=note_store,
        channel=remote,
        session=session,
        prompt=merge_prompt,
        signals=signals,
        context=ExecutionContext(name="main", is_main=True),
        remote_timeout=1.0,
    )
