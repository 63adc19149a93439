"""
Sync Session.

Explicit holder of the synchronization identity and its lifecycle:

    UNINITIALIZED → INITIALIZING → READY

The current identity is process state (who the remote channel is signed
in as right now). The last synced identity and the previous-session marker
are persisted through a SyncStateStore so they survive restarts.
"""

from enum import StrEnum

from notesync.backend.core.logging import get_logger
from notesync.backend.storage.base import SyncStateStore

logger = get_logger(__name__)

LAST_SYNCED_IDENTITY_KEY = "last_synced_identity"
PREVIOUS_SESSION_KEY = "previous_session"


class SessionState(StrEnum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class SyncSession:
    """Identity and session markers shared by the orchestrator and the sync service."""

    def __init__(self, state_store: SyncStateStore) -> None:
        self._state_store = state_store
        self._state = SessionState.UNINITIALIZED
        self.identity: str | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    def begin_initialization(self) -> None:
        if self._state is not SessionState.UNINITIALIZED:
            raise RuntimeError(f"Sync session cannot initialize from state {self._state}")
        self._state = SessionState.INITIALIZING
        logger.debug("Sync session initializing")

    def mark_ready(self) -> None:
        if self._state is SessionState.UNINITIALIZED:
            raise RuntimeError("Sync session must be initializing before it is ready")
        self._state = SessionState.READY
        logger.debug("Sync session ready", extra={"identity": self.identity})

    def set_identity(self, identity: str | None) -> None:
        self.identity = identity

    async def last_synced_identity(self) -> str | None:
        return await self._state_store.get(LAST_SYNCED_IDENTITY_KEY)

    async def remember_identity(self, identity: str) -> None:
        await self._state_store.set(LAST_SYNCED_IDENTITY_KEY, identity)

    async def restore_identity(self, identity: str | None) -> None:
        """Put back a previous last-synced identity (None removes the marker)."""
        if identity is None:
            await self._state_store.delete(LAST_SYNCED_IDENTITY_KEY)
        else:
            await self._state_store.set(LAST_SYNCED_IDENTITY_KEY, identity)

    async def has_previous_session(self) -> bool:
        return await self._state_store.get(PREVIOUS_SESSION_KEY) == "true"

    async def set_previous_session(self, enabled: bool) -> None:
        if enabled:
            await self._state_store.set(PREVIOUS_SESSION_KEY, "true")
        else:
            await self._state_store.delete(PREVIOUS_SESSION_KEY)
