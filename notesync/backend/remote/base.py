"""
Remote Blob Channel Interface.

Defines the contract between the sync engine and the remote store that
holds the single sync document. The engine talks to the remote store
exclusively through this interface; transport, authentication protocol
and file layout stay inside the concrete channel.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from notesync.backend.schemas.note import Note


@dataclass(frozen=True)
class SyncObjectRef:
    """Handle to the sync document on the remote store."""

    object_id: str
    name: str


class RemoteBlobChannel(ABC):
    """
    Base class for remote stores.

    All methods may perform network I/O. Failures are raised as
    AuthenticationError or ExternalServiceError; the sync orchestrator
    turns them into cycle failures.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique provider identifier (e.g., 'google_drive', 'memory')."""
        ...

    @abstractmethod
    async def is_authenticated(self) -> bool:
        """Whether the channel currently holds usable credentials."""
        ...

    @abstractmethod
    async def current_identity(self) -> str | None:
        """Account of the authenticated principal (an email), or None."""
        ...

    @abstractmethod
    async def locate_sync_object(self) -> SyncObjectRef | None:
        """Find the sync document by its well-known name."""
        ...

    @abstractmethod
    async def read_sync_object(self, ref: SyncObjectRef) -> list[Note]:
        """Read and parse the note collection stored in the sync document."""
        ...

    @abstractmethod
    async def write_sync_object(self, notes: list[Note]) -> None:
        """Store the note collection, creating the sync document if needed."""
        ...

    @abstractmethod
    async def authenticate(
        self,
        silent: bool = False,
        login_hint: str | None = None,
        credential: str | None = None,
    ) -> None:
        """
        Acquire credentials.

        silent=True must never involve the user; it either succeeds from
        stored credentials or raises AuthenticationError.
        """
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """Drop (and where possible revoke) the current credentials."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        return None
