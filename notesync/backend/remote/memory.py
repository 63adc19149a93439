"""
In-Memory Blob Channel.

A remote store that lives in process memory. Several channels can share one
InMemoryBlobStore to simulate multiple devices syncing through the same
account, which is how the convergence tests drive two "devices".
"""

import asyncio
from dataclasses import dataclass, field

from notesync.backend.core.exceptions import AuthenticationError, ExternalServiceError
from notesync.backend.remote.base import RemoteBlobChannel, SyncObjectRef
from notesync.backend.schemas.note import Note, notes_from_json, notes_to_json


@dataclass
class InMemoryBlobStore:
    """Sync documents keyed by account, stored as serialized JSON."""

    blobs: dict[str, bytes] = field(default_factory=dict)
    accounts: set[str] = field(default_factory=set)

    def notes_for(self, account: str) -> list[Note]:
        return notes_from_json(self.blobs.get(account))


class InMemoryBlobChannel(RemoteBlobChannel):
    """
    Remote channel backed by an InMemoryBlobStore.

    fail_steps makes the named operations ("identity", "locate", "read",
    "write") raise ExternalServiceError. read_gate, when set, makes reads
    wait until the event is set.
    """

    def __init__(
        self,
        store: InMemoryBlobStore | None = None,
        account: str | None = None,
        object_name: str = "markdown_notes_sync.json",
    ) -> None:
        self.store = store or InMemoryBlobStore()
        self.account = account
        self.object_name = object_name
        self._authenticated = account is not None
        if account is not None:
            self.store.accounts.add(account)
        self.fail_steps: set[str] = set()
        self.read_gate: asyncio.Event | None = None
        self.read_count = 0
        self.write_count = 0

    @property
    def provider_name(self) -> str:
        return "memory"

    def _check(self, step: str) -> None:
        if step in self.fail_steps:
            raise ExternalServiceError(f"Simulated {step} failure")

    def switch_account(self, account: str) -> None:
        self.account = account
        self._authenticated = True

    async def is_authenticated(self) -> bool:
        return self._authenticated

    async def current_identity(self) -> str | None:
        self._check("identity")
        return self.account if self._authenticated else None

    async def locate_sync_object(self) -> SyncObjectRef | None:
        self._check("locate")
        if self.account not in self.store.blobs:
            return None
        return SyncObjectRef(object_id=f"{self.account}/{self.object_name}", name=self.object_name)

    async def read_sync_object(self, ref: SyncObjectRef) -> list[Note]:
        self.read_count += 1
        if self.read_gate is not None:
            await self.read_gate.wait()
        self._check("read")
        return self.store.notes_for(self.account)

    async def write_sync_object(self, notes: list[Note]) -> None:
        self._check("write")
        self.write_count += 1
        self.store.blobs[self.account] = notes_to_json(notes)

    async def authenticate(
        self,
        silent: bool = False,
        login_hint: str | None = None,
        credential: str | None = None,
    ) -> None:
        account = credential or login_hint or self.account
        if account is None:
            raise AuthenticationError("No account to sign in with")
        if silent and account not in self.store.accounts:
            raise AuthenticationError("Silent sign-in not possible")
        self.store.accounts.add(account)
        self.account = account
        self._authenticated = True

    async def sign_out(self) -> None:
        self._authenticated = False
