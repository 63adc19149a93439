"""
Sync Orchestrator.

Runs one synchronization cycle between the local note store and the remote
sync document:

    Idle → CheckAuthenticated → IdentityCheck [→ AccountSwitchPrompt]
         → LocateRemoteObject → FirstSync | FetchAndMerge

Only the main execution context runs cycles. Any other context forwards a
sync request over the signal channel and returns.

Failure handling:
    - every remote call runs under a timeout; a timeout or transport error
      aborts the cycle with the SyncError for that step
    - up to the local persist, a failed cycle leaves the local store as it
      was (an account-switch clear is undone)
    - the local persist is the durability point; a remote write failure after
      it is raised but the merged local state is kept
"""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

from notesync.backend.core.exceptions import (
    IdentityFetchFailed,
    LocalPersistFailed,
    ObjectLocateFailed,
    ObjectReadFailed,
    ObjectWriteFailed,
    SyncError,
)
from notesync.backend.core.logging import get_logger, sync_cycle_context
from notesync.backend.events.channel import SyncSignalChannel
from notesync.backend.remote.base import RemoteBlobChannel
from notesync.backend.schemas.note import Note
from notesync.backend.storage.base import NoteStore
from notesync.backend.sync.merge import merge_notes
from notesync.backend.sync.prompt import ConfirmationPrompt, account_switch_question
from notesync.backend.sync.session import SyncSession

logger = get_logger(__name__)

T = TypeVar("T")


class SyncOutcome(StrEnum):
    DELEGATED = "delegated"
    SKIPPED = "skipped"
    FIRST_SYNC = "first_sync"
    MERGED = "merged"


@dataclass(frozen=True)
class ExecutionContext:
    """Where the code runs. Exactly one context per domain has is_main=True."""

    name: str
    is_main: bool


@dataclass(frozen=True)
class CycleReport:
    outcome: SyncOutcome
    cycle_id: str | None = None
    identity: str | None = None
    account_switched: bool | None = None
    uploaded: int = 0
    merged: int = 0


class SyncOrchestrator:
    """
    Drives sync cycles for one synchronization domain.

    The orchestrator holds no lock of its own; callers go through
    SyncTriggerPolicy, which guarantees at most one cycle at a time.
    """

    def __init__(
        self,
        store: NoteStore,
        channel: RemoteBlobChannel,
        session: SyncSession,
        prompt: ConfirmationPrompt,
        signals: SyncSignalChannel,
        context: ExecutionContext,
        remote_timeout: float = 30.0,
    ) -> None:
        self._store = store
        self._channel = channel
        self._session = session
        self._prompt = prompt
        self._signals = signals
        self._context = context
        self._remote_timeout = remote_timeout

    @property
    def context(self) -> ExecutionContext:
        return self._context

    async def run_cycle(self) -> CycleReport:
        """
        Run one cycle.

        Returns:
            CycleReport describing what happened

        Raises:
            SyncError: The step that failed (identity, locate, read, write, persist)
        """
        if not self._context.is_main:
            await self._signals.send_sync_request(self._context.name)
            logger.debug("Sync delegated to main context", extra={"context": self._context.name})
            return CycleReport(outcome=SyncOutcome.DELEGATED)

        with sync_cycle_context(self._context.name) as cycle_id:
            try:
                report = await self._run(cycle_id)
            except SyncError as e:
                logger.warning(
                    "Sync cycle failed",
                    extra={"step": e.step, "code": e.code, "error": e.message},
                )
                raise
            logger.info(
                "Sync cycle finished",
                extra={"outcome": report.outcome, "uploaded": report.uploaded, "merged": report.merged},
            )
            return report

    async def _run(self, cycle_id: str) -> CycleReport:
        authenticated = await self._remote(self._channel.is_authenticated(), IdentityFetchFailed)
        if not authenticated:
            logger.debug("Remote not authenticated, nothing to sync")
            return CycleReport(outcome=SyncOutcome.SKIPPED, cycle_id=cycle_id)

        current = await self._remote(self._channel.current_identity(), IdentityFetchFailed)
        self._session.set_identity(current)
        previous = await self._local(self._session.last_synced_identity(), "read the last synced account")

        switched: bool | None = None
        snapshot: list[Note] | None = None
        remembered = False
        try:
            if previous and current and previous != current:
                switched = await self._confirm_account_switch(previous, current)
                if switched:
                    async with self._store.exclusive():
                        snapshot = await self._local(self._store.load_all(), "read local notes")
                        await self._local(self._store.put_all([]), "clear local notes")
                    logger.info(
                        "Local notes cleared for account switch",
                        extra={"cleared": len(snapshot), "identity": current},
                    )

            if current:
                await self._local(self._session.remember_identity(current), "save the synced account")
                remembered = True
            return await self._locate_and_sync(cycle_id, current, switched)
        except Exception as e:
            # A failure after the merged local persist keeps the merged state.
            if snapshot is not None and not getattr(e, "after_persist", False):
                await self._undo_account_switch(snapshot, previous, restore_identity=remembered)
            raise

    async def _locate_and_sync(
        self, cycle_id: str, identity: str | None, switched: bool | None,
    ) -> CycleReport:
        ref = await self._remote(self._channel.locate_sync_object(), ObjectLocateFailed)

        if ref is None:
            local = await self._local(self._store.load_all(), "read local notes")
            await self._remote(self._channel.write_sync_object(local), ObjectWriteFailed)
            logger.info("First sync, local notes uploaded", extra={"count": len(local)})
            return CycleReport(
                outcome=SyncOutcome.FIRST_SYNC,
                cycle_id=cycle_id,
                identity=identity,
                account_switched=switched,
                uploaded=len(local),
            )

        remote = await self._remote(self._channel.read_sync_object(ref), ObjectReadFailed)

        async with self._store.exclusive():
            local = await self._local(self._store.load_all(), "read local notes")
            merged = merge_notes(local, remote)
            await self._local(self._store.put_all(merged), "save merged notes locally")

        logger.debug(
            "Notes merged",
            extra={"local": len(local), "remote": len(remote), "merged": len(merged)},
        )
        try:
            await self._remote(self._channel.write_sync_object(merged), ObjectWriteFailed)
        except ObjectWriteFailed as e:
            e.after_persist = True
            raise

        return CycleReport(
            outcome=SyncOutcome.MERGED,
            cycle_id=cycle_id,
            identity=identity,
            account_switched=switched,
            uploaded=len(merged),
            merged=len(merged),
        )

    async def _confirm_account_switch(self, previous: str, current: str) -> bool:
        message, options = account_switch_question(previous, current)
        switch = await self._prompt.confirm(message, options)
        logger.info(
            "Account switch decided",
            extra={"previous": previous, "current": current, "decision": "switch" if switch else "merge"},
        )
        return switch

    async def _undo_account_switch(
        self, snapshot: list[Note], previous: str | None, restore_identity: bool,
    ) -> None:
        """Bring back the notes cleared for an account switch that did not complete."""
        async with self._store.exclusive():
            current = await self._store.load_all()
            await self._store.put_all(merge_notes(current, snapshot))
        if restore_identity:
            await self._session.restore_identity(previous)
        logger.warning("Account switch rolled back", extra={"restored": len(snapshot)})

    async def _local(self, call: Awaitable[T], action: str) -> T:
        """Await one local store call, mapping store failures to LocalPersistFailed."""
        try:
            return await call
        except SyncError:
            raise
        except Exception as e:
            raise LocalPersistFailed(f"Could not {action}: {e}") from e

    async def _remote(self, call: Awaitable[T], error_cls: type[SyncError]) -> T:
        """Await one remote call under the cycle timeout, mapping failures to error_cls."""
        try:
            async with asyncio.timeout(self._remote_timeout):
                return await call
        except TimeoutError as e:
            raise error_cls(
                f"{error_cls().message}: no response within {self._remote_timeout:g}s"
            ) from e
        except SyncError:
            raise
        except Exception as e:
            raise error_cls(f"{error_cls().message}: {e}") from e
