"""
Sync Service.

The surface the UI layer talks to:

    init_sync()          - silent re-authentication and a first cycle at start-up
    sync_now()           - explicit, awaited cycle; updates the status indicator
    is_sync_enabled()    - whether sync is switched on and signed in
    request_background_sync() - called after every local mutation

plus sign-in / sign-out and the account shown in the UI.

Usage:
    from notesync.backend.sync.service import create_sync_service

    sync = await create_sync_service(storage, prompt)
    await sync.start()
    await sync.init_sync()
"""

import asyncio
from enum import StrEnum

from notesync.backend.core.exceptions import ApplicationError
from notesync.backend.core.logging import get_logger
from notesync.backend.events.channel import SyncSignalChannel
from notesync.backend.events.schemas import SyncRequested
from notesync.backend.remote.base import RemoteBlobChannel
from notesync.backend.storage import Storage
from notesync.backend.sync.orchestrator import (
    CycleReport,
    ExecutionContext,
    SyncOrchestrator,
    SyncOutcome,
)
from notesync.backend.sync.prompt import ConfirmationPrompt
from notesync.backend.sync.session import SyncSession
from notesync.backend.sync.trigger import SyncTriggerPolicy

logger = get_logger(__name__)


class SyncStatus(StrEnum):
    OFF = "off"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


class SyncService:
    """Entry points for synchronization, one instance per execution context."""

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        trigger: SyncTriggerPolicy,
        channel: RemoteBlobChannel,
        session: SyncSession,
        signals: SyncSignalChannel,
        enabled: bool = True,
        sync_on_mutation: bool = True,
        auth_timeout: float = 10.0,
    ) -> None:
        self._orchestrator = orchestrator
        self._trigger = trigger
        self._channel = channel
        self._session = session
        self._signals = signals
        self._enabled = enabled
        self._sync_on_mutation = sync_on_mutation
        self._auth_timeout = auth_timeout
        self._signed_in = False
        self.status = SyncStatus.OFF
        self.last_error: str | None = None

    @property
    def context(self) -> ExecutionContext:
        return self._orchestrator.context

    @property
    def session(self) -> SyncSession:
        return self._session

    @property
    def trigger(self) -> SyncTriggerPolicy:
        return self._trigger

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Connect the signal channel; the main context also starts listening."""
        if self.context.is_main:
            await self._signals.on_sync_request(self._on_sync_request)
        await self._signals.start()

    async def close(self) -> None:
        await self._trigger.drain()
        await self._signals.close()
        await self._channel.close()

    async def _on_sync_request(self, event: SyncRequested) -> None:
        logger.debug("Sync requested by another context", extra={"source": event.source})
        self._trigger.request_cycle(f"signal:{event.source}")

    # -------------------------------------------------------------------------
    # Exposed operations
    # -------------------------------------------------------------------------

    async def init_sync(self, run_cycle: bool = True) -> None:
        """
        Resume a previous session at start-up.

        Only the main context does this. If a previous session existed,
        authenticate silently (the last synced account is the login hint)
        and, unless run_cycle is False, run one cycle. Nothing here is
        raised to the caller.
        """
        if not self.context.is_main:
            return
        self._session.begin_initialization()
        try:
            if not self._enabled:
                logger.info("Sync disabled, skipping start-up sync")
                return
            if not await self._session.has_previous_session():
                logger.debug("No previous sync session")
                return

            hint = await self._session.last_synced_identity()
            try:
                await self._authenticate(silent=True, login_hint=hint)
                self.status = SyncStatus.SYNCED
                if run_cycle:
                    await self._trigger.run_now("startup")
            except (ApplicationError, TimeoutError) as e:
                logger.warning("Silent start-up sync not available", extra={"error": str(e)})
        finally:
            self._session.mark_ready()

    async def sync_now(self) -> CycleReport:
        """
        Run a cycle now and wait for it.

        The status indicator follows the result. On any failure the status is
        ERROR, last_error holds the message and the error is raised.
        """
        if not self._enabled:
            self.status = SyncStatus.OFF
            return CycleReport(outcome=SyncOutcome.SKIPPED)

        previous_status = self.status
        self.status = SyncStatus.SYNCING
        try:
            report = await self._trigger.run_now("manual")
        except Exception as e:
            self.status = SyncStatus.ERROR
            self.last_error = getattr(e, "message", None) or str(e) or type(e).__name__
            raise

        self.last_error = None
        if report.outcome is SyncOutcome.SKIPPED:
            self.status = SyncStatus.OFF
        elif report.outcome is SyncOutcome.DELEGATED:
            self.status = previous_status
        else:
            self.status = SyncStatus.SYNCED
        return report

    def is_sync_enabled(self) -> bool:
        return self._enabled and self._signed_in

    def request_background_sync(self, reason: str = "mutation") -> None:
        """Schedule a cycle after a local write. Never raises."""
        if not (self._enabled and self._sync_on_mutation):
            return
        self._trigger.request_cycle(reason)

    # -------------------------------------------------------------------------
    # Account
    # -------------------------------------------------------------------------

    async def sign_in(self, credential: str | None = None) -> CycleReport:
        """Authenticate with fresh credentials, remember the session and sync."""
        try:
            await self._authenticate(silent=False, credential=credential)
        except (ApplicationError, TimeoutError) as e:
            self.status = SyncStatus.ERROR
            self.last_error = getattr(e, "message", None) or "Sign-in timed out"
            raise
        await self._session.set_previous_session(True)
        return await self.sync_now()

    async def sign_out(self) -> None:
        await self._channel.sign_out()
        await self._session.set_previous_session(False)
        self._session.set_identity(None)
        self._signed_in = False
        self.status = SyncStatus.OFF
        self.last_error = None
        logger.info("Signed out of remote store", extra={"provider": self._channel.provider_name})

    async def get_user_info(self) -> str | None:
        """Account currently signed in, or None."""
        if not await self._channel.is_authenticated():
            return None
        async with asyncio.timeout(self._auth_timeout):
            identity = await self._channel.current_identity()
        self._session.set_identity(identity)
        return identity

    async def _authenticate(
        self,
        silent: bool,
        login_hint: str | None = None,
        credential: str | None = None,
    ) -> None:
        async with asyncio.timeout(self._auth_timeout):
            await self._channel.authenticate(silent=silent, login_hint=login_hint, credential=credential)
        self._signed_in = True
        logger.info(
            "Authenticated with remote store",
            extra={"provider": self._channel.provider_name, "silent": silent},
        )


async def create_sync_service(
    storage: Storage,
    prompt: ConfirmationPrompt,
    context: ExecutionContext | None = None,
) -> SyncService:
    """Wire the sync stack for this process from the application config."""
    from notesync.backend.core.config import get_app_config
    from notesync.backend.events.channel import create_signal_channel
    from notesync.backend.remote import create_remote_channel

    config = get_app_config()
    if context is None:
        context = ExecutionContext(
            name=config.application.context.name,
            is_main=config.application.context.main,
        )

    channel = create_remote_channel(storage.state)
    signals = create_signal_channel()
    session = SyncSession(storage.state)
    orchestrator = SyncOrchestrator(
        store=storage.notes,
        channel=channel,
        session=session,
        prompt=prompt,
        signals=signals,
        context=context,
        remote_timeout=config.application.timeouts.remote,
    )
    trigger = SyncTriggerPolicy(
        orchestrator.run_cycle,
        rerun_if_requested=config.sync.trigger.rerun_if_requested,
    )
    return SyncService(
        orchestrator=orchestrator,
        trigger=trigger,
        channel=channel,
        session=session,
        signals=signals,
        enabled=config.features.sync_enabled,
        sync_on_mutation=config.features.sync_on_mutation,
        auth_timeout=config.application.timeouts.authentication,
    )
