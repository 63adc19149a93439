"""
Sync Trigger Policy.

Decides when a sync cycle runs. At most one cycle is in flight per
synchronization domain; requests that arrive meanwhile are coalesced.

Two entry points:
    request_cycle() - fire-and-forget (note edits, signals from secondary
                      contexts). A request during an in-flight cycle queues
                      exactly one follow-up run when rerun_if_requested is set,
                      otherwise it is dropped.
    run_now()       - awaited (explicit sync). Joins the in-flight cycle if
                      there is one, so concurrent callers share one remote read.

Failures of background cycles are logged, never raised to the requester.
"""

import asyncio
from collections.abc import Awaitable, Callable

from notesync.backend.core.logging import get_logger
from notesync.backend.sync.orchestrator import CycleReport

logger = get_logger(__name__)

CycleRunner = Callable[[], Awaitable[CycleReport]]


class SyncTriggerPolicy:
    """Single-flight scheduler around one cycle runner."""

    def __init__(self, cycle: CycleRunner, rerun_if_requested: bool = True) -> None:
        self._cycle = cycle
        self._rerun_if_requested = rerun_if_requested
        self._current: asyncio.Task[CycleReport] | None = None
        self._rerun_requested = False

    @property
    def in_flight(self) -> bool:
        # Cleared by the cycle task itself before it completes.
        return self._current is not None

    @property
    def rerun_pending(self) -> bool:
        return self._rerun_requested

    def request_cycle(self, reason: str = "background") -> None:
        """Schedule a cycle without waiting for it. Must be called from the event loop."""
        if self.in_flight:
            if self._rerun_if_requested and not self._rerun_requested:
                self._rerun_requested = True
                logger.debug("Sync request queued behind running cycle", extra={"reason": reason})
            else:
                logger.debug("Sync request coalesced", extra={"reason": reason})
            return
        self._start(reason)

    async def run_now(self, reason: str = "manual") -> CycleReport:
        """
        Run a cycle and wait for its report.

        If a cycle is already running, wait for that one instead of starting a
        second. Errors of the joined cycle propagate to every waiter.
        """
        task = self._current if self._current is not None else self._start(reason)
        return await asyncio.shield(task)

    def _start(self, reason: str) -> asyncio.Task[CycleReport]:
        logger.debug("Sync cycle starting", extra={"reason": reason})
        task = asyncio.get_running_loop().create_task(self._run_cycle())
        task.add_done_callback(self._on_done)
        self._current = task
        return task

    async def _run_cycle(self) -> CycleReport:
        try:
            return await self._cycle()
        finally:
            self._finish(asyncio.current_task())

    def _finish(self, task: asyncio.Task | None) -> None:
        """Release the slot held by task and start the queued rerun, if any."""
        if task is not self._current:
            return
        self._current = None
        if self._rerun_requested:
            self._rerun_requested = False
            self._start("queued")

    def _on_done(self, task: asyncio.Task[CycleReport]) -> None:
        if task.cancelled():
            logger.info("Sync cycle cancelled")
        elif (error := task.exception()) is not None:
            logger.error(
                "Sync cycle failed",
                extra={"error": str(error), "error_type": type(error).__name__},
            )
        # A task cancelled before its first step never reaches _run_cycle's finally.
        self._finish(task)

    async def drain(self) -> None:
        """Wait until no cycle is running and no follow-up is queued."""
        while self._current is not None:
            task = self._current
            await asyncio.gather(task, return_exceptions=True)
            # Let the done callback log the outcome.
            await asyncio.sleep(0)
