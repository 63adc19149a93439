"""
Sync Signal Channel.

Secondary execution contexts (extra note windows, helper processes) never
run a sync cycle themselves. They publish a SyncRequested signal; the main
context is the single consumer and schedules a cycle through its trigger
policy.

Two transports implement the same contract:
    InProcessSignalChannel - contexts sharing one event loop
    RedisSignalChannel     - contexts in separate processes (FastStream / Redis pub/sub)
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from notesync.backend.core.logging import get_logger
from notesync.backend.events.schemas import SyncRequested

logger = get_logger(__name__)

SyncRequestHandler = Callable[[SyncRequested], Awaitable[None]]


class SyncSignalChannel(ABC):
    """One producer side (secondary contexts), one consumer (the main context)."""

    @abstractmethod
    async def send_sync_request(self, source: str) -> None:
        """Ask the main context to run a sync cycle. Returns without waiting for it."""
        ...

    @abstractmethod
    async def on_sync_request(self, callback: SyncRequestHandler) -> None:
        """Register the main context's handler. Only one handler is allowed."""
        ...

    async def start(self) -> None:
        return None

    async def close(self) -> None:
        return None


class InProcessSignalChannel(SyncSignalChannel):
    """Signal channel for contexts living in the same event loop."""

    def __init__(self) -> None:
        self._handler: SyncRequestHandler | None = None
        self._pending: set[asyncio.Task] = set()

    async def send_sync_request(self, source: str) -> None:
        event = SyncRequested(source=source, payload={"context": source})
        if self._handler is None:
            logger.warning("Sync request dropped, no main context listening", extra={"source": source})
            return
        task = asyncio.create_task(self._handler(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        logger.debug("Sync request sent", extra={"source": source, "event_id": event.event_id})

    async def on_sync_request(self, callback: SyncRequestHandler) -> None:
        if self._handler is not None:
            raise RuntimeError("A sync request handler is already registered")
        self._handler = callback

    async def close(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


class RedisSignalChannel(SyncSignalChannel):
    """Signal channel over Redis pub/sub via FastStream."""

    def __init__(self, broker, channel_name: str) -> None:
        self._broker = broker
        self._channel_name = channel_name
        self._has_handler = False

    async def send_sync_request(self, source: str) -> None:
        event = SyncRequested(source=source, payload={"context": source})
        await self._broker.publish(event.model_dump(), channel=self._channel_name)
        logger.debug(
            "Sync request published",
            extra={"channel": self._channel_name, "source": source, "event_id": event.event_id},
        )

    async def on_sync_request(self, callback: SyncRequestHandler) -> None:
        if self._has_handler:
            raise RuntimeError("A sync request handler is already registered")
        self._has_handler = True

        @self._broker.subscriber(self._channel_name)
        async def handle_sync_requested(data: dict) -> None:
            event = SyncRequested(**data)
            logger.info(
                "Sync request received",
                extra={"source": event.source, "event_id": event.event_id},
            )
            await callback(event)

    async def start(self) -> None:
        await self._broker.start()

    async def close(self) -> None:
        await self._broker.close()


def create_signal_channel() -> SyncSignalChannel:
    """Build the signal channel selected by features.events_redis_enabled."""
    from notesync.backend.core.config import get_app_config

    config = get_app_config()
    if config.features.events_redis_enabled:
        from notesync.backend.events.broker import get_event_broker

        return RedisSignalChannel(get_event_broker(), config.events.sync_request_channel)
    return InProcessSignalChannel()
