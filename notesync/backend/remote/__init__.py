"""
Remote blob channels.

create_remote_channel() builds the channel named in sync.yaml.
"""

from notesync.backend.core.logging import get_logger
from notesync.backend.remote.base import RemoteBlobChannel, SyncObjectRef
from notesync.backend.storage.base import SyncStateStore

logger = get_logger(__name__)


def create_remote_channel(state_store: SyncStateStore) -> RemoteBlobChannel:
    """Build the configured remote channel."""
    from notesync.backend.core.config import get_app_config, get_settings

    sync_config = get_app_config().sync

    if sync_config.provider == "memory":
        from notesync.backend.remote.memory import InMemoryBlobChannel

        channel: RemoteBlobChannel = InMemoryBlobChannel(object_name=sync_config.object_name)
    else:
        from notesync.backend.core.resilience import create_circuit_breaker
        from notesync.backend.remote.google_drive import GoogleDriveChannel

        settings = get_settings()
        channel = GoogleDriveChannel(
            state_store,
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            object_name=sync_config.object_name,
            breaker=create_circuit_breaker(
                "google-drive",
                fail_max=sync_config.circuit_breaker.fail_max,
                timeout_duration=sync_config.circuit_breaker.timeout_duration,
            ),
            max_attempts=sync_config.retry.max_attempts,
            backoff_multiplier=sync_config.retry.backoff_multiplier,
            backoff_max=sync_config.retry.backoff_max,
        )

    logger.info("Remote channel created", extra={"provider": channel.provider_name})
    return channel


__all__ = ["RemoteBlobChannel", "SyncObjectRef", "create_remote_channel"]
