"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.

Sync failures carry the cycle step that failed. They are raised by the
sync orchestrator and are the only errors a sync cycle surfaces to its caller.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a resource cannot be found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class AuthenticationError(ApplicationError):
    """Raised when the remote store cannot be authenticated against."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class ExternalServiceError(ApplicationError):
    """Raised when an external service call fails."""

    def __init__(self, message: str = "External service error", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message, code="SYS_EXTERNAL_SERVICE_ERROR")


class DatabaseError(ApplicationError):
    """Raised when a local store operation fails."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, code="SYS_DATABASE_ERROR")


# =============================================================================
# Sync cycle failures
# =============================================================================


class SyncError(ApplicationError):
    """Base class for a failed sync cycle."""

    step = "cycle"
    # Set once the merged collection reached the local store.
    after_persist = False

    def __init__(self, message: str = "Sync failed", code: str = "SYNC_FAILED") -> None:
        super().__init__(message, code=code)


class IdentityFetchFailed(SyncError):
    step = "identity"

    def __init__(self, message: str = "Could not determine the remote account") -> None:
        super().__init__(message, code="SYNC_IDENTITY_FAILED")


class ObjectLocateFailed(SyncError):
    step = "locate"

    def __init__(self, message: str = "Could not locate the sync file") -> None:
        super().__init__(message, code="SYNC_LOCATE_FAILED")


class ObjectReadFailed(SyncError):
    step = "read"

    def __init__(self, message: str = "Could not read the sync file") -> None:
        super().__init__(message, code="SYNC_READ_FAILED")


class ObjectWriteFailed(SyncError):
    step = "write"

    def __init__(self, message: str = "Could not write the sync file") -> None:
        super().__init__(message, code="SYNC_WRITE_FAILED")


class LocalPersistFailed(SyncError):
    step = "persist"

    def __init__(self, message: str = "Could not save merged notes locally") -> None:
        super().__init__(message, code="SYNC_PERSIST_FAILED")
