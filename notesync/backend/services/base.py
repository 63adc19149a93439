"""
Base Service.

Base class for services that work on the local note store. Services
implement business rules; stores handle persistence.

Usage:
    from notesync.backend.services.base import BaseService

    class NoteService(BaseService):
        async def delete_note(self, note_id: str) -> None:
            self._validate_required({"note_id": note_id}, ["note_id"])
            async with self.store.exclusive():
                ...
"""

from typing import Any

from notesync.backend.core.exceptions import ValidationError
from notesync.backend.core.logging import get_logger
from notesync.backend.storage.base import NoteStore


class BaseService:
    """
    Base class for all services.

    Provides:
    - Access to the note store
    - Logging context
    - Common validation patterns
    """

    def __init__(self, store: NoteStore) -> None:
        """
        Initialize the service with a note store.

        Args:
            store: Local note store shared with the sync engine
        """
        self._store = store
        self._logger = get_logger(self.__class__.__module__)

    @property
    def store(self) -> NoteStore:
        """Get the note store."""
        return self._store

    def _validate_required(
        self,
        fields: dict[str, Any],
        field_names: list[str],
    ) -> None:
        """
        Validate that required fields are present and not empty.

        Args:
            fields: Dictionary of field names to values
            field_names: List of required field names

        Raises:
            ValidationError: If any required field is missing or empty
        """
        missing = []
        for name in field_names:
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)

        if missing:
            raise ValidationError(
                "Required fields missing",
                details={"missing_fields": missing},
            )

    def _validate_positive(self, fields: dict[str, int]) -> None:
        """
        Validate that every value is greater than zero.

        Raises:
            ValidationError: Naming the offending fields
        """
        invalid = {name: "Must be greater than 0" for name, value in fields.items() if value <= 0}
        if invalid:
            raise ValidationError("Invalid values", details=invalid)

    def _log_operation(
        self,
        operation: str,
        **context: Any,
    ) -> None:
        """
        Log a service operation with context.

        Args:
            operation: Description of the operation
            **context: Additional context to include in log
        """
        self._logger.info(
            operation,
            extra={"service": self.__class__.__name__, **context},
        )

    def _log_debug(
        self,
        message: str,
        **context: Any,
    ) -> None:
        """
        Log debug information.

        Args:
            message: Debug message
            **context: Additional context to include in log
        """
        self._logger.debug(
            message,
            extra={"service": self.__class__.__name__, **context},
        )
