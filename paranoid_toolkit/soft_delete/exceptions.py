"""Exceptions for soft delete operations."""

from typing import Dict, List, Optional


class ParanoidError(Exception):
    """Base exception for soft delete operations."""

    def __init__(self, message: str, entity_id: Optional[str] = None):
        self.entity_id = entity_id
        super().__init__(message)


class RecordInvalid(ParanoidError):
    """Raised when a record fails validation on save."""

    def __init__(
        self, entity_type: str, errors: Dict[str, List[str]], entity_id: Optional[str] = None
    ):
        self.entity_type = entity_type
        self.errors = errors
        details = "; ".join(
            f"{field} {message}"
            for field, messages in errors.items()
            for message in messages
        )
        super().__init__(
            f"Validation failed for {entity_type}: {details}", entity_id=entity_id
        )


class HardDeleteError(ParanoidError):
    """Raised when a paranoid record is removed with session.delete()."""

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            f"Hard delete attempted on {entity_type} {entity_id}. "
            "Use destroy() or delete_all() instead.",
            entity_id=entity_id,
        )
