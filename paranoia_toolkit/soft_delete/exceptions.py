"""Exceptions for soft delete operations."""

from typing import Optional


class SoftDeleteError(Exception):
    """Base exception for soft delete operations."""

    def __init__(self, message: str, entity_id: Optional[str] = None):
        self.entity_id = entity_id
        super().__init__(message)


class DestroyVetoed(SoftDeleteError):
    """Raised when a before_destroy hook halts the destroy."""

    def __init__(self, entity_id: str, hook_name: str):
        self.hook_name = hook_name
        super().__init__(
            f"Destroy of entity {entity_id} was vetoed by hook {hook_name}",
            entity_id=entity_id,
        )


class DetachedEntityError(SoftDeleteError):
    """Raised when an entity is not persistent in a session."""

    def __init__(self, entity_id: str):
        super().__init__(
            f"Entity {entity_id} must be persistent in a session",
            entity_id=entity_id,
        )


class ScopeStackError(SoftDeleteError):
    """Raised when scope overrides are popped out of order."""

    def __init__(self, message: str):
        super().__init__(message)
