"""
Soft Delete Module - recoverable deletions for SQLAlchemy models.

Provides the mixin, scope overrides, query filtering, destroy hooks and
service helpers that keep soft-deleted rows out of queries by default.
Importing this module registers the query filter on every SQLAlchemy
session.
"""

from . import hooks
from .clock import current_time
from .exceptions import (
    DestroyVetoed,
    DetachedEntityError,
    ScopeStackError,
    SoftDeleteError,
)
from .filters import UNSCOPED_OPTION, VISIBILITY_OPTION, with_visibility
from .mixins import SoftDeleteMixin
from .models import QueryScope, Visibility, VisibilityCounts, VisibilityReport
from .scopes import (
    ScopeStack,
    get_scope_stack,
    scoped,
    with_destroyed_scope,
    with_only_destroyed_scope,
)
from .services import SoftDeleteService

__all__ = [
    # Mixins
    "SoftDeleteMixin",
    # Services
    "SoftDeleteService",
    # Models
    "Visibility",
    "QueryScope",
    "VisibilityCounts",
    "VisibilityReport",
    # Scopes
    "ScopeStack",
    "get_scope_stack",
    "scoped",
    "with_destroyed_scope",
    "with_only_destroyed_scope",
    # Filtering
    "with_visibility",
    "VISIBILITY_OPTION",
    "UNSCOPED_OPTION",
    # Hooks
    "hooks",
    # Utilities
    "current_time",
    # Exceptions
    "SoftDeleteError",
    "DestroyVetoed",
    "DetachedEntityError",
    "ScopeStackError",
]
