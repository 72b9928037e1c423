"""
Scope overrides for soft-deletable queries.

Every SQLAlchemy session carries its own stack of ``QueryScope`` overrides.
The innermost scope covering an entity type decides which of its rows the
session's ORM statements may see. Keeping the stack on the session confines
it to the session's thread or request.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Type

from sqlalchemy.orm import Session

from ..config import get_config
from .exceptions import ScopeStackError
from .models import QueryScope, Visibility

logger = logging.getLogger(__name__)

SCOPE_STACK_KEY = "paranoia_toolkit.scope_stack"


class ScopeStack:
    """Ordered stack of active scope overrides, innermost last."""

    def __init__(self) -> None:
        self._scopes: List[QueryScope] = []

    def __len__(self) -> int:
        return len(self._scopes)

    @property
    def depth(self) -> int:
        """Number of scope overrides currently in effect."""
        return len(self._scopes)

    def current(self, entity: Type[Any]) -> QueryScope:
        """
        Return the innermost scope covering ``entity``.

        Args:
            entity: Mapped class being queried

        Returns:
            The active scope, or a default scope when none covers the entity
        """
        for scope in reversed(self._scopes):
            if scope.applies_to(entity):
                return scope
        return QueryScope(entity=entity)

    def push(self, scope: QueryScope) -> None:
        self._scopes.append(scope)
        logger.debug(
            "Pushed %s scope for %s (depth %d)",
            scope.visibility.value,
            scope.entity.__name__,
            len(self._scopes),
        )

    def pop(self, scope: QueryScope) -> QueryScope:
        """
        Remove ``scope`` from the top of the stack.

        Raises:
            ScopeStackError: If ``scope`` is not the innermost override
        """
        if not self._scopes or self._scopes[-1] is not scope:
            raise ScopeStackError(
                f"Scope for {scope.entity.__name__} is not the innermost scope"
            )
        self._scopes.pop()
        logger.debug(
            "Popped %s scope for %s (depth %d)",
            scope.visibility.value,
            scope.entity.__name__,
            len(self._scopes),
        )
        return scope

    @contextmanager
    def activate(self, scope: QueryScope) -> Iterator[QueryScope]:
        """Push ``scope`` for the duration of the block, popping on every exit."""
        self.push(scope)
        try:
            yield scope
        finally:
            self.pop(scope)


def get_scope_stack(session: Session) -> ScopeStack:
    """Return the scope stack of ``session``, creating it on first use."""
    stack = session.info.get(SCOPE_STACK_KEY)
    if stack is None:
        stack = session.info[SCOPE_STACK_KEY] = ScopeStack()
    return stack


@contextmanager
def visibility_scope(
    session: Session, entity: Type[Any], visibility: Visibility
) -> Iterator[None]:
    """
    Run the block with ``entity`` queries at the given visibility.

    The new scope keeps every non-deletion criterion of the current scope.
    When soft delete filtering is disabled there is no default filter to
    lift, so the block runs unchanged.
    """
    if not get_config().soft_delete_enabled:
        yield
        return

    stack = get_scope_stack(session)
    scope = stack.current(entity).derive(entity, visibility)
    with stack.activate(scope):
        yield


@contextmanager
def with_destroyed_scope(session: Session, entity: Type[Any]) -> Iterator[None]:
    """Make active and destroyed ``entity`` rows visible inside the block."""
    with visibility_scope(session, entity, Visibility.WITH_DESTROYED):
        yield


@contextmanager
def with_only_destroyed_scope(session: Session, entity: Type[Any]) -> Iterator[None]:
    """
    Make only destroyed ``entity`` rows visible inside the block.

    The ``deleted_at IS NOT NULL`` condition is an ordinary scope criterion,
    so a nested :func:`with_destroyed_scope` keeps it.
    """
    with with_destroyed_scope(session, entity):
        with scoped(session, entity, entity.deleted_at.is_not(None)):
            yield


@contextmanager
def scoped(session: Session, entity: Type[Any], *criteria: Any) -> Iterator[None]:
    """
    Add filter criteria to every ``entity`` query inside the block.

    Example:
        >>> with scoped(session, Android, Android.model == "T-800"):
        ...     with with_destroyed_scope(session, Android):
        ...         Android.find(session)  # every T-800, destroyed or not
    """
    stack = get_scope_stack(session)
    scope = stack.current(entity).merge(entity, *criteria)
    with stack.activate(scope):
        yield
