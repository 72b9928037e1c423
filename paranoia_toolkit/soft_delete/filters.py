"""
Query filtering for soft-deletable models.

A ``do_orm_execute`` listener on :class:`sqlalchemy.orm.Session` adds the
visibility predicate of the active scope to every ORM-enabled SELECT, UPDATE
and DELETE statement that touches a soft-deletable model.
"""

import logging
from typing import Any, List, Optional, Type, TypeVar

from sqlalchemy import event
from sqlalchemy.orm import Mapper, ORMExecuteState, Session, with_loader_criteria
from sqlalchemy.sql import Executable
from sqlalchemy.sql.elements import ColumnElement

from ..config import get_config
from .models import QueryScope, Visibility
from .scopes import get_scope_stack

logger = logging.getLogger(__name__)

# Execution option overriding the scope's visibility for one statement
VISIBILITY_OPTION = "soft_delete_visibility"
# Execution option disabling soft delete filtering for one statement
UNSCOPED_OPTION = "soft_delete_unscoped"

E = TypeVar("E", bound=Executable)


def with_visibility(statement: E, visibility: Visibility) -> E:
    """
    Set the visibility of soft-deleted rows for a single statement.

    Example:
        >>> stmt = with_visibility(select(Android), Visibility.ONLY_DESTROYED)
        >>> session.scalars(stmt).all()
    """
    return statement.execution_options(**{VISIBILITY_OPTION: Visibility(visibility)})


def visibility_criterion(
    entity: Type[Any], visibility: Visibility
) -> Optional[ColumnElement[bool]]:
    """
    Return the deletion predicate for ``entity`` at ``visibility``.

    Returns:
        ``deleted_at IS NULL``, ``deleted_at IS NOT NULL`` or None when every
        row is visible
    """
    if visibility == Visibility.DEFAULT:
        return entity.deleted_at.is_(None)
    if visibility == Visibility.ONLY_DESTROYED:
        return entity.deleted_at.is_not(None)
    return None


def scope_criteria(scope: QueryScope, entity: Type[Any]) -> List[Any]:
    """Return every criterion ``scope`` imposes on ``entity`` queries."""
    criteria: List[Any] = []
    if get_config().soft_delete_enabled:
        predicate = visibility_criterion(entity, scope.visibility)
        if predicate is not None:
            criteria.append(predicate)
    criteria.extend(scope.criteria)
    return criteria


def _soft_deletable_mappers(execute_state: ORMExecuteState) -> List[Mapper[Any]]:
    from .mixins import SoftDeleteMixin

    mappers: List[Mapper[Any]] = list(execute_state.all_mappers)
    bind_mapper = execute_state.bind_mapper
    if bind_mapper is not None and bind_mapper not in mappers:
        mappers.append(bind_mapper)

    return [
        mapper for mapper in mappers if issubclass(mapper.class_, SoftDeleteMixin)
    ]


@event.listens_for(Session, "do_orm_execute")
def _apply_visibility_criteria(execute_state: ORMExecuteState) -> None:
    """Add scope criteria to ORM statements on soft-deletable models."""
    if not execute_state.is_orm_statement:
        return
    if execute_state.is_select:
        # Refreshing a loaded instance must reach destroyed rows too
        if execute_state.is_column_load or execute_state.is_relationship_load:
            return
    elif not (execute_state.is_update or execute_state.is_delete):
        return

    options = execute_state.execution_options
    if options.get(UNSCOPED_OPTION, False):
        return

    stack = get_scope_stack(execute_state.session)
    override = options.get(VISIBILITY_OPTION)

    loader_criteria = []
    for mapper in _soft_deletable_mappers(execute_state):
        entity = mapper.class_
        scope = stack.current(entity)
        if override is not None:
            scope = scope.derive(entity, Visibility(override))

        for criterion in scope_criteria(scope, entity):
            loader_criteria.append(
                with_loader_criteria(entity, criterion, include_aliases=True)
            )

        logger.debug(
            "Applying %s visibility to %s", scope.visibility.value, entity.__name__
        )

    if loader_criteria:
        execute_state.statement = execute_state.statement.options(*loader_criteria)
