"""
SQLAlchemy mixin for soft delete functionality.

Mixing :class:`SoftDeleteMixin` into a mapped class opts it into soft delete
behaviour: ORM queries skip rows whose ``deleted_at`` is set, ``destroy()``
stamps ``deleted_at`` instead of removing the row, and ``restore()`` clears
it again.
"""

import logging
from datetime import datetime
from typing import Any, ContextManager, List, Optional, Tuple

from sqlalchemy import DateTime, delete, func, inspect, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.sql import Delete, Select

from . import scopes
from .clock import current_time
from .exceptions import DestroyVetoed, DetachedEntityError, SoftDeleteError
from .filters import UNSCOPED_OPTION
from .hooks import run_destroy_hooks

logger = logging.getLogger(__name__)


class SoftDeleteMixin:
    """
    Mixin to add soft delete functionality to SQLAlchemy models.

    Provides:
    - A nullable, indexed ``deleted_at`` timestamp column
    - ``destroy()``, ``restore()`` and ``delete()`` instance operations
    - Class-level finders honouring the active visibility scope
    - Scope overrides reaching destroyed rows

    Usage:
        class Android(Base, SoftDeleteMixin):
            __tablename__ = 'androids'
            id = Column(Integer, primary_key=True)
            name = Column(String)

        Android.find(session)                     # active androids
        Android.find_with_destroyed(session)      # every android
        Android.count_only_destroyed(session)     # destroyed androids
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    @property
    def is_destroyed(self) -> bool:
        """Has this entity been soft deleted?"""
        return self.deleted_at is not None

    # Scope overrides

    @classmethod
    def with_destroyed_scope(cls, session: Session) -> ContextManager[None]:
        """
        Make destroyed rows visible to queries inside the ``with`` block.

        Non-deletion criteria of the enclosing scope still apply.
        """
        return scopes.with_destroyed_scope(session, cls)

    @classmethod
    def with_only_destroyed_scope(cls, session: Session) -> ContextManager[None]:
        """Restrict queries inside the ``with`` block to destroyed rows."""
        return scopes.with_only_destroyed_scope(session, cls)

    @classmethod
    def scoped(cls, session: Session, *criteria: Any) -> ContextManager[None]:
        """Add filter criteria to queries inside the ``with`` block."""
        return scopes.scoped(session, cls, *criteria)

    # Base reads

    @classmethod
    def _select(cls, *criteria: Any, **filters: Any) -> Select[Any]:
        stmt = select(cls)
        if criteria:
            stmt = stmt.where(*criteria)
        if filters:
            stmt = stmt.filter_by(**filters)
        return stmt

    @classmethod
    def _identity_criteria(cls, ident: Any) -> List[Any]:
        primary_key = inspect(cls).primary_key
        values = ident if isinstance(ident, tuple) else (ident,)
        if len(values) != len(primary_key):
            raise ValueError(
                f"{cls.__name__} has {len(primary_key)} primary key column(s), "
                f"got {len(values)} value(s)"
            )
        return [column == value for column, value in zip(primary_key, values)]

    @classmethod
    def _primary_key_attribute(cls) -> Any:
        # Mapped attribute, so column-only selects still carry the entity
        mapper = inspect(cls)
        return mapper.get_property_by_column(mapper.primary_key[0]).class_attribute

    @classmethod
    def find(cls, session: Session, *criteria: Any, **filters: Any) -> List[Any]:
        """
        Return all visible records matching the criteria.

        Args:
            session: SQLAlchemy session
            *criteria: SQL expressions, e.g. ``Android.name == "Data"``
            **filters: Keyword equality filters, e.g. ``name="Data"``

        Returns:
            List of matching entities
        """
        return list(session.scalars(cls._select(*criteria, **filters)).all())

    @classmethod
    def find_by_id(cls, session: Session, ident: Any) -> Optional[Any]:
        """
        Return the visible record with the given primary key, if any.

        Composite keys are passed as a tuple in primary key column order.
        """
        stmt = select(cls).where(*cls._identity_criteria(ident))
        return session.scalars(stmt).one_or_none()

    @classmethod
    def count(cls, session: Session, *criteria: Any, **filters: Any) -> int:
        """Count visible records matching the criteria."""
        stmt = select(func.count(cls._primary_key_attribute()))
        if criteria:
            stmt = stmt.where(*criteria)
        if filters:
            stmt = stmt.filter_by(**filters)
        return session.scalar(stmt) or 0

    @classmethod
    def exists(cls, session: Session, *criteria: Any, **filters: Any) -> bool:
        """Check whether any visible record matches the criteria."""
        stmt = select(cls._primary_key_attribute())
        if criteria:
            stmt = stmt.where(*criteria)
        if filters:
            stmt = stmt.filter_by(**filters)
        return session.scalar(stmt.limit(1)) is not None

    # Reads across visibility scopes

    @classmethod
    def find_with_destroyed(
        cls, session: Session, *criteria: Any, **filters: Any
    ) -> List[Any]:
        """Return matching records whether or not they have been destroyed."""
        with cls.with_destroyed_scope(session):
            return cls.find(session, *criteria, **filters)

    @classmethod
    def find_only_destroyed(
        cls, session: Session, *criteria: Any, **filters: Any
    ) -> List[Any]:
        """Return matching records that have been destroyed."""
        with cls.with_only_destroyed_scope(session):
            return cls.find(session, *criteria, **filters)

    @classmethod
    def count_with_destroyed(
        cls, session: Session, *criteria: Any, **filters: Any
    ) -> int:
        """Count matching records including destroyed ones."""
        with cls.with_destroyed_scope(session):
            return cls.count(session, *criteria, **filters)

    @classmethod
    def count_only_destroyed(
        cls, session: Session, *criteria: Any, **filters: Any
    ) -> int:
        """Count matching records that have been destroyed."""
        with cls.with_only_destroyed_scope(session):
            return cls.count(session, *criteria, **filters)

    @classmethod
    def exists_with_destroyed(
        cls, session: Session, *criteria: Any, **filters: Any
    ) -> bool:
        """Check for a matching record, even if it has been destroyed."""
        with cls.with_destroyed_scope(session):
            return cls.exists(session, *criteria, **filters)

    @classmethod
    def exists_only_destroyed(
        cls, session: Session, *criteria: Any, **filters: Any
    ) -> bool:
        """Check for a matching record that has been destroyed."""
        with cls.with_only_destroyed_scope(session):
            return cls.exists(session, *criteria, **filters)

    # Physical deletes

    @classmethod
    def delete_all(cls, session: Session, *criteria: Any, **filters: Any) -> int:
        """
        Physically delete matching records, bypassing the soft delete filter.

        Destroyed rows are eligible too. Instances already loaded in the
        session are not synchronized.

        Returns:
            Number of rows deleted
        """
        stmt: Delete = delete(cls)
        if criteria:
            stmt = stmt.where(*criteria)
        if filters:
            stmt = stmt.filter_by(**filters)

        with cls.with_destroyed_scope(session):
            result = session.execute(
                stmt.execution_options(synchronize_session=False)
            )

        logger.info("Deleted %d %s row(s)", result.rowcount, cls.__name__)
        return result.rowcount

    @classmethod
    def delete_by_id(cls, session: Session, ident: Any) -> int:
        """Physically delete the record with the given primary key."""
        stmt = (
            delete(cls)
            .where(*cls._identity_criteria(ident))
            .execution_options(synchronize_session=False, **{UNSCOPED_OPTION: True})
        )
        result = session.execute(stmt)
        logger.info("Deleted %s %s", cls.__name__, ident)
        return result.rowcount

    def delete(self) -> None:
        """Physically delete this record and expunge it from its session."""
        session = self._persistent_session()
        type(self).delete_by_id(session, self._identity())
        session.expunge(self)

    # Soft deletes

    @classmethod
    def destroy_all(cls, session: Session, *criteria: Any, **filters: Any) -> List[Any]:
        """
        Destroy every visible record matching the criteria.

        Destroy hooks fire for each record. Records whose destroy is vetoed
        are skipped.

        Returns:
            List of destroyed entities
        """
        destroyed = []
        for entity in cls.find(session, *criteria, **filters):
            if entity.is_destroyed:
                continue
            try:
                entity.destroy()
            except DestroyVetoed as e:
                logger.info("Skipping %s %s: %s", cls.__name__, e.entity_id, e)
                continue
            destroyed.append(entity)
        return destroyed

    @classmethod
    def destroy_by_id(cls, session: Session, ident: Any) -> Any:
        """
        Destroy the visible record with the given primary key.

        Raises:
            SoftDeleteError: If no visible record has that key
        """
        entity = cls.find_by_id(session, ident)
        if entity is None:
            raise SoftDeleteError(
                f"{cls.__name__} with ID {ident} not found", entity_id=str(ident)
            )
        return entity.destroy()

    def destroy(self) -> Any:
        """
        Soft delete this record.

        Runs the registered before/after destroy hooks around stamping
        ``deleted_at`` with the current time. The change is written with a
        direct UPDATE, so mapper update events do not fire. Destroying an
        already destroyed record stamps it again.

        Returns:
            This entity

        Raises:
            DestroyVetoed: If a before_destroy hook halts the destroy
            DetachedEntityError: If the record is not persistent in a session
        """
        session = self._persistent_session()
        with run_destroy_hooks(self):
            self._write_deleted_at(session, current_time())

        logger.info("Destroyed %s %s", type(self).__name__, self._entity_id())
        return self

    def restore(self) -> Any:
        """
        Restore a soft-deleted record.

        ``deleted_at`` is cleared with a direct UPDATE; no hooks fire.
        Restoring an active record writes the same NULL again.

        Returns:
            This entity

        Raises:
            DetachedEntityError: If the record is not persistent in a session
        """
        self._write_deleted_at(self._persistent_session(), None)

        logger.info("Restored %s %s", type(self).__name__, self._entity_id())
        return self

    # Internals

    def _persistent_session(self) -> Session:
        state = inspect(self)
        if not state.persistent or state.session is None:
            raise DetachedEntityError(self._entity_id())
        return state.session

    def _identity(self) -> Tuple[Any, ...]:
        return inspect(self).identity

    def _entity_id(self) -> str:
        identity = inspect(self).identity
        if not identity:
            return "unknown"
        return ", ".join(str(value) for value in identity)

    def _write_deleted_at(self, session: Session, value: Optional[datetime]) -> None:
        stmt = (
            update(type(self))
            .where(*type(self)._identity_criteria(self._identity()))
            .values(deleted_at=value)
            .execution_options(synchronize_session=False, **{UNSCOPED_OPTION: True})
        )
        session.execute(stmt)
        set_committed_value(self, "deleted_at", value)
