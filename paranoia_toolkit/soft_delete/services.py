"""
Service layer for soft delete operations.

Provides session-bound helpers for restoring, listing, purging and reporting
on soft-deleted records.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import ParanoiaConfig, get_config
from .clock import current_time
from .exceptions import SoftDeleteError
from .mixins import SoftDeleteMixin
from .models import VisibilityCounts, VisibilityReport

logger = logging.getLogger(__name__)


class SoftDeleteService:
    """
    Service for managing soft-deleted records of one session.

    The service flushes its writes through the session but never commits;
    transaction boundaries belong to the caller.
    """

    def __init__(self, session: Session, config: Optional[ParanoiaConfig] = None):
        """
        Initialize the soft delete service.

        Args:
            session: SQLAlchemy database session
            config: Optional configuration, defaults to the global one
        """
        self.session = session
        self.config = config or get_config()

    def destroy(self, entity: SoftDeleteMixin) -> SoftDeleteMixin:
        """Soft delete an entity, running its destroy hooks."""
        self._check_session(entity)
        return entity.destroy()

    def restore(self, entity: SoftDeleteMixin) -> SoftDeleteMixin:
        """Restore a soft-deleted entity."""
        self._check_session(entity)
        return entity.restore()

    def restore_by_id(self, model: Type[SoftDeleteMixin], ident: Any) -> Any:
        """
        Restore a destroyed record by primary key.

        Args:
            model: Soft-deletable model class
            ident: Primary key value (tuple for composite keys)

        Returns:
            Restored entity

        Raises:
            SoftDeleteError: If no destroyed record has that key
        """
        with model.with_only_destroyed_scope(self.session):
            entity = model.find_by_id(self.session, ident)

        if entity is None:
            raise SoftDeleteError(
                f"Destroyed {model.__name__} with ID {ident} not found",
                entity_id=str(ident),
            )

        return entity.restore()

    def list_destroyed(
        self,
        model: Type[SoftDeleteMixin],
        destroyed_after: Optional[datetime] = None,
        destroyed_before: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Any]:
        """
        Get destroyed records, newest deletion first.

        Args:
            model: Soft-deletable model class
            destroyed_after: Only records destroyed at or after this time
            destroyed_before: Only records destroyed at or before this time
            limit: Maximum records to return
            offset: Offset for pagination

        Returns:
            List of destroyed entities
        """
        stmt = select(model)
        if destroyed_after is not None:
            stmt = stmt.where(model.deleted_at >= destroyed_after)
        if destroyed_before is not None:
            stmt = stmt.where(model.deleted_at <= destroyed_before)
        stmt = stmt.order_by(model.deleted_at.desc()).limit(limit).offset(offset)

        with model.with_only_destroyed_scope(self.session):
            return list(self.session.scalars(stmt).all())

    def purge_destroyed(
        self, model: Type[SoftDeleteMixin], older_than_days: Optional[int] = None
    ) -> int:
        """
        Physically delete records destroyed longer ago than the retention period.

        Args:
            model: Soft-deletable model class
            older_than_days: Retention in days, defaults to
                ``config.purge_after_days``

        Returns:
            Number of rows purged
        """
        days = older_than_days if older_than_days is not None else (
            self.config.purge_after_days
        )
        if days < 0:
            raise ValueError("Retention period must not be negative")

        cutoff = current_time(self.config) - timedelta(days=days)
        purged = model.delete_all(
            self.session,
            model.deleted_at.is_not(None),
            model.deleted_at < cutoff,
        )

        logger.info(
            "Purged %d %s row(s) destroyed before %s",
            purged,
            model.__name__,
            cutoff.isoformat(),
        )
        return purged

    def count_visibility(self, model: Type[SoftDeleteMixin]) -> VisibilityCounts:
        """Count active and destroyed rows of one model."""
        total = model.count_with_destroyed(self.session)
        destroyed = model.count_only_destroyed(self.session)
        return VisibilityCounts(
            entity_type=model.__name__,
            active=total - destroyed,
            destroyed=destroyed,
        )

    def visibility_report(
        self, models: Iterable[Type[SoftDeleteMixin]]
    ) -> VisibilityReport:
        """
        Generate a report of active and destroyed rows.

        Args:
            models: Soft-deletable model classes to include

        Returns:
            Report with per-model counts
        """
        report = VisibilityReport()
        for model in models:
            report.add_counts(self.count_visibility(model))
        return report

    def _check_session(self, entity: SoftDeleteMixin) -> None:
        if entity not in self.session:
            raise SoftDeleteError(
                f"{entity.__class__.__name__} does not belong to this service's session",
                entity_id=entity._entity_id(),
            )
