"""
Data models for soft delete operations.

These models describe query visibility, the scope overrides that are active
for a session, and the summary reports produced by the service layer.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field

from .clock import current_time


class Visibility(str, Enum):
    """Which rows of a soft-deletable entity a query may see."""

    DEFAULT = "default"  # active rows only
    WITH_DESTROYED = "with_destroyed"  # active and destroyed rows
    ONLY_DESTROYED = "only_destroyed"  # destroyed rows only


class QueryScope(BaseModel):
    """
    Immutable query scope for one entity type.

    A scope carries the visibility mode and any additional filter criteria
    in effect for ``entity`` (and its subclasses). Scopes are never mutated;
    ``derive`` and ``merge`` return new instances so a nested scope cannot
    corrupt the scope it was derived from.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    entity: Type[Any] = Field(..., description="Mapped class the scope applies to")
    visibility: Visibility = Field(
        Visibility.DEFAULT, description="Visibility of soft-deleted rows"
    )
    criteria: Tuple[Any, ...] = Field(
        default_factory=tuple, description="Extra SQL criteria for the entity"
    )

    def applies_to(self, entity: Type[Any]) -> bool:
        """Check whether this scope covers the given mapped class."""
        return isinstance(entity, type) and issubclass(entity, self.entity)

    def derive(self, entity: Type[Any], visibility: Visibility) -> "QueryScope":
        """Return a copy for ``entity`` with only the visibility replaced."""
        return self.model_copy(update={"entity": entity, "visibility": visibility})

    def merge(self, entity: Type[Any], *criteria: Any) -> "QueryScope":
        """Return a copy for ``entity`` with extra criteria appended."""
        return self.model_copy(
            update={"entity": entity, "criteria": self.criteria + tuple(criteria)}
        )


class VisibilityCounts(BaseModel):
    """Row counts for one soft-deletable entity type."""

    entity_type: str = Field(..., description="Name of the mapped class")
    active: int = Field(0, description="Rows with deleted_at unset", ge=0)
    destroyed: int = Field(0, description="Rows with deleted_at set", ge=0)

    @property
    def total(self) -> int:
        return self.active + self.destroyed


class VisibilityReport(BaseModel):
    """Summary of active and destroyed rows across entity types."""

    generated_at: datetime = Field(
        default_factory=current_time, description="When the report was produced"
    )
    by_type: Dict[str, VisibilityCounts] = Field(
        default_factory=dict, description="Counts keyed by entity type"
    )

    @property
    def total_active(self) -> int:
        return sum(counts.active for counts in self.by_type.values())

    @property
    def total_destroyed(self) -> int:
        return sum(counts.destroyed for counts in self.by_type.values())

    def add_counts(self, counts: VisibilityCounts) -> None:
        """Add the counts for one entity type to the report."""
        self.by_type[counts.entity_type] = counts
