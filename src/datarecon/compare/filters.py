"""
Soft-delete and temporal filtering of a relation.

Applied per relation (source and target) before projection and diffing.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from datarecon.errors import SchemaError
from datarecon.relations.base import Relation

from .boundaries import TemporalCutoff


@dataclass(frozen=True)
class FilterCriteria:
    """Filter column names for one relation."""

    deleted_flag_column: str = "_FIVETRAN_DELETED"
    created_column: str = "CREATED_AT"
    updated_column: str = "UPDATED_AT"

    def scan_columns(self, with_timestamps: bool) -> tuple[str, ...]:
        """Columns a scan must return for filtering."""
        if with_timestamps:
            return (self.deleted_flag_column, self.created_column, self.updated_column)
        return (self.deleted_flag_column,)


def _is_active(value: Any, column: str) -> bool:
    # Drivers without a native boolean (sqlite, some ODBC setups) return 0/1.
    if value is None:
        return False
    if isinstance(value, bool):
        return not value
    if type(value) is int and value in (0, 1):
        return value == 0
    raise SchemaError(
        f"Deleted flag column {column!r} must be boolean, got {type(value).__name__} value {value!r}"
    )


def _before(value: Any, bound: Any, column: str) -> bool:
    if bound is None:
        return True
    try:
        return value < bound
    except TypeError:
        raise SchemaError(
            f"Column {column!r} value of type {type(value).__name__} cannot be "
            f"compared with cutoff of type {type(bound).__name__}"
        ) from None


class RecordFilter(Relation):
    """
    Lazy, restartable filtered projection of a relation

    Rows pass when the deleted flag is False and, if a cutoff is given, both
    timestamps are present and strictly before the cutoff. With cutoff=None
    timestamps are ignored entirely, NULLs included.

    Args:
        relation: Scanned relation containing the projection and filter columns
        criteria: Filter column names for this relation
        projection: Output columns, in order
        cutoff: Optional temporal cutoff
    """

    def __init__(
        self,
        relation: Relation,
        criteria: FilterCriteria,
        projection: Sequence[str],
        cutoff: TemporalCutoff | None = None,
    ):
        self.relation = relation
        self.criteria = criteria
        self.cutoff = cutoff
        self.columns = tuple(projection)

        self._projection_idx = tuple(relation.column_index(col) for col in self.columns)
        self._deleted_idx = relation.column_index(criteria.deleted_flag_column)
        if cutoff is not None:
            self._created_idx = relation.column_index(criteria.created_column)
            self._updated_idx = relation.column_index(criteria.updated_column)

    def accepts(self, row: Sequence[Any]) -> bool:
        """Check a raw (unprojected) row against the filter."""
        if not _is_active(row[self._deleted_idx], self.criteria.deleted_flag_column):
            return False

        if self.cutoff is None:
            return True

        created = row[self._created_idx]
        updated = row[self._updated_idx]
        if created is None or updated is None:
            return False

        return (
            _before(created, self.cutoff.max_created_at, self.criteria.created_column)
            and _before(updated, self.cutoff.max_updated_at, self.criteria.updated_column)
        )

    def __iter__(self) -> Iterator[tuple]:
        idx = self._projection_idx
        for row in self.relation:
            if self.accepts(row):
                yield tuple(row[i] for i in idx)
