"""
Temporal cutoff resolution from a reference relation.

The reference relation (often the target itself) pins the comparison window
to data that had already landed, so rows still in flight are not reported
as missing.
"""

import logging
from dataclasses import dataclass
from typing import Any

from datarecon.errors import SchemaError
from datarecon.relations.base import Relation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemporalCutoff:
    """
    Upper bounds for created/updated timestamps

    A None half means the reference had no value for that dimension and the
    dimension is left unbounded.
    """

    max_created_at: Any = None
    max_updated_at: Any = None

    @property
    def is_unbounded(self) -> bool:
        return self.max_created_at is None and self.max_updated_at is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_created_at": _isoformat(self.max_created_at),
            "max_updated_at": _isoformat(self.max_updated_at),
        }


def _isoformat(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _running_max(current: Any, value: Any, column: str) -> Any:
    if value is None:
        return current
    if current is None:
        return value
    try:
        return value if value > current else current
    except TypeError:
        raise SchemaError(
            f"Reference column {column!r} mixes incomparable values: "
            f"{type(current).__name__} and {type(value).__name__}"
        ) from None


def resolve_temporal_cutoff(
    reference: Relation | None,
    created_column: str = "CREATED_AT",
    updated_column: str = "UPDATED_AT",
) -> TemporalCutoff | None:
    """
    Compute the temporal cutoff from a reference relation in a single pass

    Args:
        reference: Reference relation, or None when no reference table is configured
        created_column: Creation timestamp column of the reference
        updated_column: Update timestamp column of the reference

    Returns:
        None when there is no reference (no temporal filtering at all),
        otherwise a TemporalCutoff with the NULL-ignoring maxima. An empty
        reference yields TemporalCutoff(None, None).

    Raises:
        SchemaError: If a column is missing or holds incomparable values
    """
    if reference is None:
        return None

    created_idx = reference.column_index(created_column)
    updated_idx = reference.column_index(updated_column)

    max_created = None
    max_updated = None
    rows = 0
    for row in reference:
        rows += 1
        max_created = _running_max(max_created, row[created_idx], created_column)
        max_updated = _running_max(max_updated, row[updated_idx], updated_column)

    cutoff = TemporalCutoff(max_created_at=max_created, max_updated_at=max_updated)

    if cutoff.is_unbounded:
        logger.warning(
            f"Reference relation yielded no timestamps ({rows} rows scanned); "
            "temporal bounds left open"
        )
    else:
        logger.debug(
            f"Resolved temporal cutoff from {rows} reference rows: "
            f"created<{max_created}, updated<{max_updated}"
        )

    return cutoff
