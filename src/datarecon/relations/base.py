"""
Relation abstractions and the in-memory scan collaborator.

A relation is a named-column, re-enumerable sequence of tuples. Iterating a
relation twice scans it twice; nothing is cached between passes.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any

from datarecon.errors import SchemaError

logger = logging.getLogger(__name__)


class Relation(ABC):
    """Re-enumerable sequence of rows over an ordered column schema."""

    columns: tuple[str, ...]

    @abstractmethod
    def __iter__(self) -> Iterator[tuple]:
        """Start a fresh scan of the relation."""

    def column_index(self, column: str) -> int:
        """
        Position of a column in this relation's schema

        Raises:
            SchemaError: If the column is not part of the schema
        """
        try:
            return self.columns.index(column)
        except ValueError:
            raise SchemaError(
                f"Column {column!r} not found (available: {', '.join(self.columns)})"
            ) from None


class LazyRelation(Relation):
    """
    Relation backed by a scan callable

    Each iteration calls the callable again, so a remote scan is re-issued
    for every pass.
    """

    def __init__(self, columns: Sequence[str], scan: Callable[[], Iterable[tuple]]):
        self.columns = tuple(columns)
        self._scan = scan

    def __iter__(self) -> Iterator[tuple]:
        return iter(self._scan())

    def __repr__(self) -> str:
        return f"LazyRelation(columns={self.columns!r})"


class InMemoryRelation(Relation):
    """
    Materialized relation, mainly for tests and embedding

    Args:
        columns: Ordered column names
        rows: Rows as sequences (in column order) or as mappings keyed by column
    """

    def __init__(self, columns: Sequence[str], rows: Iterable[Sequence[Any] | Mapping[str, Any]] = ()):
        self.columns = tuple(columns)
        materialized = []
        for row in rows:
            if isinstance(row, Mapping):
                unknown = set(row) - set(self.columns)
                if unknown:
                    raise SchemaError(f"Row has unknown columns: {', '.join(sorted(unknown))}")
                materialized.append(tuple(row.get(col) for col in self.columns))
            else:
                row = tuple(row)
                if len(row) != len(self.columns):
                    raise SchemaError(
                        f"Row width {len(row)} does not match schema width {len(self.columns)}"
                    )
                materialized.append(row)
        self._rows = tuple(materialized)

    def __iter__(self) -> Iterator[tuple]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"InMemoryRelation(columns={self.columns!r}, rows={len(self._rows)})"


class RelationScanner(ABC):
    """
    Scan collaborator: turns a relation identifier and a projection into rows

    Implementations raise SchemaError when a named column or relation does
    not exist. Retries for transient I/O belong to implementations, never to
    the reconciliation engine.
    """

    @abstractmethod
    def scan(self, relation_id: str, columns: Sequence[str]) -> Relation:
        """
        Project a relation onto the given columns

        Args:
            relation_id: Table or view identifier
            columns: Ordered column list; duplicates are allowed

        Returns:
            Re-enumerable relation whose rows follow `columns` order
        """


class InMemoryScanner(RelationScanner):
    """
    Scanner over a dictionary of in-memory relations

    Records every pass in `scans` as (relation_id, columns) so callers can
    check how often each relation was read.
    """

    def __init__(self, relations: Mapping[str, InMemoryRelation]):
        self.relations = dict(relations)
        self.scans: list[tuple[str, tuple[str, ...]]] = []

    def scan(self, relation_id: str, columns: Sequence[str]) -> Relation:
        if relation_id not in self.relations:
            raise SchemaError(f"Relation {relation_id!r} does not exist")

        relation = self.relations[relation_id]
        indexes = [relation.column_index(col) for col in columns]
        projected = tuple(columns)

        def _scan() -> Iterator[tuple]:
            self.scans.append((relation_id, projected))
            logger.debug(f"Scanning in-memory relation {relation_id}: {', '.join(projected)}")
            for row in relation:
                yield tuple(row[i] for i in indexes)

        return LazyRelation(projected, _scan)
