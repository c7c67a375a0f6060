"""
Set difference between projected source and target rows.

Hash-build the target, stream-probe the source: O(|source| + |target|) time
and O(|target|) extra memory. Equality is exact per field, including the
kind of value: the text '123' never matches the number 123, and the boolean
True never matches the integer 1. JSON documents compare by content.
A field value that cannot be hashed is a SchemaError.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from datarecon.errors import SchemaError, TypeMismatchError

logger = logging.getLogger(__name__)

_NUMERIC_TYPES = ("int", "float", "Decimal")


def _field_key(value: Any) -> Any:
    if isinstance(value, bool):
        return (bool, value)
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    # Containers are tagged with their kind so ["a"] never matches ("a",)
    if isinstance(value, list):
        return (list, tuple(_field_key(v) for v in value))
    if isinstance(value, tuple):
        return (tuple, tuple(_field_key(v) for v in value))
    if isinstance(value, dict):
        return (dict, frozenset((_field_key(k), _field_key(v)) for k, v in value.items()))
    if isinstance(value, (set, frozenset)):
        return (frozenset, frozenset(_field_key(v) for v in value))
    return value


def row_key(row: Sequence[Any]) -> tuple:
    """Hashable comparison key for a projected row."""
    return tuple(_field_key(value) for value in row)


def _value_kind(type_name: str) -> str:
    return "number" if type_name in _NUMERIC_TYPES else type_name


@dataclass(frozen=True)
class DiffResult:
    """Outcome of a set difference."""

    missing_rows: tuple[tuple, ...]
    total_source_records: int
    total_target_records: int
    type_mismatches: tuple[TypeMismatchError, ...] = field(default=())

    @property
    def total_missing_records(self) -> int:
        return len(self.missing_rows)


class SetDiffEngine:
    """
    Computes source rows with no equal row in the target

    Duplicates on either side only matter for presence: a source value found
    at least once in the target is fully removed, and each missing value is
    reported once.

    Args:
        source_columns: Source projection names, used for diagnostics
        target_columns: Target projection names, used for diagnostics
        track_types: Record value types per field to diagnose type mismatches
    """

    def __init__(
        self,
        source_columns: Sequence[str] | None = None,
        target_columns: Sequence[str] | None = None,
        track_types: bool = True,
    ):
        self.source_columns = tuple(source_columns) if source_columns else None
        self.target_columns = tuple(target_columns) if target_columns else None
        self.track_types = track_types

    def diff(
        self,
        source: Iterable[Sequence[Any]],
        target: Iterable[Sequence[Any]],
        checkpoint: Callable[[], None] | None = None,
    ) -> DiffResult:
        """
        Compute `source - target` under set semantics

        Args:
            source: Filtered, projected source rows
            target: Filtered, projected target rows, positionally aligned with source
            checkpoint: Called between the target build and the source probe;
                may raise to abort the run

        Returns:
            DiffResult with distinct missing rows and counts

        Raises:
            SchemaError: If source and target rows have different widths
                or a field holds a value that cannot be compared by hashing
        """
        width = None
        target_keys: set[tuple] = set()
        target_types: list[set[str]] = []
        total_target = 0

        for row in target:
            if width is None:
                width = len(row)
                target_types = [set() for _ in range(width)]
            elif len(row) != width:
                raise SchemaError(f"Target row width {len(row)} differs from {width}")
            total_target += 1
            target_keys.add(self._row_key(row, self.target_columns))
            if self.track_types:
                _record_types(target_types, row)

        logger.debug(f"Built target hash set: {len(target_keys)} distinct of {total_target} rows")

        if checkpoint is not None:
            checkpoint()

        missing: dict[tuple, tuple] = {}
        source_types: list[set[str]] = []
        total_source = 0

        for row in source:
            if width is None:
                width = len(row)
            elif len(row) != width:
                raise SchemaError(
                    f"Source row width {len(row)} does not match target width {width}"
                )
            if not source_types:
                source_types = [set() for _ in range(width)]
            total_source += 1
            if self.track_types:
                _record_types(source_types, row)

            key = self._row_key(row, self.source_columns)
            if key not in target_keys and key not in missing:
                missing[key] = tuple(row)

        logger.debug(
            f"Probed {total_source} source rows: {len(missing)} distinct rows missing from target"
        )

        mismatches = ()
        if self.track_types and source_types and target_types:
            mismatches = tuple(self._type_mismatches(source_types, target_types))

        return DiffResult(
            missing_rows=tuple(missing.values()),
            total_source_records=total_source,
            total_target_records=total_target,
            type_mismatches=mismatches,
        )

    def _type_mismatches(
        self,
        source_types: list[set[str]],
        target_types: list[set[str]],
    ) -> Iterable[TypeMismatchError]:
        for index, (src, tgt) in enumerate(zip(source_types, target_types)):
            if not src or not tgt:
                continue
            if {_value_kind(t) for t in src} & {_value_kind(t) for t in tgt}:
                continue
            yield TypeMismatchError(
                field_index=index,
                source_column=self._column_name(self.source_columns, index),
                target_column=self._column_name(self.target_columns, index),
                source_types=frozenset(src),
                target_types=frozenset(tgt),
            )

    def _row_key(self, row: Sequence[Any], columns: tuple[str, ...] | None) -> tuple:
        key = row_key(row)
        try:
            hash(key)
        except TypeError as e:
            for index, value in enumerate(key):
                try:
                    hash(value)
                except TypeError:
                    raise SchemaError(
                        f"Column {self._column_name(columns, index)} holds an unhashable "
                        f"{type(row[index]).__name__} value that cannot be compared"
                    ) from e
            raise
        return key

    @staticmethod
    def _column_name(columns: tuple[str, ...] | None, index: int) -> str:
        if columns and index < len(columns):
            return columns[index]
        return f"field_{index}"


def _record_types(types: list[set[str]], row: Sequence[Any]) -> None:
    for i, value in enumerate(row):
        if value is not None:
            types[i].add(type(value).__name__)
