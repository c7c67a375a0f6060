"""
Column mapping between source and target relations.

The mapping is positional: field i of the source projection is compared
with field i of the target projection, whatever the column names are.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from datarecon.errors import ConfigurationError


@dataclass(frozen=True)
class ColumnPair:
    """A single source column and the target column it lands in."""

    source: str
    target: str

    def __post_init__(self):
        for side, name in (("source", self.source), ("target", self.target)):
            if not isinstance(name, str) or not name.strip():
                raise ConfigurationError(
                    f"Column mapping {side} name must be a non-empty string, got {name!r}"
                )


@dataclass(frozen=True)
class ColumnMapping:
    """Ordered, validated sequence of column pairs."""

    pairs: tuple[ColumnPair, ...]

    def __post_init__(self):
        if not self.pairs:
            raise ConfigurationError("columns_mapping must contain at least one column pair")

        _reject_duplicates("source", [pair.source for pair in self.pairs])
        _reject_duplicates("target", [pair.target for pair in self.pairs])

    @classmethod
    def from_config(cls, raw: Any) -> "ColumnMapping":
        """
        Build a mapping from configuration input

        Accepts an existing ColumnMapping, a list of {'source': ..., 'target': ...}
        dicts (the macro-style format), ColumnPair instances, or 2-item sequences.

        Raises:
            ConfigurationError: If the input cannot be read as a mapping
        """
        if isinstance(raw, ColumnMapping):
            return raw
        if raw is None or isinstance(raw, (str, bytes, dict)):
            raise ConfigurationError(
                f"columns_mapping must be a list of column pairs, got {type(raw).__name__}"
            )

        pairs = []
        for entry in raw:
            if isinstance(entry, ColumnPair):
                pairs.append(entry)
            elif isinstance(entry, dict):
                if "source" not in entry or "target" not in entry:
                    raise ConfigurationError(
                        f"Column mapping entry needs 'source' and 'target' keys: {entry!r}"
                    )
                pairs.append(ColumnPair(entry["source"], entry["target"]))
            elif isinstance(entry, (list, tuple)) and len(entry) == 2:
                pairs.append(ColumnPair(entry[0], entry[1]))
            else:
                raise ConfigurationError(f"Invalid column mapping entry: {entry!r}")

        return cls(tuple(pairs))

    def __iter__(self) -> Iterator[ColumnPair]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    @property
    def source_columns(self) -> tuple[str, ...]:
        return tuple(pair.source for pair in self.pairs)

    @property
    def target_columns(self) -> tuple[str, ...]:
        return tuple(pair.target for pair in self.pairs)

    def to_list(self) -> list[dict[str, str]]:
        """Convert back to the list-of-dicts configuration format."""
        return [{"source": pair.source, "target": pair.target} for pair in self.pairs]


def _reject_duplicates(side: str, names: Iterable[str]) -> None:
    seen = set()
    duplicates = []
    for name in names:
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)

    if duplicates:
        raise ConfigurationError(
            f"Duplicate {side} columns in columns_mapping: {', '.join(duplicates)}"
        )


class ColumnMapper:
    """
    Builds the ordered source and target projections for a check

    Column existence is not checked here; a missing column surfaces as a
    SchemaError when the relation is scanned.
    """

    def __init__(
        self,
        columns_mapping: Any,
        source_id_column: str = "ID",
        target_id_column: str = "ID",
    ):
        for side, name in (("source", source_id_column), ("target", target_id_column)):
            if not isinstance(name, str) or not name.strip():
                raise ConfigurationError(
                    f"{side}_id_column must be a non-empty string, got {name!r}"
                )

        self.mapping = ColumnMapping.from_config(columns_mapping)
        self.source_id_column = source_id_column
        self.target_id_column = target_id_column

    @property
    def source_projection(self) -> tuple[str, ...]:
        return (self.source_id_column, *self.mapping.source_columns)

    @property
    def target_projection(self) -> tuple[str, ...]:
        return (self.target_id_column, *self.mapping.target_columns)

    def projections(self) -> tuple[tuple[str, ...], tuple[str, ...]]:
        """Return (source_projection, target_projection)."""
        return self.source_projection, self.target_projection


def build_projections(
    columns_mapping: Any,
    source_id_column: str = "ID",
    target_id_column: str = "ID",
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """
    Build source and target projections from a column mapping

    Args:
        columns_mapping: Column pairs in any format accepted by ColumnMapping.from_config
        source_id_column: Identifier column of the source relation
        target_id_column: Identifier column of the target relation

    Returns:
        Tuple of (source_projection, target_projection)

    Raises:
        ConfigurationError: On empty mapping or duplicate column names
    """
    return ColumnMapper(columns_mapping, source_id_column, target_id_column).projections()
