"""
Error taxonomy for table data reconciliation.

Fatal errors (ConfigurationError, SchemaError) abort a run. TypeMismatchError
is a diagnostic: the engine never raises it, it is attached to the result so
the caller can see why "equal looking" rows were reported as missing.
"""


class ReconciliationError(Exception):
    """Base class for all reconciliation errors."""


class ConfigurationError(ReconciliationError):
    """Invalid check configuration, detected before any relation is scanned."""


class SchemaError(ReconciliationError):
    """A relation does not have the columns or value types a check expects."""


class ReconciliationCancelled(ReconciliationError):
    """Raised when a cancellation token is set between scan passes."""


class TypeMismatchError(ReconciliationError):
    """
    Source and target carry different value types for the same mapped field

    Args:
        field_index: Position of the field in the mapped projection
        source_column: Source column name
        target_column: Target column name
        source_types: Python type names observed in the source
        target_types: Python type names observed in the target
    """

    def __init__(
        self,
        field_index: int,
        source_column: str,
        target_column: str,
        source_types: frozenset[str],
        target_types: frozenset[str],
    ):
        self.field_index = field_index
        self.source_column = source_column
        self.target_column = target_column
        self.source_types = source_types
        self.target_types = target_types
        super().__init__(
            f"Type mismatch on field {field_index} "
            f"({source_column} -> {target_column}): "
            f"source={sorted(source_types)}, target={sorted(target_types)}"
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "field_index": self.field_index,
            "source_column": self.source_column,
            "target_column": self.target_column,
            "source_types": sorted(self.source_types),
            "target_types": sorted(self.target_types),
        }
