"""
Check configuration.

Defaults live on the dataclass, not in module state, so checks against
differently shaped schemas can run side by side.
"""

from dataclasses import asdict, dataclass, field, fields
from numbers import Real
from typing import Any

from datarecon.compare.filters import FilterCriteria
from datarecon.compare.mapping import ColumnMapper, ColumnMapping
from datarecon.errors import ConfigurationError

DEFAULT_ID_COLUMN = "ID"
DEFAULT_DELETED_FLAG = "_FIVETRAN_DELETED"
DEFAULT_CREATED_COLUMN = "CREATED_AT"
DEFAULT_UPDATED_COLUMN = "UPDATED_AT"
DEFAULT_TOLERANCE_PERCENTAGE = 1.0

_TIMESTAMP_FIELDS = (
    "source_created_col",
    "source_updated_col",
    "target_created_col",
    "target_updated_col",
    "reference_created_col",
    "reference_updated_col",
)


def _require_name(field_name: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{field_name} must be a non-empty string, got {value!r}")


@dataclass(frozen=True)
class ReconciliationConfig:
    """
    One source/target reconciliation check

    Args:
        source_table: Source relation identifier
        target_table: Target relation identifier
        columns_mapping: Ordered column pairs; list of {'source', 'target'} dicts accepted
        reference_table: Optional relation used to compute the temporal cutoff
        tolerance_percentage: Maximum acceptable missing percentage (>= 0)
        name: Check name used in logs, metrics and reports
    """

    source_table: str
    target_table: str
    columns_mapping: ColumnMapping
    reference_table: str | None = None
    source_id_column: str = DEFAULT_ID_COLUMN
    target_id_column: str = DEFAULT_ID_COLUMN
    source_deleted_flag: str = DEFAULT_DELETED_FLAG
    target_deleted_flag: str = DEFAULT_DELETED_FLAG
    source_created_col: str = DEFAULT_CREATED_COLUMN
    source_updated_col: str = DEFAULT_UPDATED_COLUMN
    target_created_col: str = DEFAULT_CREATED_COLUMN
    target_updated_col: str = DEFAULT_UPDATED_COLUMN
    reference_created_col: str = DEFAULT_CREATED_COLUMN
    reference_updated_col: str = DEFAULT_UPDATED_COLUMN
    tolerance_percentage: float = DEFAULT_TOLERANCE_PERCENTAGE
    name: str | None = field(default=None)

    def __post_init__(self):
        _require_name("source_table", self.source_table)
        _require_name("target_table", self.target_table)
        for field_name in ("source_id_column", "target_id_column",
                           "source_deleted_flag", "target_deleted_flag"):
            _require_name(field_name, getattr(self, field_name))

        object.__setattr__(
            self, "columns_mapping", ColumnMapping.from_config(self.columns_mapping)
        )

        tolerance = self.tolerance_percentage
        if isinstance(tolerance, bool) or not isinstance(tolerance, Real):
            raise ConfigurationError(
                f"tolerance_percentage must be a number, got {tolerance!r}"
            )
        if tolerance < 0:
            raise ConfigurationError(f"tolerance_percentage must be >= 0, got {tolerance}")
        object.__setattr__(self, "tolerance_percentage", float(tolerance))

        if self.reference_table is not None:
            _require_name("reference_table", self.reference_table)
            omitted = [
                name for name in _TIMESTAMP_FIELDS
                if not isinstance(getattr(self, name), str) or not getattr(self, name).strip()
            ]
            if omitted:
                raise ConfigurationError(
                    f"reference_table {self.reference_table!r} requires timestamp columns: "
                    f"{', '.join(omitted)}"
                )

        if self.name is None:
            object.__setattr__(self, "name", f"{self.source_table}__{self.target_table}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReconciliationConfig":
        """
        Build a config from a plain dictionary

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        missing = [key for key in ("source_table", "target_table", "columns_mapping") if key not in data]
        if missing:
            raise ConfigurationError(f"Missing required configuration keys: {', '.join(missing)}")

        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the dictionary format accepted by from_dict."""
        data = asdict(self)
        data["columns_mapping"] = self.columns_mapping.to_list()
        return data

    @property
    def has_reference(self) -> bool:
        return self.reference_table is not None

    def column_mapper(self) -> ColumnMapper:
        return ColumnMapper(self.columns_mapping, self.source_id_column, self.target_id_column)

    def source_criteria(self) -> FilterCriteria:
        return FilterCriteria(self.source_deleted_flag, self.source_created_col, self.source_updated_col)

    def target_criteria(self) -> FilterCriteria:
        return FilterCriteria(self.target_deleted_flag, self.target_created_col, self.target_updated_col)
