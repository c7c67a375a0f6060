"""
Pushdown SQL for reconciliation checks.

Renders a check as a single EXCEPT-based query so the warehouse does the
work. The query returns the diagnostic rows of a failed check and nothing
when the check passes, the same contract as ReconciliationResult.output_rows.

Semantics match the in-process engine: a NULL cutoff half leaves that
dimension unbounded, and a missing percentage equal to the tolerance fails.
"""

import logging

from datarecon.compare.quoting import quote_identifier
from datarecon.config.models import ReconciliationConfig
from datarecon.errors import ConfigurationError

logger = logging.getLogger(__name__)

_CUTOFF_CTE = "latest_target_timestamps"

# SQL Server has no boolean literal; BIT columns compare against 0.
_FALSE_LITERAL = {"ansi": "FALSE", "sqlserver": "0"}


class _Renderer:
    def __init__(self, dialect: str, quote: bool):
        if dialect not in _FALSE_LITERAL:
            raise ConfigurationError(f"Unknown SQL dialect: {dialect}")
        self.dialect = dialect
        self.quote = quote

    def ident(self, identifier: str) -> str:
        try:
            return quote_identifier(identifier, self.dialect, self.quote)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def records_cte(
        self,
        name: str,
        table: str,
        columns: tuple[str, ...],
        deleted_flag: str,
        created_col: str | None,
        updated_col: str | None,
    ) -> str:
        select_list = ",\n      ".join(self.ident(col) for col in columns)
        conditions = [f"{self.ident(deleted_flag)} = {_FALSE_LITERAL[self.dialect]}"]

        if created_col is not None:
            created = self.ident(created_col)
            updated = self.ident(updated_col)
            conditions += [
                f"{created} IS NOT NULL",
                f"{updated} IS NOT NULL",
                self._bounded(created, "max_created_at"),
                self._bounded(updated, "max_updated_at"),
            ]

        where = "\n      AND ".join(conditions)
        return (
            f"{name} AS (\n"
            f"  SELECT\n"
            f"      {select_list}\n"
            f"  FROM {self.ident(table)}\n"
            f"  WHERE\n"
            f"      {where}\n"
            f")"
        )

    @staticmethod
    def _bounded(column: str, cutoff_column: str) -> str:
        bound = f"(SELECT {cutoff_column} FROM {_CUTOFF_CTE})"
        return f"({bound} IS NULL OR {column} < {bound})"


def render_reconciliation_query(
    config: ReconciliationConfig,
    dialect: str = "ansi",
    quote_identifiers: bool = False,
) -> str:
    """
    Render a check as a single SQL query

    Args:
        config: Check configuration
        dialect: 'ansi' (PostgreSQL, Snowflake, SQLite) or 'sqlserver'
        quote_identifiers: Quote identifiers (case-sensitive in PostgreSQL)

    Returns:
        SQL text returning the missing rows followed by total_source_records,
        total_missing_records and missing_percentage, or no rows on pass

    Raises:
        ConfigurationError: On an unknown dialect or an invalid identifier
    """
    renderer = _Renderer(dialect, quote_identifiers)
    source_projection, target_projection = config.column_mapper().projections()

    ctes = []
    if config.has_reference:
        ctes.append(
            f"{_CUTOFF_CTE} AS (\n"
            f"  SELECT\n"
            f"    MAX({renderer.ident(config.reference_created_col)}) AS max_created_at,\n"
            f"    MAX({renderer.ident(config.reference_updated_col)}) AS max_updated_at\n"
            f"  FROM {renderer.ident(config.reference_table)}\n"
            f")"
        )
        source_timestamps = (config.source_created_col, config.source_updated_col)
        target_timestamps = (config.target_created_col, config.target_updated_col)
    else:
        source_timestamps = target_timestamps = (None, None)

    ctes.append(renderer.records_cte(
        "source_records", config.source_table, source_projection,
        config.source_deleted_flag, *source_timestamps,
    ))
    ctes.append(renderer.records_cte(
        "target_records", config.target_table, target_projection,
        config.target_deleted_flag, *target_timestamps,
    ))
    ctes.append(
        "missing_records AS (\n"
        "  SELECT * FROM source_records\n"
        "  EXCEPT\n"
        "  SELECT * FROM target_records\n"
        ")"
    )
    ctes.append(
        "source_count AS (\n"
        "  SELECT COUNT(*) AS total_source_records\n"
        "  FROM source_records\n"
        ")"
    )
    ctes.append(
        "missing_count AS (\n"
        "  SELECT COUNT(*) AS total_missing_records\n"
        "  FROM missing_records\n"
        ")"
    )
    ctes.append(
        "discrepancy_check AS (\n"
        "  SELECT\n"
        "    sc.total_source_records,\n"
        "    mc.total_missing_records,\n"
        "    CASE\n"
        "      WHEN sc.total_source_records = 0 THEN 0\n"
        "      ELSE (mc.total_missing_records * 100.0) / sc.total_source_records\n"
        "    END AS missing_percentage\n"
        "  FROM source_count sc\n"
        "  CROSS JOIN missing_count mc\n"
        ")"
    )

    query = (
        "WITH " + ",\n\n".join(ctes) + "\n\n"
        "SELECT\n"
        "  mr.*,\n"
        "  dc.total_source_records,\n"
        "  dc.total_missing_records,\n"
        "  dc.missing_percentage\n"
        "FROM missing_records mr\n"
        "CROSS JOIN discrepancy_check dc\n"
        f"WHERE dc.missing_percentage >= {config.tolerance_percentage!r}"
    )

    logger.debug(f"Rendered pushdown query for {config.name} ({dialect})")
    return query
