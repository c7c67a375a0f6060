"""
DB-API 2.0 scan collaborator.

Works with any PEP 249 connection (psycopg2, pyodbc, sqlite3). Each pass
over a relation issues a fresh SELECT and streams rows with fetchmany, so
a large table is never materialized by the scanner itself.
"""

import logging
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from datarecon.compare.quoting import get_dialect, quote_identifier
from datarecon.errors import ConfigurationError, SchemaError
from datarecon.utils.retry import is_schema_db_exception, retry_database_operation
from datarecon.utils.tracing import add_span_event

from .base import LazyRelation, Relation, RelationScanner

logger = logging.getLogger(__name__)


class CursorScanner(RelationScanner):
    """
    Scans relations through a DB-API connection

    Args:
        connection: Open DB-API connection
        dialect: 'ansi' or 'sqlserver' (detected from the connection if None)
        quote_identifiers: Quote table/column names (case-sensitive in PostgreSQL)
        fetch_size: Rows per fetchmany call
        max_retries: Retries for transient errors when executing a scan
        base_delay: Initial backoff delay in seconds
        on_retry: Callback(attempt, exception, delay) invoked before each retry
    """

    def __init__(
        self,
        connection: Any,
        dialect: str | None = None,
        quote_identifiers: bool = False,
        fetch_size: int = 10000,
        max_retries: int = 3,
        base_delay: float = 1.0,
        on_retry: Callable[[int, Exception, float], None] | None = None,
    ):
        if fetch_size <= 0:
            raise ConfigurationError(f"fetch_size must be positive, got {fetch_size}")

        self.connection = connection
        self.dialect = dialect or get_dialect(connection)
        self.quote_identifiers = quote_identifiers
        self.fetch_size = fetch_size
        self._execute = retry_database_operation(
            max_retries=max_retries,
            base_delay=base_delay,
            on_retry=on_retry,
        )(self._execute_query)

    def build_query(self, relation_id: str, columns: Sequence[str]) -> str:
        """
        Build the projection query for a relation

        Raises:
            ConfigurationError: If an identifier is not a valid SQL identifier
        """
        if not columns:
            raise ConfigurationError(f"No columns requested for relation {relation_id}")

        try:
            table = quote_identifier(relation_id, self.dialect, self.quote_identifiers)
            column_list = ", ".join(
                quote_identifier(col, self.dialect, self.quote_identifiers) for col in columns
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        return f"SELECT {column_list} FROM {table}"

    def scan(self, relation_id: str, columns: Sequence[str]) -> Relation:
        query = self.build_query(relation_id, columns)
        projected = tuple(columns)

        def _scan() -> Iterator[tuple]:
            cursor = self.connection.cursor()
            try:
                self._run(cursor, relation_id, query, len(projected))
                fetched = 0
                while True:
                    rows = cursor.fetchmany(self.fetch_size)
                    if not rows:
                        break
                    fetched += len(rows)
                    for row in rows:
                        yield tuple(row)
                logger.debug(f"Scanned {fetched} rows from {relation_id}")
                add_span_event("relation_scanned", relation=relation_id, rows=fetched)
            finally:
                cursor.close()

        return LazyRelation(projected, _scan)

    def _run(self, cursor: Any, relation_id: str, query: str, width: int) -> None:
        logger.debug(f"Executing scan on {relation_id}: {query}")
        try:
            self._execute(cursor, query)
        except Exception as e:
            if is_schema_db_exception(e):
                raise SchemaError(f"Cannot scan {relation_id}: {e}") from e
            raise

        if cursor.description is not None and len(cursor.description) != width:
            raise SchemaError(
                f"Scan of {relation_id} returned {len(cursor.description)} columns, expected {width}"
            )

    @staticmethod
    def _execute_query(cursor: Any, query: str) -> None:
        cursor.execute(query)
