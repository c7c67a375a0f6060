"""
Unit tests for relation scanners.

Tests verify:
- In-memory relations and projections
- Projection query building and identifier validation
- Streaming with fetchmany and a fresh query per pass
- Retries for transient errors, SchemaError for unknown columns
"""

import sqlite3
from unittest.mock import MagicMock, Mock, patch

import pytest

from datarecon.errors import ConfigurationError, SchemaError
from datarecon.relations import CursorScanner, InMemoryRelation, InMemoryScanner, LazyRelation


def _mock_connection(batches, description=(("ID",), ("AMOUNT",))):
    cursor = MagicMock()
    cursor.description = description
    cursor.fetchmany.side_effect = list(batches) + [[]]
    connection = Mock()
    connection.cursor.return_value = cursor
    return connection, cursor


class TestInMemoryRelation:
    """Test materialized relations"""

    def test_rows_from_sequences_and_mappings(self):
        """Mapping rows are laid out in column order, absent keys become None"""
        relation = InMemoryRelation(("ID", "NAME"), [(1, "a"), {"NAME": "b", "ID": 2}, {"ID": 3}])

        assert list(relation) == [(1, "a"), (2, "b"), (3, None)]
        assert len(relation) == 3

    def test_row_width_mismatch(self):
        """Rows must match the schema width"""
        with pytest.raises(SchemaError, match="width"):
            InMemoryRelation(("ID", "NAME"), [(1,)])

    def test_unknown_mapping_key(self):
        """Mapping rows cannot introduce columns"""
        with pytest.raises(SchemaError, match="unknown columns"):
            InMemoryRelation(("ID",), [{"ID": 1, "EXTRA": 2}])

    def test_re_enumerable(self):
        """Iterating twice yields the same rows"""
        relation = InMemoryRelation(("ID",), [(1,), (2,)])

        assert list(relation) == list(relation)

    def test_column_index_unknown(self):
        """Unknown columns raise SchemaError naming the available ones"""
        relation = InMemoryRelation(("ID", "NAME"), [])

        with pytest.raises(SchemaError, match="'MISSING' not found"):
            relation.column_index("MISSING")


class TestInMemoryScanner:
    """Test the in-memory scan collaborator"""

    def test_projection_order_and_duplicates(self):
        """Rows follow the requested column order; a column may appear twice"""
        scanner = InMemoryScanner({"T": InMemoryRelation(("ID", "NAME"), [(1, "a")])})

        relation = scanner.scan("T", ("NAME", "ID", "ID"))

        assert isinstance(relation, LazyRelation)
        assert relation.columns == ("NAME", "ID", "ID")
        assert list(relation) == [("a", 1, 1)]

    def test_unknown_relation(self):
        """Unknown relations raise SchemaError"""
        with pytest.raises(SchemaError, match="does not exist"):
            InMemoryScanner({}).scan("MISSING", ("ID",))

    def test_unknown_column(self):
        """Unknown columns raise SchemaError at scan time"""
        scanner = InMemoryScanner({"T": InMemoryRelation(("ID",), [])})

        with pytest.raises(SchemaError):
            scanner.scan("T", ("ID", "NAME"))

    def test_each_pass_is_logged(self):
        """Every iteration counts as one pass"""
        scanner = InMemoryScanner({"T": InMemoryRelation(("ID",), [(1,)])})
        relation = scanner.scan("T", ("ID",))

        assert scanner.scans == []
        list(relation)
        list(relation)

        assert scanner.scans == [("T", ("ID",)), ("T", ("ID",))]


class TestCursorScannerQuery:
    """Test projection query building"""

    def test_bare_identifiers(self):
        """Identifiers are emitted as written by default"""
        scanner = CursorScanner(Mock(), dialect="ansi")

        assert scanner.build_query("RAW.ORDERS", ("ID", "AMOUNT")) == "SELECT ID, AMOUNT FROM RAW.ORDERS"

    def test_quoted_sqlserver_identifiers(self):
        """SQL Server identifiers are bracket-quoted"""
        scanner = CursorScanner(Mock(), dialect="sqlserver", quote_identifiers=True)

        assert scanner.build_query("dbo.orders", ("ID",)) == "SELECT [ID] FROM [dbo].[orders]"

    def test_invalid_identifier(self):
        """Injection attempts are rejected before any SQL runs"""
        connection = Mock()
        scanner = CursorScanner(connection, dialect="ansi")

        with pytest.raises(ConfigurationError, match="Invalid identifier"):
            scanner.scan("orders; DROP TABLE users--", ("ID",))
        connection.cursor.assert_not_called()

    def test_no_columns(self):
        """A projection needs at least one column"""
        with pytest.raises(ConfigurationError):
            CursorScanner(Mock(), dialect="ansi").build_query("T", ())

    def test_invalid_fetch_size(self):
        """fetch_size must be positive"""
        with pytest.raises(ConfigurationError):
            CursorScanner(Mock(), dialect="ansi", fetch_size=0)


class TestCursorScannerScan:
    """Test scanning through a DB-API connection"""

    def test_streams_with_fetchmany(self):
        """Rows are fetched in batches and converted to tuples"""
        connection, cursor = _mock_connection([[(1, 10), (2, 20)], [[3, 30]]])
        scanner = CursorScanner(connection, dialect="ansi", fetch_size=2)

        rows = list(scanner.scan("RAW.ORDERS", ("ID", "AMOUNT")))

        assert rows == [(1, 10), (2, 20), (3, 30)]
        cursor.execute.assert_called_once_with("SELECT ID, AMOUNT FROM RAW.ORDERS")
        cursor.fetchmany.assert_called_with(2)
        cursor.close.assert_called_once()

    def test_query_not_issued_until_iteration(self):
        """Scanning is lazy; each pass issues a fresh query"""
        connection, cursor = _mock_connection([])
        cursor.fetchmany.side_effect = None
        cursor.fetchmany.return_value = []
        scanner = CursorScanner(connection, dialect="ansi")

        relation = scanner.scan("T", ("ID", "AMOUNT"))
        assert cursor.execute.call_count == 0

        list(relation)
        list(relation)

        assert cursor.execute.call_count == 2

    def test_unknown_column_raises_schema_error(self):
        """Driver errors about unknown columns become SchemaError without retries"""
        connection, cursor = _mock_connection([])
        cursor.execute.side_effect = sqlite3.OperationalError("no such column: AMOUNT")
        scanner = CursorScanner(connection, dialect="ansi")

        with pytest.raises(SchemaError, match="no such column"):
            list(scanner.scan("T", ("ID", "AMOUNT")))

        assert cursor.execute.call_count == 1
        cursor.close.assert_called_once()

    def test_description_width_mismatch(self):
        """A driver returning a different number of columns is a schema problem"""
        connection, _ = _mock_connection([], description=(("ID",),))
        scanner = CursorScanner(connection, dialect="ansi")

        with pytest.raises(SchemaError, match="returned 1 columns"):
            list(scanner.scan("T", ("ID", "AMOUNT")))

    @patch('datarecon.utils.retry.time.sleep')
    def test_transient_error_retried(self, mock_sleep):
        """Transient errors are retried with backoff"""
        # Arrange
        connection, cursor = _mock_connection([[(1, 10)]])
        cursor.execute.side_effect = [sqlite3.OperationalError("database is locked"), None]
        on_retry = Mock()
        scanner = CursorScanner(connection, dialect="ansi", base_delay=0.1, on_retry=on_retry)

        # Act
        rows = list(scanner.scan("T", ("ID", "AMOUNT")))

        # Assert
        assert rows == [(1, 10)]
        assert cursor.execute.call_count == 2
        assert mock_sleep.call_count == 1
        on_retry.assert_called_once()

    @patch('datarecon.utils.retry.time.sleep')
    def test_retries_exhausted(self, mock_sleep):
        """The last transient error propagates after max_retries"""
        connection, cursor = _mock_connection([])
        cursor.execute.side_effect = sqlite3.OperationalError("database is locked")
        scanner = CursorScanner(connection, dialect="ansi", max_retries=2)

        with pytest.raises(sqlite3.OperationalError):
            list(scanner.scan("T", ("ID", "AMOUNT")))

        assert cursor.execute.call_count == 3
        assert mock_sleep.call_count == 2
