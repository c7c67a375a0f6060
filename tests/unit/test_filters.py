"""
Unit tests for soft-delete and temporal record filtering.
"""

from datetime import datetime

import pytest

from datarecon.compare import FilterCriteria, RecordFilter, TemporalCutoff
from datarecon.errors import SchemaError
from datarecon.relations import InMemoryRelation

COLUMNS = ("ID", "AMOUNT", "_FIVETRAN_DELETED", "CREATED_AT", "UPDATED_AT")
PROJECTION = ("ID", "AMOUNT")

JAN_1 = datetime(2024, 1, 1)
JAN_2 = datetime(2024, 1, 2)
JAN_3 = datetime(2024, 1, 3)


def _filter(rows, cutoff=None, criteria=None):
    relation = InMemoryRelation(COLUMNS, rows)
    return RecordFilter(relation, criteria or FilterCriteria(), PROJECTION, cutoff)


class TestSoftDelete:
    """Test deleted-flag filtering."""

    def test_deleted_rows_excluded(self):
        """Only rows with a false deleted flag pass."""
        rows = list(_filter([
            (1, 10, False, JAN_1, JAN_1),
            (2, 20, True, JAN_1, JAN_1),
        ]))

        assert rows == [(1, 10)]

    def test_null_deleted_flag_excluded(self):
        """A NULL flag is not FALSE, so the row is excluded."""
        assert list(_filter([(1, 10, None, JAN_1, JAN_1)])) == []

    def test_integer_flags_accepted(self):
        """Drivers returning 0/1 for booleans are handled."""
        rows = list(_filter([(1, 10, 0, JAN_1, JAN_1), (2, 20, 1, JAN_1, JAN_1)]))

        assert rows == [(1, 10)]

    @pytest.mark.parametrize("flag", ["false", 2, 0.0])
    def test_non_boolean_flag_raises_schema_error(self, flag):
        """Text or other numbers in the flag column are schema errors."""
        with pytest.raises(SchemaError, match="_FIVETRAN_DELETED"):
            list(_filter([(1, 10, flag, JAN_1, JAN_1)]))

    def test_custom_deleted_flag_column(self):
        """The deleted flag column name is configurable."""
        relation = InMemoryRelation(("ID", "AMOUNT", "IS_DELETED"), [(1, 10, False), (2, 20, True)])
        record_filter = RecordFilter(relation, FilterCriteria(deleted_flag_column="IS_DELETED"), PROJECTION)

        assert list(record_filter) == [(1, 10)]

    def test_timestamps_ignored_without_cutoff(self):
        """Without a cutoff, NULL timestamps do not exclude rows."""
        rows = list(_filter([(1, 10, False, None, None)]))

        assert rows == [(1, 10)]


class TestTemporalFilter:
    """Test cutoff filtering."""

    def test_rows_strictly_before_cutoff_pass(self):
        """Rows at the cutoff are in flight and excluded."""
        cutoff = TemporalCutoff(JAN_2, JAN_2)
        rows = list(_filter([
            (1, 10, False, JAN_1, JAN_1),
            (2, 20, False, JAN_2, JAN_1),
            (3, 30, False, JAN_1, JAN_2),
            (4, 40, False, JAN_3, JAN_3),
        ], cutoff))

        assert rows == [(1, 10)]

    def test_null_timestamp_excluded_with_cutoff(self):
        """Once a cutoff is active, either timestamp being NULL excludes the row."""
        cutoff = TemporalCutoff(JAN_3, JAN_3)
        rows = list(_filter([
            (1, 10, False, None, JAN_1),
            (2, 20, False, JAN_1, None),
            (3, 30, False, JAN_1, JAN_1),
        ], cutoff))

        assert rows == [(3, 30)]

    def test_null_cutoff_half_is_unbounded(self):
        """A NULL cutoff half does not exclude every row."""
        cutoff = TemporalCutoff(None, JAN_2)
        rows = list(_filter([
            (1, 10, False, JAN_3, JAN_1),
            (2, 20, False, JAN_1, JAN_3),
        ], cutoff))

        assert rows == [(1, 10)]

    def test_fully_null_cutoff_still_requires_timestamps(self):
        """An unbounded cutoff keeps the NOT NULL conditions."""
        cutoff = TemporalCutoff(None, None)
        rows = list(_filter([
            (1, 10, False, JAN_3, JAN_3),
            (2, 20, False, None, JAN_1),
        ], cutoff))

        assert rows == [(1, 10)]

    def test_deleted_rows_excluded_even_inside_window(self):
        """Soft delete applies together with the cutoff."""
        cutoff = TemporalCutoff(JAN_3, JAN_3)

        assert list(_filter([(1, 10, True, JAN_1, JAN_1)], cutoff)) == []

    def test_incomparable_timestamp_raises_schema_error(self):
        """Text timestamps cannot be compared with a datetime cutoff."""
        cutoff = TemporalCutoff(JAN_3, JAN_3)

        with pytest.raises(SchemaError, match="CREATED_AT"):
            list(_filter([(1, 10, False, "2024-01-01", JAN_1)], cutoff))


class TestRecordFilterRelation:
    """Test RecordFilter as a relation."""

    def test_restartable(self):
        """Iterating twice yields the same rows."""
        record_filter = _filter([(1, 10, False, JAN_1, JAN_1), (2, 20, False, JAN_1, JAN_1)])

        assert list(record_filter) == list(record_filter)

    def test_columns_are_projection(self):
        """The filtered relation exposes the projection as its schema."""
        assert _filter([]).columns == PROJECTION

    def test_missing_filter_column_raises_schema_error(self):
        """Filter columns must be present in the scanned relation."""
        relation = InMemoryRelation(("ID", "AMOUNT"), [])

        with pytest.raises(SchemaError, match="_FIVETRAN_DELETED"):
            RecordFilter(relation, FilterCriteria(), PROJECTION)

    def test_timestamp_columns_only_required_with_cutoff(self):
        """Without a cutoff the timestamp columns need not be scanned."""
        relation = InMemoryRelation(("ID", "AMOUNT", "_FIVETRAN_DELETED"), [(1, 10, False)])

        assert list(RecordFilter(relation, FilterCriteria(), PROJECTION)) == [(1, 10)]

    def test_scan_columns(self):
        """Timestamp columns are only scanned when a cutoff applies."""
        criteria = FilterCriteria()

        assert criteria.scan_columns(False) == ("_FIVETRAN_DELETED",)
        assert criteria.scan_columns(True) == ("_FIVETRAN_DELETED", "CREATED_AT", "UPDATED_AT")
