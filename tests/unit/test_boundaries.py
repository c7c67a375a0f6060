"""
Unit tests for temporal cutoff resolution.
"""

from datetime import datetime

import pytest

from datarecon.compare import TemporalCutoff, resolve_temporal_cutoff
from datarecon.errors import SchemaError
from datarecon.relations import InMemoryRelation

COLUMNS = ("CREATED_AT", "UPDATED_AT")


class TestResolveTemporalCutoff:
    """Test cutoff computation from a reference relation."""

    def test_no_reference_returns_none(self):
        """Without a reference relation there is no temporal filtering."""
        assert resolve_temporal_cutoff(None) is None

    def test_maxima_computed_independently(self):
        """Created and updated maxima can come from different rows."""
        reference = InMemoryRelation(COLUMNS, [
            (datetime(2024, 1, 5), datetime(2024, 1, 6)),
            (datetime(2024, 1, 3), datetime(2024, 1, 9)),
        ])

        cutoff = resolve_temporal_cutoff(reference)

        assert cutoff == TemporalCutoff(datetime(2024, 1, 5), datetime(2024, 1, 9))

    def test_nulls_ignored(self):
        """NULL timestamps do not participate in the maxima."""
        reference = InMemoryRelation(COLUMNS, [
            (None, datetime(2024, 1, 2)),
            (datetime(2024, 1, 1), None),
        ])

        cutoff = resolve_temporal_cutoff(reference)

        assert cutoff.max_created_at == datetime(2024, 1, 1)
        assert cutoff.max_updated_at == datetime(2024, 1, 2)

    def test_empty_reference_yields_null_cutoff(self):
        """An empty reference yields (None, None), not None."""
        cutoff = resolve_temporal_cutoff(InMemoryRelation(COLUMNS, []))

        assert cutoff == TemporalCutoff(None, None)
        assert cutoff.is_unbounded

    def test_all_null_reference_yields_null_cutoff(self):
        """All-NULL timestamp columns behave like an empty reference."""
        cutoff = resolve_temporal_cutoff(InMemoryRelation(COLUMNS, [(None, None), (None, None)]))

        assert cutoff.is_unbounded

    def test_custom_column_names(self):
        """Reference timestamp columns are configurable."""
        reference = InMemoryRelation(("ID", "INSERTED", "MODIFIED"), [(1, 10, 20), (2, 15, 5)])

        cutoff = resolve_temporal_cutoff(reference, "INSERTED", "MODIFIED")

        assert cutoff == TemporalCutoff(15, 20)

    def test_missing_column_raises_schema_error(self):
        """A reference without the timestamp column is a schema error."""
        with pytest.raises(SchemaError, match="CREATED_AT"):
            resolve_temporal_cutoff(InMemoryRelation(("ID", "UPDATED_AT"), []))

    def test_incomparable_values_raise_schema_error(self):
        """Mixed timestamp and text values cannot be ordered."""
        reference = InMemoryRelation(COLUMNS, [
            (datetime(2024, 1, 1), datetime(2024, 1, 1)),
            ("2024-01-02", datetime(2024, 1, 1)),
        ])

        with pytest.raises(SchemaError, match="incomparable"):
            resolve_temporal_cutoff(reference)

    def test_reference_scanned_once(self):
        """The reference relation is enumerated in a single pass."""
        passes = []

        class CountingRelation(InMemoryRelation):
            def __iter__(self):
                passes.append(1)
                return super().__iter__()

        resolve_temporal_cutoff(CountingRelation(COLUMNS, [(1, 2), (3, 4)]))

        assert len(passes) == 1


class TestTemporalCutoff:
    """Test the cutoff value object."""

    def test_to_dict_formats_datetimes(self):
        """Datetimes are serialized as ISO strings."""
        cutoff = TemporalCutoff(datetime(2024, 1, 1), None)

        assert cutoff.to_dict() == {"max_created_at": "2024-01-01T00:00:00", "max_updated_at": None}

    def test_half_bounded_is_not_unbounded(self):
        """One known maximum is enough to bound the window."""
        assert not TemporalCutoff(datetime(2024, 1, 1), None).is_unbounded
