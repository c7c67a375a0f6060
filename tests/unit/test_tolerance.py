"""
Unit tests for missing percentage and tolerance evaluation.
"""

import pytest

from datarecon.compare import calculate_missing_percentage, evaluate_tolerance
from datarecon.errors import ConfigurationError


class TestCalculateMissingPercentage:
    """Test missing percentage arithmetic."""

    def test_basic_percentage(self):
        """5 of 10000 missing is 0.05%."""
        assert calculate_missing_percentage(10000, 5) == pytest.approx(0.05)

    def test_empty_source_is_zero(self):
        """An empty source yields 0.0 instead of dividing by zero."""
        assert calculate_missing_percentage(0, 0) == 0.0

    def test_all_missing(self):
        """Every record missing is 100%."""
        assert calculate_missing_percentage(7, 7) == 100.0

    def test_missing_exceeding_source_rejected(self):
        """Missing records cannot exceed source records."""
        with pytest.raises(ValueError):
            calculate_missing_percentage(3, 4)

    def test_negative_counts_rejected(self):
        """Counts are never negative."""
        with pytest.raises(ValueError):
            calculate_missing_percentage(-1, 0)


class TestEvaluateTolerance:
    """Test pass/fail decisions."""

    def test_below_tolerance_passes(self):
        """0.05% against the default 1.0% passes."""
        decision = evaluate_tolerance(10000, 5)

        assert decision.passed is True
        assert decision.tolerance_percentage == 1.0
        assert decision.missing_percentage == pytest.approx(0.05)

    def test_exactly_at_tolerance_fails(self):
        """1 of 100 missing at 1.0% tolerance fails."""
        decision = evaluate_tolerance(100, 1, 1.0)

        assert decision.missing_percentage == 1.0
        assert decision.passed is False

    def test_above_tolerance_fails(self):
        """2% against 1% fails."""
        assert evaluate_tolerance(100, 2, 1.0).passed is False

    def test_zero_tolerance_passes_only_with_nothing_missing(self):
        """Zero tolerance: any missing record fails, none missing passes."""
        assert evaluate_tolerance(100, 1, 0.0).passed is False
        assert evaluate_tolerance(100, 0, 0.0).passed is True

    def test_zero_tolerance_empty_source_passes(self):
        """An empty source has nothing missing and passes zero tolerance."""
        decision = evaluate_tolerance(0, 0, 0.0)

        assert decision.missing_percentage == 0.0
        assert decision.passed is True

    def test_empty_source_passes_positive_tolerance(self):
        """An empty source is 0% missing and passes any positive tolerance."""
        decision = evaluate_tolerance(0, 0, 1.0)

        assert decision.missing_percentage == 0.0
        assert decision.passed is True

    def test_negative_tolerance_rejected(self):
        """Negative tolerance is a configuration error."""
        with pytest.raises(ConfigurationError):
            evaluate_tolerance(10, 1, -0.5)

    def test_integer_tolerance_normalized_to_float(self):
        """Integer tolerances are reported as floats."""
        decision = evaluate_tolerance(10, 0, 5)

        assert isinstance(decision.tolerance_percentage, float)
