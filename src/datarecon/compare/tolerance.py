"""
Missing-percentage calculation and pass/fail decision.
"""

from dataclasses import dataclass

from datarecon.errors import ConfigurationError


@dataclass(frozen=True)
class ToleranceDecision:
    """Missing percentage and verdict for one check."""

    total_source_records: int
    total_missing_records: int
    missing_percentage: float
    tolerance_percentage: float
    passed: bool


def calculate_missing_percentage(total_source_records: int, total_missing_records: int) -> float:
    """
    Percentage of source records missing from the target

    Returns 0.0 for an empty source instead of dividing by zero.

    Raises:
        ValueError: If counts are negative or missing exceeds source
    """
    if total_source_records < 0 or total_missing_records < 0:
        raise ValueError(
            f"Record counts cannot be negative: source={total_source_records}, "
            f"missing={total_missing_records}"
        )
    if total_missing_records > total_source_records:
        raise ValueError(
            f"Missing records ({total_missing_records}) exceed source records "
            f"({total_source_records})"
        )

    if total_source_records == 0:
        return 0.0

    return (total_missing_records * 100.0) / total_source_records


def evaluate_tolerance(
    total_source_records: int,
    total_missing_records: int,
    tolerance_percentage: float = 1.0,
) -> ToleranceDecision:
    """
    Decide whether a check passes

    A check with nothing missing always passes. Otherwise the missing
    percentage must be strictly below the tolerance; hitting the tolerance
    exactly is a failure.

    Args:
        total_source_records: Filtered source row count
        total_missing_records: Distinct source rows absent from the target
        tolerance_percentage: Maximum acceptable missing percentage (>= 0)

    Returns:
        ToleranceDecision

    Raises:
        ConfigurationError: If tolerance_percentage is negative
    """
    if tolerance_percentage < 0:
        raise ConfigurationError(
            f"tolerance_percentage must be >= 0, got {tolerance_percentage}"
        )

    missing_percentage = calculate_missing_percentage(total_source_records, total_missing_records)

    return ToleranceDecision(
        total_source_records=total_source_records,
        total_missing_records=total_missing_records,
        missing_percentage=missing_percentage,
        tolerance_percentage=float(tolerance_percentage),
        passed=total_missing_records == 0 or missing_percentage < tolerance_percentage,
    )
