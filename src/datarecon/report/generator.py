"""
Result assembly and report generation for reconciliation checks.

A single check produces a ReconciliationResult; its ReconciliationReport is
the diagnostic row set (empty when the check passed, otherwise every missing
row with the summary statistics repeated on it). generate_report aggregates
several results into a run-level summary.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from datarecon.compare.boundaries import TemporalCutoff
from datarecon.compare.setdiff import DiffResult
from datarecon.compare.tolerance import ToleranceDecision
from datarecon.errors import TypeMismatchError

SUMMARY_COLUMNS = ("total_source_records", "total_missing_records", "missing_percentage")


def format_timestamp(timestamp: datetime) -> str:
    """ISO 8601 timestamp for reports."""
    return timestamp.isoformat()


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


@dataclass(frozen=True)
class ReconciliationReport:
    """
    Diagnostic rows of one check

    Columns are the id column, the mapped target columns and SUMMARY_COLUMNS.
    """

    columns: tuple[str, ...]
    rows: tuple[tuple, ...]

    @property
    def is_clean(self) -> bool:
        return not self.rows

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def as_dicts(self) -> list[dict[str, Any]]:
        """
        Rows keyed by column name

        When a column name repeats (id column also mapped) the later value wins.
        """
        return [dict(zip(self.columns, row)) for row in self.rows]


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of one reconciliation check."""

    check: str
    missing_rows: tuple[tuple, ...]
    total_source_records: int
    total_missing_records: int
    missing_percentage: float
    passed: bool
    tolerance_percentage: float
    row_columns: tuple[str, ...]
    cutoff: TemporalCutoff | None = None
    type_mismatches: tuple[TypeMismatchError, ...] = ()
    timestamp: str = field(default_factory=lambda: format_timestamp(datetime.now(UTC)))

    @property
    def status(self) -> str:
        return "PASS" if self.passed else "FAIL"

    @property
    def output_columns(self) -> tuple[str, ...]:
        return (*self.row_columns, *SUMMARY_COLUMNS)

    def output_rows(self) -> tuple[tuple, ...]:
        """
        Diagnostic rows: empty when passed, otherwise each missing row followed
        by total_source_records, total_missing_records and missing_percentage
        """
        if self.passed:
            return ()
        summary = (self.total_source_records, self.total_missing_records, self.missing_percentage)
        return tuple((*row, *summary) for row in self.missing_rows)

    def report(self) -> ReconciliationReport:
        return ReconciliationReport(columns=self.output_columns, rows=self.output_rows())

    def to_dict(self, include_rows: bool = True) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = {
            "check": self.check,
            "status": self.status,
            "passed": self.passed,
            "total_source_records": self.total_source_records,
            "total_missing_records": self.total_missing_records,
            "missing_percentage": self.missing_percentage,
            "tolerance_percentage": self.tolerance_percentage,
            "cutoff": self.cutoff.to_dict() if self.cutoff is not None else None,
            "type_mismatches": [m.to_dict() for m in self.type_mismatches],
            "timestamp": self.timestamp,
            "output_columns": list(self.output_columns),
        }
        if include_rows:
            data["output_rows"] = [
                [_json_value(value) for value in row] for row in self.output_rows()
            ]
        return data


def build_result(
    check: str,
    diff: DiffResult,
    decision: ToleranceDecision,
    row_columns: tuple[str, ...],
    cutoff: TemporalCutoff | None = None,
) -> ReconciliationResult:
    """
    Assemble a ReconciliationResult from the diff and tolerance stages

    Args:
        check: Check name
        diff: Set difference outcome
        decision: Tolerance verdict for the diff counts
        row_columns: Column names of the missing rows (id + mapped target columns)
        cutoff: Temporal cutoff applied, if any

    Raises:
        ValueError: If the decision was computed from different counts
    """
    if (decision.total_source_records, decision.total_missing_records) != (
        diff.total_source_records, diff.total_missing_records
    ):
        raise ValueError("Tolerance decision does not match diff counts")

    return ReconciliationResult(
        check=check,
        missing_rows=diff.missing_rows,
        total_source_records=diff.total_source_records,
        total_missing_records=diff.total_missing_records,
        missing_percentage=decision.missing_percentage,
        passed=decision.passed,
        tolerance_percentage=decision.tolerance_percentage,
        row_columns=tuple(row_columns),
        cutoff=cutoff,
        type_mismatches=diff.type_mismatches,
    )


def _calculate_severity(missing_percentage: float, tolerance_percentage: float) -> str:
    """
    Severity of a failed check relative to its tolerance

    Returns:
        LOW, MEDIUM, HIGH, or CRITICAL
    """
    if missing_percentage >= 10.0:
        return "CRITICAL"
    if tolerance_percentage <= 0:
        return "HIGH" if missing_percentage >= 1.0 else "MEDIUM"

    ratio = missing_percentage / tolerance_percentage
    if ratio < 2:
        return "LOW"
    elif ratio < 5:
        return "MEDIUM"
    return "HIGH"


def _generate_summary(total_checks: int, passed: int, failed: int, errored: int) -> str:
    if failed == 0 and errored == 0:
        return f"All {total_checks} checks passed reconciliation."

    parts = [f"{failed} of {total_checks} checks exceeded their tolerance"]
    if errored:
        parts.append(f"{errored} could not be completed")
    return "; ".join(parts) + f". {passed} checks passed."


def _generate_recommendations(
    discrepancies: list[dict[str, Any]],
    results: list[ReconciliationResult],
    errors: list[dict[str, Any]],
) -> list[str]:
    recommendations = []

    if not discrepancies and not errors:
        return ["Targets contain all active source records within tolerance."]

    for disc in discrepancies:
        if disc["details"]["total_missing_records"] == disc["details"]["total_source_records"] > 0:
            recommendations.append(
                f"{disc['check']}: every source record is missing. Check the column "
                "mapping and id column before investigating the pipeline."
            )

    mismatched = [r.check for r in results if r.type_mismatches]
    if mismatched:
        recommendations.append(
            f"Type mismatches in {', '.join(mismatched)}: equal-looking values of different "
            "types never match. Cast one side in the target model."
        )

    unbounded = [
        r.check for r in results
        if r.cutoff is not None and r.cutoff.is_unbounded and not r.passed
    ]
    if unbounded:
        recommendations.append(
            f"Reference relation had no timestamps for {', '.join(unbounded)}; "
            "in-flight records may be reported as missing."
        )

    if discrepancies:
        recommendations.append(
            "Inspect the missing rows for a common load window or filter before re-running."
        )

    if errors:
        recommendations.append(
            "Fix configuration or schema errors first; failed checks produced no result."
        )

    return recommendations


def generate_report(
    results: list[ReconciliationResult],
    errors: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """
    Aggregate check results into a run report

    Args:
        results: Completed check results
        errors: Checks that raised, as {'check', 'error', 'type'} dictionaries

    Returns:
        Dictionary containing:
        - status: PASS, FAIL, or NO_DATA
        - total_checks / checks_passed / checks_failed / checks_errored
        - discrepancies: One entry per failed check
        - results: Serialized results (with diagnostic rows)
        - errors, summary, recommendations, timestamp
    """
    errors = list(errors or [])
    timestamp = format_timestamp(datetime.now(UTC))

    if not results and not errors:
        return {
            "status": "NO_DATA",
            "total_checks": 0,
            "checks_passed": 0,
            "checks_failed": 0,
            "checks_errored": 0,
            "discrepancies": [],
            "results": [],
            "errors": [],
            "summary": "No reconciliation checks were run",
            "recommendations": [],
            "timestamp": timestamp,
        }

    discrepancies = [
        {
            "check": result.check,
            "severity": _calculate_severity(result.missing_percentage, result.tolerance_percentage),
            "details": {
                "total_source_records": result.total_source_records,
                "total_missing_records": result.total_missing_records,
                "missing_percentage": result.missing_percentage,
                "tolerance_percentage": result.tolerance_percentage,
            },
            "timestamp": result.timestamp,
        }
        for result in results
        if not result.passed
    ]

    passed = sum(1 for result in results if result.passed)
    failed = len(discrepancies)
    total = len(results) + len(errors)

    return {
        "status": "PASS" if failed == 0 and not errors else "FAIL",
        "total_checks": total,
        "checks_passed": passed,
        "checks_failed": failed,
        "checks_errored": len(errors),
        "discrepancies": discrepancies,
        "results": [result.to_dict() for result in results],
        "errors": errors,
        "summary": _generate_summary(total, passed, failed, len(errors)),
        "recommendations": _generate_recommendations(discrepancies, results, errors),
        "timestamp": timestamp,
    }
