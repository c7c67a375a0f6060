"""
Unit tests for result assembly, run reports and report exports

Tests verify:
- Diagnostic rows of passed and failed checks
- Run-level aggregation, severity and recommendations
- JSON, CSV and console output
"""

import csv
import json
from datetime import datetime
from decimal import Decimal

import pytest

from datarecon.compare.boundaries import TemporalCutoff
from datarecon.compare.setdiff import DiffResult
from datarecon.compare.tolerance import evaluate_tolerance
from datarecon.errors import TypeMismatchError
from datarecon.report import (
    SUMMARY_COLUMNS,
    ReconciliationResult,
    build_result,
    export_missing_rows_csv,
    export_report_csv,
    export_report_json,
    format_report_console,
    generate_report,
    load_report_json,
)
from datarecon.report.generator import _calculate_severity

ROW_COLUMNS = ("ID", "AMOUNT")


def make_result(check="orders", source=100, missing_rows=(), tolerance=1.0, **kwargs):
    diff = DiffResult(
        missing_rows=tuple(missing_rows),
        total_source_records=source,
        total_target_records=source - len(missing_rows),
        type_mismatches=kwargs.pop("type_mismatches", ()),
    )
    decision = evaluate_tolerance(source, diff.total_missing_records, tolerance)
    return build_result(check, diff, decision, ROW_COLUMNS, **kwargs)


class TestReconciliationResult:
    """Test the per-check result and its diagnostic rows"""

    def test_passed_check_has_no_rows(self):
        """A passing check's report is empty even when some rows are missing"""
        result = make_result(source=1000, missing_rows=[(1, 10)])

        assert result.passed is True
        assert result.status == "PASS"
        assert result.output_rows() == ()
        assert result.report().is_clean

    def test_failed_check_repeats_summary_on_each_row(self):
        """Every missing row carries the three summary statistics"""
        result = make_result(source=4, missing_rows=[(1, 10), (2, 20)])

        assert result.passed is False
        assert result.output_columns == ("ID", "AMOUNT", *SUMMARY_COLUMNS)
        assert result.output_rows() == ((1, 10, 4, 2, 50.0), (2, 20, 4, 2, 50.0))

    def test_report_as_dicts(self):
        """Report rows can be read by column name"""
        report = make_result(source=1, missing_rows=[(7, 70)]).report()

        assert len(report) == 1
        assert report.as_dicts() == [{
            "ID": 7, "AMOUNT": 70,
            "total_source_records": 1, "total_missing_records": 1, "missing_percentage": 100.0,
        }]

    def test_build_result_rejects_mismatched_counts(self):
        """The tolerance decision must come from the same diff"""
        diff = DiffResult(missing_rows=((1, 10),), total_source_records=10, total_target_records=9)
        decision = evaluate_tolerance(10, 2, 1.0)

        with pytest.raises(ValueError):
            build_result("orders", diff, decision, ROW_COLUMNS)

    def test_to_dict_is_json_serializable(self):
        """Dates, decimals and cutoffs are serialized"""
        mismatch = TypeMismatchError(1, "AMOUNT", "AMOUNT", frozenset({"str"}), frozenset({"int"}))
        result = make_result(
            source=2,
            missing_rows=[(Decimal("10.50"), datetime(2024, 1, 1))],
            cutoff=TemporalCutoff(datetime(2024, 1, 2), None),
            type_mismatches=(mismatch,),
        )

        data = json.loads(json.dumps(result.to_dict()))

        assert data["status"] == "FAIL"
        assert data["cutoff"] == {"max_created_at": "2024-01-02T00:00:00", "max_updated_at": None}
        assert data["type_mismatches"][0]["source_types"] == ["str"]
        assert data["output_rows"] == [["10.50", "2024-01-01T00:00:00", 2, 1, 50.0]]

    def test_to_dict_without_rows(self):
        """Rows can be left out of the serialized result"""
        assert "output_rows" not in make_result().to_dict(include_rows=False)


class TestCalculateSeverity:
    """Test severity relative to tolerance"""

    @pytest.mark.parametrize("missing,tolerance,expected", [
        (1.5, 1.0, "LOW"),
        (3.0, 1.0, "MEDIUM"),
        (6.0, 1.0, "HIGH"),
        (10.0, 50.0, "CRITICAL"),
        (0.5, 0.0, "MEDIUM"),
        (2.0, 0.0, "HIGH"),
    ])
    def test_severity(self, missing, tolerance, expected):
        """Severity grows with the ratio of missing percentage to tolerance"""
        assert _calculate_severity(missing, tolerance) == expected


class TestGenerateReport:
    """Test run-level aggregation"""

    def test_no_data(self):
        """No results and no errors"""
        report = generate_report([])

        assert report["status"] == "NO_DATA"
        assert report["total_checks"] == 0

    def test_all_passed(self):
        """All checks within tolerance"""
        report = generate_report([make_result("a"), make_result("b")])

        assert report["status"] == "PASS"
        assert report["checks_passed"] == 2
        assert report["discrepancies"] == []
        assert report["summary"] == "All 2 checks passed reconciliation."
        assert len(report["recommendations"]) == 1

    def test_failed_and_errored(self):
        """Failed checks become discrepancies; errors are counted separately"""
        failed = make_result("orders", source=10, missing_rows=[(1, 10)])
        errors = [{"check": "customers", "error": "no such column: X", "type": "SchemaError"}]

        report = generate_report([make_result("a"), failed], errors)

        assert report["status"] == "FAIL"
        assert report["total_checks"] == 3
        assert report["checks_passed"] == 1
        assert report["checks_failed"] == 1
        assert report["checks_errored"] == 1
        (disc,) = report["discrepancies"]
        assert disc["check"] == "orders"
        assert disc["severity"] == "CRITICAL"
        assert disc["details"]["missing_percentage"] == 10.0
        assert "1 could not be completed" in report["summary"]
        assert any("configuration or schema errors" in r for r in report["recommendations"])

    def test_errors_only_fail(self):
        """A run where every check raised is a failure"""
        report = generate_report([], [{"check": "a", "error": "boom", "type": "SchemaError"}])

        assert report["status"] == "FAIL"

    def test_everything_missing_recommendation(self):
        """A completely missing source points at the mapping"""
        result = make_result(source=2, missing_rows=[(1, 10), (2, 20)])

        report = generate_report([result])

        assert any("every source record is missing" in r for r in report["recommendations"])

    def test_unbounded_cutoff_recommendation(self):
        """An empty reference is called out on failed checks"""
        result = make_result(source=1, missing_rows=[(1, 10)], cutoff=TemporalCutoff())

        report = generate_report([result])

        assert any("no timestamps" in r for r in report["recommendations"])


class TestReportExports:
    """Test report export formats"""

    @pytest.fixture
    def report(self):
        failed = make_result("orders", source=10, missing_rows=[(1, 10), (2, 20)])
        errors = [{"check": "customers", "error": "boom", "type": "SchemaError"}]
        return generate_report([make_result("payments"), failed], errors)

    def test_json_round_trip(self, report, tmp_path):
        """Reports written as JSON load back unchanged"""
        path = tmp_path / "report.json"

        export_report_json(report, str(path))

        assert load_report_json(str(path)) == json.loads(json.dumps(report))

    def test_summary_csv(self, report, tmp_path):
        """One row per check plus one per error"""
        path = tmp_path / "report.csv"

        export_report_csv(report, str(path))

        with open(path, newline='') as f:
            rows = list(csv.reader(f))
        assert rows[0][0] == "Check"
        assert [row[:2] for row in rows[1:]] == [
            ["payments", "PASS"], ["orders", "FAIL"], ["customers", "ERROR"],
        ]

    def test_missing_rows_csv(self, tmp_path):
        """Diagnostic rows are written with the output columns as header"""
        path = tmp_path / "orders.csv"
        result = make_result(source=10, missing_rows=[(1, 10), (2, 20)])

        written = export_missing_rows_csv(result, str(path))

        with open(path, newline='') as f:
            rows = list(csv.reader(f))
        assert written == 2
        assert rows[0] == ["ID", "AMOUNT", *SUMMARY_COLUMNS]
        assert rows[1] == ["1", "10", "10", "2", "20.0"]

    def test_missing_rows_csv_passed_check(self, tmp_path):
        """A passed check writes only the header"""
        path = tmp_path / "orders.csv"

        assert export_missing_rows_csv(make_result(), str(path)) == 0
        assert path.read_text().strip() == ",".join(["ID", "AMOUNT", *SUMMARY_COLUMNS])

    def test_console_format(self, report):
        """Console output lists checks, discrepancies, errors and recommendations"""
        text = format_report_console(report, max_rows=1)

        assert "RECONCILIATION REPORT" in text
        assert "Status: FAIL" in text
        assert "FAIL  orders: 2/10 missing (20.0000%, tolerance 1.0%)" in text
        assert "Columns: ID, AMOUNT, total_source_records" in text
        assert "... 1 more" in text
        assert "customers: SchemaError: boom" in text
        assert "RECOMMENDATIONS" in text

    def test_console_format_from_loaded_json(self, report, tmp_path):
        """A report reloaded from JSON renders the same way"""
        path = tmp_path / "report.json"
        export_report_json(report, str(path))

        assert format_report_console(load_report_json(str(path))) == format_report_console(report)
