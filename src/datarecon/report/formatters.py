"""
Report formatting and export utilities.

This module exports run reports as JSON, failed-check diagnostic rows as
CSV, and renders reports for the terminal.
"""

import csv
import json
from typing import Any

from .generator import ReconciliationResult


def export_report_json(report: dict[str, Any], output_path: str) -> None:
    """
    Export report to JSON file

    Values JSON cannot represent natively (dates, decimals) are written as strings.

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w') as f:
        json.dump(report, f, indent=2, default=str)


def load_report_json(input_path: str) -> dict[str, Any]:
    """Load a report previously written by export_report_json."""
    with open(input_path) as f:
        return json.load(f)


def export_missing_rows_csv(result: ReconciliationResult, output_path: str) -> int:
    """
    Export the diagnostic rows of one check to CSV

    A passed check produces a header-only file.

    Args:
        result: Check result
        output_path: Path to output file

    Returns:
        Number of rows written, excluding the header
    """
    rows = result.output_rows()
    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(result.output_columns)
        writer.writerows(rows)
    return len(rows)


def export_report_csv(report: dict[str, Any], output_path: str) -> None:
    """
    Export the per-check summary of a report to CSV

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)

        writer.writerow([
            "Check",
            "Status",
            "Source Records",
            "Missing Records",
            "Missing Percentage",
            "Tolerance Percentage",
        ])

        for result in report.get("results", []):
            writer.writerow([
                result.get("check", ""),
                result.get("status", ""),
                result.get("total_source_records", ""),
                result.get("total_missing_records", ""),
                result.get("missing_percentage", ""),
                result.get("tolerance_percentage", ""),
            ])

        for error in report.get("errors", []):
            writer.writerow([error.get("check", ""), "ERROR", "", "", "", ""])


def format_report_console(report: dict[str, Any], max_rows: int = 10) -> str:
    """
    Format report for console output

    Args:
        report: Report dictionary
        max_rows: Diagnostic rows shown per failed check

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 80)
    lines.append("RECONCILIATION REPORT")
    lines.append("=" * 80)
    lines.append(f"Status: {report['status']}")
    lines.append(f"Timestamp: {report['timestamp']}")
    lines.append(f"Total Checks: {report['total_checks']}")
    lines.append(f"Checks Passed: {report['checks_passed']}")
    lines.append(f"Checks Failed: {report['checks_failed']}")
    lines.append(f"Checks Errored: {report['checks_errored']}")
    lines.append("")

    lines.append("SUMMARY")
    lines.append("-" * 80)
    lines.append(report['summary'])
    lines.append("")

    if report['results']:
        lines.append("CHECKS")
        lines.append("-" * 80)
        for result in report['results']:
            lines.append(
                f"{result['status']:<5} {result['check']}: "
                f"{result['total_missing_records']:,}/{result['total_source_records']:,} missing "
                f"({result['missing_percentage']:.4f}%, tolerance {result['tolerance_percentage']}%)"
            )
        lines.append("")

    if report['discrepancies']:
        lines.append("DISCREPANCIES")
        lines.append("-" * 80)

        rows_by_check = {r['check']: r for r in report['results']}
        for disc in report['discrepancies']:
            lines.append(f"Check: {disc['check']}")
            lines.append(f"  Severity: {disc['severity']}")
            lines.append(f"  Details: {disc['details']}")

            result = rows_by_check.get(disc['check'], {})
            output_rows = result.get('output_rows', [])
            if output_rows:
                lines.append(f"  Columns: {', '.join(result['output_columns'])}")
                for row in output_rows[:max_rows]:
                    lines.append(f"    {row}")
                if len(output_rows) > max_rows:
                    lines.append(f"    ... {len(output_rows) - max_rows} more")
            lines.append("")

    if report['errors']:
        lines.append("ERRORS")
        lines.append("-" * 80)
        for error in report['errors']:
            lines.append(f"{error['check']}: {error['type']}: {error['error']}")
        lines.append("")

    if report['recommendations']:
        lines.append("RECOMMENDATIONS")
        lines.append("-" * 80)
        for i, rec in enumerate(report['recommendations'], 1):
            lines.append(f"{i}. {rec}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)
