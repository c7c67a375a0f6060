"""
Reconciliation results and report generation.

This submodule assembles per-check results with their diagnostic rows and
aggregates them into run reports with several output formats.
"""

from .formatters import (
    export_missing_rows_csv,
    export_report_csv,
    export_report_json,
    format_report_console,
    load_report_json,
)
from .generator import (
    SUMMARY_COLUMNS,
    ReconciliationReport,
    ReconciliationResult,
    _calculate_severity,
    _generate_recommendations,
    _generate_summary,
    build_result,
    format_timestamp,
    generate_report,
)

__all__ = [
    'ReconciliationResult',
    'ReconciliationReport',
    'SUMMARY_COLUMNS',
    'build_result',
    'generate_report',
    'format_timestamp',
    'export_report_json',
    'load_report_json',
    'export_report_csv',
    'export_missing_rows_csv',
    'format_report_console',
    '_calculate_severity',
    '_generate_summary',
    '_generate_recommendations',
]
