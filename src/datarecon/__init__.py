"""
Table data reconciliation

Finds records present in a source relation but absent from a target
produced by a downstream transformation, reports the discrepancy as a
percentage and passes or fails against a tolerance.

Components:
- compare: Mapping, temporal cutoff, filtering, set difference and tolerance stages
- relations: Scan collaborators (in-memory and DB-API)
- config: Check configuration and configuration files
- reconciler: End-to-end check execution
- report: Results, diagnostic rows and run reports
- pushdown: Single-query SQL rendering of a check
- parallel: Concurrent execution of independent checks
- cli: The datarecon command

Usage:
    from datarecon import ReconciliationConfig, TableReconciler
    from datarecon.relations import CursorScanner

    config = ReconciliationConfig(
        source_table="RAW.ORDERS",
        target_table="ANALYTICS.ORDERS",
        columns_mapping=[{"source": "ID", "target": "ID"}, {"source": "AMOUNT", "target": "AMOUNT"}],
    )
    result = TableReconciler(CursorScanner(connection)).reconcile(config)
"""

from .config import ReconciliationConfig
from .errors import (
    ConfigurationError,
    ReconciliationCancelled,
    ReconciliationError,
    SchemaError,
    TypeMismatchError,
)
from .reconciler import TableReconciler, reconcile
from .report import ReconciliationReport, ReconciliationResult

__version__ = "1.0.0"
__all__ = [
    "ReconciliationConfig",
    "TableReconciler",
    "reconcile",
    "ReconciliationResult",
    "ReconciliationReport",
    "ReconciliationError",
    "ConfigurationError",
    "SchemaError",
    "TypeMismatchError",
    "ReconciliationCancelled",
]
