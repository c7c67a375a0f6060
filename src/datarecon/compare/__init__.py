"""
Core reconciliation stages.

This submodule provides the independently testable steps of a check:
- Column mapping and projections
- Temporal cutoff resolution from a reference relation
- Soft-delete and temporal record filtering
- Set difference between source and target
- Tolerance evaluation
- SQL identifier quoting for scans and pushdown queries
"""

from .boundaries import TemporalCutoff, resolve_temporal_cutoff
from .filters import FilterCriteria, RecordFilter
from .mapping import ColumnMapper, ColumnMapping, ColumnPair, build_projections
from .quoting import get_dialect, quote_identifier
from .setdiff import DiffResult, SetDiffEngine, row_key
from .tolerance import ToleranceDecision, calculate_missing_percentage, evaluate_tolerance

__all__ = [
    'ColumnPair',
    'ColumnMapping',
    'ColumnMapper',
    'build_projections',
    'TemporalCutoff',
    'resolve_temporal_cutoff',
    'FilterCriteria',
    'RecordFilter',
    'DiffResult',
    'SetDiffEngine',
    'row_key',
    'ToleranceDecision',
    'calculate_missing_percentage',
    'evaluate_tolerance',
    'get_dialect',
    'quote_identifier',
]
