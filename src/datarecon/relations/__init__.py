"""
Relation scan collaborators.

The reconciliation engine only sees re-enumerable relations; these scanners
produce them from in-memory data or from a DB-API connection.
"""

from .base import InMemoryRelation, InMemoryScanner, LazyRelation, Relation, RelationScanner
from .cursor import CursorScanner

__all__ = [
    'Relation',
    'LazyRelation',
    'InMemoryRelation',
    'RelationScanner',
    'InMemoryScanner',
    'CursorScanner',
]
