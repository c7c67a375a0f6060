"""
Parallel reconciliation of independent checks.

Runs several checks concurrently using ThreadPoolExecutor.

Features:
- Configurable worker count
- Timeout handling with cooperative cancellation between passes
- Error isolation (a failing check does not stop the others)
- Fail-fast mode
- Prometheus metrics and tracing for parallel runs
"""

from .helpers import estimate_optimal_workers, run_parallel_checks
from .reconciler import ParallelReconciler

__all__ = [
    'ParallelReconciler',
    'estimate_optimal_workers',
    'run_parallel_checks',
]
