"""
Helper functions for parallel reconciliation.
"""

import logging

from datarecon.config.models import ReconciliationConfig

from .reconciler import ParallelReconciler, ReconcileFunc

logger = logging.getLogger(__name__)


def estimate_optimal_workers(
    check_count: int,
    avg_check_time_seconds: float = 60.0,
    total_time_budget_seconds: float = 300.0,
    max_workers: int = 10,
) -> int:
    """
    Estimate the number of workers needed to finish within a time budget

    Args:
        check_count: Number of checks to run
        avg_check_time_seconds: Average time per check
        total_time_budget_seconds: Desired total completion time
        max_workers: Maximum workers allowed

    Returns:
        Recommended worker count, between 1 and min(max_workers, check_count)

    Example:
        >>> estimate_optimal_workers(20, 60, 300, 10)
        5
    """
    if check_count <= 0:
        return 1

    total_work_seconds = check_count * avg_check_time_seconds
    workers_needed = int(total_work_seconds / total_time_budget_seconds) + 1

    workers = max(min(workers_needed, max_workers, check_count), 1)

    logger.info(
        f"Estimated optimal workers: {workers} "
        f"(checks={check_count}, avg_time={avg_check_time_seconds}s, "
        f"budget={total_time_budget_seconds}s)"
    )

    return workers


def run_parallel_checks(
    configs: list[ReconciliationConfig],
    reconcile_func: ReconcileFunc,
    max_workers: int | None = None,
    timeout_per_check: float = 3600,
    fail_fast: bool = False,
) -> dict:
    """
    Run checks in parallel, estimating the worker count when not given

    Returns:
        Aggregated results of ParallelReconciler.reconcile_checks
    """
    if max_workers is None:
        max_workers = estimate_optimal_workers(len(configs))

    reconciler = ParallelReconciler(
        reconcile_func,
        max_workers=max_workers,
        timeout_per_check=timeout_per_check,
        fail_fast=fail_fast,
    )
    return reconciler.reconcile_checks(configs)
