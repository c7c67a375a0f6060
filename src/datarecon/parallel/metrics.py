"""
Prometheus metrics for parallel reconciliation runs.

This module defines metrics to track how many checks a parallel run
processed and how long they took.
"""

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

from datarecon.utils.metrics import get_or_create_metric

PARALLEL_CHECKS_PROCESSED = get_or_create_metric(
    lambda: Counter(
        "parallel_checks_processed_total",
        "Total checks processed in parallel reconciliation",
        ["status"],  # completed, error, timeout
        registry=REGISTRY,
    ),
    "parallel_checks_processed",
)

PARALLEL_RECONCILIATION_TIME = get_or_create_metric(
    lambda: Histogram(
        "parallel_reconciliation_seconds",
        "Total time for a parallel reconciliation run",
        ["worker_count"],
        buckets=[1, 5, 10, 30, 60, 120, 300, 600, 1800, 3600],
        registry=REGISTRY,
    ),
    "parallel_reconciliation_seconds",
)

PARALLEL_CHECK_TIME = get_or_create_metric(
    lambda: Histogram(
        "parallel_check_reconciliation_seconds",
        "Time to reconcile an individual check in a parallel run",
        ["check"],
        buckets=[0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600],
        registry=REGISTRY,
    ),
    "parallel_check_reconciliation_seconds",
)

PARALLEL_ACTIVE_WORKERS = get_or_create_metric(
    lambda: Gauge(
        "parallel_active_workers",
        "Number of worker threads processing checks",
        registry=REGISTRY,
    ),
    "parallel_active_workers",
)

PARALLEL_QUEUE_SIZE = get_or_create_metric(
    lambda: Gauge(
        "parallel_queue_size",
        "Number of checks waiting to complete",
        registry=REGISTRY,
    ),
    "parallel_queue_size",
)
