"""
Prometheus metrics for reconciliation checks.

Tracks check runs, outcomes, record counts and missing percentages so a
failing check can alert before anyone reads the report.
"""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric or return the one already registered under that name

    Args:
        metric_factory: Callable that creates the metric
        metric_name: Name used to look up an existing collector
        registry: Prometheus registry the metric belongs to

    Example:
        RUNS = get_or_create_metric(
            lambda: Counter("runs_total", "Total runs", ["status"]),
            "runs_total",
        )
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


class ReconciliationMetrics:
    """
    Metrics for reconciliation checks

    Args:
        registry: Custom Prometheus registry (default: global REGISTRY)
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or REGISTRY
        reg = self.registry

        self.runs_total = get_or_create_metric(
            lambda: Counter(
                "reconciliation_runs_total",
                "Total number of reconciliation check runs",
                ["check", "status"],  # passed, failed, error
                registry=reg,
            ),
            "reconciliation_runs",
            reg,
        )

        self.duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "reconciliation_duration_seconds",
                "Duration of reconciliation checks in seconds",
                ["check"],
                buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600, 1800, 3600),
                registry=reg,
            ),
            "reconciliation_duration_seconds",
            reg,
        )

        self.source_records = get_or_create_metric(
            lambda: Gauge(
                "reconciliation_source_records",
                "Filtered source records compared in the last run",
                ["check"],
                registry=reg,
            ),
            "reconciliation_source_records",
            reg,
        )

        self.missing_records = get_or_create_metric(
            lambda: Gauge(
                "reconciliation_missing_records",
                "Source records missing from the target in the last run",
                ["check"],
                registry=reg,
            ),
            "reconciliation_missing_records",
            reg,
        )

        self.missing_percentage = get_or_create_metric(
            lambda: Gauge(
                "reconciliation_missing_percentage",
                "Percentage of source records missing from the target",
                ["check"],
                registry=reg,
            ),
            "reconciliation_missing_percentage",
            reg,
        )

        self.type_mismatches_total = get_or_create_metric(
            lambda: Counter(
                "reconciliation_type_mismatches_total",
                "Mapped fields whose source and target value types never overlap",
                ["check"],
                registry=reg,
            ),
            "reconciliation_type_mismatches",
            reg,
        )

        self.last_run_timestamp = get_or_create_metric(
            lambda: Gauge(
                "reconciliation_last_run_timestamp",
                "Unix timestamp of the last completed run",
                ["check"],
                registry=reg,
            ),
            "reconciliation_last_run_timestamp",
            reg,
        )

    def record_result(
        self,
        check: str,
        passed: bool,
        duration: float,
        total_source_records: int,
        total_missing_records: int,
        missing_percentage: float,
        type_mismatches: int = 0,
    ) -> None:
        """
        Record a completed check

        Args:
            check: Check name
            passed: Tolerance verdict
            duration: Duration in seconds
            total_source_records: Filtered source row count
            total_missing_records: Missing row count
            missing_percentage: Missing percentage
            type_mismatches: Number of diagnosed type mismatches
        """
        status = "passed" if passed else "failed"

        self.runs_total.labels(check=check, status=status).inc()
        self.duration_seconds.labels(check=check).observe(duration)
        self.source_records.labels(check=check).set(total_source_records)
        self.missing_records.labels(check=check).set(total_missing_records)
        self.missing_percentage.labels(check=check).set(missing_percentage)
        self.last_run_timestamp.labels(check=check).set(time.time())
        if type_mismatches:
            self.type_mismatches_total.labels(check=check).inc(type_mismatches)

        logger.debug(
            f"Recorded reconciliation run: check={check}, status={status}, "
            f"duration={duration:.2f}s, missing={total_missing_records}/{total_source_records}"
        )

    def record_error(self, check: str, duration: float) -> None:
        """Record a check that raised instead of producing a result."""
        self.runs_total.labels(check=check, status="error").inc()
        self.duration_seconds.labels(check=check).observe(duration)
