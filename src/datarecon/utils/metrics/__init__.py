"""
Prometheus metrics for reconciliation runs

Usage:
    from datarecon.utils.metrics import MetricsPublisher, ReconciliationMetrics

    MetricsPublisher(port=9091).start()
    metrics = ReconciliationMetrics()
    metrics.record_result("orders", passed=True, duration=4.2,
                          total_source_records=10000, total_missing_records=5,
                          missing_percentage=0.05)
"""

from .publisher import MetricsPublisher
from .reconciliation import ReconciliationMetrics, get_or_create_metric

__all__ = [
    "MetricsPublisher",
    "ReconciliationMetrics",
    "get_or_create_metric",
]
