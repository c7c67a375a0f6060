"""
Ambient utilities for reconciliation runs

Provides:
- logging: Structured and console logging setup
- tracing: OpenTelemetry spans
- metrics: Prometheus metrics
- retry: Backoff for transient scan errors
"""

__all__ = ["logging", "tracing", "metrics", "retry"]
