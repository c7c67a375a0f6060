"""
Parallel check reconciliation engine.

This module provides the ParallelReconciler class for running several
independent checks concurrently using ThreadPoolExecutor.
"""

import logging
import math
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, TimeoutError, as_completed
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

from datarecon.config.models import ReconciliationConfig
from datarecon.errors import ConfigurationError, ReconciliationCancelled
from datarecon.report.generator import ReconciliationResult
from datarecon.utils.tracing import trace_operation

from .metrics import (
    PARALLEL_ACTIVE_WORKERS,
    PARALLEL_CHECK_TIME,
    PARALLEL_CHECKS_PROCESSED,
    PARALLEL_QUEUE_SIZE,
    PARALLEL_RECONCILIATION_TIME,
)

logger = logging.getLogger(__name__)

ReconcileFunc = Callable[[ReconciliationConfig, threading.Event], ReconciliationResult]


class ParallelReconciler:
    """
    Orchestrates parallel reconciliation of multiple checks

    Checks share no state, so they run in a thread pool with error
    isolation: a check that raises is reported and the others continue.

    Args:
        reconcile_func: Callable(config, cancellation_token) returning a
            ReconciliationResult, usually TableReconciler.reconcile
        max_workers: Maximum concurrent workers
        timeout_per_check: Timeout in seconds per check; the run as a whole
            waits timeout_per_check for every batch of max_workers checks
        fail_fast: Cancel the remaining checks after the first error
    """

    def __init__(
        self,
        reconcile_func: ReconcileFunc,
        max_workers: int = 4,
        timeout_per_check: float = 3600,
        fail_fast: bool = False,
    ):
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")
        if timeout_per_check <= 0:
            raise ConfigurationError(f"timeout_per_check must be positive, got {timeout_per_check}")

        self.reconcile_func = reconcile_func
        self.max_workers = max_workers
        self.timeout_per_check = timeout_per_check
        self.fail_fast = fail_fast
        self._metrics_lock = threading.Lock()
        self._cancellation_tokens: dict[str, threading.Event] = {}

        logger.info(
            f"ParallelReconciler initialized: "
            f"max_workers={max_workers}, "
            f"timeout_per_check={timeout_per_check}s, "
            f"fail_fast={fail_fast}"
        )

    def reconcile_checks(self, configs: list[ReconciliationConfig]) -> dict[str, Any]:
        """
        Run checks in parallel

        Args:
            configs: Checks to run; names must be unique

        Returns:
            Aggregated results dictionary with structure:
            {
                'total_checks': int,
                'completed': int,
                'failed': int,
                'timeout': int,
                'cancelled': int,
                'results': List[ReconciliationResult],
                'errors': List[Dict] ({'check', 'error', 'type'}),
                'duration_seconds': float,
                'timestamp': str (ISO format),
                'max_workers': int
            }

        Raises:
            ConfigurationError: If check names are not unique
        """
        names = [config.name for config in configs]
        if len(set(names)) != len(names):
            raise ConfigurationError("Check names must be unique in a parallel run")

        with trace_operation(
            "parallel_reconcile_checks",
            kind=trace.SpanKind.INTERNAL,
            check_count=len(configs),
            max_workers=self.max_workers,
        ):
            with PARALLEL_RECONCILIATION_TIME.labels(worker_count=self.max_workers).time():
                return self._run(configs)

    def _run(self, configs: list[ReconciliationConfig]) -> dict[str, Any]:
        start_time = datetime.now(UTC)

        results = {
            "total_checks": len(configs),
            "completed": 0,
            "failed": 0,
            "timeout": 0,
            "cancelled": 0,
            "results": [],
            "errors": [],
            "max_workers": self.max_workers,
        }

        if not configs:
            logger.warning("No checks to reconcile")
            results["duration_seconds"] = 0
            results["timestamp"] = datetime.now(UTC).isoformat()
            return results

        logger.info(
            f"Starting parallel reconciliation of {len(configs)} checks "
            f"with {self.max_workers} workers"
        )

        with self._metrics_lock:
            PARALLEL_QUEUE_SIZE.set(len(configs))

        self._cancellation_tokens = {config.name: threading.Event() for config in configs}
        run_timeout = self.timeout_per_check * math.ceil(len(configs) / self.max_workers)

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            future_to_check = {
                executor.submit(
                    self._reconcile_check_wrapper,
                    config,
                    self._cancellation_tokens[config.name],
                ): config.name
                for config in configs
            }

            with self._metrics_lock:
                PARALLEL_ACTIVE_WORKERS.set(min(self.max_workers, len(configs)))

            completed_count = 0
            try:
                for future in as_completed(future_to_check, timeout=run_timeout):
                    check = future_to_check[future]
                    completed_count += 1

                    with self._metrics_lock:
                        PARALLEL_QUEUE_SIZE.set(len(configs) - completed_count)
                        PARALLEL_ACTIVE_WORKERS.set(
                            min(self.max_workers, len(configs) - completed_count)
                        )

                    try:
                        result = future.result()
                    except ReconciliationCancelled:
                        results["cancelled"] += 1
                        logger.info(f"Check {check} cancelled")
                        continue
                    except Exception as e:
                        results["failed"] += 1
                        results["errors"].append(
                            {"check": check, "error": str(e), "type": type(e).__name__}
                        )
                        PARALLEL_CHECKS_PROCESSED.labels(status="error").inc()
                        logger.error(
                            f"Check {check} failed: {e} ({completed_count}/{len(configs)})"
                        )

                        if self.fail_fast:
                            logger.warning("Fail-fast enabled, cancelling remaining checks")
                            self._cancel_all()
                            break
                        continue

                    results["results"].append(result)
                    results["completed"] += 1
                    PARALLEL_CHECKS_PROCESSED.labels(status="completed").inc()
                    logger.info(
                        f"Check {check} completed: {result.status} "
                        f"({completed_count}/{len(configs)})"
                    )

            except TimeoutError:
                # Queued checks never started and are counted as cancelled below
                running = [
                    check for future, check in future_to_check.items()
                    if not future.done() and not future.cancel()
                ]
                for check in running:
                    self._cancellation_tokens[check].set()
                    results["timeout"] += 1
                    results["errors"].append(
                        {
                            "check": check,
                            "error": f"Timeout after {self.timeout_per_check}s",
                            "type": "TimeoutError",
                        }
                    )
                    PARALLEL_CHECKS_PROCESSED.labels(status="timeout").inc()
                    logger.error(f"Check {check} timed out after {self.timeout_per_check}s")
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        accounted = results["completed"] + results["failed"] + results["timeout"] + results["cancelled"]
        results["cancelled"] += len(configs) - accounted

        self._cancellation_tokens.clear()

        with self._metrics_lock:
            PARALLEL_ACTIVE_WORKERS.set(0)
            PARALLEL_QUEUE_SIZE.set(0)

        end_time = datetime.now(UTC)
        results["duration_seconds"] = (end_time - start_time).total_seconds()
        results["timestamp"] = end_time.isoformat()

        logger.info(
            f"Parallel reconciliation complete: "
            f"{results['completed']} completed, "
            f"{results['failed']} failed, "
            f"{results['timeout']} timeout, "
            f"{results['cancelled']} cancelled "
            f"out of {results['total_checks']} checks "
            f"in {results['duration_seconds']:.2f}s"
        )

        return results

    def _cancel_all(self) -> None:
        for token in self._cancellation_tokens.values():
            token.set()

    def _reconcile_check_wrapper(
        self,
        config: ReconciliationConfig,
        cancellation_token: threading.Event,
    ) -> ReconciliationResult:
        """Run one check with tracing and timing."""
        with trace_operation(
            "parallel_reconcile_single_check",
            kind=trace.SpanKind.INTERNAL,
            check=config.name,
        ):
            start_time = datetime.now(UTC)

            if cancellation_token.is_set():
                raise ReconciliationCancelled(f"Check {config.name} cancelled before starting")

            logger.debug(f"Starting reconciliation for check: {config.name}")
            result = self.reconcile_func(config, cancellation_token)

            duration = (datetime.now(UTC) - start_time).total_seconds()
            PARALLEL_CHECK_TIME.labels(check=config.name).observe(duration)
            logger.debug(f"Completed check {config.name} in {duration:.2f}s")

            return result
