"""
Reconciliation engine.

Runs one check end to end: resolve the temporal cutoff from the reference
relation, filter and project target and source, subtract, evaluate the
tolerance and assemble the diagnostic result. Each relation is scanned once.
"""

import logging
import threading
import time
from collections.abc import Sequence

from datarecon.compare.boundaries import TemporalCutoff, resolve_temporal_cutoff
from datarecon.compare.filters import FilterCriteria, RecordFilter
from datarecon.compare.setdiff import SetDiffEngine
from datarecon.compare.tolerance import evaluate_tolerance
from datarecon.config.models import ReconciliationConfig
from datarecon.errors import ReconciliationCancelled, ReconciliationError
from datarecon.relations.base import RelationScanner
from datarecon.report.generator import ReconciliationResult, build_result
from datarecon.utils.logging import ContextLogger
from datarecon.utils.metrics import ReconciliationMetrics
from datarecon.utils.tracing import add_span_attributes, add_span_event, trace_operation

logger = logging.getLogger(__name__)


def _scan_columns(projection: Sequence[str], criteria: FilterCriteria, with_timestamps: bool) -> tuple[str, ...]:
    # Projection first, then filter columns not already projected.
    return tuple(dict.fromkeys((*projection, *criteria.scan_columns(with_timestamps))))


def _check_cancelled(token: threading.Event | None, check: str, stage: str) -> None:
    if token is not None and token.is_set():
        raise ReconciliationCancelled(f"Check {check} cancelled before {stage}")


class TableReconciler:
    """
    Runs reconciliation checks against a relation scanner

    Args:
        scanner: Scan collaborator providing source, target and reference relations
        metrics: Optional Prometheus metrics recorder
        track_types: Diagnose per-field type mismatches between source and target
    """

    def __init__(
        self,
        scanner: RelationScanner,
        metrics: ReconciliationMetrics | None = None,
        track_types: bool = True,
    ):
        self.scanner = scanner
        self.metrics = metrics
        self.track_types = track_types

    def reconcile(
        self,
        config: ReconciliationConfig,
        cancellation_token: threading.Event | None = None,
    ) -> ReconciliationResult:
        """
        Run one check

        Args:
            config: Check configuration
            cancellation_token: Checked between passes; when set the run stops
                with ReconciliationCancelled and returns nothing

        Returns:
            ReconciliationResult

        Raises:
            ConfigurationError: On an invalid mapping (before any scan)
            SchemaError: On missing columns/tables or malformed filter values
            ReconciliationCancelled: If the token is set between passes
        """
        log = ContextLogger(__name__, check=config.name)
        start_time = time.time()

        with trace_operation(
            "reconcile_check",
            check=config.name,
            source_table=config.source_table,
            target_table=config.target_table,
        ):
            try:
                result = self._run(config, cancellation_token, log)
            except ReconciliationCancelled:
                log.warning("Reconciliation cancelled")
                raise
            except ReconciliationError:
                if self.metrics is not None:
                    self.metrics.record_error(config.name, time.time() - start_time)
                raise

            duration = time.time() - start_time
            add_span_attributes(
                passed=result.passed,
                total_source_records=result.total_source_records,
                total_missing_records=result.total_missing_records,
                missing_percentage=result.missing_percentage,
            )

        if self.metrics is not None:
            self.metrics.record_result(
                config.name,
                passed=result.passed,
                duration=duration,
                total_source_records=result.total_source_records,
                total_missing_records=result.total_missing_records,
                missing_percentage=result.missing_percentage,
                type_mismatches=len(result.type_mismatches),
            )

        if result.passed:
            log.info(
                f"Check passed: {result.total_missing_records}/{result.total_source_records} "
                f"missing ({result.missing_percentage:.4f}%, tolerance {result.tolerance_percentage}%) "
                f"in {duration:.2f}s"
            )
        else:
            log.warning(
                f"Check failed: {result.total_missing_records}/{result.total_source_records} "
                f"missing ({result.missing_percentage:.4f}% >= {result.tolerance_percentage}%) "
                f"in {duration:.2f}s"
            )

        return result

    def _run(
        self,
        config: ReconciliationConfig,
        token: threading.Event | None,
        log: ContextLogger,
    ) -> ReconciliationResult:
        mapper = config.column_mapper()
        source_projection, target_projection = mapper.projections()

        _check_cancelled(token, config.name, "reference scan")
        cutoff = self._resolve_cutoff(config)

        with_timestamps = cutoff is not None
        source_criteria = config.source_criteria()
        target_criteria = config.target_criteria()

        source = RecordFilter(
            self.scanner.scan(
                config.source_table,
                _scan_columns(source_projection, source_criteria, with_timestamps),
            ),
            source_criteria,
            source_projection,
            cutoff,
        )
        target = RecordFilter(
            self.scanner.scan(
                config.target_table,
                _scan_columns(target_projection, target_criteria, with_timestamps),
            ),
            target_criteria,
            target_projection,
            cutoff,
        )

        engine = SetDiffEngine(source_projection, target_projection, track_types=self.track_types)

        _check_cancelled(token, config.name, "target scan")

        def checkpoint() -> None:
            add_span_event("target_set_built", check=config.name)
            _check_cancelled(token, config.name, "source scan")

        with trace_operation("set_difference", check=config.name):
            diff = engine.diff(source, target, checkpoint=checkpoint)

        _check_cancelled(token, config.name, "result assembly")

        for mismatch in diff.type_mismatches:
            log.warning(str(mismatch))

        decision = evaluate_tolerance(
            diff.total_source_records,
            diff.total_missing_records,
            config.tolerance_percentage,
        )

        return build_result(config.name, diff, decision, target_projection, cutoff)

    def _resolve_cutoff(self, config: ReconciliationConfig) -> TemporalCutoff | None:
        if not config.has_reference:
            return None

        with trace_operation(
            "resolve_temporal_cutoff", check=config.name, reference_table=config.reference_table
        ):
            reference = self.scanner.scan(
                config.reference_table,
                (config.reference_created_col, config.reference_updated_col),
            )
            return resolve_temporal_cutoff(
                reference, config.reference_created_col, config.reference_updated_col
            )


def reconcile(
    config: ReconciliationConfig,
    scanner: RelationScanner,
    cancellation_token: threading.Event | None = None,
) -> ReconciliationResult:
    """Run one check without metrics."""
    return TableReconciler(scanner).reconcile(config, cancellation_token)
