"""
CLI command implementations.

This module contains the implementation of the CLI commands:
- run: Execute reconciliation checks against a database
- render-sql: Print the pushdown SQL of checks
- report: Re-render a report from a previous run

Each command returns the process exit status.
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from datarecon.config import ReconciliationConfig, load_config_file
from datarecon.errors import ConfigurationError
from datarecon.parallel import run_parallel_checks
from datarecon.pushdown import render_reconciliation_query
from datarecon.reconciler import TableReconciler
from datarecon.relations import CursorScanner
from datarecon.report import (
    ReconciliationResult,
    export_missing_rows_csv,
    export_report_csv,
    export_report_json,
    format_report_console,
    generate_report,
    load_report_json,
)
from datarecon.utils.metrics import MetricsPublisher, ReconciliationMetrics
from datarecon.utils.tracing import initialize_tracing, shutdown_tracing

from .connections import connect, dialect_for, get_connection_config

logger = logging.getLogger(__name__)


def select_checks(configs: list[ReconciliationConfig], names: list[str] | None) -> list[ReconciliationConfig]:
    """
    Keep only the named checks, in file order

    Raises:
        ConfigurationError: If a requested check does not exist
    """
    if not names:
        return configs

    known = {config.name for config in configs}
    unknown = [name for name in names if name not in known]
    if unknown:
        raise ConfigurationError(f"Unknown check(s): {', '.join(unknown)}")

    return [config for config in configs if config.name in names]


def _build_reconciler(
    connection: Any,
    args: argparse.Namespace,
    metrics: ReconciliationMetrics,
) -> TableReconciler:
    scanner = CursorScanner(
        connection,
        dialect=dialect_for(args.driver),
        quote_identifiers=args.quote_identifiers,
        fetch_size=args.fetch_size,
    )
    return TableReconciler(scanner, metrics=metrics)


def _run_sequential(
    configs: list[ReconciliationConfig],
    connection_config: dict[str, Any],
    args: argparse.Namespace,
    metrics: ReconciliationMetrics,
) -> tuple[list[ReconciliationResult], list[dict[str, Any]]]:
    results = []
    errors = []

    connection = connect(connection_config)
    try:
        reconciler = _build_reconciler(connection, args, metrics)
        for config in configs:
            logger.info(f"Reconciling check: {config.name}")
            try:
                results.append(reconciler.reconcile(config))
            except Exception as e:
                logger.error(f"Error reconciling check {config.name}: {e}")
                errors.append({"check": config.name, "error": str(e), "type": type(e).__name__})
                if not args.continue_on_error:
                    break
    finally:
        connection.close()

    return results, errors


def _run_parallel(
    configs: list[ReconciliationConfig],
    connection_config: dict[str, Any],
    args: argparse.Namespace,
    metrics: ReconciliationMetrics,
) -> tuple[list[ReconciliationResult], list[dict[str, Any]]]:
    def reconcile_with_own_connection(config, cancellation_token):
        connection = connect(connection_config)
        try:
            return _build_reconciler(connection, args, metrics).reconcile(config, cancellation_token)
        finally:
            connection.close()

    parallel_results = run_parallel_checks(
        configs,
        reconcile_with_own_connection,
        max_workers=args.parallel_workers,
        timeout_per_check=args.parallel_timeout,
        fail_fast=not args.continue_on_error,
    )

    logger.info(
        f"Parallel reconciliation complete: "
        f"{parallel_results['completed']}/{parallel_results['total_checks']} completed, "
        f"{parallel_results['failed']} failed, "
        f"{parallel_results['timeout']} timeout "
        f"in {parallel_results['duration_seconds']:.2f}s"
    )

    return parallel_results["results"], parallel_results["errors"]


def _write_missing_rows(results: list[ReconciliationResult], output_dir: str) -> None:
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    for result in results:
        if result.passed:
            continue
        path = directory / f"{result.check}.csv"
        rows = export_missing_rows_csv(result, str(path))
        logger.info(f"Wrote {rows} missing rows for {result.check} to {path}")


def _emit_report(report: dict[str, Any], output_format: str, output: str | None) -> bool:
    if output_format == "console":
        text = format_report_console(report)
        if output:
            Path(output).write_text(text + "\n")
            logger.info(f"Report saved to {output}")
        else:
            print(text)
        return True

    if output_format == "json" and not output:
        print(json.dumps(report, indent=2, default=str))
        return True

    if not output:
        logger.error(f"Output file required for {output_format.upper()} format")
        return False

    Path(output).parent.mkdir(parents=True, exist_ok=True)
    if output_format == "json":
        export_report_json(report, output)
    else:
        export_report_csv(report, output)
    logger.info(f"Report saved to {output}")
    return True


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run reconciliation checks from a configuration file

    Args:
        args: Parsed command-line arguments

    Returns:
        0 when every check passed, 1 otherwise
    """
    logger.info("Starting reconciliation run")

    try:
        configs = select_checks(load_config_file(args.config), args.checks)
        connection_config = get_connection_config(args)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logger.info(f"Running {len(configs)} check(s): {', '.join(c.name for c in configs)}")

    initialize_tracing()
    metrics = ReconciliationMetrics()
    if args.metrics_port:
        MetricsPublisher(port=args.metrics_port).start()

    try:
        if args.parallel and len(configs) > 1:
            results, errors = _run_parallel(configs, connection_config, args, metrics)
        else:
            results, errors = _run_sequential(configs, connection_config, args, metrics)

        report = generate_report(results, errors)

        if args.missing_rows_dir:
            _write_missing_rows(results, args.missing_rows_dir)

        if not _emit_report(report, args.format, args.output):
            return 1
    except Exception as e:
        logger.error(f"Reconciliation failed: {e}")
        return 1
    finally:
        shutdown_tracing()

    if report["status"] == "FAIL":
        logger.warning("Reconciliation found discrepancies")
        return 1

    logger.info("Reconciliation completed successfully")
    return 0


def cmd_render_sql(args: argparse.Namespace) -> int:
    """
    Print the pushdown SQL for each selected check

    Args:
        args: Parsed command-line arguments
    """
    try:
        configs = select_checks(load_config_file(args.config), args.checks)
        statements = [
            f"-- check: {config.name}\n"
            f"{render_reconciliation_query(config, args.dialect, args.quote_identifiers)};"
            for config in configs
        ]
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    sql = "\n\n".join(statements) + "\n"
    if args.output:
        Path(args.output).write_text(sql)
        logger.info(f"Wrote SQL for {len(configs)} check(s) to {args.output}")
    else:
        print(sql, end="")
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """
    Generate a report from a previous reconciliation JSON file

    Args:
        args: Parsed command-line arguments
    """
    logger.info(f"Loading reconciliation report from {args.input}")

    try:
        report = load_report_json(args.input)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load report: {e}")
        return 1

    if args.format != "console" and not args.output:
        logger.error(f"Output file required for {args.format.upper()} format")
        return 1

    try:
        if not _emit_report(report, args.format, args.output):
            return 1
    except (KeyError, OSError) as e:
        logger.error(f"Failed to process report: {e}")
        return 1

    return 0
