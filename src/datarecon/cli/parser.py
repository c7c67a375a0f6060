"""
Command-line argument parser configuration.

This module sets up the argument parser for the datarecon CLI tool,
defining all commands and their options.
"""

import argparse
import os


def _add_check_selection(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--config',
        required=True,
        help='YAML or JSON file with reconciliation checks'
    )
    parser.add_argument(
        '--check',
        action='append',
        dest='checks',
        help='Run only the named check (repeatable)'
    )


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group('database connection')
    group.add_argument(
        '--driver',
        choices=['postgresql', 'sqlserver', 'sqlite'],
        default=os.getenv('RECON_DB_DRIVER', 'postgresql'),
        help='Database driver (default: $RECON_DB_DRIVER or postgresql)'
    )
    group.add_argument('--host', help='Database host')
    group.add_argument('--port', type=int, help='Database port')
    group.add_argument('--database', help='Database name, or file path for sqlite')
    group.add_argument('--user', help='Database username')
    group.add_argument('--password', help='Database password')


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='datarecon',
        description="Table data reconciliation: find source records missing from a target",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run every check in a config file against PostgreSQL
  datarecon run --config checks.yml --host warehouse --database analytics

  # Run one check and save the JSON report
  datarecon run --config checks.yml --check orders --format json --output report.json

  # Run checks in parallel and write missing rows of failed checks as CSV
  datarecon run --config checks.yml --parallel --parallel-workers 4 --missing-rows-dir out/

  # Expose Prometheus metrics while running
  datarecon run --config checks.yml --metrics-port 9091

  # Print the pushdown SQL for SQL Server
  datarecon render-sql --config checks.yml --dialect sqlserver

  # Generate console report from previous run
  datarecon report --input report.json --format console
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=os.getenv('LOG_LEVEL', 'INFO').upper(),
        help='Logging level (default: $LOG_LEVEL or INFO)'
    )
    parser.add_argument(
        '--log-file',
        default=os.getenv('LOG_FILE'),
        help='Rotating log file path (default: $LOG_FILE)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        default=os.getenv('LOG_JSON', 'false').lower() in ('true', '1', 'yes'),
        help='Emit JSON logs'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Run reconciliation checks')
    _add_check_selection(run_parser)
    run_parser.add_argument(
        '--output',
        help='Output file path for report'
    )
    run_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )
    run_parser.add_argument(
        '--missing-rows-dir',
        help='Write the diagnostic rows of each failed check to <dir>/<check>.csv'
    )
    run_parser.add_argument(
        '--continue-on-error',
        action='store_true',
        help='Continue with remaining checks if one raises'
    )
    run_parser.add_argument(
        '--quote-identifiers',
        action='store_true',
        help='Quote table and column names (case-sensitive in PostgreSQL)'
    )
    run_parser.add_argument(
        '--fetch-size',
        type=int,
        default=10000,
        help='Rows fetched per round trip (default: 10000)'
    )
    run_parser.add_argument(
        '--parallel',
        action='store_true',
        help='Run checks in parallel, one connection per check'
    )
    run_parser.add_argument(
        '--parallel-workers',
        type=int,
        help='Number of parallel workers (default: estimated from check count)'
    )
    run_parser.add_argument(
        '--parallel-timeout',
        type=int,
        default=3600,
        help='Timeout per check in seconds for parallel mode (default: 3600)'
    )
    run_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port during the run'
    )
    _add_connection_arguments(run_parser)

    # ========== Render SQL command ==========
    sql_parser = subparsers.add_parser('render-sql', help='Print pushdown SQL for checks')
    _add_check_selection(sql_parser)
    sql_parser.add_argument(
        '--dialect',
        choices=['ansi', 'sqlserver'],
        default='ansi',
        help='SQL dialect (default: ansi)'
    )
    sql_parser.add_argument(
        '--quote-identifiers',
        action='store_true',
        help='Quote table and column names'
    )
    sql_parser.add_argument(
        '--output',
        help='Write SQL to this file instead of stdout'
    )

    # ========== Report command ==========
    report_parser = subparsers.add_parser('report', help='Generate report from previous run')
    report_parser.add_argument(
        '--input',
        required=True,
        help='Input JSON report file'
    )
    report_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )
    report_parser.add_argument(
        '--output',
        help='Output file path (required for json and csv formats)'
    )

    return parser
