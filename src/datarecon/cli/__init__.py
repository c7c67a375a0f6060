"""
Command-line interface for table data reconciliation.

Available commands:
- run: Execute reconciliation checks from a config file
- render-sql: Print the pushdown SQL of checks
- report: Generate reports from previous runs
"""

import sys

from datarecon.utils.logging import setup_logging

from .commands import cmd_render_sql, cmd_report, cmd_run, select_checks
from .connections import connect, get_connection_config
from .parser import create_parser

COMMANDS = {
    'run': cmd_run,
    'render-sql': cmd_render_sql,
    'report': cmd_report,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the datarecon CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file, json_format=args.log_json)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(command(args))


__all__ = [
    'main',
    'create_parser',
    'cmd_run',
    'cmd_render_sql',
    'cmd_report',
    'select_checks',
    'connect',
    'get_connection_config',
]


if __name__ == '__main__':
    main()
