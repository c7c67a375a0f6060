"""
SQL identifier validation and quoting for SQL injection protection.

Table and column names come from configuration files and end up inside
generated SQL, so every identifier is validated against a strict pattern.
Quoting is optional: quoted identifiers are case-sensitive in PostgreSQL and
Snowflake, while the bare form resolves the way hand-written SQL would.
"""

import re
from typing import Any

# Strict ASCII-only pattern, up to database.schema.table
VALID_IDENTIFIER_PATTERN = re.compile(
    r'^[a-zA-Z_][a-zA-Z0-9_$]*(\.[a-zA-Z_][a-zA-Z0-9_$]*){0,2}$'
)

DIALECTS = ("ansi", "sqlserver")


def _validate_identifier(identifier: str) -> list[str]:
    if not isinstance(identifier, str):
        raise ValueError(f"Invalid identifier format: {identifier!r}")

    clean_identifier = identifier.replace('[', '').replace(']', '').replace('"', '')
    if not VALID_IDENTIFIER_PATTERN.fullmatch(clean_identifier):
        raise ValueError(f"Invalid identifier format: {identifier}")

    return clean_identifier.split('.')


def quote_identifier(identifier: str, dialect: str = "ansi", quote: bool = True) -> str:
    """
    Validate and optionally quote a (possibly qualified) identifier

    Args:
        identifier: Table or column name, e.g. 'RAW.ORDERS' or 'ORDER_ID'
        dialect: 'ansi' (PostgreSQL, Snowflake, SQLite) or 'sqlserver'
        quote: Wrap each part in dialect quotes; otherwise emit validated bare parts

    Returns:
        Identifier safe to embed in SQL

    Raises:
        ValueError: If the identifier format or dialect is invalid
    """
    if dialect not in DIALECTS:
        raise ValueError(f"Unknown SQL dialect: {dialect}")

    parts = _validate_identifier(identifier)

    if not quote:
        return '.'.join(parts)
    if dialect == "sqlserver":
        return '.'.join(f"[{part}]" for part in parts)
    return '.'.join(f'"{part}"' for part in parts)


def get_dialect(connection_or_cursor: Any) -> str:
    """
    Detect SQL dialect from a DB-API connection or cursor

    Returns:
        'sqlserver' for pyodbc objects, 'ansi' otherwise
    """
    module = type(connection_or_cursor).__module__
    if 'pyodbc' in module:
        return 'sqlserver'
    return 'ansi'
