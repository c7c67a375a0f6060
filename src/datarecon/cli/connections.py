"""
Database connection settings and connection factory for the CLI.

Settings come from command-line arguments first, then environment variables.
"""

import argparse
import logging
import os
import sqlite3
from typing import Any

import psycopg2

from datarecon.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _parse_port(value: Any, env_var: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid port {value!r} (--port or {env_var})") from e


def get_connection_config(args: argparse.Namespace) -> dict[str, Any]:
    """
    Resolve connection settings for the selected driver

    Args:
        args: Parsed command-line arguments

    Returns:
        Dictionary with 'driver' and the driver's connection settings

    Raises:
        ConfigurationError: If a required setting (password, sqlite path) is missing
            or the port is not a number
    """
    driver = args.driver

    if driver == "sqlite":
        path = args.database or os.getenv("SQLITE_PATH")
        if not path:
            raise ConfigurationError("SQLite database path not provided (--database or SQLITE_PATH)")
        return {"driver": driver, "database": path}

    if driver == "sqlserver":
        config = {
            "driver": driver,
            "server": args.host or os.getenv("SQLSERVER_HOST", "localhost"),
            "port": _parse_port(args.port or os.getenv("SQLSERVER_PORT", "1433"), "SQLSERVER_PORT"),
            "database": args.database or os.getenv("SQLSERVER_DATABASE", "master"),
            "username": args.user or os.getenv("SQLSERVER_USER", "sa"),
            "password": args.password or os.getenv("SQLSERVER_PASSWORD"),
            "odbc_driver": os.getenv("SQLSERVER_ODBC_DRIVER", "ODBC Driver 18 for SQL Server"),
        }
    else:
        config = {
            "driver": driver,
            "host": args.host or os.getenv("POSTGRES_HOST", "localhost"),
            "port": _parse_port(args.port or os.getenv("POSTGRES_PORT", "5432"), "POSTGRES_PORT"),
            "database": args.database or os.getenv("POSTGRES_DB", "postgres"),
            "username": args.user or os.getenv("POSTGRES_USER", "postgres"),
            "password": args.password or os.getenv("POSTGRES_PASSWORD"),
        }

    if not config["password"]:
        raise ConfigurationError(f"Database password not provided for {driver}")

    return config


def connect(config: dict[str, Any]) -> Any:
    """
    Open a DB-API connection from settings returned by get_connection_config

    pyodbc is imported only for SQL Server; install the `sqlserver` extra.
    """
    driver = config["driver"]

    if driver == "sqlite":
        conn = sqlite3.connect(config["database"])
        logger.info(f"Connected to SQLite database {config['database']}")
        return conn

    if driver == "sqlserver":
        import pyodbc

        conn = pyodbc.connect(
            f"DRIVER={{{config['odbc_driver']}}};"
            f"SERVER={config['server']},{config['port']};"
            f"DATABASE={config['database']};"
            f"UID={config['username']};"
            f"PWD={config['password']};"
            f"TrustServerCertificate=yes;"
        )
        logger.info(f"Connected to SQL Server {config['server']}/{config['database']}")
        return conn

    conn = psycopg2.connect(
        host=config["host"],
        port=config["port"],
        database=config["database"],
        user=config["username"],
        password=config["password"],
    )
    logger.info(f"Connected to PostgreSQL {config['host']}/{config['database']}")
    return conn


def dialect_for(driver: str) -> str:
    return "sqlserver" if driver == "sqlserver" else "ansi"
