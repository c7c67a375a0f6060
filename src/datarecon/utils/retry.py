"""
Retry decorator with exponential backoff for relation scans

Only the scan collaborators retry; the reconciliation engine itself never
does. Non-transient errors (unknown columns, syntax errors, permission
problems) fail immediately so they can be reported as schema problems.

Usage:
    from datarecon.utils.retry import retry_database_operation

    @retry_database_operation(max_retries=3, base_delay=1.0)
    def execute_scan(cursor, query):
        cursor.execute(query)
"""

import logging
import random
import time
from collections.abc import Callable
from functools import wraps
from typing import Any

logger = logging.getLogger(__name__)

# Substrings of transient driver errors (psycopg2, pyodbc, sqlite3)
RETRYABLE_PATTERNS = (
    "connection",
    "timeout",
    "timed out",
    "deadlock",
    "lock wait timeout",
    "database is locked",
    "server has gone away",
    "could not connect",
    "connection refused",
    "connection reset",
    "broken pipe",
    "network error",
    "communication link failure",
    "ssl syscall error",
)

RETRYABLE_EXCEPTION_NAMES = (
    "connectionerror",
    "timeouterror",
    "operationalerror",
    "interfaceerror",
)

# Driver messages that look transient but mean the schema is wrong
SCHEMA_ERROR_PATTERNS = (
    "no such column",
    "no such table",
    "invalid column name",
    "invalid object name",
    "does not exist",
    "undefined column",
    "undefined table",
    "unknown column",
    "invalid identifier",
)


def is_schema_db_exception(exception: Exception) -> bool:
    """Check whether a driver error reports an unknown column or relation."""
    message = str(exception).lower()
    return any(pattern in message for pattern in SCHEMA_ERROR_PATTERNS)


def is_retryable_db_exception(exception: Exception) -> bool:
    """
    Determine if a database exception is transient

    Schema errors are never retryable, even when the driver raises them as
    an OperationalError (sqlite3 does).

    Args:
        exception: The exception to check

    Returns:
        True if the exception is retryable, False otherwise
    """
    if is_schema_db_exception(exception):
        return False

    exception_str = str(exception).lower()
    exception_type = type(exception).__name__.lower()

    for pattern in RETRYABLE_PATTERNS:
        if pattern in exception_str or pattern in exception_type:
            return True

    return exception_type in RETRYABLE_EXCEPTION_NAMES


def retry_database_operation(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    on_retry: Callable[[int, Exception, float], None] | None = None,
):
    """
    Decorator retrying transient database errors with exponential backoff

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Upper bound for a single delay in seconds (default: 60.0)
        on_retry: Callback(attempt, exception, delay) called before each retry

    Example:
        @retry_database_operation(max_retries=5)
        def execute_query(cursor, query):
            cursor.execute(query)
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            func_name = getattr(func, '__name__', 'function')

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except Exception as e:
                    if not is_retryable_db_exception(e):
                        logger.error(
                            f"Non-retryable database error in {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    if attempt == max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) exceeded for {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    # Exponential backoff with +/-25% jitter
                    delay = min(base_delay * (2.0 ** attempt), max_delay)
                    jitter_amount = delay * 0.25
                    delay = max(0.1, delay + random.uniform(-jitter_amount, jitter_amount))

                    logger.warning(
                        f"Retryable database error in {func_name} "
                        f"(attempt {attempt + 1}/{max_retries}): "
                        f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                    )

                    if on_retry:
                        try:
                            on_retry(attempt + 1, e, delay)
                        except Exception as callback_error:
                            logger.error(f"Error in retry callback: {callback_error}")

                    time.sleep(delay)

        return wrapper
    return decorator
