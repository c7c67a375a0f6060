"""
Structured logging configuration for reconciliation runs

Usage:
    from datarecon.utils.logging import setup_logging, get_logger

    # Setup logging (call once at application startup)
    setup_logging(level="INFO", log_file="/var/log/datarecon/run.log")

    logger = get_logger(__name__)
    logger.info("Check finished", extra={"check": "orders", "missing": 5})
"""

from .config import configure_from_env, get_logger, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
