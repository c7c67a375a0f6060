"""
Reconciliation check configuration and configuration files.
"""

from .loader import CONFIG_SCHEMA, load_config_file, parse_config_document, validate_config_document
from .models import (
    DEFAULT_CREATED_COLUMN,
    DEFAULT_DELETED_FLAG,
    DEFAULT_ID_COLUMN,
    DEFAULT_TOLERANCE_PERCENTAGE,
    DEFAULT_UPDATED_COLUMN,
    ReconciliationConfig,
)

__all__ = [
    'ReconciliationConfig',
    'load_config_file',
    'parse_config_document',
    'validate_config_document',
    'CONFIG_SCHEMA',
    'DEFAULT_ID_COLUMN',
    'DEFAULT_DELETED_FLAG',
    'DEFAULT_CREATED_COLUMN',
    'DEFAULT_UPDATED_COLUMN',
    'DEFAULT_TOLERANCE_PERCENTAGE',
]
