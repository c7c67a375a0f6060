"""
Loading reconciliation checks from YAML or JSON files.

File layout:

    defaults:
      tolerance_percentage: 0.5
      source_deleted_flag: IS_DELETED
    checks:
      - name: orders
        source_table: RAW.ORDERS
        target_table: ANALYTICS.ORDERS
        reference_table: ANALYTICS.ORDERS
        source_id_column: ORDER_ID
        columns_mapping:
          - {source: ORDER_ID, target: ID}
          - {source: AMOUNT, target: AMOUNT}

Each check is merged over `defaults` and validated twice: structurally with
JSON Schema, then semantically by ReconciliationConfig.
"""

import logging
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from datarecon.errors import ConfigurationError

from .models import ReconciliationConfig

logger = logging.getLogger(__name__)

_NAME = {"type": "string", "minLength": 1}

_CHECK_PROPERTIES = {
    "name": _NAME,
    "source_table": _NAME,
    "target_table": _NAME,
    "reference_table": {"type": ["string", "null"]},
    "columns_mapping": {
        "type": "array",
        "minItems": 1,
        "items": {
            "type": "object",
            "required": ["source", "target"],
            "properties": {"source": _NAME, "target": _NAME},
            "additionalProperties": False,
        },
    },
    "source_id_column": _NAME,
    "target_id_column": _NAME,
    "source_deleted_flag": _NAME,
    "target_deleted_flag": _NAME,
    "source_created_col": _NAME,
    "source_updated_col": _NAME,
    "target_created_col": _NAME,
    "target_updated_col": _NAME,
    "reference_created_col": _NAME,
    "reference_updated_col": _NAME,
    "tolerance_percentage": {"type": "number", "minimum": 0},
}

CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["checks"],
    "properties": {
        "defaults": {
            "type": "object",
            "properties": {
                key: value for key, value in _CHECK_PROPERTIES.items()
                if key not in ("name", "source_table", "target_table")
            },
            "additionalProperties": False,
        },
        "checks": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["source_table", "target_table", "columns_mapping"],
                "properties": _CHECK_PROPERTIES,
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}


def validate_config_document(document: Any) -> None:
    """
    Validate a parsed configuration document against CONFIG_SCHEMA

    Raises:
        ConfigurationError: With the JSON path of the first violation
    """
    try:
        jsonschema.validate(instance=document, schema=CONFIG_SCHEMA)
    except jsonschema.exceptions.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "<root>"
        raise ConfigurationError(f"Invalid configuration at {location}: {e.message}") from e


def parse_config_document(document: Any) -> list[ReconciliationConfig]:
    """
    Turn a parsed configuration document into checks

    Raises:
        ConfigurationError: On schema violations, invalid values or duplicate check names
    """
    validate_config_document(document)

    defaults = document.get("defaults", {})
    configs = []
    names = set()
    for index, check in enumerate(document["checks"]):
        try:
            config = ReconciliationConfig.from_dict({**defaults, **check})
        except ConfigurationError as e:
            raise ConfigurationError(f"checks/{index}: {e}") from e

        if config.name in names:
            raise ConfigurationError(f"Duplicate check name: {config.name}")
        names.add(config.name)
        configs.append(config)

    return configs


def load_config_file(path: str | Path) -> list[ReconciliationConfig]:
    """
    Load checks from a YAML or JSON file

    Args:
        path: Path to the configuration file

    Returns:
        List of validated ReconciliationConfig, in file order

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse configuration file {path}: {e}") from e

    configs = parse_config_document(document)
    logger.info(f"Loaded {len(configs)} check(s) from {path}")
    return configs
