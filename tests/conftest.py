"""
Pytest configuration and fixtures for reconciliation tests.
Provides shared relations, scanners and check configurations.
"""

import os
from datetime import datetime
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

from datarecon.config import ReconciliationConfig
from datarecon.relations import InMemoryRelation, InMemoryScanner

SOURCE_COLUMNS = ("ID", "AMOUNT", "_FIVETRAN_DELETED", "CREATED_AT", "UPDATED_AT")


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def set_test_env_vars(monkeypatch) -> None:
    """Set default test environment variables if not already set."""
    defaults = {
        "POSTGRES_HOST": "localhost",
        "POSTGRES_PORT": "5432",
        "POSTGRES_DB": "warehouse",
        "POSTGRES_USER": "postgres",
        "POSTGRES_PASSWORD": "postgres_secure_password",
    }

    for key, value in defaults.items():
        if key not in os.environ:
            monkeypatch.setenv(key, value)


def ts(day: int, hour: int = 0) -> datetime:
    """Timestamp on a fixed test month."""
    return datetime(2024, 1, day, hour)


def make_rows(count: int, start: int = 1, deleted: bool = False, day: int = 1) -> list[tuple]:
    """Rows in SOURCE_COLUMNS order with AMOUNT = id * 10."""
    return [
        (i, i * 10, deleted, ts(day), ts(day))
        for i in range(start, start + count)
    ]


@pytest.fixture
def orders_config() -> ReconciliationConfig:
    """Check over ORDERS with the default column names."""
    return ReconciliationConfig(
        source_table="RAW.ORDERS",
        target_table="ANALYTICS.ORDERS",
        columns_mapping=[{"source": "AMOUNT", "target": "AMOUNT"}],
        name="orders",
    )


@pytest.fixture
def make_scanner():
    """Factory building an InMemoryScanner from {relation: rows} in SOURCE_COLUMNS order."""
    def _make(relations: dict, columns=SOURCE_COLUMNS) -> InMemoryScanner:
        return InMemoryScanner(
            {name: InMemoryRelation(columns, rows) for name, rows in relations.items()}
        )
    return _make


@pytest.fixture
def registry() -> CollectorRegistry:
    """Isolated Prometheus registry."""
    return CollectorRegistry()
