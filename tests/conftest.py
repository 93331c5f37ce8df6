"""
Pytest configuration and fixtures for tablediff tests.
Provides SQLite databases, isolated metrics registries and environment setup.
"""

import sqlite3
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import pytest
from prometheus_client import CollectorRegistry

from utils.metrics import DiffMetrics


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "property: mark test as property-based test")


@pytest.fixture(autouse=True, scope="session")
def no_trace_export() -> Iterator[None]:
    """Never ship spans from tests."""
    with pytest.MonkeyPatch.context() as mp:
        mp.delenv("OTLP_ENDPOINT", raising=False)
        mp.delenv("TRACE_CONSOLE", raising=False)
        yield


@pytest.fixture
def registry() -> CollectorRegistry:
    """Fresh Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> DiffMetrics:
    """DiffMetrics bound to an isolated registry."""
    return DiffMetrics(registry=registry)


@pytest.fixture
def sqlite_conn() -> Iterator[sqlite3.Connection]:
    """In-memory SQLite database with an attached second database named ``other``."""
    conn = sqlite3.connect(":memory:")
    conn.execute("ATTACH DATABASE ':memory:' AS other")
    yield conn
    conn.close()


def create_table(
    conn: sqlite3.Connection,
    table: str,
    columns: Iterable[str],
    rows: Mapping[Any, Iterable[Any]],
    database: str = "main",
    primary_key: str = "id",
) -> None:
    """Create ``database.table`` with an integer primary key and insert rows keyed by id."""
    columns = list(columns)
    column_defs = ", ".join([f'"{primary_key}" INTEGER PRIMARY KEY'] + [f'"{c}"' for c in columns])
    conn.execute(f'CREATE TABLE "{database}"."{table}" ({column_defs})')
    placeholders = ", ".join("?" for _ in range(len(columns) + 1))
    conn.executemany(
        f'INSERT INTO "{database}"."{table}" VALUES ({placeholders})',
        [(pk, *values) for pk, values in rows.items()],
    )
    conn.commit()


@pytest.fixture
def make_table(sqlite_conn: sqlite3.Connection):
    """Factory creating tables in the ``sqlite_conn`` database."""
    def factory(table, columns, rows, database="main", primary_key="id"):
        create_table(sqlite_conn, table, columns, rows, database=database, primary_key=primary_key)
    return factory
