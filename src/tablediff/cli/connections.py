"""
Database connections for the CLI.

Drivers are imported lazily so only the one in use needs to be installed.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)


def _connect_postgresql(dsn: str) -> Any:
    import psycopg2

    conn = psycopg2.connect(dsn)
    # Named cursors need a transaction; keep it read-only
    conn.set_session(readonly=True)
    return conn


def _connect_sqlserver(dsn: str) -> Any:
    import pyodbc

    return pyodbc.connect(dsn, readonly=True)


def _connect_sqlite(dsn: str) -> Any:
    import sqlite3

    return sqlite3.connect(dsn)


DRIVERS = {
    'postgresql': _connect_postgresql,
    'sqlserver': _connect_sqlserver,
    'sqlite': _connect_sqlite,
}


def open_connection(driver: str, dsn: str) -> Any:
    """
    Open a DB-API connection

    Args:
        driver: One of postgresql, sqlserver, sqlite
        dsn: Driver-specific connection string

    Returns:
        DB-API connection

    Raises:
        ValueError: If the driver is unknown
    """
    try:
        connect = DRIVERS[driver]
    except KeyError:
        raise ValueError(f"Unknown driver: {driver!r}") from None

    conn = connect(dsn)
    logger.info(f"Connected using {driver} driver")
    return conn
