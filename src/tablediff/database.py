"""
Database access for diff execution.

The engine talks to a small protocol: stream the rows of a parameterized
statement as column-name -> value dicts, or fetch a single scalar.
DBAPIDatabase implements it on top of any DB-API 2.0 connection.
"""

import logging
import uuid
from collections.abc import Iterator, Sequence
from typing import Any, Protocol, runtime_checkable

from .dialects import Dialect, detect_dialect

logger = logging.getLogger(__name__)

DEFAULT_ARRAYSIZE = 1000


@runtime_checkable
class Database(Protocol):
    """What the diff engine needs from a database connection."""

    dialect: Dialect

    def stream(self, sql: str, params: Sequence[Any] = ()) -> Iterator[dict[str, Any]]: ...

    def scalar(self, sql: str, params: Sequence[Any] = ()) -> Any: ...


class DBAPIDatabase:
    """Database adapter around a DB-API 2.0 connection."""

    def __init__(
        self,
        connection: Any,
        dialect: Dialect | None = None,
        arraysize: int = DEFAULT_ARRAYSIZE,
    ):
        """
        Initialize the adapter

        Args:
            connection: DB-API connection (psycopg2, pyodbc, sqlite3, ...)
            dialect: SQL dialect (detected from the connection when omitted)
            arraysize: Number of rows fetched per round of ``fetchmany``
        """
        if arraysize < 1:
            raise ValueError(f"arraysize must be >= 1, got {arraysize}")
        self.connection = connection
        self.dialect = dialect or detect_dialect(connection)
        self.arraysize = arraysize

    def _cursor(self) -> Any:
        if self.dialect.server_side_cursor:
            # Named cursors keep the result set on the server (psycopg2)
            return self.connection.cursor(name=f"tablediff_{uuid.uuid4().hex}")
        return self.connection.cursor()

    def stream(self, sql: str, params: Sequence[Any] = ()) -> Iterator[dict[str, Any]]:
        """
        Execute a statement and yield its rows one at a time

        Rows are fetched in batches of ``arraysize``; the cursor is closed when
        the iterator is exhausted or closed early.

        Args:
            sql: Statement with positional placeholders
            params: Bound parameter values

        Yields:
            Ordered dict of column name -> value per row
        """
        cursor = self._cursor()
        try:
            cursor.arraysize = self.arraysize
            cursor.execute(sql, tuple(params))
            columns = None
            while True:
                rows = cursor.fetchmany(self.arraysize)
                if not rows:
                    break
                if columns is None:
                    columns = [desc[0] for desc in cursor.description]
                for row in rows:
                    yield dict(zip(columns, row))
        finally:
            cursor.close()

    def scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute a statement and return the first column of its first row."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, tuple(params))
            row = cursor.fetchone()
            return row[0] if row is not None else None
        finally:
            cursor.close()


def as_database(obj: Any, dialect: Dialect | None = None) -> Database:
    """
    Wrap a DB-API connection unless it already implements Database

    Args:
        obj: Database instance or DB-API connection
        dialect: Dialect override for wrapped connections

    Returns:
        Database implementation
    """
    if isinstance(obj, Database):
        return obj
    logger.debug(f"Wrapping {type(obj).__module__}.{type(obj).__name__} connection")
    return DBAPIDatabase(obj, dialect=dialect)
