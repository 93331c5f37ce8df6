"""
SQL dialects and identifier quoting.

This module knows how each supported database spells quoted identifiers and
positional placeholders, and how to recognise a database from its DB-API
connection object.

Identifiers (databases, tables, columns, aliases) are quoted but never
validated or bound as parameters: they are configuration supplied by a trusted
caller. Only constraint values travel as bound parameters.
"""

from dataclasses import dataclass
from typing import Any

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class Dialect:
    """Quoting and placeholder conventions for one database family."""

    name: str
    quote_open: str
    quote_close: str
    placeholder: str
    server_side_cursor: bool = False

    def quote(self, identifier: str) -> str:
        """
        Quote a single identifier

        Embedded closing-quote characters are doubled so the identifier cannot
        terminate the quoted section early.

        Args:
            identifier: Table, column, database or alias name

        Returns:
            Quoted identifier
        """
        escaped = identifier.replace(self.quote_close, self.quote_close * 2)
        return f"{self.quote_open}{escaped}{self.quote_close}"

    def qualify_table(self, table: str, database: str | None = None) -> str:
        """Return ``database.table`` (or just ``table``) with each part quoted."""
        if database:
            return f"{self.quote(database)}.{self.quote(table)}"
        return self.quote(table)


MYSQL = Dialect("mysql", "`", "`", "%s")
POSTGRESQL = Dialect("postgresql", '"', '"', "%s", server_side_cursor=True)
SQLSERVER = Dialect("sqlserver", "[", "]", "?")
SQLITE = Dialect("sqlite", '"', '"', "?")
GENERIC = Dialect("generic", '"', '"', "?")

DIALECTS = {
    dialect.name: dialect
    for dialect in (MYSQL, POSTGRESQL, SQLSERVER, SQLITE, GENERIC)
}

# Driver module prefix -> dialect name
_DRIVER_MODULES = (
    ("psycopg2", "postgresql"),
    ("psycopg", "postgresql"),
    ("pyodbc", "sqlserver"),
    ("sqlite3", "sqlite"),
    ("_sqlite3", "sqlite"),
    ("pymysql", "mysql"),
    ("MySQLdb", "mysql"),
    ("mysql", "mysql"),
)


def get_dialect(name: str) -> Dialect:
    """
    Look up a dialect by name

    Args:
        name: One of mysql, postgresql, sqlserver, sqlite, generic

    Returns:
        Matching Dialect

    Raises:
        ConfigurationError: If the name is unknown
    """
    try:
        return DIALECTS[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown SQL dialect: {name!r} (expected one of {', '.join(sorted(DIALECTS))})"
        ) from None


def detect_dialect(connection: Any) -> Dialect:
    """
    Detect the dialect from a DB-API connection or cursor

    Args:
        connection: Database connection (psycopg2, pyodbc, sqlite3, ...)

    Returns:
        Detected Dialect, GENERIC when the driver is not recognised
    """
    module = type(connection).__module__ or ""
    root = module.split(".", 1)[0]
    for prefix, name in _DRIVER_MODULES:
        if root == prefix:
            return DIALECTS[name]
    return GENERIC
