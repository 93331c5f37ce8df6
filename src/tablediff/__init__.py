"""
Row-level difference between two relational tables

Compares a chosen set of columns of a source and a destination table,
correlated by a single-column primary key, with one SQL statement per run.

Components:
- engine: TableDiff, the fluent configuration and execution surface
- sql: diff statement synthesis
- decoder: result rows to DiffRecords
- fuzzy: normalizers and comparators relaxing strict equality
- formatters: human-readable and JSON lines output

Usage:
    from tablediff import TableDiff
    from tablediff.fuzzy import strip

    diff = TableDiff(connection).compare(["name", "price"]).from_tables("products_backup", "products")
    diff.using_normalizers({"name": strip}).output()
"""

from .config import ComparisonConfig, TableRef, make_config
from .decoder import DiffRecord
from .engine import TableDiff
from .exceptions import ConfigurationError, DataShapeError, TableDiffError
from .formatters import JsonLinesFormatter, TableFormatter

__version__ = "1.0.0"
__all__ = [
    "TableDiff",
    "ComparisonConfig",
    "TableRef",
    "make_config",
    "DiffRecord",
    "TableFormatter",
    "JsonLinesFormatter",
    "TableDiffError",
    "ConfigurationError",
    "DataShapeError",
]
