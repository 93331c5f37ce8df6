"""
Command-line argument parser configuration.

This module sets up the argument parser for the tablediff CLI,
defining both commands and their options.
"""

import argparse
import os

from tablediff.formatters import FORMATTERS

from .connections import DRIVERS


def _add_comparison_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by count and diff."""
    parser.add_argument(
        '--dsn',
        default=os.getenv('TABLEDIFF_DSN'),
        help='Connection string: libpq DSN, ODBC connection string or SQLite path '
             '(default: $TABLEDIFF_DSN)'
    )
    parser.add_argument(
        '--driver',
        choices=sorted(DRIVERS),
        default=os.getenv('TABLEDIFF_DRIVER', 'postgresql'),
        help='Database driver (default: $TABLEDIFF_DRIVER or postgresql)'
    )
    parser.add_argument('--source', required=True, help='Source table name')
    parser.add_argument('--dest', required=True, help='Destination table name')
    parser.add_argument(
        '--source-db',
        help='Database or schema of the source table'
    )
    parser.add_argument(
        '--dest-db',
        help='Database or schema of the destination table (default: --source-db)'
    )
    parser.add_argument(
        '--columns',
        required=True,
        help='Comma-separated list of columns to compare'
    )
    parser.add_argument(
        '--primary-key',
        default='id',
        help='Primary key column shared by both tables (default: id)'
    )
    parser.add_argument(
        '--where',
        action='append',
        default=[],
        metavar='COLUMN=VALUE',
        help='Only rows where either side has COLUMN=VALUE (repeatable)'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='tablediff',
        description="Row-level difference between two database tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Count differing rows between a backup and the live table
  tablediff count --dsn "dbname=shop" --source products_backup --dest products --columns name,price

  # Show differences for one vendor, across two schemas
  tablediff diff --dsn "dbname=shop" --source products --source-db archive \\
      --dest products --dest-db public --columns name,price --where vendor=Acme

  # First 20 differences as JSON lines from SQLite
  tablediff diff --driver sqlite --dsn shop.db --source a --dest b --columns name --max 20 --format json
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=os.getenv('LOG_LEVEL', 'WARNING'),
        help='Logging level (default: WARNING)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        default=None,
        help='Emit logs as JSON on stderr (default: LOG_JSON)'
    )
    parser.add_argument(
        '--log-file',
        default=os.getenv('LOG_FILE'),
        help='Also write logs to this file (rotated)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Count command ==========
    count_parser = subparsers.add_parser('count', help='Count differing rows')
    _add_comparison_arguments(count_parser)

    # ========== Diff command ==========
    diff_parser = subparsers.add_parser('diff', help='Show differing rows')
    _add_comparison_arguments(diff_parser)
    diff_parser.add_argument(
        '--max',
        type=int,
        default=0,
        help='Stop after this many differences (default: 0, unlimited)'
    )
    diff_parser.add_argument(
        '--format',
        choices=sorted(FORMATTERS),
        default='table',
        help='Output format (default: table)'
    )
    diff_parser.add_argument(
        '--no-color',
        action='store_true',
        help='Disable colored table output'
    )

    return parser


def parse_constraints(items: list[str]) -> dict[str, str]:
    """
    Parse COLUMN=VALUE constraint arguments

    Raises:
        ValueError: If an item has no '=' or an empty column name
    """
    constraints = {}
    for item in items:
        column, sep, value = item.partition('=')
        if not sep or not column.strip():
            raise ValueError(f"Invalid constraint {item!r}, expected COLUMN=VALUE")
        constraints[column.strip()] = value
    return constraints


def parse_columns(value: str) -> list[str]:
    return [c.strip() for c in value.split(',') if c.strip()]
