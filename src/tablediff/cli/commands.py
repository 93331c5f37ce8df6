"""
CLI command implementations.

- count: number of rows the diff statement returns
- diff: formatted differences on stdout
"""

import argparse
import logging
import sys
from contextlib import closing

from tablediff.engine import TableDiff
from tablediff.formatters import JsonLinesFormatter, TableFormatter

from .connections import open_connection
from .parser import parse_columns, parse_constraints

logger = logging.getLogger(__name__)

EXIT_SAME = 0
EXIT_DIFFERENT = 1


def build_diff(args: argparse.Namespace, connection) -> TableDiff:
    """Configure a TableDiff from parsed arguments."""
    diff = (
        TableDiff(connection)
        .compare(parse_columns(args.columns))
        .from_tables(args.source, args.dest, args.source_db, args.dest_db or args.source_db)
        .primary_key(args.primary_key)
    )
    for column, value in parse_constraints(args.where).items():
        diff.where(column, value)
    return diff


def cmd_count(args: argparse.Namespace) -> int:
    """
    Print the number of differing rows

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (1 when differences exist)
    """
    with closing(open_connection(args.driver, args.dsn)) as connection:
        total = build_diff(args, connection).count()

    print(total)
    return EXIT_DIFFERENT if total else EXIT_SAME


def cmd_diff(args: argparse.Namespace) -> int:
    """
    Print each difference using the selected formatter

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (1 when differences exist)
    """
    if args.format == 'json':
        formatter = JsonLinesFormatter()
    else:
        formatter = TableFormatter(use_colors=False if args.no_color else None)

    with closing(open_connection(args.driver, args.dsn)) as connection:
        diff = build_diff(args, connection).max(args.max).format(formatter)
        count = diff.output(sys.stdout.write)

    logger.info(f"{count} difference(s) found")
    return EXIT_DIFFERENT if count else EXIT_SAME
