"""
Command-line interface for tablediff.

Available commands:
- count: Count rows that differ between two tables
- diff: Show rows that differ between two tables
"""

import sys

from utils.logging import configure_from_env
from utils.tracing import shutdown_tracing

from tablediff.exceptions import TableDiffError

from .commands import cmd_count, cmd_diff
from .parser import create_parser

EXIT_ERROR = 2


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the tablediff CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # LOG_JSON and LOG_CONSOLE apply unless a flag overrides them
    configure_from_env(level=args.log_level, log_file=args.log_file, json_format=args.log_json)

    if args.command not in ('count', 'diff'):
        parser.print_help()
        sys.exit(EXIT_ERROR)

    if not args.dsn:
        parser.error("--dsn is required (or set TABLEDIFF_DSN)")

    command = cmd_count if args.command == 'count' else cmd_diff
    try:
        code = command(args)
    except (TableDiffError, ValueError) as e:
        parser.exit(EXIT_ERROR, f"tablediff: error: {e}\n")
    finally:
        # Flush pending spans before the process exits
        shutdown_tracing()

    sys.exit(code)


__all__ = [
    'main',
    'cmd_count',
    'cmd_diff',
    'create_parser',
]


if __name__ == '__main__':
    main()
