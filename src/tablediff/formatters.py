"""
Diff record formatting.

This module provides the formatters used by ``TableDiff.output()``:
a human-readable side-by-side table (the default) and JSON lines.
"""

import json
import sys
from typing import Any, Protocol


class Formatter(Protocol):
    """Turns diff records into text."""

    def header(self, source_table: str, dest_table: str) -> str | None: ...

    def format(
        self,
        id: Any,
        source_diff: dict[str, Any] | None,
        dest_diff: dict[str, Any] | None,
        source_row: dict[str, Any],
        dest_row: dict[str, Any],
        source_table: str,
        dest_table: str,
    ) -> str: ...


class TableFormatter:
    """
    Side-by-side console formatter

    Renders each diff as four lines: the id with the differing column names,
    a separator, then the source and destination values. A side whose row is
    missing is drawn with dashes.
    """

    SOURCE_COLOR = 31  # Red
    DEST_COLOR = 32    # Green
    RESET = "\033[0m"

    def __init__(self, use_colors: bool | None = None, max_value_length: int = 50):
        """
        Initialize table formatter

        Args:
            use_colors: Whether to use ANSI color codes (default: stdout is a tty)
            max_value_length: Values longer than this are truncated with an ellipsis
        """
        if use_colors is None:
            use_colors = sys.stdout.isatty()
        self.use_colors = use_colors
        self.max_value_length = max_value_length

    def header(self, source_table: str, dest_table: str) -> str | None:
        return None

    def format(
        self,
        id: Any,
        source_diff: dict[str, Any] | None,
        dest_diff: dict[str, Any] | None,
        source_row: dict[str, Any],
        dest_row: dict[str, Any],
        source_table: str,
        dest_table: str,
    ) -> str:
        """
        Format one diff record

        Returns:
            Formatted block ending with a blank line
        """
        id_text = str(id)
        heading_len = max(len(id_text), len(source_table), len(dest_table))

        lines = [
            id_text.ljust(heading_len),
            "",
            source_table.ljust(heading_len),
            dest_table.ljust(heading_len),
        ]

        columns = source_diff if source_diff is not None else (dest_diff or {})
        for column in columns:
            source_value = self.format_value(source_diff[column]) if source_diff is not None else None
            dest_value = self.format_value(dest_diff.get(column)) if dest_diff is not None else None

            width = max(len(column), len(source_value or ""), len(dest_value or ""))
            lines[0] += " | " + column.ljust(width)
            lines[2] += " | " + self.colorize(
                source_value.ljust(width) if source_value is not None else "-" * width,
                self.SOURCE_COLOR,
            )
            lines[3] += " | " + self.colorize(
                dest_value.ljust(width) if dest_value is not None else "-" * width,
                self.DEST_COLOR,
            )

        lines[1] = "_" * len(lines[0])

        return "\n".join(lines) + "\n\n"

    def format_value(self, value: Any) -> str:
        """
        Render a value for display

        Strings are quoted with newlines escaped, None is shown as NULL, and
        the result is truncated to ``max_value_length`` characters.
        """
        length = self.max_value_length
        if isinstance(value, str):
            quote = True
            length -= 2
            value = value.replace("\r", "\\n").replace("\n", "\\n")
        else:
            quote = False
            value = "NULL" if value is None else str(value)

        ellipsis = "..."
        if len(value) > length:
            value = value[: length - len(ellipsis)] + ellipsis

        return f'"{value}"' if quote else value

    def colorize(self, value: str, color: int) -> str:
        if not self.use_colors:
            return value
        return f"\033[{color}m{value}{self.RESET}"


class JsonLinesFormatter:
    """One JSON object per diff record."""

    def header(self, source_table: str, dest_table: str) -> str | None:
        return None

    def format(
        self,
        id: Any,
        source_diff: dict[str, Any] | None,
        dest_diff: dict[str, Any] | None,
        source_row: dict[str, Any],
        dest_row: dict[str, Any],
        source_table: str,
        dest_table: str,
    ) -> str:
        record = {
            "id": id,
            "source_table": source_table,
            "dest_table": dest_table,
            "source_diff": source_diff,
            "dest_diff": dest_diff,
            "source_row": source_row,
            "dest_row": dest_row,
        }
        return json.dumps(record, default=str) + "\n"


FORMATTERS = {
    "table": TableFormatter,
    "json": JsonLinesFormatter,
}
