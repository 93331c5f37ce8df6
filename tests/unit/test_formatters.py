"""
Unit tests for diff formatters.
"""

import json

import pytest

from tablediff.formatters import FORMATTERS, JsonLinesFormatter, TableFormatter


@pytest.fixture
def formatter():
    return TableFormatter(use_colors=False)


class TestTableFormatter:
    """Test the side-by-side table formatter."""

    def test_modified_row(self, formatter):
        text = formatter.format(
            2,
            {"price": 10},
            {"price": 12},
            {"name": "Widget", "price": 10},
            {"name": "Widget", "price": 12},
            "products_backup",
            "products",
        )

        assert text.split("\n") == [
            "2".ljust(15) + " | price",
            "_" * 23,
            "products_backup | 10   ",
            "products".ljust(15) + " | 12   ",
            "",
            "",
        ]

    def test_missing_destination_drawn_with_dashes(self, formatter):
        text = formatter.format(3, {"name": "Gadget"}, None, {"name": "Gadget"}, {}, "a", "b")
        lines = text.split("\n")

        assert lines[0] == "3 | name    "
        assert lines[2] == 'a | "Gadget"'
        assert lines[3] == "b | --------"

    def test_missing_source_uses_dest_columns(self, formatter):
        text = formatter.format(4, None, {"name": "x"}, {}, {"name": "x"}, "a", "b")
        lines = text.split("\n")

        assert lines[0] == "4 | name"
        assert lines[2] == "a | ----"
        assert lines[3] == 'b | "x" '

    def test_separator_matches_heading(self, formatter):
        text = formatter.format(1, {"a": 1, "b": None}, {"a": 2, "b": 3}, {}, {}, "src", "dst")
        heading, separator = text.split("\n")[:2]

        assert set(separator) == {"_"}
        assert len(separator) == len(heading)

    def test_ends_with_blank_line(self, formatter):
        text = formatter.format(1, {"a": 1}, {"a": 2}, {}, {}, "s", "d")
        assert text.endswith("\n\n")

    def test_colors(self):
        formatter = TableFormatter(use_colors=True)
        text = formatter.format(1, {"a": 1}, {"a": 2}, {}, {}, "s", "d")

        assert "\033[31m1\033[0m" in text
        assert "\033[32m2\033[0m" in text

    def test_no_header(self, formatter):
        assert formatter.header("a", "b") is None


class TestFormatValue:
    """Test value rendering."""

    def test_none(self, formatter):
        assert formatter.format_value(None) == "NULL"

    def test_string_quoted(self, formatter):
        assert formatter.format_value("abc") == '"abc"'

    def test_newlines_escaped(self, formatter):
        assert formatter.format_value("a\nb\r") == '"a\\nb\\n"'

    def test_long_string_truncated(self, formatter):
        value = formatter.format_value("x" * 100)

        assert len(value) == 50
        assert value.endswith('..."')

    def test_long_number_truncated(self):
        formatter = TableFormatter(use_colors=False, max_value_length=10)
        assert formatter.format_value(12345678901234) == "1234567..."

    def test_short_values_untouched(self, formatter):
        assert formatter.format_value(3.5) == "3.5"


class TestJsonLinesFormatter:
    """Test JSON lines output."""

    def test_one_object_per_line(self):
        text = JsonLinesFormatter().format(
            5, {"price": 10}, None, {"price": 10}, {}, "a", "b"
        )

        assert text.endswith("\n")
        assert text.count("\n") == 1
        data = json.loads(text)
        assert data["id"] == 5
        assert data["source_diff"] == {"price": 10}
        assert data["dest_diff"] is None
        assert data["source_table"] == "a"

    def test_non_json_values_stringified(self):
        from decimal import Decimal

        text = JsonLinesFormatter().format(1, {"p": Decimal("1.5")}, {"p": 2}, {}, {}, "a", "b")
        assert json.loads(text)["source_diff"] == {"p": "1.5"}


def test_formatter_registry():
    assert FORMATTERS["table"] is TableFormatter
    assert FORMATTERS["json"] is JsonLinesFormatter
