"""Unit tests for CLI output formatters."""

from decimal import Decimal

from reconciliation.cli.utils.formatters import (
    format_error,
    format_hours,
    format_info,
    format_money,
    format_percentage,
    format_success,
    format_table,
    format_warning,
)


class TestFormatters:
    """Test suite for CLI output formatters."""

    def test_format_success_contains_message(self):
        """Test that success formatter includes the message."""
        result = format_success("Operation completed")
        assert "Operation completed" in result

    def test_format_error_contains_message(self):
        """Test that error formatter includes the message."""
        result = format_error("Something went wrong")
        assert "Something went wrong" in result

    def test_format_warning_contains_message(self):
        """Test that warning formatter includes the message."""
        result = format_warning("This is a warning")
        assert "This is a warning" in result

    def test_format_info_contains_message(self):
        """Test that info formatter includes the message."""
        result = format_info("Information message")
        assert "Information message" in result

    def test_format_money(self):
        """Test thousands separators, cents and sign."""
        assert format_money(Decimal("1234.5")) == "$1,234.50"
        assert format_money(Decimal("-160")) == "-$160.00"
        assert format_money(Decimal("0")) == "$0.00"
        assert format_money(None) == "-"

    def test_format_hours_and_percentage(self):
        """Test hours and percentages use two decimals."""
        assert format_hours(Decimal("2")) == "2.00h"
        assert format_hours(None) == "-"
        assert format_percentage(Decimal("37.5")) == "37.50%"
        assert format_percentage(None) == "-"

    def test_format_table_with_headers_and_rows(self):
        """Test table formatting with headers and data."""
        headers = ["Name", "Hours"]
        rows = [["Alice", "10.00h"], ["Bob", "2.50h"]]

        result = format_table(headers, rows, right_align=[1])

        lines = result.splitlines()
        assert lines[0] == "+-------+--------+"
        assert lines[1] == "| Name  |  Hours |"
        assert lines[3] == "| Alice | 10.00h |"
        assert lines[4] == "| Bob   |  2.50h |"
        assert lines[-1] == lines[0]

    def test_format_table_with_empty_rows(self):
        """Test table formatting with no data rows."""
        result = format_table(["Name", "Age"], [])

        assert "Name" in result
        assert len(result.splitlines()) == 3

    def test_format_table_truncates_long_values(self):
        """Test cells longer than max_width are truncated."""
        rows = [["This is a very long description that might need truncation"]]

        result = format_table(["Description"], rows, max_width=20)

        assert "This is a very long " in result
        assert "truncation" not in result

    def test_format_table_without_headers(self):
        """Test no headers gives an empty string."""
        assert format_table([], [["x"]]) == ""
