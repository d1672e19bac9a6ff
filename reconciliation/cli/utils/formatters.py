"""Output formatting utilities for CLI."""

from decimal import Decimal
from typing import List, Optional, Sequence

import click


def format_success(message: str) -> str:
    """Format a success message in green."""
    return click.style(f"✓ {message}", fg="green", bold=True)


def format_error(message: str) -> str:
    """Format an error message in red."""
    return click.style(f"✗ {message}", fg="red", bold=True)


def format_warning(message: str) -> str:
    """Format a warning message in yellow."""
    return click.style(f"⚠ {message}", fg="yellow", bold=True)


def format_info(message: str) -> str:
    """Format an info message in blue."""
    return click.style(f"ℹ {message}", fg="blue")


def format_money(amount: Optional[Decimal]) -> str:
    """Format an amount with thousands separators and two decimals.

    Example:
        >>> format_money(Decimal("-1234.5"))
        '-$1,234.50'
    """
    if amount is None:
        return "-"
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_hours(hours: Optional[Decimal]) -> str:
    """Format an hour count with two decimals."""
    if hours is None:
        return "-"
    return f"{hours:,.2f}h"


def format_percentage(value: Optional[Decimal]) -> str:
    """Format an already-multiplied percentage (37.5 -> '37.50%')."""
    if value is None:
        return "-"
    return f"{value:.2f}%"


def format_table(
    headers: List[str],
    rows: Sequence[Sequence[object]],
    right_align: Sequence[int] = (),
    max_width: int = 40,
) -> str:
    """Format rows as a plain-text table.

    Args:
        headers: Column headers
        rows: Data rows; cells are rendered with ``str``
        right_align: Indexes of columns to right-align (amounts, hours)
        max_width: Maximum width of a column; longer cells are truncated

    Returns:
        The table, or an empty string when there are no headers
    """
    if not headers:
        return ""

    cells = [[str(cell)[:max_width] for cell in row] for row in rows]
    widths = [len(header) for header in headers]
    for row in cells:
        for i, cell in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], len(cell))
    widths = [min(width, max_width) for width in widths]

    def render(row: Sequence[str]) -> str:
        parts = []
        for i, width in enumerate(widths):
            cell = row[i] if i < len(row) else ""
            parts.append(cell.rjust(width) if i in right_align else cell.ljust(width))
        return "| " + " | ".join(parts) + " |"

    separator = "+" + "+".join("-" * (width + 2) for width in widths) + "+"
    lines = [separator, render(headers), separator]
    if cells:
        lines.extend(render(row) for row in cells)
        lines.append(separator)
    return "\n".join(lines)
