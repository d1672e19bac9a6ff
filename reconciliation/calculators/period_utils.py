"""Calendar period utilities for the reconciliation layer.

This module provides the date arithmetic shared by the billing calculator
and the payout generator:
- Calendar month bounds (first to last day, inclusive)
- The canonical week start (Monday)
- Rolling month windows for utilization history

All functions work on naive ``dt.date`` values in the project's local
calendar. There is no timezone conversion anywhere in this module.
"""

import calendar
import datetime as dt
import re
from dataclasses import dataclass
from typing import List, Tuple

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


def month_bounds(date: dt.date) -> Tuple[dt.date, dt.date]:
    """Return the first and last day of the month containing ``date``.

    Example:
        >>> month_bounds(dt.date(2024, 2, 10))
        (datetime.date(2024, 2, 1), datetime.date(2024, 2, 29))
    """
    last_day = calendar.monthrange(date.year, date.month)[1]
    return date.replace(day=1), date.replace(day=last_day)


def week_start(date: dt.date) -> dt.date:
    """Return the Monday starting the week that contains ``date``.

    Example:
        >>> week_start(dt.date(2025, 3, 16))  # a Sunday
        datetime.date(2025, 3, 10)
    """
    return date - dt.timedelta(days=date.weekday())


def week_bounds(date: dt.date) -> Tuple[dt.date, dt.date]:
    """Return the Monday and Sunday of the week containing ``date``."""
    start = week_start(date)
    return start, start + dt.timedelta(days=6)


def is_same_month(first: dt.date, second: dt.date) -> bool:
    """Check whether two dates fall in the same calendar month and year."""
    return first.year == second.year and first.month == second.month


@dataclass(frozen=True, order=True)
class MonthPeriod:
    """A calendar month.

    Attributes:
        year: Calendar year
        month: Calendar month (1-12)

    Example:
        >>> period = MonthPeriod(2025, 3)
        >>> period.start, period.end
        (datetime.date(2025, 3, 1), datetime.date(2025, 3, 31))
        >>> period.label
        '2025-03'
    """

    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {self.month}")

    @classmethod
    def containing(cls, date: dt.date) -> "MonthPeriod":
        """Return the month that contains ``date``."""
        return cls(date.year, date.month)

    @classmethod
    def parse(cls, value: str) -> "MonthPeriod":
        """Parse a ``YYYY-MM`` string.

        Raises:
            ValueError: If the string is not in ``YYYY-MM`` format
        """
        match = _MONTH_PATTERN.match(value.strip())
        if not match:
            raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
        return cls(int(match.group(1)), int(match.group(2)))

    @property
    def start(self) -> dt.date:
        """First day of the month."""
        return dt.date(self.year, self.month, 1)

    @property
    def end(self) -> dt.date:
        """Last day of the month."""
        return month_bounds(self.start)[1]

    @property
    def label(self) -> str:
        """Sortable label in ``YYYY-MM`` format."""
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def display_name(self) -> str:
        """Human readable name, e.g. ``March 2025``."""
        return f"{calendar.month_name[self.month]} {self.year}"

    def contains(self, date: dt.date) -> bool:
        """Check whether ``date`` falls inside this month (inclusive)."""
        return date.year == self.year and date.month == self.month

    def previous(self) -> "MonthPeriod":
        """Return the month before this one."""
        if self.month == 1:
            return MonthPeriod(self.year - 1, 12)
        return MonthPeriod(self.year, self.month - 1)

    def next(self) -> "MonthPeriod":
        """Return the month after this one."""
        if self.month == 12:
            return MonthPeriod(self.year + 1, 1)
        return MonthPeriod(self.year, self.month + 1)


def iter_month_periods(end_period: MonthPeriod, count: int) -> List[MonthPeriod]:
    """Return ``count`` consecutive months ending with ``end_period``.

    Args:
        end_period: The most recent month in the window
        count: Number of months in the window

    Returns:
        Months ordered oldest first

    Example:
        >>> [p.label for p in iter_month_periods(MonthPeriod(2025, 2), 3)]
        ['2024-12', '2025-01', '2025-02']
    """
    periods: List[MonthPeriod] = []
    current = end_period
    for _ in range(max(count, 0)):
        periods.append(current)
        current = current.previous()
    periods.reverse()
    return periods
