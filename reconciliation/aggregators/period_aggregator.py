"""Period aggregator for monthly and weekly hour rollups.

This module groups time entries into calendar months or Monday-based
weeks and renders the buckets as pandas DataFrames for reporting.
Monthly buckets follow the wall-clock month; weekly buckets exist for
advisory progress only and never feed revenue.
"""

import datetime as dt
import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from reconciliation.calculators.money import ZERO, resolve_decimal
from reconciliation.calculators.period_utils import (
    MonthPeriod,
    iter_month_periods,
    week_bounds,
)
from reconciliation.models.time_entry import TimeEntry

logger = logging.getLogger(__name__)


@dataclass
class PeriodHours:
    """Hours aggregated over one month or week.

    Attributes:
        period_start: First day of the bucket
        period_end: Last day of the bucket (inclusive)
        label: "YYYY-MM" for months, "YYYY-Www" (ISO week) for weeks
        total_hours: Sum of hours
        billable_hours: Sum of billable hours
        entry_count: Number of entries in the bucket

    Example:
        >>> bucket = PeriodHours(
        ...     period_start=dt.date(2025, 3, 1),
        ...     period_end=dt.date(2025, 3, 31),
        ...     label="2025-03",
        ...     total_hours=Decimal("12.5"),
        ...     billable_hours=Decimal("10"),
        ...     entry_count=4,
        ... )
        >>> bucket.label
        '2025-03'
    """

    period_start: dt.date
    period_end: dt.date
    label: str
    total_hours: Decimal
    billable_hours: Decimal
    entry_count: int


def _week_label(start: dt.date) -> str:
    iso_year, iso_week, _ = start.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


class PeriodHoursAggregator:
    """Aggregates time entries by calendar month or week.

    Example:
        >>> aggregator = PeriodHoursAggregator()
        >>> buckets = aggregator.aggregate_by_month(entries)
        >>> frame = aggregator.to_dataframe(buckets)
    """

    def _aggregate(
        self,
        entries: Iterable[TimeEntry],
        bounds_for,
        label_for,
    ) -> List[PeriodHours]:
        groups: Dict[Tuple[dt.date, dt.date], List[TimeEntry]] = defaultdict(list)
        for entry in entries:
            groups[bounds_for(entry.date)].append(entry)

        result = []
        for (start, end), items in sorted(groups.items()):
            result.append(
                PeriodHours(
                    period_start=start,
                    period_end=end,
                    label=label_for(start),
                    total_hours=sum(
                        (resolve_decimal(e.hours) for e in items), ZERO
                    ),
                    billable_hours=sum(
                        (resolve_decimal(e.hours) for e in items if e.billable), ZERO
                    ),
                    entry_count=len(items),
                )
            )
        return result

    def aggregate_by_month(self, entries: Iterable[TimeEntry]) -> List[PeriodHours]:
        """Group entries by calendar month.

        Args:
            entries: Time entries to aggregate

        Returns:
            One PeriodHours per month that has entries, oldest first
        """
        entry_list = list(entries)
        logger.info(f"Aggregating {len(entry_list)} entries by month")

        def bounds(date: dt.date) -> Tuple[dt.date, dt.date]:
            period = MonthPeriod.containing(date)
            return period.start, period.end

        return self._aggregate(
            entry_list, bounds, lambda start: MonthPeriod.containing(start).label
        )

    def aggregate_by_week(self, entries: Iterable[TimeEntry]) -> List[PeriodHours]:
        """Group entries by Monday-based week.

        Args:
            entries: Time entries to aggregate

        Returns:
            One PeriodHours per week that has entries, oldest first
        """
        entry_list = list(entries)
        logger.info(f"Aggregating {len(entry_list)} entries by week")
        return self._aggregate(entry_list, week_bounds, _week_label)

    def fill_months(
        self, buckets: List[PeriodHours], end_period: MonthPeriod, months: int
    ) -> List[PeriodHours]:
        """Return a gap-free monthly series, adding empty months.

        Args:
            buckets: Monthly buckets from aggregate_by_month
            end_period: Most recent month of the series
            months: Number of months in the series

        Returns:
            Exactly ``months`` buckets, oldest first
        """
        by_label = {bucket.label: bucket for bucket in buckets}
        series = []
        for period in iter_month_periods(end_period, months):
            series.append(
                by_label.get(period.label)
                or PeriodHours(
                    period_start=period.start,
                    period_end=period.end,
                    label=period.label,
                    total_hours=ZERO,
                    billable_hours=ZERO,
                    entry_count=0,
                )
            )
        return series

    def to_dataframe(self, buckets: List[PeriodHours]) -> pd.DataFrame:
        """Render buckets as a DataFrame indexed by label.

        Args:
            buckets: Buckets to render

        Returns:
            DataFrame with start, end, total_hours, billable_hours and
            entry_count columns
        """
        if not buckets:
            return pd.DataFrame(
                columns=[
                    "period_start",
                    "period_end",
                    "total_hours",
                    "billable_hours",
                    "entry_count",
                ]
            )

        df = pd.DataFrame(
            [
                {
                    "label": b.label,
                    "period_start": b.period_start,
                    "period_end": b.period_end,
                    "total_hours": float(b.total_hours),
                    "billable_hours": float(b.billable_hours),
                    "entry_count": b.entry_count,
                }
                for b in buckets
            ]
        )
        return df.set_index("label")

    def member_matrix(
        self,
        entries: Iterable[TimeEntry],
        member_names: Optional[Dict[str, str]] = None,
    ) -> pd.DataFrame:
        """Generate a member-by-month matrix of hours.

        Rows are team members (by name when known), columns are month
        labels, cells are hours. Months without hours for a member are 0.

        Args:
            entries: Time entries to aggregate
            member_names: Optional mapping of member id to display name

        Returns:
            DataFrame with members as index and month labels as columns
        """
        names = member_names or {}
        matrix_data: Dict[str, Dict[str, float]] = defaultdict(dict)

        for entry in entries:
            member = names.get(entry.team_member_id or "", entry.team_member_id)
            row_label = member if member else "unassigned"
            label = MonthPeriod.containing(entry.date).label
            matrix_data[row_label][label] = matrix_data[row_label].get(
                label, 0.0
            ) + float(resolve_decimal(entry.hours))

        if not matrix_data:
            logger.info("No entries, returning empty matrix")
            return pd.DataFrame()

        df = pd.DataFrame.from_dict(matrix_data, orient="index").fillna(0.0)
        df = df.reindex(sorted(df.columns), axis=1)

        logger.info(
            f"Generated matrix with {len(df)} members and {len(df.columns)} months"
        )
        return df
