"""Retainer utilization and hour budget progress.

This module reports how much of a project's hour allowance has been used:
- Monthly retainer utilization (hours logged / hours included), to flag
  scope creep on retainer and exit projects
- A rolling N-month utilization history
- Hour budget progress (monthly for retainers, total for hourly projects)
- Weekly minimum hours progress (advisory)

None of these figures alter revenue.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, List

from reconciliation.calculators.money import (
    HUNDRED,
    ZERO,
    resolve_decimal,
    safe_ratio,
    sum_decimals,
)
from reconciliation.calculators.period_utils import (
    MonthPeriod,
    iter_month_periods,
    week_bounds,
)
from reconciliation.models.project import Project
from reconciliation.models.time_entry import TimeEntry

logger = logging.getLogger(__name__)

DEFAULT_WARNING_THRESHOLD = Decimal("0.8")
DEFAULT_HISTORY_MONTHS = 6
RATIO_PLACES = Decimal("0.0001")
HOUR_PLACES = Decimal("0.01")


class UtilizationStatus(str, Enum):
    """Traffic-light status of an hour allowance."""

    OK = "ok"
    WARNING = "warning"
    OVER = "over"


def _hours_between(
    entries: Iterable[TimeEntry], start: dt.date, end: dt.date
) -> Decimal:
    return sum_decimals(
        resolve_decimal(entry.hours) for entry in entries if start <= entry.date <= end
    )


def _status(utilization: Decimal, warning_threshold: Decimal) -> UtilizationStatus:
    if utilization >= Decimal("1"):
        return UtilizationStatus.OVER
    if utilization >= warning_threshold:
        return UtilizationStatus.WARNING
    return UtilizationStatus.OK


@dataclass
class RetainerUtilization:
    """Hours used against the monthly allowance for one month.

    Attributes:
        period: Month the figures cover
        hours_logged: Hours logged in the month
        hours_included: Monthly allowance (zero when not configured)
        hours_remaining: Allowance minus hours logged (negative when over)
        utilization: hours_logged / hours_included (0 without an allowance)
        status: OK, WARNING or OVER
    """

    period: MonthPeriod
    hours_logged: Decimal
    hours_included: Decimal
    hours_remaining: Decimal
    utilization: Decimal
    status: UtilizationStatus

    @property
    def is_over_budget(self) -> bool:
        """Whether more hours were logged than the allowance."""
        return self.hours_logged > self.hours_included

    @property
    def overage_hours(self) -> Decimal:
        """Hours logged beyond the allowance (zero when within it)."""
        return max(self.hours_logged - self.hours_included, ZERO)

    @property
    def utilization_percentage(self) -> Decimal:
        """Utilization as a percentage with two decimals."""
        return (self.utilization * HUNDRED).quantize(HOUR_PLACES)


def calculate_retainer_utilization(
    project: Project,
    entries: Iterable[TimeEntry],
    period: MonthPeriod,
    warning_threshold: Decimal = DEFAULT_WARNING_THRESHOLD,
) -> RetainerUtilization:
    """Calculate allowance utilization for one calendar month.

    Month boundaries are the wall-clock month: first to last day inclusive.

    Args:
        project: Project with its hour allowance
        entries: Time entries logged against the project
        period: Month to report
        warning_threshold: Utilization ratio at which the status turns WARNING

    Returns:
        RetainerUtilization for the month
    """
    hours_included = resolve_decimal(project.monthly_hours_allowance)
    hours_logged = _hours_between(entries, period.start, period.end)
    utilization = safe_ratio(hours_logged, hours_included).quantize(RATIO_PLACES)

    return RetainerUtilization(
        period=period,
        hours_logged=hours_logged,
        hours_included=hours_included,
        hours_remaining=hours_included - hours_logged,
        utilization=utilization,
        status=_status(utilization, warning_threshold),
    )


def monthly_utilization_history(
    project: Project,
    entries: Iterable[TimeEntry],
    as_of: dt.date,
    months: int = DEFAULT_HISTORY_MONTHS,
    warning_threshold: Decimal = DEFAULT_WARNING_THRESHOLD,
) -> List[RetainerUtilization]:
    """Build a rolling utilization history ending with the current month.

    Args:
        project: Project with its hour allowance
        entries: Time entries logged against the project
        as_of: Any date in the most recent month to include
        months: Number of months in the history
        warning_threshold: Utilization ratio at which the status turns WARNING

    Returns:
        One RetainerUtilization per month, oldest first
    """
    entry_list = list(entries)
    periods = iter_month_periods(MonthPeriod.containing(as_of), months)
    history = [
        calculate_retainer_utilization(project, entry_list, period, warning_threshold)
        for period in periods
    ]

    over = sum(1 for item in history if item.is_over_budget)
    logger.info(
        f"Utilization history for project {project.id}: {len(history)} months, "
        f"{over} over allowance"
    )
    return history


@dataclass
class BudgetProgress:
    """Hours tracked against the hour budget.

    Attributes:
        hours_tracked: Hours counted against the budget
        budget_hours: The budget (monthly allowance or engagement total)
        hours_remaining: budget_hours - hours_tracked (negative when over)
        completion_percentage: hours_tracked / budget_hours × 100
        is_monthly: True when the budget resets each month (retainers)
    """

    hours_tracked: Decimal
    budget_hours: Decimal
    hours_remaining: Decimal
    completion_percentage: Decimal
    is_monthly: bool


def calculate_budget_progress(
    project: Project, entries: Iterable[TimeEntry], as_of: dt.date
) -> BudgetProgress:
    """Calculate hour budget progress for a project.

    Retainer and exit projects compare the current month's hours with the
    monthly allowance. Hourly projects compare all hours with
    ``budget_hours``.

    Args:
        project: Project with its hour budget
        entries: Time entries logged against the project
        as_of: Date identifying the current month

    Returns:
        BudgetProgress for the project
    """
    entry_list = list(entries)
    is_monthly = project.billing_type.is_retainer_based

    if is_monthly:
        period = MonthPeriod.containing(as_of)
        hours = _hours_between(entry_list, period.start, period.end)
        budget = resolve_decimal(project.monthly_hours_allowance)
    else:
        hours = sum_decimals(resolve_decimal(entry.hours) for entry in entry_list)
        budget = resolve_decimal(project.budget_hours)

    return BudgetProgress(
        hours_tracked=hours,
        budget_hours=budget,
        hours_remaining=budget - hours,
        completion_percentage=(safe_ratio(hours, budget) * HUNDRED).quantize(
            HOUR_PLACES
        ),
        is_monthly=is_monthly,
    )


@dataclass
class WeeklyMinimumProgress:
    """Hours logged in a week against the advisory weekly minimum."""

    week_start: dt.date
    week_end: dt.date
    hours_logged: Decimal
    minimum_hours: Decimal
    shortfall_hours: Decimal
    is_met: bool
    progress_percentage: Decimal


def calculate_weekly_minimum_progress(
    project: Project, entries: Iterable[TimeEntry], as_of: dt.date
) -> WeeklyMinimumProgress:
    """Compare the hours of the week containing ``as_of`` with the minimum.

    Weeks run Monday to Sunday. A project without a minimum always meets it.

    Args:
        project: Project with its weekly hour minimum
        entries: Time entries logged against the project
        as_of: Any date in the week to report

    Returns:
        WeeklyMinimumProgress for the week
    """
    start, end = week_bounds(as_of)
    hours = _hours_between(entries, start, end)
    minimum = resolve_decimal(project.weekly_hour_minimum)

    if minimum > ZERO:
        progress = min(hours / minimum * HUNDRED, HUNDRED)
    else:
        progress = HUNDRED

    return WeeklyMinimumProgress(
        week_start=start,
        week_end=end,
        hours_logged=hours,
        minimum_hours=minimum,
        shortfall_hours=max(minimum - hours, ZERO),
        is_met=hours >= minimum,
        progress_percentage=progress.quantize(HOUR_PLACES),
    )
