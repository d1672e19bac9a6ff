"""Aggregators for period rollups and hour allowance tracking.

This module groups time entries by month and week and reports retainer
utilization and budget progress.
"""

from reconciliation.aggregators.period_aggregator import (
    PeriodHours,
    PeriodHoursAggregator,
)
from reconciliation.aggregators.utilization import (
    BudgetProgress,
    RetainerUtilization,
    UtilizationStatus,
    WeeklyMinimumProgress,
    calculate_budget_progress,
    calculate_retainer_utilization,
    calculate_weekly_minimum_progress,
    monthly_utilization_history,
)

__all__ = [
    "PeriodHours",
    "PeriodHoursAggregator",
    "BudgetProgress",
    "RetainerUtilization",
    "UtilizationStatus",
    "WeeklyMinimumProgress",
    "calculate_budget_progress",
    "calculate_retainer_utilization",
    "calculate_weekly_minimum_progress",
    "monthly_utilization_history",
]
