"""Billing calculator for project financials.

This module implements the revenue, labor cost and profit calculations
for a project under each billing model:
- hourly: billable hours times the project's hourly rate
- retainer: the flat monthly retainer, independent of hours logged
- exit: the monthly retainer (the success fee is not computed here)

Labor cost is always hours times the team member's rate, regardless of
the billing model. All functions are pure: they take records already in
memory and never raise for missing numbers, which resolve to zero.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from reconciliation.calculators.money import (
    HUNDRED,
    ZERO,
    resolve_decimal,
    safe_ratio,
    sum_decimals,
    to_cents,
)
from reconciliation.calculators.period_utils import MonthPeriod
from reconciliation.models.project import BillingType, Project
from reconciliation.models.time_entry import TeamMember, TimeEntry

logger = logging.getLogger(__name__)

RATIO_PLACES = Decimal("0.0001")


class UnsupportedBillingTypeError(ValueError):
    """Raised when a project reaches the calculator without a known billing type."""


@dataclass
class MemberCost:
    """Labor cost attributed to one team member on a project.

    Attributes:
        team_member_id: Team member identifier
        name: Display name (None for members missing from the lookup)
        hours: Hours logged by the member
        hourly_rate: Resolved cost rate (zero when unknown)
        cost: hours × hourly_rate, rounded to cents
    """

    team_member_id: Optional[str]
    name: Optional[str]
    hours: Decimal
    hourly_rate: Decimal
    cost: Decimal


@dataclass
class ProjectFinancials:
    """Financial breakdown for a project over a set of time entries.

    Attributes:
        project_id: Project identifier
        billing_type: Billing model the revenue was computed with
        period: Month the figures cover (None for an unbounded entry set)
        total_hours: Sum of hours over all entries
        billable_hours: Sum of hours over billable entries
        billed_hours: Sum of hours over client-billed entries
        revenue: Revenue under the project's billing model
        billed_revenue: Revenue already invoiced (hourly projects only)
        unbilled_revenue: revenue - billed_revenue (hourly projects only)
        labor_cost: Sum of hours × member rate
        unpaid_labor_cost: Labor cost of entries not yet paid to contractors
        profit: revenue - labor_cost
        margin: profit / revenue as a ratio (0 when there is no revenue)
        profit_margin_percentage: margin × 100
        profit_per_hour: profit / total_hours (0 when no hours)
        member_costs: Per-member breakdown, most hours first
        entry_count: Number of entries included

    Example:
        >>> financials.revenue
        Decimal('800.00')
        >>> financials.margin
        Decimal('0.3750')
    """

    project_id: str
    billing_type: BillingType
    period: Optional[MonthPeriod]
    total_hours: Decimal
    billable_hours: Decimal
    billed_hours: Decimal
    revenue: Decimal
    billed_revenue: Decimal
    unbilled_revenue: Decimal
    labor_cost: Decimal
    unpaid_labor_cost: Decimal
    profit: Decimal
    margin: Decimal
    profit_margin_percentage: Decimal
    profit_per_hour: Decimal
    member_costs: List[MemberCost] = field(default_factory=list)
    entry_count: int = 0

    @property
    def is_profitable(self) -> bool:
        """Whether revenue covers labor cost."""
        return self.profit >= ZERO


@dataclass
class PortfolioFinancials:
    """Aggregated financials across several projects.

    Margin is recomputed from the totals rather than averaged per project.
    """

    total_hours: Decimal
    billable_hours: Decimal
    revenue: Decimal
    billed_revenue: Decimal
    unbilled_revenue: Decimal
    labor_cost: Decimal
    unpaid_labor_cost: Decimal
    profit: Decimal
    margin: Decimal
    profit_margin_percentage: Decimal
    project_count: int


def build_rate_lookup(team_members: Iterable[TeamMember]) -> Dict[str, Decimal]:
    """Build a team member id to cost rate lookup.

    Members with a missing rate resolve to zero.

    Args:
        team_members: Team member records

    Returns:
        Dictionary mapping member id to hourly cost rate
    """
    return {member.id: resolve_decimal(member.hourly_rate) for member in team_members}


def resolve_member_rate(
    rate_lookup: Dict[str, Decimal], team_member_id: Optional[str]
) -> Decimal:
    """Look up a member's cost rate, treating unknown members as zero.

    An entry pointing at a member missing from the lookup still counts
    toward hours but contributes no labor cost.
    """
    if team_member_id is None:
        return ZERO
    return rate_lookup.get(team_member_id, ZERO)


def _require_billing_type(project: Project) -> BillingType:
    billing_type = project.billing_type
    if not isinstance(billing_type, BillingType):
        raise UnsupportedBillingTypeError(
            f"Project '{project.id}' has no supported billing type: {billing_type!r}"
        )
    return billing_type


def _select_entries(
    project: Project, entries: Iterable[TimeEntry], period: Optional[MonthPeriod]
) -> List[TimeEntry]:
    selected = []
    for entry in entries:
        if entry.project_id is not None and entry.project_id != project.id:
            continue
        if period is not None and not period.contains(entry.date):
            continue
        selected.append(entry)
    return selected


def _member_breakdown(
    entries: Sequence[TimeEntry],
    rate_lookup: Dict[str, Decimal],
    names: Dict[str, Optional[str]],
) -> List[MemberCost]:
    hours_by_member: Dict[Optional[str], Decimal] = {}
    for entry in entries:
        member_id = entry.team_member_id
        hours_by_member[member_id] = hours_by_member.get(
            member_id, ZERO
        ) + resolve_decimal(entry.hours)

    breakdown = []
    for member_id, hours in hours_by_member.items():
        if hours <= ZERO:
            continue
        rate = resolve_member_rate(rate_lookup, member_id)
        breakdown.append(
            MemberCost(
                team_member_id=member_id,
                name=names.get(member_id) if member_id is not None else None,
                hours=hours,
                hourly_rate=rate,
                cost=to_cents(hours * rate),
            )
        )

    breakdown.sort(key=lambda item: item.hours, reverse=True)
    return breakdown


def calculate_project_financials(
    project: Project,
    entries: Iterable[TimeEntry],
    team_members: Iterable[TeamMember],
    period: Optional[MonthPeriod] = None,
) -> ProjectFinancials:
    """Calculate revenue, labor cost and profit for a project.

    Args:
        project: Project with its billing configuration
        entries: Time entries logged against the project
        team_members: Team members used to resolve cost rates
        period: Optional month to restrict the entries to

    Returns:
        ProjectFinancials with the complete breakdown

    Raises:
        UnsupportedBillingTypeError: If the project's billing type is not
            a BillingType (structurally invalid input)

    Example:
        >>> project = Project(id="A", billing_type="hourly", hourly_rate=100)
        >>> members = [TeamMember(id="tm-1", hourly_rate=50)]
        >>> entries = [
        ...     TimeEntry(project_id="A", team_member_id="tm-1", hours=5,
        ...               date=dt.date(2025, 3, 3), billable=True,
        ...               client_billed=True),
        ... ]
        >>> calculate_project_financials(project, entries, members).profit
        Decimal('250.00')
    """
    billing_type = _require_billing_type(project)
    members = list(team_members)
    rate_lookup = build_rate_lookup(members)
    names = {member.id: member.name for member in members}
    selected = _select_entries(project, entries, period)

    total_hours = ZERO
    billable_hours = ZERO
    billed_hours = ZERO
    labor_cost = ZERO
    unpaid_labor_cost = ZERO

    for entry in selected:
        hours = resolve_decimal(entry.hours)
        cost = hours * resolve_member_rate(rate_lookup, entry.team_member_id)

        total_hours += hours
        labor_cost += cost
        if entry.billable:
            billable_hours += hours
        if entry.client_billed:
            billed_hours += hours
        if not entry.contractor_paid:
            unpaid_labor_cost += cost

    if billing_type is BillingType.HOURLY:
        hourly_rate = resolve_decimal(project.hourly_rate)
        revenue = billable_hours * hourly_rate
        billed_revenue = billed_hours * hourly_rate
        unbilled_revenue = revenue - billed_revenue
    else:
        # Retainer and exit projects earn the flat retainer each month
        revenue = resolve_decimal(project.monthly_retainer)
        billed_revenue = ZERO
        unbilled_revenue = ZERO

    revenue = to_cents(revenue)
    labor_cost = to_cents(labor_cost)
    profit = revenue - labor_cost
    margin = safe_ratio(profit, revenue)

    logger.debug(
        f"Project {project.id} ({billing_type.value}): {len(selected)} entries, "
        f"revenue={revenue}, labor_cost={labor_cost}"
    )

    return ProjectFinancials(
        project_id=project.id,
        billing_type=billing_type,
        period=period,
        total_hours=total_hours,
        billable_hours=billable_hours,
        billed_hours=billed_hours,
        revenue=revenue,
        billed_revenue=to_cents(billed_revenue),
        unbilled_revenue=to_cents(unbilled_revenue),
        labor_cost=labor_cost,
        unpaid_labor_cost=to_cents(unpaid_labor_cost),
        profit=profit,
        margin=margin.quantize(RATIO_PLACES),
        profit_margin_percentage=to_cents(margin * HUNDRED),
        profit_per_hour=to_cents(safe_ratio(profit, total_hours)),
        member_costs=_member_breakdown(selected, rate_lookup, names),
        entry_count=len(selected),
    )


def calculate_monthly_financials(
    project: Project,
    entries: Iterable[TimeEntry],
    team_members: Iterable[TeamMember],
    periods: Sequence[MonthPeriod],
) -> List[ProjectFinancials]:
    """Calculate project financials bucketed by calendar month.

    Retainer and exit projects carry the full retainer in every month,
    including months with no hours logged.

    Args:
        project: Project with its billing configuration
        entries: Time entries logged against the project
        team_members: Team members used to resolve cost rates
        periods: Months to report, in the order to return them

    Returns:
        One ProjectFinancials per requested month
    """
    entry_list = list(entries)
    members = list(team_members)
    return [
        calculate_project_financials(project, entry_list, members, period=period)
        for period in periods
    ]


def aggregate_financials(results: List[ProjectFinancials]) -> PortfolioFinancials:
    """Aggregate per-project financials into a portfolio summary.

    Args:
        results: ProjectFinancials to aggregate

    Returns:
        PortfolioFinancials with summed figures and a margin computed
        from the totals

    Example:
        >>> aggregate_financials([]).revenue
        Decimal('0.00')
    """
    revenue = to_cents(sum_decimals(r.revenue for r in results))
    labor_cost = to_cents(sum_decimals(r.labor_cost for r in results))
    profit = revenue - labor_cost
    margin = safe_ratio(profit, revenue)

    return PortfolioFinancials(
        total_hours=sum_decimals(r.total_hours for r in results),
        billable_hours=sum_decimals(r.billable_hours for r in results),
        revenue=revenue,
        billed_revenue=to_cents(sum_decimals(r.billed_revenue for r in results)),
        unbilled_revenue=to_cents(sum_decimals(r.unbilled_revenue for r in results)),
        labor_cost=labor_cost,
        unpaid_labor_cost=to_cents(
            sum_decimals(r.unpaid_labor_cost for r in results)
        ),
        profit=profit,
        margin=margin.quantize(RATIO_PLACES),
        profit_margin_percentage=to_cents(margin * HUNDRED),
        project_count=len(results),
    )
