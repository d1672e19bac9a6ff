"""Unit tests for the billing calculator."""

import datetime as dt
from decimal import Decimal

import pytest

from reconciliation.calculators.billing_calculator import (
    UnsupportedBillingTypeError,
    aggregate_financials,
    build_rate_lookup,
    calculate_monthly_financials,
    calculate_project_financials,
    resolve_member_rate,
)
from reconciliation.calculators.period_utils import MonthPeriod
from reconciliation.models import BillingType, Project, TeamMember, TimeEntry


def entry(hours, day=3, month=3, member="tm-1", project="proj-hourly", **flags):
    return TimeEntry(
        id=f"te-{month}-{day}-{member}",
        project_id=project,
        team_member_id=member,
        hours=hours,
        date=dt.date(2025, month, day),
        **flags,
    )


class TestRateLookup:
    """Test cases for member rate resolution."""

    def test_missing_rate_resolves_to_zero(self):
        """Test members without a rate cost nothing."""
        lookup = build_rate_lookup(
            [TeamMember(id="tm-1", hourly_rate=50), TeamMember(id="tm-2")]
        )

        assert lookup == {"tm-1": Decimal("50"), "tm-2": Decimal("0")}

    def test_unknown_member_is_zero(self):
        """Test unknown and missing member ids cost nothing."""
        lookup = {"tm-1": Decimal("50")}

        assert resolve_member_rate(lookup, "tm-9") == Decimal("0")
        assert resolve_member_rate(lookup, None) == Decimal("0")


class TestHourlyProject:
    """Test cases for hourly billing."""

    def test_reference_scenario(self, hourly_project, hourly_entries):
        """Test revenue, billed revenue, labor cost, profit and margin."""
        members = [TeamMember(id="tm-1", hourly_rate=50)]

        result = calculate_project_financials(hourly_project, hourly_entries, members)

        assert result.billing_type is BillingType.HOURLY
        assert result.total_hours == Decimal("10")
        assert result.billable_hours == Decimal("8")
        assert result.billed_hours == Decimal("5")
        assert result.revenue == Decimal("800.00")
        assert result.billed_revenue == Decimal("500.00")
        assert result.unbilled_revenue == Decimal("300.00")
        assert result.labor_cost == Decimal("500.00")
        assert result.profit == Decimal("300.00")
        assert result.margin == Decimal("0.3750")
        assert result.profit_margin_percentage == Decimal("37.50")
        assert result.profit_per_hour == Decimal("30.00")
        assert result.entry_count == 3
        assert result.is_profitable

    def test_non_billable_hours_cost_but_earn_nothing(self, hourly_project):
        """Test non-billable hours add labor cost only."""
        members = [TeamMember(id="tm-1", hourly_rate=50)]
        entries = [entry(4, billable=False)]

        result = calculate_project_financials(hourly_project, entries, members)

        assert result.revenue == Decimal("0.00")
        assert result.labor_cost == Decimal("200.00")
        assert result.profit == Decimal("-200.00")
        assert result.margin == Decimal("0")
        assert not result.is_profitable

    def test_missing_hourly_rate_is_zero_revenue(self):
        """Test a project without a rate yields zero revenue, not an error."""
        project = Project(id="proj-hourly", billing_type="hourly")
        entries = [entry(5, billable=True)]

        result = calculate_project_financials(project, entries, [])

        assert result.revenue == Decimal("0.00")
        assert result.margin == Decimal("0")

    def test_billed_but_not_billable_can_exceed_revenue(self, hourly_project):
        """Test dirty billed flags show up as negative unbilled revenue."""
        entries = [entry(2, billable=False, client_billed=True)]

        result = calculate_project_financials(hourly_project, entries, [])

        assert result.revenue == Decimal("0.00")
        assert result.billed_revenue == Decimal("200.00")
        assert result.unbilled_revenue == Decimal("-200.00")

    def test_unpaid_labor_cost(self, hourly_project, team_members):
        """Test unpaid labor cost excludes entries paid to contractors."""
        entries = [
            entry(4, member="tm-1", contractor_paid=True),
            entry(2, member="tm-2"),
        ]

        result = calculate_project_financials(hourly_project, entries, team_members)

        assert result.labor_cost == Decimal("325.00")
        assert result.unpaid_labor_cost == Decimal("125.00")

    def test_dirty_entries_do_not_raise(self, hourly_project):
        """Test missing hours and unknown members contribute zero."""
        entries = [
            TimeEntry(project_id="proj-hourly", date=dt.date(2025, 3, 3)),
            entry(3, member="ghost", billable=True),
        ]

        result = calculate_project_financials(hourly_project, entries, [])

        assert result.total_hours == Decimal("3")
        assert result.labor_cost == Decimal("0.00")
        assert result.revenue == Decimal("300.00")

    def test_entries_of_other_projects_ignored(self, hourly_project):
        """Test entries for another project are excluded."""
        entries = [entry(3, billable=True), entry(7, project="other", billable=True)]

        result = calculate_project_financials(hourly_project, entries, [])

        assert result.total_hours == Decimal("3")

    def test_period_filter(self, hourly_project):
        """Test a month restricts the entries, both ends inclusive."""
        entries = [
            entry(1, day=1, month=3, billable=True),
            entry(2, day=31, month=3, billable=True),
            entry(4, day=1, month=4, billable=True),
        ]

        result = calculate_project_financials(
            hourly_project, entries, [], period=MonthPeriod(2025, 3)
        )

        assert result.total_hours == Decimal("3")
        assert result.period == MonthPeriod(2025, 3)

    def test_no_entries(self, hourly_project):
        """Test an empty project returns all zeros."""
        result = calculate_project_financials(hourly_project, [], [])

        assert result.revenue == Decimal("0.00")
        assert result.profit_per_hour == Decimal("0.00")
        assert result.member_costs == []


class TestRetainerProject:
    """Test cases for retainer and exit billing."""

    def test_revenue_is_flat_retainer(self, retainer_project, team_members):
        """Test hours do not change retainer revenue."""
        entries = [
            entry(10, project="proj-retainer", billable=True, client_billed=True),
        ]

        result = calculate_project_financials(retainer_project, entries, team_members)

        assert result.revenue == Decimal("2000.00")
        assert result.labor_cost == Decimal("500.00")
        assert result.profit == Decimal("1500.00")
        assert result.margin == Decimal("0.7500")
        assert result.billed_revenue == Decimal("0.00")
        assert result.unbilled_revenue == Decimal("0.00")

    def test_same_entries_only_billing_type_changes(self, team_members):
        """Test retainer and exit ignore hours and earn exactly the retainer."""
        entries = [
            entry(5, project="proj-1", billable=True, client_billed=True),
            entry(3, day=4, project="proj-1", billable=True),
            entry(2, day=5, project="proj-1"),
        ]
        terms = {"id": "proj-1", "hourly_rate": 100, "monthly_retainer": 2000}

        results = {
            billing_type: calculate_project_financials(
                Project(billing_type=billing_type, **terms), entries, team_members
            )
            for billing_type in ("hourly", "retainer", "exit")
        }

        assert results["hourly"].revenue == Decimal("800.00")
        assert results["retainer"].revenue == Decimal("2000.00")
        assert results["exit"].revenue == results["retainer"].revenue
        assert results["exit"].profit == results["retainer"].profit
        assert {r.labor_cost for r in results.values()} == {Decimal("500.00")}

    def test_exit_project_uses_retainer(self):
        """Test exit projects earn the retainer like retainer projects."""
        project = Project(id="proj-exit", billing_type="exit", monthly_retainer=1500)

        result = calculate_project_financials(project, [], [])

        assert result.revenue == Decimal("1500.00")
        assert result.billing_type is BillingType.EXIT

    def test_missing_retainer_is_zero(self):
        """Test a retainer project without a retainer earns zero."""
        project = Project(id="proj-r", billing_type="retainer")

        result = calculate_project_financials(project, [], [])

        assert result.revenue == Decimal("0.00")
        assert result.margin == Decimal("0")

    def test_monthly_buckets_carry_retainer(self, retainer_project, team_members):
        """Test every month earns the retainer, even without hours."""
        entries = [entry(4, day=10, month=2, project="proj-retainer")]
        periods = [MonthPeriod(2025, 1), MonthPeriod(2025, 2), MonthPeriod(2025, 3)]

        results = calculate_monthly_financials(
            retainer_project, entries, team_members, periods
        )

        assert [r.revenue for r in results] == [Decimal("2000.00")] * 3
        assert [r.labor_cost for r in results] == [
            Decimal("0.00"),
            Decimal("200.00"),
            Decimal("0.00"),
        ]


class TestMemberBreakdown:
    """Test cases for the per-member cost breakdown."""

    def test_sorted_by_hours(self, hourly_project, team_members):
        """Test members are listed with most hours first."""
        entries = [
            entry(2, member="tm-1"),
            entry(6, day=4, member="tm-2"),
            entry(1, day=5, member="tm-1"),
        ]

        result = calculate_project_financials(hourly_project, entries, team_members)

        assert [m.team_member_id for m in result.member_costs] == ["tm-2", "tm-1"]
        bob = result.member_costs[0]
        assert bob.name == "Bob"
        assert bob.hours == Decimal("6")
        assert bob.cost == Decimal("375.00")

    def test_members_without_hours_omitted(self, hourly_project, team_members):
        """Test members with zero hours are left out."""
        entries = [entry(0, member="tm-1"), entry(2, member="tm-2")]

        result = calculate_project_financials(hourly_project, entries, team_members)

        assert [m.team_member_id for m in result.member_costs] == ["tm-2"]


class TestStructuralErrors:
    """Test cases for structurally invalid projects."""

    def test_unsupported_billing_type(self):
        """Test a project bypassing validation is rejected by the calculator."""
        project = Project.model_construct(id="p1", billing_type="fixed_fee")

        with pytest.raises(UnsupportedBillingTypeError):
            calculate_project_financials(project, [], [])


class TestAggregateFinancials:
    """Test cases for portfolio aggregation."""

    def test_margin_from_totals(
        self, hourly_project, retainer_project, hourly_entries, team_members
    ):
        """Test the portfolio margin is computed from summed figures."""
        hourly = calculate_project_financials(
            hourly_project, hourly_entries, team_members
        )
        retainer = calculate_project_financials(retainer_project, [], team_members)

        portfolio = aggregate_financials([hourly, retainer])

        assert portfolio.project_count == 2
        assert portfolio.revenue == Decimal("2800.00")
        assert portfolio.labor_cost == Decimal("500.00")
        assert portfolio.profit == Decimal("2300.00")
        assert portfolio.margin == Decimal("0.8214")
        assert portfolio.profit_margin_percentage == Decimal("82.14")

    def test_empty_portfolio(self):
        """Test aggregating nothing yields zeros."""
        portfolio = aggregate_financials([])

        assert portfolio.revenue == Decimal("0.00")
        assert portfolio.margin == Decimal("0")
        assert portfolio.project_count == 0
