"""Unit tests for the period hours aggregator."""

import datetime as dt
from decimal import Decimal

import pandas as pd
import pytest

from reconciliation.aggregators.period_aggregator import PeriodHoursAggregator
from reconciliation.calculators.period_utils import MonthPeriod
from reconciliation.models import TimeEntry


@pytest.fixture
def aggregator():
    """Aggregator instance."""
    return PeriodHoursAggregator()


@pytest.fixture
def entries():
    """Entries across two months and three weeks."""
    return [
        TimeEntry(team_member_id="tm-1", hours=2, date=dt.date(2025, 3, 31), billable=True),
        TimeEntry(team_member_id="tm-1", hours=3, date=dt.date(2025, 4, 1), billable=False),
        TimeEntry(team_member_id="tm-2", hours=5, date=dt.date(2025, 4, 15), billable=True),
        TimeEntry(team_member_id=None, hours="1.5", date=dt.date(2025, 3, 3), billable=True),
    ]


class TestMonthlyBuckets:
    """Test cases for aggregate_by_month."""

    def test_groups_by_calendar_month(self, aggregator, entries):
        """Test buckets are per month, oldest first."""
        buckets = aggregator.aggregate_by_month(entries)

        assert [b.label for b in buckets] == ["2025-03", "2025-04"]
        march, april = buckets
        assert march.total_hours == Decimal("3.5")
        assert march.billable_hours == Decimal("3.5")
        assert march.entry_count == 2
        assert april.period_start == dt.date(2025, 4, 1)
        assert april.period_end == dt.date(2025, 4, 30)
        assert april.total_hours == Decimal("8")
        assert april.billable_hours == Decimal("5")

    def test_empty(self, aggregator):
        """Test no entries give no buckets."""
        assert aggregator.aggregate_by_month([]) == []

    def test_fill_months(self, aggregator, entries):
        """Test gaps are filled with empty buckets."""
        buckets = aggregator.aggregate_by_month(entries)

        series = aggregator.fill_months(buckets, MonthPeriod(2025, 5), 4)

        assert [b.label for b in series] == ["2025-02", "2025-03", "2025-04", "2025-05"]
        assert series[0].total_hours == Decimal("0")
        assert series[0].entry_count == 0
        assert series[2].total_hours == Decimal("8")


class TestWeeklyBuckets:
    """Test cases for aggregate_by_week."""

    def test_week_straddling_months(self, aggregator, entries):
        """Test Monday-based weeks ignore month boundaries."""
        buckets = aggregator.aggregate_by_week(entries)

        assert [b.label for b in buckets] == ["2025-W10", "2025-W14", "2025-W16"]
        straddling = buckets[1]
        assert straddling.period_start == dt.date(2025, 3, 31)
        assert straddling.period_end == dt.date(2025, 4, 6)
        assert straddling.total_hours == Decimal("5")


class TestDataFrames:
    """Test cases for pandas rendering."""

    def test_to_dataframe(self, aggregator, entries):
        """Test buckets render indexed by label with float hours."""
        df = aggregator.to_dataframe(aggregator.aggregate_by_month(entries))

        assert list(df.index) == ["2025-03", "2025-04"]
        assert df.loc["2025-04", "total_hours"] == pytest.approx(8.0)
        assert df.loc["2025-03", "entry_count"] == 2

    def test_to_dataframe_empty(self, aggregator):
        """Test an empty frame keeps its columns."""
        df = aggregator.to_dataframe([])

        assert df.empty
        assert "total_hours" in df.columns

    def test_member_matrix(self, aggregator, entries):
        """Test members by months, missing cells as zero."""
        df = aggregator.member_matrix(entries, {"tm-1": "Alice"})

        assert list(df.columns) == ["2025-03", "2025-04"]
        assert set(df.index) == {"Alice", "tm-2", "unassigned"}
        assert df.loc["Alice", "2025-03"] == pytest.approx(2.0)
        assert df.loc["Alice", "2025-04"] == pytest.approx(3.0)
        assert df.loc["tm-2", "2025-03"] == pytest.approx(0.0)
        assert df.loc["unassigned", "2025-03"] == pytest.approx(1.5)

    def test_member_matrix_empty(self, aggregator):
        """Test no entries give an empty frame."""
        assert isinstance(aggregator.member_matrix([]), pd.DataFrame)
        assert aggregator.member_matrix([]).empty
