"""Unit tests for the Project and BaseDataModel models."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from reconciliation.models import BillingType, Project, coerce_optional_decimal


class TestCoerceOptionalDecimal:
    """Test cases for the shared numeric coercion."""

    def test_numbers_become_decimal(self):
        """Test ints, floats and numeric strings convert via str()."""
        assert coerce_optional_decimal(100) == Decimal("100")
        assert coerce_optional_decimal(85.5) == Decimal("85.5")
        assert coerce_optional_decimal(" 12.25 ") == Decimal("12.25")

    def test_missing_values_stay_none(self):
        """Test None and empty strings are kept as missing."""
        assert coerce_optional_decimal(None) is None
        assert coerce_optional_decimal("") is None
        assert coerce_optional_decimal("   ") is None

    def test_decimal_passes_through(self):
        """Test a Decimal is returned unchanged."""
        value = Decimal("3.14")
        assert coerce_optional_decimal(value) is value

    def test_non_numeric_raises(self):
        """Test garbage input is a structural error."""
        with pytest.raises(ValueError):
            coerce_optional_decimal("abc")

    def test_boolean_rejected(self):
        """Test booleans are not silently treated as 0/1."""
        with pytest.raises(ValueError):
            coerce_optional_decimal(True)


class TestProject:
    """Test cases for Project model."""

    def test_valid_hourly_project(self):
        """Test creating an hourly project."""
        project = Project(id="p1", billing_type="hourly", hourly_rate="100")

        assert project.billing_type is BillingType.HOURLY
        assert project.hourly_rate == Decimal("100")
        assert project.monthly_retainer is None

    def test_billing_type_required(self):
        """Test a missing billing type is rejected."""
        with pytest.raises(ValidationError):
            Project(id="p1", billing_type=None)

    def test_unknown_billing_type_rejected(self):
        """Test an unknown billing type is rejected."""
        with pytest.raises(ValidationError):
            Project(id="p1", billing_type="fixed_fee")

    def test_non_numeric_rate_rejected(self):
        """Test a non-numeric rate is a validation error."""
        with pytest.raises(ValidationError):
            Project(id="p1", billing_type="hourly", hourly_rate="lots")

    def test_empty_id_rejected(self):
        """Test the id must not be empty."""
        with pytest.raises(ValidationError):
            Project(id="", billing_type="hourly")

    def test_extra_store_columns_ignored(self):
        """Test columns this layer does not use are dropped."""
        project = Project.model_validate(
            {
                "id": "p1",
                "billing_type": "retainer",
                "monthly_retainer": 2000,
                "created_at": "2025-01-01T00:00:00Z",
                "client_name": "Acme",
            }
        )

        assert project.monthly_retainer == Decimal("2000")
        assert not hasattr(project, "client_name")

    def test_validate_assignment(self):
        """Test assignments are validated and coerced."""
        project = Project(id="p1", billing_type="hourly")
        project.hourly_rate = "75.50"

        assert project.hourly_rate == Decimal("75.50")

    @pytest.mark.parametrize(
        "billing_type,expected",
        [("hourly", False), ("retainer", True), ("exit", True)],
    )
    def test_is_retainer_based(self, billing_type, expected):
        """Test retainer and exit projects earn the flat retainer."""
        assert BillingType(billing_type).is_retainer_based is expected

    def test_allowance_prefers_included_hours(self):
        """Test retainer_hours_included wins over budget_hours."""
        project = Project(
            id="p1",
            billing_type="retainer",
            retainer_hours_included=20,
            budget_hours=30,
        )
        assert project.monthly_hours_allowance == Decimal("20")

    def test_allowance_falls_back_to_budget_hours(self):
        """Test budget_hours is used when no hours are included."""
        project = Project(id="p1", billing_type="retainer", budget_hours=30)
        assert project.monthly_hours_allowance == Decimal("30")

        zero_included = Project(
            id="p2",
            billing_type="retainer",
            retainer_hours_included=0,
            budget_hours=30,
        )
        assert zero_included.monthly_hours_allowance == Decimal("30")

    def test_allowance_missing(self):
        """Test the allowance is None when neither field is set."""
        project = Project(id="p1", billing_type="exit")
        assert project.monthly_hours_allowance is None
