"""Project data model for the reconciliation layer.

This module defines the Project model and the BillingType enum which
selects the revenue formula applied to a project.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from reconciliation.models.base import BaseDataModel, coerce_optional_decimal


class BillingType(str, Enum):
    """Revenue model assigned to a project."""

    HOURLY = "hourly"
    RETAINER = "retainer"
    EXIT = "exit"

    @property
    def is_retainer_based(self) -> bool:
        """Whether monthly revenue is the flat retainer."""
        return self in (BillingType.RETAINER, BillingType.EXIT)


class Project(BaseDataModel):
    """Represents a client project and its billing configuration.

    Exactly one billing model applies per project. Numeric fields may be
    missing on dirty records; they stay ``None`` here and are resolved to
    zero by the calculators.

    Attributes:
        id: Unique project identifier
        name: Project name
        billing_type: Revenue model (hourly, retainer or exit)
        hourly_rate: Client rate per billable hour (hourly projects)
        monthly_retainer: Flat monthly fee (retainer and exit projects)
        retainer_hours_included: Hour allowance bundled into the retainer
        budget_hours: Hour budget per month (retainer) or engagement (hourly)
        weekly_hour_minimum: Advisory minimum hours per week
        valuation_percentage: Exit success fee percentage
        baseline_valuation: Valuation the exit success fee is measured from

    Example:
        >>> project = Project(
        ...     id="proj-1",
        ...     name="Website Redesign",
        ...     billing_type="hourly",
        ...     hourly_rate="100",
        ... )
        >>> project.hourly_rate
        Decimal('100')
    """

    id: str = Field(..., min_length=1, description="Unique project identifier")
    name: Optional[str] = Field(None, description="Project name")
    billing_type: BillingType = Field(..., description="Revenue model")
    hourly_rate: Optional[Decimal] = Field(None, description="Client hourly rate")
    monthly_retainer: Optional[Decimal] = Field(None, description="Monthly retainer")
    retainer_hours_included: Optional[Decimal] = Field(
        None, description="Hours included in the retainer each month"
    )
    budget_hours: Optional[Decimal] = Field(None, description="Hour budget")
    weekly_hour_minimum: Optional[Decimal] = Field(
        None, description="Advisory weekly hour minimum"
    )
    valuation_percentage: Optional[Decimal] = Field(
        None, description="Exit success fee percentage"
    )
    baseline_valuation: Optional[Decimal] = Field(
        None, description="Baseline valuation for the exit success fee"
    )

    @field_validator(
        "hourly_rate",
        "monthly_retainer",
        "retainer_hours_included",
        "budget_hours",
        "weekly_hour_minimum",
        "valuation_percentage",
        "baseline_valuation",
        mode="before",
    )
    @classmethod
    def convert_to_decimal(cls, v):
        """Convert numeric values to Decimal for precision."""
        return coerce_optional_decimal(v)

    @property
    def monthly_hours_allowance(self) -> Optional[Decimal]:
        """Hours included per month, falling back to the budget hours."""
        if self.retainer_hours_included:
            return self.retainer_hours_included
        return self.budget_hours
