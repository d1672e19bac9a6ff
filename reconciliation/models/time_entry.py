"""Time entry and team member data models.

This module defines the TimeEntry model, a block of hours logged by one
team member against one project, and the TeamMember model carrying the
cost rate used for labor cost.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from reconciliation.models.base import BaseDataModel, coerce_optional_decimal


class TeamMember(BaseDataModel):
    """Represents a team member and their cost rate.

    Attributes:
        id: Unique team member identifier
        name: Display name
        hourly_rate: Cost per hour paid to the member

    Example:
        >>> member = TeamMember(id="tm-1", name="Jane", hourly_rate=50)
        >>> member.hourly_rate
        Decimal('50')
    """

    id: str = Field(..., min_length=1, description="Unique team member identifier")
    name: Optional[str] = Field(None, description="Display name")
    hourly_rate: Optional[Decimal] = Field(None, description="Cost per hour")

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        """Convert numeric values to Decimal for precision."""
        return coerce_optional_decimal(v)


class TimeEntry(BaseDataModel):
    """Represents hours logged against a project.

    Revenue and cost contributions of an entry are independent: the
    ``client_billed`` and ``contractor_paid`` flags can be set in any order.

    Attributes:
        id: Unique entry identifier
        project_id: Project the hours were logged against
        team_member_id: Team member who logged the hours
        hours: Hours worked (None on dirty records)
        date: Calendar date used for monthly and weekly bucketing
        billable: Whether the hours are chargeable in principle
        client_billed: Whether the hours have been invoiced to the client
        contractor_paid: Whether the team member has been paid for the hours
        description: Optional notes

    Example:
        >>> entry = TimeEntry(
        ...     id="te-1",
        ...     project_id="proj-1",
        ...     team_member_id="tm-1",
        ...     hours="2.5",
        ...     date=dt.date(2025, 3, 14),
        ...     billable=True,
        ... )
        >>> entry.hours
        Decimal('2.5')
    """

    id: Optional[str] = Field(None, description="Unique entry identifier")
    project_id: Optional[str] = Field(None, description="Project identifier")
    team_member_id: Optional[str] = Field(None, description="Team member identifier")
    hours: Optional[Decimal] = Field(None, description="Hours worked")
    date: dt.date = Field(..., description="Date of work")
    billable: bool = Field(False, description="Chargeable in principle")
    client_billed: bool = Field(False, description="Invoiced to the client")
    contractor_paid: bool = Field(False, description="Paid to the team member")
    description: Optional[str] = Field(None, description="Optional notes")

    @field_validator("hours", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        """Convert numeric values to Decimal for precision."""
        return coerce_optional_decimal(v)

    @field_validator("billable", "client_billed", "contractor_paid", mode="before")
    @classmethod
    def null_flag_is_false(cls, v):
        """Treat a null flag column as unset."""
        return False if v is None else v
