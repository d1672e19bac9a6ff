"""Referral and referral payout data models.

A Referral links a partner to a referred project and carries the
commission terms. A ReferralPayout is one commission payment owed to the
partner for a calendar month (or a one-off success fee).
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field, field_validator, model_validator

from reconciliation.models.base import BaseDataModel, coerce_optional_decimal


class ReferralStatus(str, Enum):
    """Lifecycle status of a referral."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PayoutType(str, Enum):
    """Kind of commission payout."""

    RETAINER = "retainer"
    SUCCESS_FEE = "success_fee"


class PayoutStatus(str, Enum):
    """Lifecycle status of a payout (pending -> paid | cancelled)."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Referral(BaseDataModel):
    """Represents a partner referral of a client project.

    Attributes:
        id: Unique referral identifier
        partner_id: Referring partner
        project_id: Referred project
        status: Referral status; only active referrals earn payouts
        commission_rate: Percentage of the monthly retainer paid per month
        commission_months: Lifetime cap on monthly retainer payouts
        monthly_retainer: Current retainer of the linked project

    Example:
        >>> referral = Referral(
        ...     id="ref-1",
        ...     partner_id="partner-1",
        ...     project_id="proj-1",
        ...     status="active",
        ...     commission_rate=15,
        ...     commission_months=12,
        ...     monthly_retainer=2000,
        ... )
        >>> referral.is_active
        True
    """

    id: str = Field(..., min_length=1, description="Unique referral identifier")
    partner_id: Optional[str] = Field(None, description="Referring partner")
    project_id: Optional[str] = Field(None, description="Referred project")
    status: ReferralStatus = Field(ReferralStatus.PENDING, description="Status")
    commission_rate: Optional[Decimal] = Field(
        None, description="Commission percentage of the monthly retainer"
    )
    commission_months: Optional[int] = Field(
        None, ge=0, description="Maximum number of monthly payouts"
    )
    monthly_retainer: Optional[Decimal] = Field(
        None, description="Linked project's current monthly retainer"
    )

    @field_validator("commission_rate", "monthly_retainer", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        """Convert numeric values to Decimal for precision."""
        return coerce_optional_decimal(v)

    @property
    def is_active(self) -> bool:
        """Whether the referral is eligible for payout generation."""
        return self.status == ReferralStatus.ACTIVE


class ReferralPayout(BaseDataModel):
    """Represents one commission payout owed to a referral partner.

    Attributes:
        id: Store identifier (None until persisted)
        referral_id: Referral the payout belongs to
        payout_type: Monthly retainer commission or one-off success fee
        amount: Amount frozen at generation time
        period_start: First day of the month the payout represents
        period_end: Last day of the month the payout represents
        status: pending, paid or cancelled
        paid_date: Date the payout was marked paid
        payment_reference: Free-form payment reference

    Example:
        >>> payout = ReferralPayout(
        ...     referral_id="ref-1",
        ...     payout_type="retainer",
        ...     amount="300.00",
        ...     period_start=dt.date(2025, 3, 1),
        ...     period_end=dt.date(2025, 3, 31),
        ... )
        >>> payout.status
        <PayoutStatus.PENDING: 'pending'>
    """

    id: Optional[str] = Field(None, description="Store identifier")
    referral_id: str = Field(..., min_length=1, description="Referral identifier")
    payout_type: PayoutType = Field(PayoutType.RETAINER, description="Payout type")
    amount: Optional[Decimal] = Field(None, description="Payout amount")
    period_start: dt.date = Field(..., description="First day of the period")
    period_end: dt.date = Field(..., description="Last day of the period")
    status: PayoutStatus = Field(PayoutStatus.PENDING, description="Payout status")
    paid_date: Optional[dt.date] = Field(None, description="Date marked paid")
    payment_reference: Optional[str] = Field(None, description="Payment reference")

    @field_validator("amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        """Convert numeric values to Decimal for precision."""
        return coerce_optional_decimal(v)

    @model_validator(mode="after")
    def validate_period(self) -> "ReferralPayout":
        """Validate that the period does not end before it starts.

        Returns:
            The validated model instance

        Raises:
            ValueError: If period_end is before period_start
        """
        if self.period_end < self.period_start:
            raise ValueError(
                f"period_end ({self.period_end}) must not be before "
                f"period_start ({self.period_start})"
            )
        return self

    def to_record(self) -> Dict[str, Any]:
        """Serialize the payout for insertion into the store.

        Returns:
            JSON-ready dictionary with ISO dates and a two-decimal amount
        """
        record: Dict[str, Any] = {
            "referral_id": self.referral_id,
            "payout_type": self.payout_type.value,
            "amount": None if self.amount is None else f"{self.amount:.2f}",
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "status": self.status.value,
            "paid_date": self.paid_date.isoformat() if self.paid_date else None,
            "payment_reference": self.payment_reference,
        }
        if self.id is not None:
            record["id"] = self.id
        return record
