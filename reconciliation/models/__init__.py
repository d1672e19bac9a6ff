"""Data models for the reconciliation layer.

This package contains Pydantic models for all records:
- BaseDataModel: Base class with common configuration
- Project: Project billing configuration
- TimeEntry: Hours logged against a project
- TeamMember: Team member cost rate
- Referral: Partner referral of a project
- ReferralPayout: Commission payout for a period
"""

from reconciliation.models.base import BaseDataModel, coerce_optional_decimal
from reconciliation.models.project import BillingType, Project
from reconciliation.models.referral import (
    PayoutStatus,
    PayoutType,
    Referral,
    ReferralPayout,
    ReferralStatus,
)
from reconciliation.models.time_entry import TeamMember, TimeEntry

__all__ = [
    "BaseDataModel",
    "coerce_optional_decimal",
    "BillingType",
    "Project",
    "TimeEntry",
    "TeamMember",
    "Referral",
    "ReferralStatus",
    "ReferralPayout",
    "PayoutType",
    "PayoutStatus",
]
