"""Business rule validators for reconciliation records.

The calculators never fail on dirty data: missing rates and retainers
resolve to zero. These validators make those silent fallbacks visible by
reporting them, without changing any figure.
"""

from collections import Counter
from decimal import Decimal
from typing import Dict, Iterable, Optional

from reconciliation.calculators.money import resolve_decimal
from reconciliation.calculators.payout_generator import payout_idempotency_key
from reconciliation.models.project import BillingType, Project
from reconciliation.models.referral import PayoutType, Referral, ReferralPayout
from reconciliation.models.time_entry import TeamMember, TimeEntry
from reconciliation.validators.validation_report import ValidationReport

ZERO = Decimal("0")


class BusinessRuleValidators:
    """Collection of business rule validation methods.

    Each method inspects one record (or one collection for cross-record
    rules) and adds issues to the given report.
    """

    @staticmethod
    def validate_project(project: Project, report: ValidationReport) -> None:
        """Check that the rate fields required by the billing model are set."""
        if project.billing_type is BillingType.HOURLY:
            if resolve_decimal(project.hourly_rate) <= ZERO:
                report.add_warning(
                    "project",
                    project.id,
                    "hourly_rate",
                    "Hourly project without a rate, revenue counted as 0",
                    project.hourly_rate,
                )
        else:
            if resolve_decimal(project.monthly_retainer) <= ZERO:
                report.add_warning(
                    "project",
                    project.id,
                    "monthly_retainer",
                    f"{project.billing_type.value.capitalize()} project without a "
                    "monthly retainer, revenue counted as 0",
                    project.monthly_retainer,
                )
            if resolve_decimal(project.monthly_hours_allowance) <= ZERO:
                report.add_info(
                    "project",
                    project.id,
                    "retainer_hours_included",
                    "No monthly hour allowance, utilization reported as 0",
                    project.retainer_hours_included,
                )

    @staticmethod
    def validate_team_member(member: TeamMember, report: ValidationReport) -> None:
        """Check that a team member has a cost rate."""
        if member.hourly_rate is None:
            report.add_warning(
                "team_member",
                member.id,
                "hourly_rate",
                "Missing hourly rate, labor cost counted as 0",
                None,
            )

    @staticmethod
    def validate_time_entry(
        entry: TimeEntry,
        project: Optional[Project],
        member_ids: Iterable[str],
        report: ValidationReport,
    ) -> None:
        """Check a time entry against its project and the member table."""
        hours = resolve_decimal(entry.hours)
        if hours <= ZERO:
            report.add_warning(
                "time_entry",
                entry.id,
                "hours",
                "Hours missing or not positive, counted as 0",
                entry.hours,
            )

        if project is None:
            report.add_warning(
                "time_entry",
                entry.id,
                "project_id",
                "Entry references an unknown project",
                entry.project_id,
            )
        elif entry.client_billed and project.billing_type.is_retainer_based:
            report.add_info(
                "time_entry",
                entry.id,
                "client_billed",
                f"Billed flag has no effect on a {project.billing_type.value} project",
                True,
            )

        if entry.client_billed and not entry.billable:
            report.add_error(
                "time_entry",
                entry.id,
                "client_billed",
                "Entry is billed to the client but not billable, "
                "billed revenue may exceed revenue",
                True,
            )

        if entry.team_member_id not in set(member_ids):
            report.add_warning(
                "time_entry",
                entry.id,
                "team_member_id",
                "Entry references an unknown team member, labor cost counted as 0",
                entry.team_member_id,
            )

    @staticmethod
    def validate_referral(referral: Referral, report: ValidationReport) -> None:
        """Check that an active referral can produce payouts."""
        if not referral.is_active:
            return
        if referral.commission_months is None:
            report.add_warning(
                "referral",
                referral.id,
                "commission_months",
                "Missing commission months, no payouts will be generated",
                None,
            )
        if resolve_decimal(referral.monthly_retainer) <= ZERO:
            report.add_warning(
                "referral",
                referral.id,
                "monthly_retainer",
                "Referred project has no monthly retainer, commission is 0",
                referral.monthly_retainer,
            )
        if referral.commission_rate is None:
            report.add_info(
                "referral",
                referral.id,
                "commission_rate",
                "No commission rate, the default rate applies",
                None,
            )

    @staticmethod
    def validate_payout_history(
        payouts: Iterable[ReferralPayout], report: ValidationReport
    ) -> None:
        """Report retainer payouts that share a referral and month.

        Duplicates mean the store's uniqueness constraint is missing.
        """
        keys: Dict[tuple, int] = Counter(
            payout_idempotency_key(payout)
            for payout in payouts
            if payout.payout_type == PayoutType.RETAINER
        )
        for (referral_id, _, year, month), count in sorted(keys.items()):
            if count > 1:
                report.add_error(
                    "referral_payout",
                    None,
                    "period_start",
                    f"{count} retainer payouts for referral {referral_id} in "
                    f"{year:04d}-{month:02d}",
                    referral_id,
                )
