"""Main validator orchestrating the data-quality checks."""

import logging
from typing import Iterable, Optional

from reconciliation.models.project import Project
from reconciliation.models.referral import Referral, ReferralPayout
from reconciliation.models.time_entry import TeamMember, TimeEntry
from reconciliation.validators.business_validators import BusinessRuleValidators
from reconciliation.validators.validation_report import ValidationReport

logger = logging.getLogger(__name__)


class ReconciliationValidator:
    """Runs the business rule checks over a snapshot of store records.

    Example:
        >>> validator = ReconciliationValidator()
        >>> report = validator.validate(projects, entries, members)
        >>> print(report.format())
    """

    def __init__(self):
        """Initialize validator."""
        self.rules = BusinessRuleValidators()

    def validate(
        self,
        projects: Iterable[Project],
        entries: Iterable[TimeEntry],
        team_members: Iterable[TeamMember],
        referrals: Optional[Iterable[Referral]] = None,
        payouts: Optional[Iterable[ReferralPayout]] = None,
    ) -> ValidationReport:
        """Validate a snapshot of records.

        Args:
            projects: Projects to check
            entries: Time entries to check
            team_members: Team members to check
            referrals: Optional referrals to check
            payouts: Optional payout history to check

        Returns:
            ValidationReport with every issue found
        """
        report = ValidationReport()
        project_list = list(projects)
        member_list = list(team_members)
        entry_list = list(entries)

        for project in project_list:
            self.rules.validate_project(project, report)

        for member in member_list:
            self.rules.validate_team_member(member, report)

        projects_by_id = {project.id: project for project in project_list}
        member_ids = {member.id for member in member_list}
        for entry in entry_list:
            self.rules.validate_time_entry(
                entry, projects_by_id.get(entry.project_id), member_ids, report
            )

        for referral in referrals or []:
            self.rules.validate_referral(referral, report)

        if payouts is not None:
            self.rules.validate_payout_history(payouts, report)

        logger.info(
            f"Validated {len(project_list)} projects, {len(entry_list)} entries, "
            f"{len(member_list)} team members: {report.summary()}"
        )
        return report
