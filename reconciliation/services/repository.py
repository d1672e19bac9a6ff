"""
Typed loading of store records.

Converts raw records from a RecordStore into the pydantic models the
calculators work on.
"""

import logging
from typing import Dict, Iterable, List, Optional

from reconciliation.models import (
    Project,
    Referral,
    ReferralPayout,
    TeamMember,
    TimeEntry,
)
from reconciliation.services.record_store import (
    PROJECTS,
    REFERRAL_PAYOUTS,
    REFERRALS,
    TEAM_MEMBERS,
    TIME_ENTRIES,
    RecordNotFoundError,
    RecordStore,
)

logger = logging.getLogger(__name__)


class ReconciliationRepository:
    """Loads projects, entries, team members, referrals and payouts.

    Raw records failing model validation raise pydantic's ValidationError:
    a record that cannot be typed at all (e.g. an unknown billing type) is
    a structural problem, not dirty data.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def load_project(self, project_id: str) -> Project:
        records = self.store.list(PROJECTS, {"id": project_id})
        if not records:
            raise RecordNotFoundError(
                f"No project with id {project_id}", collection=PROJECTS
            )
        return Project.model_validate(records[0])

    def load_projects(self) -> List[Project]:
        return [Project.model_validate(r) for r in self.store.list(PROJECTS)]

    def load_time_entries(self, project_id: Optional[str] = None) -> List[TimeEntry]:
        filters = {"project_id": project_id} if project_id is not None else None
        records = self.store.list(TIME_ENTRIES, filters)
        return [TimeEntry.model_validate(r) for r in records]

    def load_team_members(self) -> List[TeamMember]:
        return [TeamMember.model_validate(r) for r in self.store.list(TEAM_MEMBERS)]

    def load_referrals(self, projects: Optional[Iterable[Project]] = None) -> List[Referral]:
        """Load referrals with their project's current monthly retainer.

        The retainer is read from the linked project at load time; a
        referral whose project is missing keeps whatever its own record
        carries (usually nothing, which yields no payout).

        Args:
            projects: Already loaded projects, to avoid a second query
        """
        if projects is None:
            projects = self.load_projects()
        retainers: Dict[str, object] = {
            project.id: project.monthly_retainer for project in projects
        }

        referrals = []
        for record in self.store.list(REFERRALS):
            project_id = record.get("project_id")
            if project_id in retainers:
                record = {**record, "monthly_retainer": retainers[project_id]}
            referrals.append(Referral.model_validate(record))

        logger.debug(f"Loaded {len(referrals)} referrals")
        return referrals

    def load_payouts(
        self, referral_ids: Optional[List[str]] = None
    ) -> List[ReferralPayout]:
        if referral_ids is not None and not referral_ids:
            return []
        filters = {"referral_id": referral_ids} if referral_ids is not None else None
        records = self.store.list(REFERRAL_PAYOUTS, filters)
        return [ReferralPayout.model_validate(r) for r in records]
