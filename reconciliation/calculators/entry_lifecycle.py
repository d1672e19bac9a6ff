"""Billed and paid lifecycle of time entries.

Each time entry carries two independent settlement flags:
- ``client_billed``: the hours were invoiced to the client
- ``contractor_paid``: the team member was paid for the hours

This module computes flag changes as minimal patches (the caller applies
them to the store) and provides the unbilled and unpaid views used by
reports.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from reconciliation.calculators.period_utils import MonthPeriod
from reconciliation.models.project import Project
from reconciliation.models.time_entry import TimeEntry

logger = logging.getLogger(__name__)


class EntryStatus(str, Enum):
    """Billing status label shown for a time entry."""

    TRACKED = "tracked"
    BILLED = "billed"
    UNBILLED = "unbilled"
    NOT_BILLABLE = "not_billable"
    UNKNOWN = "unknown"


@dataclass
class EntryPatch:
    """A change to apply to one time entry."""

    entry_id: str
    changes: Dict[str, Any]


def entry_status(entry: TimeEntry, project: Optional[Project]) -> EntryStatus:
    """Derive the billing status label of an entry.

    Entries on retainer and exit projects are only tracked: their hours
    do not drive revenue, so billed/unbilled does not apply.
    """
    if project is None:
        return EntryStatus.UNKNOWN
    if project.billing_type.is_retainer_based:
        return EntryStatus.TRACKED
    if entry.client_billed:
        return EntryStatus.BILLED
    if entry.billable:
        return EntryStatus.UNBILLED
    return EntryStatus.NOT_BILLABLE


def unbilled_entries(entries: Iterable[TimeEntry]) -> List[TimeEntry]:
    """Return billable entries not yet invoiced to the client."""
    return [entry for entry in entries if entry.billable and not entry.client_billed]


def unpaid_entries(entries: Iterable[TimeEntry]) -> List[TimeEntry]:
    """Return entries whose team member has not been paid yet."""
    return [entry for entry in entries if not entry.contractor_paid]


def filter_entries(
    entries: Iterable[TimeEntry],
    project_id: Optional[str] = None,
    team_member_id: Optional[str] = None,
    period: Optional[MonthPeriod] = None,
) -> List[TimeEntry]:
    """Filter entries by project, team member and month.

    Any filter left as None is not applied.
    """
    result = []
    for entry in entries:
        if project_id is not None and entry.project_id != project_id:
            continue
        if team_member_id is not None and entry.team_member_id != team_member_id:
            continue
        if period is not None and not period.contains(entry.date):
            continue
        result.append(entry)
    return result


def _flag_patches(
    entries: Iterable[TimeEntry], entry_ids: Sequence[str], flag: str, value: bool
) -> List[EntryPatch]:
    wanted = set(entry_ids)
    patches = []
    for entry in entries:
        if entry.id is None or entry.id not in wanted:
            continue
        if getattr(entry, flag) == value:
            continue
        patches.append(EntryPatch(entry_id=entry.id, changes={flag: value}))

    logger.debug(
        f"{len(patches)} of {len(wanted)} entries change {flag} to {value}"
    )
    return patches


def set_client_billed(
    entries: Iterable[TimeEntry], entry_ids: Sequence[str], billed: bool = True
) -> List[EntryPatch]:
    """Compute patches setting ``client_billed`` on the selected entries.

    Entries already in the requested state and unknown ids are skipped.
    The contractor_paid flag is not touched.
    """
    return _flag_patches(entries, entry_ids, "client_billed", billed)


def set_contractor_paid(
    entries: Iterable[TimeEntry], entry_ids: Sequence[str], paid: bool = True
) -> List[EntryPatch]:
    """Compute patches setting ``contractor_paid`` on the selected entries.

    Entries already in the requested state and unknown ids are skipped.
    The client_billed flag is not touched.
    """
    return _flag_patches(entries, entry_ids, "contractor_paid", paid)
