"""Commission payout generator for referral partners.

This module produces the monthly retainer commission payouts owed to
referral partners and implements the payout status transitions:
- Candidate generation for one calendar month, at most once per
  referral and month, up to the referral's lifetime cap
- Marking pending payouts paid or cancelled
- Summaries of pending and paid amounts

Generation returns candidates only. Persisting them is the caller's job,
and the store's uniqueness constraint on (referral, retainer, month) is
the authoritative guard against duplicates from concurrent runs. The
in-memory check here only keeps a single operator from generating twice.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from reconciliation.calculators.money import (
    ZERO,
    percentage_of,
    resolve_decimal,
    sum_decimals,
    to_cents,
)
from reconciliation.calculators.period_utils import MonthPeriod
from reconciliation.models.referral import (
    PayoutStatus,
    PayoutType,
    Referral,
    ReferralPayout,
)

logger = logging.getLogger(__name__)

DEFAULT_COMMISSION_RATE = Decimal("15")


class CapPolicy(str, Enum):
    """Which existing retainer payouts count toward the commission cap."""

    # Every retainer payout on file, cancelled ones included
    ALL_STATUSES = "all_statuses"
    EXCLUDE_CANCELLED = "exclude_cancelled"


def payout_idempotency_key(payout: ReferralPayout) -> Tuple[str, str, int, int]:
    """Return the (referral, type, year, month) key a payout is unique on.

    Example:
        >>> payout_idempotency_key(payout)
        ('ref-1', 'retainer', 2025, 3)
    """
    return (
        payout.referral_id,
        payout.payout_type.value,
        payout.period_start.year,
        payout.period_start.month,
    )


def existing_payout_for_period(
    referral_id: str, payouts: Iterable[ReferralPayout], period: MonthPeriod
) -> Optional[ReferralPayout]:
    """Find the retainer payout already on file for a referral and month.

    Args:
        referral_id: Referral to look up
        payouts: Payout history
        period: Month to look for

    Returns:
        The existing payout, or None if the month has not been generated
    """
    for payout in payouts:
        if (
            payout.referral_id == referral_id
            and payout.payout_type == PayoutType.RETAINER
            and period.contains(payout.period_start)
        ):
            return payout
    return None


def count_retainer_payouts(
    referral_id: str,
    payouts: Iterable[ReferralPayout],
    cap_policy: CapPolicy = CapPolicy.ALL_STATUSES,
) -> int:
    """Count the retainer payouts that consume a referral's commission months.

    Args:
        referral_id: Referral to count for
        payouts: Payout history
        cap_policy: Whether cancelled payouts still consume a slot

    Returns:
        Number of retainer payouts counted toward the cap
    """
    count = 0
    for payout in payouts:
        if payout.referral_id != referral_id:
            continue
        if payout.payout_type != PayoutType.RETAINER:
            continue
        if (
            cap_policy is CapPolicy.EXCLUDE_CANCELLED
            and payout.status == PayoutStatus.CANCELLED
        ):
            continue
        count += 1
    return count


def calculate_commission_amount(
    referral: Referral, default_commission_rate: Decimal = DEFAULT_COMMISSION_RATE
) -> Decimal:
    """Calculate the monthly commission for a referral.

    A missing commission rate falls back to ``default_commission_rate``;
    a missing retainer resolves to zero.

    Example:
        >>> referral = Referral(id="R", status="active", commission_rate=15,
        ...                     commission_months=2, monthly_retainer=2000)
        >>> calculate_commission_amount(referral)
        Decimal('300.00')
    """
    retainer = resolve_decimal(referral.monthly_retainer)
    rate = resolve_decimal(referral.commission_rate, default=default_commission_rate)
    return to_cents(percentage_of(retainer, rate))


def generate_monthly_payouts(
    referrals: Iterable[Referral],
    existing_payouts: Iterable[ReferralPayout],
    period: MonthPeriod,
    default_commission_rate: Decimal = DEFAULT_COMMISSION_RATE,
    cap_policy: CapPolicy = CapPolicy.ALL_STATUSES,
) -> List[ReferralPayout]:
    """Generate the new retainer payouts for a month.

    For each active referral, in input order:
    1. Skip if a retainer payout already exists for the month
    2. Skip if the lifetime cap of commission months is reached
    3. Skip if the commission amount is not positive
    4. Emit a pending payout covering the whole month

    Existing payouts are never modified.

    Args:
        referrals: Referrals carrying their project's monthly retainer
        existing_payouts: Full payout history for those referrals
        period: Month to generate payouts for
        default_commission_rate: Rate used when a referral has none
        cap_policy: Which existing payouts count toward the cap

    Returns:
        Candidate payouts, not yet persisted

    Example:
        >>> candidates = generate_monthly_payouts(
        ...     [referral], [], MonthPeriod(2025, 3)
        ... )
        >>> candidates[0].amount, candidates[0].period_start
        (Decimal('300.00'), datetime.date(2025, 3, 1))
    """
    history = list(existing_payouts)
    candidates: List[ReferralPayout] = []
    skipped = {"inactive": 0, "already_generated": 0, "cap_reached": 0, "zero": 0}

    for referral in referrals:
        if not referral.is_active:
            skipped["inactive"] += 1
            continue

        if existing_payout_for_period(referral.id, history, period) is not None:
            logger.debug(
                f"Referral {referral.id}: payout for {period.label} already exists"
            )
            skipped["already_generated"] += 1
            continue

        # A missing cap resolves to zero months: nothing is owed
        commission_months = referral.commission_months or 0
        counted = count_retainer_payouts(referral.id, history, cap_policy)
        if counted >= commission_months:
            logger.debug(
                f"Referral {referral.id}: cap reached "
                f"({counted}/{commission_months} months)"
            )
            skipped["cap_reached"] += 1
            continue

        amount = calculate_commission_amount(referral, default_commission_rate)
        if amount <= ZERO:
            logger.debug(f"Referral {referral.id}: commission amount is {amount}")
            skipped["zero"] += 1
            continue

        candidates.append(
            ReferralPayout(
                referral_id=referral.id,
                amount=amount,
                payout_type=PayoutType.RETAINER,
                period_start=period.start,
                period_end=period.end,
                status=PayoutStatus.PENDING,
            )
        )

    logger.info(
        f"Generated {len(candidates)} payout candidate(s) for {period.label} "
        f"(skipped: {skipped})"
    )
    return candidates


def _transition(
    payouts: Iterable[ReferralPayout],
    payout_ids: Sequence[str],
    target: PayoutStatus,
    **changes,
) -> List[ReferralPayout]:
    wanted = set(payout_ids)
    updated = []
    for payout in payouts:
        if payout.id is None or payout.id not in wanted:
            continue
        if payout.status != PayoutStatus.PENDING:
            logger.warning(
                f"Payout {payout.id} is {payout.status.value}, "
                f"not moving it to {target.value}"
            )
            continue
        updated.append(payout.model_copy(update={"status": target, **changes}))
    return updated


def mark_payouts_paid(
    payouts: Iterable[ReferralPayout],
    payout_ids: Sequence[str],
    paid_on: dt.date,
    payment_reference: Optional[str] = None,
) -> List[ReferralPayout]:
    """Mark pending payouts as paid.

    Payouts that are already paid or cancelled are left untouched; there
    is no transition back to pending.

    Args:
        payouts: Payouts to choose from
        payout_ids: Identifiers of the payouts to mark paid
        paid_on: Payment date
        payment_reference: Optional payment reference

    Returns:
        Updated copies of the payouts that changed
    """
    return _transition(
        payouts,
        payout_ids,
        PayoutStatus.PAID,
        paid_date=paid_on,
        payment_reference=payment_reference,
    )


def cancel_payouts(
    payouts: Iterable[ReferralPayout], payout_ids: Sequence[str]
) -> List[ReferralPayout]:
    """Cancel pending payouts.

    Args:
        payouts: Payouts to choose from
        payout_ids: Identifiers of the payouts to cancel

    Returns:
        Updated copies of the payouts that changed
    """
    return _transition(payouts, payout_ids, PayoutStatus.CANCELLED)


@dataclass
class PayoutSummary:
    """Totals of payouts grouped by status."""

    total_pending: Decimal = Decimal("0.00")
    total_paid: Decimal = Decimal("0.00")
    total_cancelled: Decimal = Decimal("0.00")
    pending_count: int = 0
    paid_count: int = 0
    cancelled_count: int = 0


def summarize_payouts(payouts: Iterable[ReferralPayout]) -> PayoutSummary:
    """Summarize payout amounts and counts by status.

    Example:
        >>> summarize_payouts([]).total_pending
        Decimal('0.00')
    """
    by_status: Dict[PayoutStatus, List[Decimal]] = {
        status: [] for status in PayoutStatus
    }
    for payout in payouts:
        by_status[payout.status].append(resolve_decimal(payout.amount))

    return PayoutSummary(
        total_pending=to_cents(sum_decimals(by_status[PayoutStatus.PENDING])),
        total_paid=to_cents(sum_decimals(by_status[PayoutStatus.PAID])),
        total_cancelled=to_cents(sum_decimals(by_status[PayoutStatus.CANCELLED])),
        pending_count=len(by_status[PayoutStatus.PENDING]),
        paid_count=len(by_status[PayoutStatus.PAID]),
        cancelled_count=len(by_status[PayoutStatus.CANCELLED]),
    )


def summarize_by_partner(
    payouts: Iterable[ReferralPayout], referrals: Iterable[Referral]
) -> Dict[Optional[str], PayoutSummary]:
    """Summarize payouts per referral partner.

    Payouts whose referral is not in ``referrals`` are grouped under None.

    Args:
        payouts: Payouts to summarize
        referrals: Referrals mapping payouts to partners

    Returns:
        Dictionary mapping partner id to its PayoutSummary
    """
    partner_by_referral = {referral.id: referral.partner_id for referral in referrals}
    grouped: Dict[Optional[str], List[ReferralPayout]] = {}
    for payout in payouts:
        partner_id = partner_by_referral.get(payout.referral_id)
        grouped.setdefault(partner_id, []).append(payout)

    return {
        partner_id: summarize_payouts(items) for partner_id, items in grouped.items()
    }
