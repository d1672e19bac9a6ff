"""
Reconciliation services: load, compute, persist.

The calculators are pure; these services are the callers that fetch a
snapshot from the record store, run the calculation and write the result
back. Payout generation is split into a preview (candidates shown to the
operator) and a confirm step (one atomic batch insert).
"""

import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from reconciliation.aggregators.utilization import (
    DEFAULT_HISTORY_MONTHS,
    DEFAULT_WARNING_THRESHOLD,
    BudgetProgress,
    RetainerUtilization,
    WeeklyMinimumProgress,
    calculate_budget_progress,
    calculate_weekly_minimum_progress,
    monthly_utilization_history,
)
from reconciliation.calculators.billing_calculator import (
    PortfolioFinancials,
    ProjectFinancials,
    aggregate_financials,
    calculate_monthly_financials,
    calculate_project_financials,
)
from reconciliation.calculators.entry_lifecycle import (
    EntryPatch,
    set_client_billed,
    set_contractor_paid,
)
from reconciliation.calculators.payout_generator import (
    DEFAULT_COMMISSION_RATE,
    CapPolicy,
    PayoutSummary,
    cancel_payouts,
    generate_monthly_payouts,
    mark_payouts_paid,
    summarize_by_partner,
)
from reconciliation.calculators.period_utils import MonthPeriod, iter_month_periods
from reconciliation.models import Referral, ReferralPayout
from reconciliation.services.record_store import (
    REFERRAL_PAYOUTS,
    TIME_ENTRIES,
    DuplicateRecordError,
    RecordStore,
)
from reconciliation.services.repository import ReconciliationRepository
from reconciliation.utils.logging_utils import (
    LogContext,
    generate_run_id,
    log_function_call,
)
from reconciliation.validators.validation_report import ValidationReport
from reconciliation.validators.validator import ReconciliationValidator

if TYPE_CHECKING:
    from reconciliation.config.settings import ReconciliationConfig

logger = logging.getLogger(__name__)


class DuplicatePayoutError(DuplicateRecordError):
    """Raised when another run already generated payouts for the month."""

    def __init__(self, period: MonthPeriod):
        self.period = period
        super().__init__(
            f"Payouts for {period.display_name} were already generated by another run",
            collection=REFERRAL_PAYOUTS,
            status_code=409,
        )


def _today() -> dt.date:
    return dt.date.today()


class FinancialsService:
    """Project financials, utilization and entry settlement."""

    def __init__(
        self,
        store: RecordStore,
        history_months: int = DEFAULT_HISTORY_MONTHS,
        warning_threshold: Decimal = DEFAULT_WARNING_THRESHOLD,
    ):
        self.store = store
        self.repository = ReconciliationRepository(store)
        self.history_months = history_months
        self.warning_threshold = warning_threshold
        self.validator = ReconciliationValidator()

    @classmethod
    def from_config(
        cls, store: RecordStore, config: "ReconciliationConfig"
    ) -> "FinancialsService":
        return cls(
            store,
            history_months=config.utilization_history_months,
            warning_threshold=config.utilization_warning_threshold,
        )

    def project_financials(
        self, project_id: str, period: Optional[MonthPeriod] = None
    ) -> ProjectFinancials:
        """Financials of one project, optionally restricted to a month."""
        with LogContext(project_id=project_id):
            project = self.repository.load_project(project_id)
            entries = self.repository.load_time_entries(project_id)
            members = self.repository.load_team_members()
            return calculate_project_financials(project, entries, members, period)

    def monthly_financials(
        self,
        project_id: str,
        months: Optional[int] = None,
        as_of: Optional[dt.date] = None,
    ) -> List[ProjectFinancials]:
        """Month-by-month financials, oldest first, ending with ``as_of``."""
        periods = iter_month_periods(
            MonthPeriod.containing(as_of or _today()), months or self.history_months
        )
        with LogContext(project_id=project_id):
            project = self.repository.load_project(project_id)
            entries = self.repository.load_time_entries(project_id)
            members = self.repository.load_team_members()
            return calculate_monthly_financials(project, entries, members, periods)

    def portfolio_financials(
        self, period: Optional[MonthPeriod] = None
    ) -> Tuple[List[ProjectFinancials], PortfolioFinancials]:
        """Financials of every project plus the portfolio totals."""
        projects = self.repository.load_projects()
        entries = self.repository.load_time_entries()
        members = self.repository.load_team_members()

        results = [
            calculate_project_financials(project, entries, members, period)
            for project in projects
        ]
        return results, aggregate_financials(results)

    def utilization_history(
        self,
        project_id: str,
        months: Optional[int] = None,
        as_of: Optional[dt.date] = None,
    ) -> List[RetainerUtilization]:
        """Rolling monthly utilization of a project's hour allowance."""
        with LogContext(project_id=project_id):
            project = self.repository.load_project(project_id)
            entries = self.repository.load_time_entries(project_id)
            return monthly_utilization_history(
                project,
                entries,
                as_of or _today(),
                months=months or self.history_months,
                warning_threshold=self.warning_threshold,
            )

    def budget_progress(
        self, project_id: str, as_of: Optional[dt.date] = None
    ) -> BudgetProgress:
        project = self.repository.load_project(project_id)
        entries = self.repository.load_time_entries(project_id)
        return calculate_budget_progress(project, entries, as_of or _today())

    def weekly_minimum_progress(
        self, project_id: str, as_of: Optional[dt.date] = None
    ) -> WeeklyMinimumProgress:
        project = self.repository.load_project(project_id)
        entries = self.repository.load_time_entries(project_id)
        return calculate_weekly_minimum_progress(project, entries, as_of or _today())

    def _apply_patches(self, patches: List[EntryPatch]) -> List[EntryPatch]:
        for patch in patches:
            self.store.update(TIME_ENTRIES, patch.entry_id, patch.changes)
        return patches

    @log_function_call
    def set_entries_billed(
        self, entry_ids: Sequence[str], billed: bool = True
    ) -> List[EntryPatch]:
        """Set client_billed on entries and persist the changes.

        Returns:
            The patches that were applied (entries already in the requested
            state are not written)
        """
        entries = self.repository.load_time_entries()
        patches = self._apply_patches(set_client_billed(entries, entry_ids, billed))
        logger.info(f"Set client_billed={billed} on {len(patches)} entries")
        return patches

    @log_function_call
    def set_entries_paid(
        self, entry_ids: Sequence[str], paid: bool = True
    ) -> List[EntryPatch]:
        """Set contractor_paid on entries and persist the changes."""
        entries = self.repository.load_time_entries()
        patches = self._apply_patches(set_contractor_paid(entries, entry_ids, paid))
        logger.info(f"Set contractor_paid={paid} on {len(patches)} entries")
        return patches

    def validate(self) -> ValidationReport:
        """Run the data quality checks over the whole store."""
        projects = self.repository.load_projects()
        return self.validator.validate(
            projects,
            self.repository.load_time_entries(),
            self.repository.load_team_members(),
            referrals=self.repository.load_referrals(projects),
            payouts=self.repository.load_payouts(),
        )


@dataclass
class PayoutPreview:
    """Payout candidates for a month, awaiting confirmation."""

    period: MonthPeriod
    candidates: List[ReferralPayout]
    referrals: Dict[str, Referral] = field(default_factory=dict)

    @property
    def total_amount(self) -> Decimal:
        return sum((p.amount or Decimal("0") for p in self.candidates), Decimal("0.00"))

    @property
    def is_empty(self) -> bool:
        return not self.candidates


class PayoutService:
    """
    Monthly referral commission payouts.

    Generation is idempotent per referral and month: the calculator skips
    months that already have a payout, and the store's unique constraint
    rejects a batch that lost a race against another run.
    """

    def __init__(
        self,
        store: RecordStore,
        default_commission_rate: Decimal = DEFAULT_COMMISSION_RATE,
        cap_policy: CapPolicy = CapPolicy.ALL_STATUSES,
    ):
        self.store = store
        self.repository = ReconciliationRepository(store)
        self.default_commission_rate = default_commission_rate
        self.cap_policy = cap_policy

    @classmethod
    def from_config(
        cls, store: RecordStore, config: "ReconciliationConfig"
    ) -> "PayoutService":
        cap_policy = (
            CapPolicy.ALL_STATUSES
            if config.commission_cap_counts_cancelled
            else CapPolicy.EXCLUDE_CANCELLED
        )
        return cls(
            store,
            default_commission_rate=config.default_commission_rate,
            cap_policy=cap_policy,
        )

    def preview_payouts(self, period: Optional[MonthPeriod] = None) -> PayoutPreview:
        """Compute the payouts a run would create, without writing anything.

        Args:
            period: Month to generate for; the current month by default
        """
        period = period or MonthPeriod.containing(_today())
        with LogContext(period=period.label):
            referrals = self.repository.load_referrals()
            payouts = self.repository.load_payouts([r.id for r in referrals])
            candidates = generate_monthly_payouts(
                referrals,
                payouts,
                period,
                default_commission_rate=self.default_commission_rate,
                cap_policy=self.cap_policy,
            )
        return PayoutPreview(
            period=period,
            candidates=candidates,
            referrals={r.id: r for r in referrals},
        )

    @log_function_call(level="INFO")
    def confirm_payouts(self, preview: PayoutPreview) -> List[ReferralPayout]:
        """Persist previewed candidates as one batch.

        Raises:
            DuplicatePayoutError: If another run stored payouts for the
                same referral and month in the meantime (nothing is written)
        """
        if preview.is_empty:
            logger.info(f"No payouts to create for {preview.period.label}")
            return []

        with LogContext(run_id=generate_run_id(), period=preview.period.label):
            records = [payout.to_record() for payout in preview.candidates]
            try:
                stored = self.store.insert_many(REFERRAL_PAYOUTS, records)
            except DuplicateRecordError as e:
                logger.warning(f"Payout insert rejected as duplicate: {e}")
                raise DuplicatePayoutError(preview.period) from e

            logger.info(
                f"Created {len(stored)} payout(s) for {preview.period.label} "
                f"totalling {preview.total_amount}"
            )
            return [ReferralPayout.model_validate(r) for r in stored]

    def generate_payouts(
        self, period: Optional[MonthPeriod] = None
    ) -> List[ReferralPayout]:
        """Preview and immediately confirm the payouts for a month."""
        return self.confirm_payouts(self.preview_payouts(period))

    def _load_by_ids(self, payout_ids: Sequence[str]) -> List[ReferralPayout]:
        if not payout_ids:
            return []
        records = self.store.list(REFERRAL_PAYOUTS, {"id": list(payout_ids)})
        return [ReferralPayout.model_validate(r) for r in records]

    def _persist_transition(
        self, updated: List[ReferralPayout], fields: Sequence[str]
    ) -> List[ReferralPayout]:
        persisted = []
        for payout in updated:
            record = payout.to_record()
            patch = {name: record[name] for name in fields}
            persisted.append(
                ReferralPayout.model_validate(
                    self.store.update(REFERRAL_PAYOUTS, payout.id, patch)
                )
            )
        return persisted

    @log_function_call(level="INFO")
    def mark_paid(
        self,
        payout_ids: Sequence[str],
        payment_reference: Optional[str] = None,
        paid_on: Optional[dt.date] = None,
    ) -> List[ReferralPayout]:
        """Mark pending payouts as paid.

        Paid and cancelled payouts among ``payout_ids`` are left untouched.

        Returns:
            The payouts that changed, as stored
        """
        payouts = self._load_by_ids(payout_ids)
        updated = mark_payouts_paid(
            payouts, payout_ids, paid_on or _today(), payment_reference
        )
        persisted = self._persist_transition(
            updated, ("status", "paid_date", "payment_reference")
        )
        logger.info(f"Marked {len(persisted)} of {len(payout_ids)} payout(s) paid")
        return persisted

    @log_function_call(level="INFO")
    def cancel(self, payout_ids: Sequence[str]) -> List[ReferralPayout]:
        """Cancel pending payouts."""
        payouts = self._load_by_ids(payout_ids)
        persisted = self._persist_transition(
            cancel_payouts(payouts, payout_ids), ("status",)
        )
        logger.info(f"Cancelled {len(persisted)} of {len(payout_ids)} payout(s)")
        return persisted

    def partner_summaries(self) -> Dict[Optional[str], PayoutSummary]:
        """Payout totals per referral partner."""
        referrals = self.repository.load_referrals()
        payouts = self.repository.load_payouts()
        return summarize_by_partner(payouts, referrals)
