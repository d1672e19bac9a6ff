"""Calculator modules for the reconciliation layer."""

from reconciliation.calculators.billing_calculator import (
    MemberCost,
    PortfolioFinancials,
    ProjectFinancials,
    UnsupportedBillingTypeError,
    aggregate_financials,
    build_rate_lookup,
    calculate_monthly_financials,
    calculate_project_financials,
    resolve_member_rate,
)
from reconciliation.calculators.entry_lifecycle import (
    EntryPatch,
    EntryStatus,
    entry_status,
    filter_entries,
    set_client_billed,
    set_contractor_paid,
    unbilled_entries,
    unpaid_entries,
)
from reconciliation.calculators.money import (
    percentage_of,
    resolve_decimal,
    safe_ratio,
    to_cents,
)
from reconciliation.calculators.payout_generator import (
    DEFAULT_COMMISSION_RATE,
    CapPolicy,
    PayoutSummary,
    calculate_commission_amount,
    cancel_payouts,
    count_retainer_payouts,
    existing_payout_for_period,
    generate_monthly_payouts,
    mark_payouts_paid,
    payout_idempotency_key,
    summarize_by_partner,
    summarize_payouts,
)
from reconciliation.calculators.period_utils import (
    MonthPeriod,
    is_same_month,
    iter_month_periods,
    month_bounds,
    week_bounds,
    week_start,
)

__all__ = [
    # billing_calculator
    "MemberCost",
    "PortfolioFinancials",
    "ProjectFinancials",
    "UnsupportedBillingTypeError",
    "aggregate_financials",
    "build_rate_lookup",
    "calculate_monthly_financials",
    "calculate_project_financials",
    "resolve_member_rate",
    # entry_lifecycle
    "EntryPatch",
    "EntryStatus",
    "entry_status",
    "filter_entries",
    "set_client_billed",
    "set_contractor_paid",
    "unbilled_entries",
    "unpaid_entries",
    # money
    "percentage_of",
    "resolve_decimal",
    "safe_ratio",
    "to_cents",
    # payout_generator
    "DEFAULT_COMMISSION_RATE",
    "CapPolicy",
    "PayoutSummary",
    "calculate_commission_amount",
    "cancel_payouts",
    "count_retainer_payouts",
    "existing_payout_for_period",
    "generate_monthly_payouts",
    "mark_payouts_paid",
    "payout_idempotency_key",
    "summarize_by_partner",
    "summarize_payouts",
    # period_utils
    "MonthPeriod",
    "is_same_month",
    "iter_month_periods",
    "month_bounds",
    "week_bounds",
    "week_start",
]
