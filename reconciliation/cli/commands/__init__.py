"""CLI commands."""

from reconciliation.cli.commands.financials import project_financials
from reconciliation.cli.commands.payouts import generate_payouts, mark_paid
from reconciliation.cli.commands.utilization import utilization
from reconciliation.cli.commands.validate import validate

__all__ = [
    "generate_payouts",
    "mark_paid",
    "project_financials",
    "utilization",
    "validate",
]
