"""Referral payout commands."""

import datetime as dt
from decimal import Decimal
from typing import Optional, Tuple

import click

from reconciliation.calculators.period_utils import MonthPeriod
from reconciliation.cli.context import (
    parse_date_option,
    parse_month_option,
    payout_service,
)
from reconciliation.cli.error_handlers import with_error_handling
from reconciliation.cli.utils.formatters import (
    format_info,
    format_money,
    format_success,
    format_table,
    format_warning,
)
from reconciliation.services.reconciliation_service import PayoutPreview


def render_preview(preview: PayoutPreview) -> str:
    """Render payout candidates with their partner and project."""
    rows = []
    for payout in preview.candidates:
        referral = preview.referrals.get(payout.referral_id)
        rows.append(
            [
                payout.referral_id,
                (referral.partner_id if referral else None) or "-",
                (referral.project_id if referral else None) or "-",
                format_money(payout.amount),
            ]
        )
    rows.append(["Total", "", "", format_money(preview.total_amount)])
    return format_table(
        ["Referral", "Partner", "Project", "Amount"], rows, right_align=[3]
    )


@click.command(name="generate-payouts")
@click.option(
    "--month",
    type=str,
    default=None,
    callback=parse_month_option,
    help="Month to generate payouts for (YYYY-MM, default: current month)",
)
@click.option(
    "--yes",
    "assume_yes",
    is_flag=True,
    default=False,
    help="Create the payouts without asking for confirmation",
)
@click.pass_context
def generate_payouts(
    ctx: click.Context, month: Optional[MonthPeriod], assume_yes: bool
):
    """Generate monthly retainer commission payouts.

    Shows the payouts that would be created, asks for confirmation and
    stores them as pending. Running it again for the same month creates
    nothing new.

    Example:
        recon generate-payouts
        recon generate-payouts --month 2025-03 --yes
    """
    with with_error_handling(ctx.obj["debug"]):
        service = payout_service(ctx)
        preview = service.preview_payouts(month)

        if preview.is_empty:
            click.echo(
                format_info(
                    f"No new payouts to generate for "
                    f"{preview.period.display_name}. All referrals are up to date."
                )
            )
            return

        click.echo(
            format_info(
                f"{len(preview.candidates)} payout(s) for "
                f"{preview.period.display_name}:"
            )
        )
        click.echo()
        click.echo(render_preview(preview))
        click.echo()

        if not assume_yes:
            click.confirm("Create these payouts?", abort=True)

        created = service.confirm_payouts(preview)
        click.echo(
            format_success(
                f"Created {len(created)} payout(s) totalling "
                f"{format_money(preview.total_amount)}"
            )
        )


@click.command(name="mark-paid")
@click.argument("payout_ids", nargs=-1, required=True)
@click.option(
    "--reference",
    type=str,
    default=None,
    help="Payment reference stored on every payout",
)
@click.option(
    "--paid-on",
    type=str,
    default=None,
    callback=parse_date_option,
    help="Payment date (YYYY-MM-DD, default: today)",
)
@click.pass_context
def mark_paid(
    ctx: click.Context,
    payout_ids: Tuple[str, ...],
    reference: Optional[str],
    paid_on: Optional[dt.date],
):
    """Mark pending payouts as paid.

    Payouts that are already paid or cancelled are left unchanged.

    Example:
        recon mark-paid 8d1c... 41aa... --reference "Wire 2025-04-02"
    """
    with with_error_handling(ctx.obj["debug"]):
        updated = payout_service(ctx).mark_paid(
            list(payout_ids), payment_reference=reference, paid_on=paid_on
        )

        if updated:
            total = sum((p.amount or Decimal("0") for p in updated), Decimal("0.00"))
            click.echo(
                format_success(
                    f"Marked {len(updated)} payout(s) paid ({format_money(total)})"
                )
            )

        skipped = len(set(payout_ids)) - len(updated)
        if skipped:
            click.echo(
                format_warning(
                    f"{skipped} payout(s) not changed: unknown, already paid "
                    f"or cancelled"
                )
            )
