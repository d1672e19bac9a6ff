"""Project financials command."""

from typing import Optional

import click

from reconciliation.calculators.billing_calculator import ProjectFinancials
from reconciliation.calculators.period_utils import MonthPeriod
from reconciliation.cli.context import financials_service, parse_month_option
from reconciliation.cli.error_handlers import with_error_handling
from reconciliation.cli.utils.formatters import (
    format_hours,
    format_info,
    format_money,
    format_percentage,
    format_table,
    format_warning,
)


def render_financials(financials: ProjectFinancials) -> str:
    """Render the figures of one project as two tables."""
    rows = [
        ["Revenue", format_money(financials.revenue)],
        ["Labor cost", format_money(financials.labor_cost)],
        ["Profit", format_money(financials.profit)],
        ["Margin", format_percentage(financials.profit_margin_percentage)],
        ["Profit per hour", format_money(financials.profit_per_hour)],
        ["Total hours", format_hours(financials.total_hours)],
        ["Billable hours", format_hours(financials.billable_hours)],
    ]
    if financials.billing_type.is_retainer_based:
        rows.append(["Billed / unbilled", "n/a (flat retainer)"])
    else:
        rows.append(["Billed revenue", format_money(financials.billed_revenue)])
        rows.append(["Unbilled revenue", format_money(financials.unbilled_revenue)])
    rows.append(["Unpaid labor cost", format_money(financials.unpaid_labor_cost)])

    output = [format_table(["Metric", "Value"], rows, right_align=[1])]

    if financials.member_costs:
        member_rows = [
            [
                member.name or member.team_member_id or "unassigned",
                format_hours(member.hours),
                format_money(member.hourly_rate),
                format_money(member.cost),
            ]
            for member in financials.member_costs
        ]
        output.append("")
        output.append(
            format_table(
                ["Team member", "Hours", "Rate", "Cost"],
                member_rows,
                right_align=[1, 2, 3],
            )
        )
    return "\n".join(output)


@click.command(name="project-financials")
@click.argument("project_id")
@click.option(
    "--month",
    type=str,
    default=None,
    callback=parse_month_option,
    help="Restrict to one month (YYYY-MM). All entries when omitted.",
)
@click.pass_context
def project_financials(
    ctx: click.Context, project_id: str, month: Optional[MonthPeriod]
):
    """Show revenue, labor cost and profit for a project.

    Example:
        recon project-financials 3f2a...
        recon project-financials 3f2a... --month 2025-03
    """
    with with_error_handling(ctx.obj["debug"]):
        scope = month.display_name if month else "all time"
        click.echo(format_info(f"Financials for project {project_id} ({scope})"))

        financials = financials_service(ctx).project_financials(project_id, month)

        click.echo(
            format_info(
                f"  Billing type: {financials.billing_type.value}, "
                f"{financials.entry_count} entries"
            )
        )
        click.echo()
        click.echo(render_financials(financials))

        if not financials.is_profitable:
            click.echo()
            click.echo(format_warning("Project is running at a loss"))
