"""Retainer utilization command."""

import datetime as dt
from typing import Optional

import click

from reconciliation.aggregators.utilization import UtilizationStatus
from reconciliation.cli.context import financials_service, parse_date_option
from reconciliation.cli.error_handlers import with_error_handling
from reconciliation.cli.utils.formatters import (
    format_hours,
    format_info,
    format_percentage,
    format_success,
    format_table,
    format_warning,
)

_STATUS_LABELS = {
    UtilizationStatus.OK: "ok",
    UtilizationStatus.WARNING: "near limit",
    UtilizationStatus.OVER: "OVER",
}


@click.command(name="utilization")
@click.argument("project_id")
@click.option(
    "--months",
    type=click.IntRange(min=1),
    default=None,
    help="Number of months to show (default: UTILIZATION_HISTORY_MONTHS)",
)
@click.option(
    "--as-of",
    type=str,
    default=None,
    callback=parse_date_option,
    help="Last day to include (YYYY-MM-DD, default: today)",
)
@click.pass_context
def utilization(
    ctx: click.Context,
    project_id: str,
    months: Optional[int],
    as_of: Optional[dt.date],
):
    """Show monthly hours against the retainer allowance.

    Example:
        recon utilization 3f2a...
        recon utilization 3f2a... --months 12 --as-of 2025-06-30
    """
    with with_error_handling(ctx.obj["debug"]):
        service = financials_service(ctx)
        history = service.utilization_history(project_id, months=months, as_of=as_of)

        click.echo(format_info(f"Utilization for project {project_id}"))
        click.echo()
        rows = [
            [
                item.period.label,
                format_hours(item.hours_logged),
                format_hours(item.hours_included),
                format_hours(item.hours_remaining),
                format_percentage(item.utilization_percentage),
                _STATUS_LABELS[item.status],
            ]
            for item in history
        ]
        click.echo(
            format_table(
                ["Month", "Logged", "Included", "Remaining", "Used", "Status"],
                rows,
                right_align=[1, 2, 3, 4],
            )
        )

        weekly = service.weekly_minimum_progress(project_id, as_of=as_of)
        if weekly.minimum_hours > 0:
            click.echo()
            message = (
                f"Week of {weekly.week_start}: {format_hours(weekly.hours_logged)} "
                f"of {format_hours(weekly.minimum_hours)} minimum"
            )
            if weekly.is_met:
                click.echo(format_success(message))
            else:
                click.echo(
                    format_warning(
                        f"{message} ({format_hours(weekly.shortfall_hours)} short)"
                    )
                )

        over = [item for item in history if item.is_over_budget]
        if over:
            click.echo()
            click.echo(
                format_warning(
                    f"{len(over)} month(s) over allowance: "
                    + ", ".join(item.period.label for item in over)
                )
            )
