"""Validate data command."""

import click

from reconciliation.cli.context import financials_service
from reconciliation.cli.error_handlers import DataValidationError, with_error_handling
from reconciliation.cli.utils.formatters import (
    format_info,
    format_success,
    format_warning,
)
from reconciliation.validators.validation_report import ValidationSeverity


@click.command(name="validate")
@click.option(
    "--severity",
    type=click.Choice(["error", "warning", "info"], case_sensitive=False),
    default="warning",
    help="Minimum severity level to display (default: warning)",
)
@click.pass_context
def validate(ctx: click.Context, severity: str):
    """Check store records for data quality problems.

    Checks for:
    - Billed entries that are not billable
    - Missing hourly rates, retainers and team member rates
    - Entries pointing at unknown projects or team members
    - Active referrals without a commission cap or retainer
    - More than one retainer payout for a referral and month

    Returns exit code 3 if errors are found.

    Example:
        recon validate
        recon validate --severity info
    """
    with with_error_handling(ctx.obj["debug"]):
        click.echo(format_info("Validating store records..."))
        report = financials_service(ctx).validate()

        click.echo()
        click.echo(report.format(ValidationSeverity[severity.upper()]))
        click.echo()

        if report.has_errors():
            raise DataValidationError(
                f"Validation failed with {report.error_count} error(s)",
                recovery_hint="Fix the records listed above",
            )
        if report.warning_count:
            click.echo(
                format_warning(
                    f"Validation completed with {report.warning_count} warning(s)"
                )
            )
        else:
            click.echo(format_success("Validation passed! No issues found."))
