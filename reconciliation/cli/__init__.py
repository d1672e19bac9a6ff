"""Reconciliation CLI.

Operator commands for project financials, retainer utilization, referral
payouts and data quality checks.
"""

import click

from reconciliation.cli.commands.financials import project_financials
from reconciliation.cli.commands.payouts import generate_payouts, mark_paid
from reconciliation.cli.commands.utilization import utilization
from reconciliation.cli.commands.validate import validate
from reconciliation.config.logging_config import LoggingConfig, configure_logging

__version__ = "1.0.0"


@click.group(help="Agency reconciliation - financials, utilization and payouts")
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, default=False, help="Show full stack traces")
@click.pass_context
def cli(ctx: click.Context, debug: bool):
    """Reconciliation CLI main entry point."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug or ctx.obj.get("debug", False)


# Register commands
cli.add_command(project_financials)
cli.add_command(utilization)
cli.add_command(generate_payouts)
cli.add_command(mark_paid)
cli.add_command(validate)


def main():
    """Main entry point for the CLI."""
    configure_logging(LoggingConfig.from_env())
    cli()


if __name__ == "__main__":
    main()
