"""Error handling for CLI commands."""

import sys
import traceback
from typing import Optional

import click
from pydantic import ValidationError

from reconciliation.calculators.billing_calculator import UnsupportedBillingTypeError
from reconciliation.cli.utils.formatters import format_error, format_warning
from reconciliation.services.reconciliation_service import DuplicatePayoutError
from reconciliation.services.record_store import RecordNotFoundError, RecordStoreError
from reconciliation.services.retry_handler import (
    CircuitBreakerError,
    RetryExhaustedException,
)

EXIT_CONFIGURATION = 1
EXIT_STORE = 2
EXIT_VALIDATION = 3
EXIT_PROCESSING = 4
EXIT_DUPLICATE_PAYOUTS = 5
EXIT_ABORTED = 130
EXIT_UNEXPECTED = 255


class CLIError(Exception):
    """Base exception for CLI errors with user-friendly messages."""

    def __init__(self, message: str, recovery_hint: Optional[str] = None):
        """
        Initialize CLI error.

        Args:
            message: Error message to display
            recovery_hint: Optional hint for recovering from the error
        """
        self.message = message
        self.recovery_hint = recovery_hint
        super().__init__(message)


class ConfigurationError(CLIError):
    """Error related to configuration issues."""


class StoreError(CLIError):
    """Error talking to the record store."""


class DataValidationError(CLIError):
    """Error related to data validation."""


class ProcessingError(CLIError):
    """Error related to data processing."""


def _report(title: str, message: str, hint: Optional[str]) -> None:
    click.echo(format_error(f"{title}: {message}"))
    if hint:
        click.echo(format_warning(f"Hint: {hint}"))


def handle_cli_error(error: Exception, debug: bool = False) -> int:
    """
    Print a user-friendly message for an error and pick the exit code.

    Args:
        error: The exception that occurred
        debug: Whether to show the full stack trace for unexpected errors

    Returns:
        Exit code (1 configuration, 2 store, 3 validation, 4 processing,
        5 duplicate payouts, 130 aborted, 255 unexpected)
    """
    if isinstance(error, CLIError):
        titles = [
            (ConfigurationError, "Configuration Error", EXIT_CONFIGURATION),
            (StoreError, "Store Error", EXIT_STORE),
            (DataValidationError, "Data Validation Error", EXIT_VALIDATION),
            (ProcessingError, "Processing Error", EXIT_PROCESSING),
        ]
        for error_class, title, code in titles:
            if isinstance(error, error_class):
                _report(title, error.message, error.recovery_hint)
                return code
        _report("Error", error.message, error.recovery_hint)
        return EXIT_PROCESSING

    # Must precede RecordStoreError: it is a subclass
    if isinstance(error, DuplicatePayoutError):
        _report(
            "Duplicate Payouts",
            str(error),
            "Nothing was written. Re-run the preview to see what is still missing",
        )
        return EXIT_DUPLICATE_PAYOUTS

    if isinstance(error, RecordNotFoundError):
        _report("Not Found", error.message, "Check the identifier and try again")
        return EXIT_STORE

    if isinstance(error, RecordStoreError):
        hint = None
        if error.status_code in (401, 403):
            hint = "Check SUPABASE_SERVICE_KEY in your .env file"
        _report("Store Error", error.message, hint)
        return EXIT_STORE

    if isinstance(error, (RetryExhaustedException, CircuitBreakerError)):
        _report(
            "Store Unavailable",
            str(error),
            "Wait a few minutes before retrying",
        )
        return EXIT_STORE

    if isinstance(error, ValidationError):
        _report(
            "Data Validation Error",
            f"{error.error_count()} invalid field(s) in {error.title}",
            "Fix the record in the store; run 'recon validate' for a full report",
        )
        return EXIT_VALIDATION

    if isinstance(error, UnsupportedBillingTypeError):
        _report("Processing Error", str(error), None)
        return EXIT_PROCESSING

    if isinstance(error, click.Abort):
        click.echo(format_warning("\nOperation cancelled by user"))
        return EXIT_ABORTED

    click.echo(format_error(f"Unexpected Error: {type(error).__name__}"))
    click.echo(str(error))
    if debug:
        click.echo("\nFull stack trace:")
        click.echo(
            "".join(traceback.format_exception(type(error), error, error.__traceback__))
        )
    else:
        click.echo(format_warning("\nRun with --debug flag for full stack trace"))
    return EXIT_UNEXPECTED


class ErrorHandler:
    """Context manager mapping exceptions to CLI exit codes."""

    def __init__(self, show_debug: bool):
        self.show_debug = show_debug

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_val is None:
            return False
        # Let click handle its own exits and usage errors
        if isinstance(exc_val, (SystemExit, click.exceptions.Exit, click.UsageError)):
            return False
        sys.exit(handle_cli_error(exc_val, self.show_debug))


def with_error_handling(debug: bool = False) -> ErrorHandler:
    """
    Standardized error handling for CLI commands.

    Args:
        debug: Whether to show full stack traces

    Returns:
        Context manager that exits with the mapped exit code

    Example:
        @click.command()
        @click.pass_context
        def my_command(ctx):
            with with_error_handling(ctx.obj["debug"]):
                ...
    """
    return ErrorHandler(debug)
