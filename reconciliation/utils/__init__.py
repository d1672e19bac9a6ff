"""Shared utilities."""

from reconciliation.utils.logging_utils import (
    LogContext,
    generate_run_id,
    get_context_value,
    log_function_call,
    sanitize_sensitive_data,
)

__all__ = [
    "LogContext",
    "generate_run_id",
    "get_context_value",
    "log_function_call",
    "sanitize_sensitive_data",
]
