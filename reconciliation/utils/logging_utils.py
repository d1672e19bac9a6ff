"""Structured logging utilities with context support."""

import functools
import logging
import threading
import uuid
from typing import Any, Callable, Dict, Optional

# Thread-local storage for log context
_thread_local = threading.local()

# Field names whose values never reach the logs
SENSITIVE_FIELDS = {
    "apikey",
    "api_key",
    "service_key",
    "authorization",
    "password",
    "secret",
    "token",
}

REDACTED = "***REDACTED***"


def generate_run_id() -> str:
    """
    Generate a unique identifier for one reconciliation run.

    Returns:
        UUID string used to correlate the log lines of a run
    """
    return str(uuid.uuid4())


def _current_context() -> Dict[str, Any]:
    return getattr(_thread_local, "context", {})


def get_context_value(key: str) -> Optional[Any]:
    """
    Read a field from the active log context.

    Args:
        key: Context field name (e.g. "run_id", "project_id")

    Returns:
        The field value, or None outside a matching LogContext
    """
    return _current_context().get(key)


class LogContext:
    """
    Context manager adding structured fields to every log record in scope.

    Contexts nest: inner fields are merged over outer ones and the outer
    context is restored on exit.

    Example:
        with LogContext(run_id=generate_run_id(), period="2025-03"):
            logger.info("Generating payouts")
            # The record carries run_id and period fields
    """

    def __init__(self, **fields):
        """
        Initialize log context with custom fields.

        Args:
            **fields: Key-value pairs to add to log records
        """
        self.fields = fields
        self._saved: Optional[Dict[str, Any]] = None

    def __enter__(self):
        """Merge the fields into the thread-local context."""
        self._saved = dict(_current_context())
        _thread_local.context = {**self._saved, **self.fields}
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore the enclosing context."""
        _thread_local.context = self._saved or {}
        return False


class _ContextFilter(logging.Filter):
    """Logging filter that copies context fields onto log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _current_context().items():
            setattr(record, key, value)
        return True


def sanitize_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Redact sensitive values (API keys, auth headers) from a mapping.

    Nested dictionaries are sanitized recursively; keys are matched
    case-insensitively by substring.

    Args:
        data: Mapping to sanitize (e.g. request headers or a config dump)

    Returns:
        A sanitized copy
    """
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        lowered = str(key).lower()
        if any(sensitive in lowered for sensitive in SENSITIVE_FIELDS):
            sanitized[key] = REDACTED if value is not None else None
        elif isinstance(value, dict):
            sanitized[key] = sanitize_sensitive_data(value)
        else:
            sanitized[key] = value
    return sanitized


def log_function_call(
    func: Optional[Callable] = None, *, level: str = "DEBUG"
) -> Callable:
    """
    Decorator logging entry, exit and failures of a function.

    Args:
        func: Function to decorate (when used without arguments)
        level: Log level for entry and exit lines

    Returns:
        Decorated function

    Example:
        @log_function_call(level="INFO")
        def confirm_payouts(self, candidates):
            ...
    """

    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(f.__module__)
            log_level = getattr(logging, level.upper())
            logger.log(log_level, f"Entering {f.__qualname__}")
            try:
                result = f(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Exception in {f.__qualname__}: {type(e).__name__}: {e}",
                    exc_info=True,
                )
                raise
            logger.log(log_level, f"Exiting {f.__qualname__}")
            return result

        return wrapper

    if func is None:
        return decorator
    return decorator(func)
