"""
Error classification for record store requests.

Distinguishes transient failures worth retrying from conflicts (a unique
constraint rejected an insert) and other fatal errors.
"""

import logging
import socket
from enum import Enum
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


class ErrorType(Enum):
    """Classification of error types."""

    RETRYABLE = "retryable"  # 429, 5xx, network errors
    CONFLICT = "conflict"  # 409 / unique violation
    FATAL = "fatal"  # other 4xx
    UNKNOWN = "unknown"


def _status_code(exception: Exception) -> Optional[int]:
    response = getattr(exception, "response", None)
    return getattr(response, "status_code", None)


def error_payload(exception: Exception) -> Dict[str, Any]:
    """
    Extract the JSON error body PostgREST returns with failed requests.

    Args:
        exception: A requests exception carrying a response

    Returns:
        The decoded body, or an empty dict when absent or not JSON
    """
    response = getattr(exception, "response", None)
    if response is None:
        return {}
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class ErrorClassifier:
    """
    Classifies record store errors.

    Features:
    - HTTP status code classification
    - Unique-violation detection from the PostgREST error body
    - Network error detection
    - Statistics tracking
    """

    def __init__(self):
        """Initialize error classifier with statistics tracking."""
        self._stats: Dict[str, int] = {error_type.value: 0 for error_type in ErrorType}
        self._stats["total"] = 0

    def _record(self, error_type: ErrorType) -> ErrorType:
        self._stats[error_type.value] += 1
        self._stats["total"] += 1
        return error_type

    def classify(self, exception: Exception) -> ErrorType:
        """
        Classify an exception.

        Args:
            exception: The exception to classify

        Returns:
            ErrorType classification
        """
        if isinstance(exception, requests.exceptions.HTTPError):
            status_code = _status_code(exception)

            if status_code == 409 or self.is_unique_violation(exception):
                return self._record(ErrorType.CONFLICT)

            if status_code == 429 or (
                status_code is not None and 500 <= status_code < 600
            ):
                return self._record(ErrorType.RETRYABLE)

            if status_code is not None and 400 <= status_code < 500:
                return self._record(ErrorType.FATAL)

        if isinstance(
            exception,
            (
                socket.timeout,
                requests.exceptions.ConnectionError,
                requests.exceptions.Timeout,
            ),
        ):
            return self._record(ErrorType.RETRYABLE)

        return self._record(ErrorType.UNKNOWN)

    def is_retryable(self, exception: Exception) -> bool:
        """Check if an exception should be retried."""
        return self.classify(exception) == ErrorType.RETRYABLE

    @staticmethod
    def is_unique_violation(exception: Exception) -> bool:
        """Check whether the store rejected a write on a unique constraint."""
        return error_payload(exception).get("code") == UNIQUE_VIOLATION

    def get_error_description(self, exception: Exception) -> str:
        """
        Get a human-readable error description.

        Args:
            exception: The exception to describe

        Returns:
            Error description string
        """
        error_type = self.classify(exception)
        status_code = _status_code(exception)

        if error_type is ErrorType.CONFLICT:
            return f"Conflict (HTTP {status_code}) - duplicate record"

        if status_code is not None:
            message = error_payload(exception).get("message")
            detail = f": {message}" if message else ""
            return f"HTTP {status_code}{detail} - {error_type.value}"

        if isinstance(exception, (socket.timeout, requests.exceptions.Timeout)):
            return f"Network timeout error - {error_type.value}"

        if isinstance(exception, requests.exceptions.ConnectionError):
            return f"Network connection error - {error_type.value}"

        return f"{type(exception).__name__}: {exception} - {error_type.value}"

    def get_statistics(self) -> Dict[str, int]:
        """Get error classification statistics."""
        return self._stats.copy()

    def reset_statistics(self):
        """Reset error statistics."""
        for key in self._stats:
            self._stats[key] = 0
