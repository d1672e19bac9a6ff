"""
Retry handler with exponential backoff, jitter, and a circuit breaker.
"""

import logging
import random
import threading
import time
from typing import Any, Callable, Optional

from reconciliation.services.error_classifier import ErrorClassifier

logger = logging.getLogger(__name__)


class RetryExhaustedException(Exception):
    """Raised when all retry attempts have been exhausted."""

    def __init__(self, message: str, last_error: Optional[Exception] = None):
        super().__init__(message)
        self.last_error = last_error


class CircuitBreakerError(Exception):
    """Raised when the circuit breaker is open."""


class RetryHandler:
    """
    Retries transient store failures with exponential backoff.

    Only errors the retry condition accepts (by default, what
    ErrorClassifier marks retryable: 429, 5xx, network errors) are retried.
    Conflicts and other client errors propagate immediately.

    After ``circuit_breaker_threshold`` consecutive exhausted calls the
    circuit opens and calls fail fast with CircuitBreakerError until
    ``circuit_breaker_timeout`` seconds have passed.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2,
        jitter_factor: float = 0.1,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_timeout: float = 60.0,
        retry_condition: Optional[Callable[[Exception], bool]] = None,
    ):
        """
        Initialize retry handler.

        Args:
            max_retries: Maximum number of retry attempts
            base_delay: Base delay for exponential backoff (seconds)
            max_delay: Maximum delay between retries (seconds)
            exponential_base: Base for exponential backoff calculation
            jitter_factor: Factor for random jitter (0.0 to 1.0)
            circuit_breaker_threshold: Consecutive failures before opening
            circuit_breaker_timeout: Seconds before a half-open attempt
            retry_condition: Predicate deciding whether an error is retried
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter_factor = jitter_factor
        self.circuit_breaker_threshold = circuit_breaker_threshold
        self.circuit_breaker_timeout = circuit_breaker_timeout
        self.retry_condition = retry_condition or ErrorClassifier().is_retryable

        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._total_calls = 0
        self._total_retries = 0
        self._lock = threading.Lock()

    def calculate_delay(self, attempt: int) -> float:
        """
        Delay before retry number ``attempt`` (0-based), with jitter.

        Args:
            attempt: Retry attempt number

        Returns:
            Delay in seconds, never negative
        """
        delay = min(self.base_delay * (self.exponential_base**attempt), self.max_delay)
        jitter = random.uniform(-self.jitter_factor, self.jitter_factor) * delay
        return max(0.0, delay + jitter)

    @property
    def is_circuit_open(self) -> bool:
        """Whether calls currently fail fast."""
        with self._lock:
            if self._opened_at is None:
                return False
            if time.time() - self._opened_at >= self.circuit_breaker_timeout:
                logger.info("Circuit breaker half-open, allowing a trial call")
                return False
            return True

    def _record_success(self):
        with self._lock:
            if self._opened_at is not None:
                logger.info("Circuit breaker closed after successful call")
            self._failure_count = 0
            self._opened_at = None

    def _record_failure(self):
        with self._lock:
            self._failure_count += 1
            if (
                self._opened_at is None
                and self._failure_count >= self.circuit_breaker_threshold
            ):
                logger.warning(
                    f"Circuit breaker opened after {self._failure_count} failures"
                )
                self._opened_at = time.time()

    def execute_with_retry(self, func: Callable, *args, **kwargs) -> Any:
        """
        Call ``func`` and retry it on transient errors.

        Args:
            func: Function to execute
            *args: Positional arguments for function
            **kwargs: Keyword arguments for function

        Returns:
            Result of the function

        Raises:
            CircuitBreakerError: If the circuit breaker is open
            RetryExhaustedException: If all retries are exhausted
            Exception: The original exception if it is not retryable
        """
        if self.is_circuit_open:
            raise CircuitBreakerError("Circuit breaker is open")

        with self._lock:
            self._total_calls += 1

        func_name = getattr(func, "__name__", repr(func))

        for attempt in range(self.max_retries + 1):
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                if not self.retry_condition(e):
                    raise

                if attempt >= self.max_retries:
                    logger.warning(
                        f"Max retries ({self.max_retries}) exceeded for {func_name}"
                    )
                    self._record_failure()
                    raise RetryExhaustedException(
                        f"Max retries ({self.max_retries}) exceeded. "
                        f"Last error: {type(e).__name__}: {e}",
                        last_error=e,
                    ) from e

                delay = self.calculate_delay(attempt)
                logger.debug(
                    f"Retrying {func_name} in {delay:.2f}s "
                    f"(attempt {attempt + 1}/{self.max_retries}): "
                    f"{type(e).__name__}: {e}"
                )
                with self._lock:
                    self._total_retries += 1
                time.sleep(delay)
                continue

            if attempt > 0:
                logger.info(f"{func_name} succeeded after {attempt} retries")
            self._record_success()
            return result

        # range() always runs at least once; loop exits via return or raise
        raise RuntimeError("unreachable")

    def get_retry_statistics(self) -> dict:
        """Get retry statistics."""
        with self._lock:
            return {
                "total_calls": self._total_calls,
                "total_retries": self._total_retries,
                "failure_count": self._failure_count,
                "circuit_breaker_open": self._opened_at is not None,
            }

    def reset_circuit_breaker(self):
        """Manually close the circuit breaker."""
        with self._lock:
            self._failure_count = 0
            self._opened_at = None
        logger.info("Circuit breaker manually reset")
