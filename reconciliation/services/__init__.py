"""Record stores and reconciliation services."""

from reconciliation.services.error_classifier import ErrorClassifier, ErrorType
from reconciliation.services.postgrest_store import PostgrestRecordStore
from reconciliation.services.reconciliation_service import (
    DuplicatePayoutError,
    FinancialsService,
    PayoutPreview,
    PayoutService,
)
from reconciliation.services.record_store import (
    DuplicateRecordError,
    InMemoryRecordStore,
    RecordNotFoundError,
    RecordStore,
    RecordStoreError,
    referral_payout_unique_key,
)
from reconciliation.services.repository import ReconciliationRepository
from reconciliation.services.retry_handler import (
    CircuitBreakerError,
    RetryExhaustedException,
    RetryHandler,
)

__all__ = [
    "CircuitBreakerError",
    "DuplicatePayoutError",
    "DuplicateRecordError",
    "ErrorClassifier",
    "ErrorType",
    "FinancialsService",
    "InMemoryRecordStore",
    "PayoutPreview",
    "PayoutService",
    "PostgrestRecordStore",
    "ReconciliationRepository",
    "RecordNotFoundError",
    "RecordStore",
    "RecordStoreError",
    "RetryExhaustedException",
    "RetryHandler",
    "referral_payout_unique_key",
]
