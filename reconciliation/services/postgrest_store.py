"""
Record store backed by a Supabase / PostgREST endpoint.
"""

import datetime as dt
import json
import logging
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

import requests

from reconciliation.services.error_classifier import (
    ErrorClassifier,
    ErrorType,
    error_payload,
)
from reconciliation.services.record_store import (
    REFERRAL_PAYOUTS,
    DuplicateRecordError,
    Record,
    RecordNotFoundError,
    RecordStoreError,
)
from reconciliation.services.retry_handler import (
    CircuitBreakerError,
    RetryExhaustedException,
    RetryHandler,
)
from reconciliation.utils.logging_utils import sanitize_sensitive_data

if TYPE_CHECKING:
    from reconciliation.config.settings import ReconciliationConfig

logger = logging.getLogger(__name__)

# Conflict targets used by insert-if-not-exists, per collection
ON_CONFLICT_COLUMNS = {
    REFERRAL_PAYOUTS: "referral_id,payout_type,period_start",
}


def _filter_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return str(value)


def build_filter_params(filters: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Translate equality filters into PostgREST query parameters.

    Args:
        filters: Column to value mapping. ``None`` matches NULL and a list
            or tuple matches any of its items.

    Returns:
        Query parameters such as ``{"project_id": "eq.p1"}``
    """
    params: Dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, (list, tuple, set, frozenset)):
            items = ",".join(_filter_literal(item) for item in value)
            params[column] = f"in.({items})"
        else:
            params[column] = f"eq.{_filter_literal(value)}"
    return params


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class PostgrestRecordStore:
    """
    RecordStore implementation talking to ``<base_url>/rest/v1/<collection>``.

    Transient failures (429, 5xx, network errors) are retried through the
    RetryHandler, except for plain inserts: a POST that failed after the
    server committed it would be rejected as a duplicate on retry, so it is
    sent once. A rejected unique constraint (HTTP 409 or SQLSTATE 23505)
    surfaces as DuplicateRecordError; every other failure as
    RecordStoreError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        retry_handler: Optional[RetryHandler] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the store.

        Args:
            base_url: Project URL, e.g. ``https://xyz.supabase.co``
            api_key: Service role key sent as ``apikey`` and bearer token
            retry_handler: Retry policy; a default handler when omitted
            timeout: Per-request timeout in seconds
            session: Optional requests session (tests inject a mock)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_handler = retry_handler or RetryHandler()
        self.session = session or requests.Session()
        self.classifier = ErrorClassifier()
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        logger.debug(
            f"PostgREST store for {self.base_url} with headers "
            f"{sanitize_sensitive_data(self._headers)}"
        )

    @classmethod
    def from_config(cls, config: "ReconciliationConfig") -> "PostgrestRecordStore":
        """Build a store from application configuration."""
        retry_handler = RetryHandler(
            max_retries=config.max_retries,
            base_delay=config.retry_delay,
        )
        return cls(
            base_url=config.supabase_url,
            api_key=config.supabase_service_key,
            retry_handler=retry_handler,
            timeout=config.request_timeout,
        )

    def _url(self, collection: str) -> str:
        return f"{self.base_url}/rest/v1/{collection}"

    def _send(
        self,
        method: str,
        collection: str,
        params: Optional[Dict[str, str]] = None,
        body: Any = None,
        prefer: Optional[str] = None,
        retry: bool = True,
    ) -> Any:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        data = json.dumps(body, default=_json_default) if body is not None else None

        def request():
            response = self.session.request(
                method,
                self._url(collection),
                params=params,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response

        logger.debug(f"{method} {collection} params={params}")
        try:
            if retry:
                response = self.retry_handler.execute_with_retry(request)
            else:
                response = request()
        except requests.exceptions.RequestException as e:
            raise self._translate(e, collection) from e
        except RetryExhaustedException as e:
            raise RecordStoreError(
                f"{method} {collection} failed after retries: {e}",
                collection=collection,
                status_code=_status_of(e.last_error),
            ) from e
        except CircuitBreakerError as e:
            raise RecordStoreError(
                f"{method} {collection} not attempted: {e}", collection=collection
            ) from e

        if not response.content:
            return []
        return response.json()

    def _translate(self, error: Exception, collection: str) -> RecordStoreError:
        status_code = _status_of(error)
        description = self.classifier.get_error_description(error)
        if self.classifier.classify(error) is ErrorType.CONFLICT:
            details = error_payload(error).get("details") or description
            return DuplicateRecordError(
                f"Duplicate {collection} record: {details}",
                collection=collection,
                status_code=status_code,
            )
        return RecordStoreError(
            f"Request to {collection} failed: {description}",
            collection=collection,
            status_code=status_code,
        )

    def list(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> List[Record]:
        params = {"select": "*", **build_filter_params(filters)}
        return self._send("GET", collection, params=params)

    def insert_many(
        self,
        collection: str,
        records: List[Record],
        ignore_duplicates: bool = False,
    ) -> List[Record]:
        if not records:
            return []

        params: Dict[str, str] = {}
        prefer = "return=representation"
        if ignore_duplicates:
            prefer += ",resolution=ignore-duplicates"
            on_conflict = ON_CONFLICT_COLUMNS.get(collection)
            if on_conflict:
                params["on_conflict"] = on_conflict

        # Only inserts that ignore duplicates are idempotent
        inserted = self._send(
            "POST",
            collection,
            params=params or None,
            body=records,
            prefer=prefer,
            retry=ignore_duplicates,
        )
        logger.debug(f"Inserted {len(inserted)} of {len(records)} {collection} record(s)")
        return inserted

    def update(self, collection: str, record_id: str, patch: Record) -> Record:
        updated = self._send(
            "PATCH",
            collection,
            params={"id": f"eq.{record_id}"},
            body=patch,
            prefer="return=representation",
        )
        if not updated:
            raise RecordNotFoundError(
                f"No {collection} record with id {record_id}",
                collection=collection,
                status_code=404,
            )
        return updated[0]


def _status_of(error: Optional[Exception]) -> Optional[int]:
    response = getattr(error, "response", None)
    return getattr(response, "status_code", None)
