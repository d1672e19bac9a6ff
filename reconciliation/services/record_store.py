"""
Record store interface and an in-memory implementation.

The reconciliation layer reads and writes plain records through a small
CRUD interface keyed by collection (table) name. Any store that provides
``list``, ``insert_many`` and ``update`` works; the PostgREST store talks
to the hosted database and the in-memory store backs tests and local runs.
"""

import copy
import datetime as dt
import logging
import threading
import uuid
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
)

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
UniqueKey = Callable[[Record], Optional[Tuple[Any, ...]]]

PROJECTS = "projects"
TIME_ENTRIES = "time_entries"
TEAM_MEMBERS = "team_members"
REFERRALS = "referrals"
REFERRAL_PAYOUTS = "referral_payouts"


class RecordStoreError(Exception):
    """Base exception for record store failures."""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.collection = collection
        self.status_code = status_code
        super().__init__(message)


class DuplicateRecordError(RecordStoreError):
    """Raised when a write violates a uniqueness constraint."""


class RecordNotFoundError(RecordStoreError):
    """Raised when a record to update or load does not exist."""


class RecordStore(Protocol):
    """CRUD interface the reconciliation services depend on."""

    def list(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> List[Record]:
        """Return records matching all equality filters.

        A list value matches any of its items.
        """
        ...

    def insert_many(
        self,
        collection: str,
        records: List[Record],
        ignore_duplicates: bool = False,
    ) -> List[Record]:
        """Insert records as one batch and return them as stored.

        Raises DuplicateRecordError when a uniqueness constraint is hit,
        unless ``ignore_duplicates`` is set, in which case conflicting
        records are skipped and only the inserted ones are returned.
        """
        ...

    def update(self, collection: str, record_id: str, patch: Record) -> Record:
        """Apply ``patch`` to one record and return the updated record."""
        ...


def _as_date(value: Any) -> Optional[dt.date]:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str) and value:
        return dt.date.fromisoformat(value[:10])
    return None


def referral_payout_unique_key(record: Record) -> Optional[Tuple[Any, ...]]:
    """Uniqueness key of a payout: one retainer payout per referral and month.

    Mirrors the unique constraint in ``sql/referral_payouts_unique_period.sql``.
    Success fee payouts are not constrained.
    """
    if record.get("payout_type") != "retainer":
        return None
    period_start = _as_date(record.get("period_start"))
    if period_start is None:
        return None
    return (record.get("referral_id"), period_start.year, period_start.month)


def _matches(record: Record, filters: Mapping[str, Any]) -> bool:
    for key, expected in filters.items():
        value = record.get(key)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class InMemoryRecordStore:
    """
    Dict-backed record store.

    Enforces per-collection uniqueness keys the way the database enforces
    its unique constraints, so duplicate-insert races can be reproduced in
    tests. Batch inserts are atomic: a conflict inserts nothing.

    Example:
        >>> store = InMemoryRecordStore()
        >>> store.insert_many("projects", [{"id": "p1", "billing_type": "hourly"}])
        [{'id': 'p1', 'billing_type': 'hourly'}]
        >>> store.list("projects", {"billing_type": "hourly"})[0]["id"]
        'p1'
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Iterable[Record]]] = None,
        unique_keys: Optional[Mapping[str, UniqueKey]] = None,
    ):
        """
        Initialize the store.

        Args:
            data: Initial records per collection (copied)
            unique_keys: Uniqueness key function per collection; defaults
                to the referral payout period constraint
        """
        self._collections: Dict[str, List[Record]] = {
            name: [copy.deepcopy(record) for record in records]
            for name, records in (data or {}).items()
        }
        if unique_keys is None:
            unique_keys = {REFERRAL_PAYOUTS: referral_payout_unique_key}
        self._unique_keys = dict(unique_keys)
        self._lock = threading.Lock()

    def list(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> List[Record]:
        with self._lock:
            records = self._collections.get(collection, [])
            return [
                copy.deepcopy(record)
                for record in records
                if _matches(record, filters or {})
            ]

    def insert_many(
        self,
        collection: str,
        records: List[Record],
        ignore_duplicates: bool = False,
    ) -> List[Record]:
        key_func = self._unique_keys.get(collection)

        with self._lock:
            existing = self._collections.setdefault(collection, [])
            taken = set()
            if key_func is not None:
                taken = {key for key in map(key_func, existing) if key is not None}

            to_insert = []
            for record in records:
                key = key_func(record) if key_func is not None else None
                if key is not None and key in taken:
                    if ignore_duplicates:
                        logger.debug(f"Skipping duplicate {collection} record {key}")
                        continue
                    raise DuplicateRecordError(
                        f"Duplicate {collection} record for key {key}",
                        collection=collection,
                        status_code=409,
                    )
                if key is not None:
                    taken.add(key)

                stored = copy.deepcopy(record)
                stored.setdefault("id", str(uuid.uuid4()))
                to_insert.append(stored)

            existing.extend(to_insert)
            logger.debug(f"Inserted {len(to_insert)} {collection} record(s)")
            return [copy.deepcopy(record) for record in to_insert]

    def update(self, collection: str, record_id: str, patch: Record) -> Record:
        with self._lock:
            for record in self._collections.get(collection, []):
                if record.get("id") == record_id:
                    record.update(copy.deepcopy(patch))
                    return copy.deepcopy(record)

        raise RecordNotFoundError(
            f"No {collection} record with id {record_id}",
            collection=collection,
            status_code=404,
        )
