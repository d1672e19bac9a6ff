"""
Unit tests for the in-memory record store.
"""

import datetime as dt

import pytest

from reconciliation.services.record_store import (
    PROJECTS,
    REFERRAL_PAYOUTS,
    DuplicateRecordError,
    InMemoryRecordStore,
    RecordNotFoundError,
    referral_payout_unique_key,
)


def payout_record(referral_id="ref-1", period_start="2025-03-01", **kwargs):
    record = {
        "referral_id": referral_id,
        "payout_type": "retainer",
        "amount": "300.00",
        "period_start": period_start,
        "period_end": "2025-03-31",
        "status": "pending",
    }
    record.update(kwargs)
    return record


class TestReferralPayoutUniqueKey:
    """Test cases for the payout uniqueness key."""

    def test_retainer_key_is_referral_and_month(self):
        """Test the day of the month does not matter."""
        assert referral_payout_unique_key(payout_record()) == ("ref-1", 2025, 3)
        assert referral_payout_unique_key(
            payout_record(period_start=dt.date(2025, 3, 15))
        ) == ("ref-1", 2025, 3)

    def test_success_fee_unconstrained(self):
        """Test success fees have no key."""
        assert (
            referral_payout_unique_key(payout_record(payout_type="success_fee"))
            is None
        )


class TestInMemoryRecordStore:
    """Test cases for InMemoryRecordStore."""

    @pytest.fixture
    def store(self):
        """Store seeded with two projects."""
        return InMemoryRecordStore(
            {
                PROJECTS: [
                    {"id": "p1", "billing_type": "hourly"},
                    {"id": "p2", "billing_type": "retainer"},
                ]
            }
        )

    def test_list_with_filters(self, store):
        """Test equality and membership filters."""
        assert [r["id"] for r in store.list(PROJECTS)] == ["p1", "p2"]
        assert [r["id"] for r in store.list(PROJECTS, {"billing_type": "hourly"})] == [
            "p1"
        ]
        assert [r["id"] for r in store.list(PROJECTS, {"id": ["p2", "p9"]})] == ["p2"]
        assert store.list("unknown") == []

    def test_list_returns_copies(self, store):
        """Test callers cannot mutate stored records."""
        store.list(PROJECTS)[0]["billing_type"] = "exit"

        assert store.list(PROJECTS)[0]["billing_type"] == "hourly"

    def test_seed_data_copied(self):
        """Test the seed data is not shared with the caller."""
        seed = {PROJECTS: [{"id": "p1"}]}
        store = InMemoryRecordStore(seed)
        seed[PROJECTS][0]["id"] = "changed"

        assert store.list(PROJECTS)[0]["id"] == "p1"

    def test_insert_assigns_ids(self, store):
        """Test inserted records get an id when missing."""
        inserted = store.insert_many(REFERRAL_PAYOUTS, [payout_record()])

        assert inserted[0]["id"]
        assert store.list(REFERRAL_PAYOUTS) == inserted

    def test_duplicate_insert_rejected_atomically(self, store):
        """Test a conflict inserts nothing from the batch."""
        store.insert_many(REFERRAL_PAYOUTS, [payout_record()])

        with pytest.raises(DuplicateRecordError) as exc_info:
            store.insert_many(
                REFERRAL_PAYOUTS,
                [
                    payout_record(referral_id="ref-2"),
                    payout_record(period_start="2025-03-10"),
                ],
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.collection == REFERRAL_PAYOUTS
        assert len(store.list(REFERRAL_PAYOUTS)) == 1

    def test_duplicate_within_batch(self, store):
        """Test two records with one key in a batch conflict."""
        with pytest.raises(DuplicateRecordError):
            store.insert_many(REFERRAL_PAYOUTS, [payout_record(), payout_record()])

        assert store.list(REFERRAL_PAYOUTS) == []

    def test_ignore_duplicates_skips_conflicts(self, store):
        """Test insert-if-not-exists returns only new records."""
        store.insert_many(REFERRAL_PAYOUTS, [payout_record()])

        inserted = store.insert_many(
            REFERRAL_PAYOUTS,
            [payout_record(), payout_record(referral_id="ref-2")],
            ignore_duplicates=True,
        )

        assert [r["referral_id"] for r in inserted] == ["ref-2"]
        assert len(store.list(REFERRAL_PAYOUTS)) == 2

    def test_unconstrained_collection(self, store):
        """Test collections without a key accept anything."""
        store.insert_many(PROJECTS, [{"id": "p3"}, {"id": "p3"}])

        assert len(store.list(PROJECTS, {"id": "p3"})) == 2

    def test_update(self, store):
        """Test patching a record."""
        updated = store.update(PROJECTS, "p1", {"billing_type": "exit"})

        assert updated == {"id": "p1", "billing_type": "exit"}
        assert store.list(PROJECTS, {"id": "p1"})[0]["billing_type"] == "exit"

    def test_update_missing_record(self, store):
        """Test updating an unknown id raises."""
        with pytest.raises(RecordNotFoundError) as exc_info:
            store.update(PROJECTS, "p9", {"billing_type": "exit"})

        assert exc_info.value.status_code == 404
