"""
Tests for the in-memory storage backend.

Covers:
- get/put/delete/scan
- begin() rolls back every write of a failed block
- Counter monotonicity with a floor
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.models import Bill, BillStatus
from ledger_kernel.storage.memory import InMemoryCounterStore, InMemoryStorage

T0 = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def _bill(bill_no="AP001") -> Bill:
    return Bill(
        id=uuid4(),
        bill_no=bill_no,
        counterparty_id="supplier-1",
        bill_date=date(2025, 1, 1),
        due_date=date(2025, 1, 31),
        total_amount=Decimal("10"),
        settled_amount=Decimal("0"),
        balance_amount=Decimal("10"),
        status=BillStatus.UNPAID,
        created_at=T0,
        updated_at=T0,
    )


class TestRecordStore:

    def test_put_get_scan_delete(self):
        storage = InMemoryStorage()
        bill = _bill()
        storage.bills.put(bill)

        assert storage.bills.get(bill.id) == bill
        assert list(storage.bills.scan()) == [bill]

        storage.bills.delete(bill.id)
        assert storage.bills.get(bill.id) is None
        storage.bills.delete(bill.id)


class TestTransactions:

    def test_commit_keeps_writes(self):
        storage = InMemoryStorage()
        bill = _bill()
        with storage.begin():
            storage.bills.put(bill)
        assert storage.bills.get(bill.id) == bill

    def test_failure_restores_previous_state(self):
        storage = InMemoryStorage()
        kept = _bill("AP001")
        storage.bills.put(kept)

        added = _bill("AP002")
        with pytest.raises(RuntimeError):
            with storage.begin():
                storage.bills.put(added)
                storage.bills.delete(kept.id)
                raise RuntimeError("boom")

        assert storage.bills.get(kept.id) == kept
        assert storage.bills.get(added.id) is None
        assert len(storage.bills) == 1

    def test_rollback_logged(self, captured_logs):
        storage = InMemoryStorage()
        with pytest.raises(ValueError):
            with storage.begin():
                raise ValueError("nope")
        assert any(r["message"] == "memory_transaction_rolled_back" for r in captured_logs())


class TestCounterStore:

    def test_advance_from_zero(self):
        counters = InMemoryCounterStore()
        assert counters.current("bill:AP2501") == 0
        assert counters.advance("bill:AP2501") == 1
        assert counters.advance("bill:AP2501") == 2

    def test_floor_raises_counter(self):
        counters = InMemoryCounterStore()
        counters.advance("x")
        assert counters.advance("x", floor=7) == 8
        assert counters.advance("x", floor=3) == 9
