"""
Tests for SettlementLedger.

Covers:
- Apply: partial, exact and excess amounts; PAID bills refused
- Reverse: exact inverse of apply, including out of PAID
- Settlement numbering and duplicate rejection
- Per-bill and book-wide listings
- Failure leaves bill, settlements and indices untouched
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.models import BillStatus, SettlementMethod
from ledger_kernel.exceptions import (
    AlreadySettledError,
    BillNotFoundError,
    DuplicateNumberError,
    ExcessAmountError,
    SettlementNotFoundError,
    ValidationError,
)


def _balance_fields(bill):
    return (bill.settled_amount, bill.balance_amount, bill.status)


class TestApplySettlement:

    def test_partial_settlement(self, receivable_ledger, bill_payload, settlement_payload):
        bill = receivable_ledger.create_bill(bill_payload(total_amount=Decimal("89000")))
        settlement = receivable_ledger.apply_settlement(settlement_payload(bill.id, "30000"))

        updated = receivable_ledger.get_bill(bill.id)
        assert settlement.settlement_no == "REC2501001"
        assert settlement.method is SettlementMethod.BANK_TRANSFER
        assert updated.settled_amount == Decimal("30000")
        assert updated.balance_amount == Decimal("59000")
        assert updated.status is BillStatus.PARTIAL

    def test_exact_settlement_pays_bill(
        self, receivable_ledger, bill_payload, settlement_payload, deterministic_clock,
    ):
        bill = receivable_ledger.create_bill(bill_payload(total_amount=Decimal("250.75")))
        deterministic_clock.advance_days(2)
        receivable_ledger.apply_settlement(settlement_payload(bill.id, "250.75"))

        updated = receivable_ledger.get_bill(bill.id)
        assert updated.balance_amount == Decimal("0")
        assert updated.status is BillStatus.PAID
        assert updated.paid_at == deterministic_clock.now_utc()

    def test_excess_rejected_and_bill_unchanged(
        self, receivable_ledger, bill_payload, settlement_payload,
    ):
        bill = receivable_ledger.create_bill(bill_payload(total_amount=Decimal("100")))
        receivable_ledger.apply_settlement(settlement_payload(bill.id, "60"))
        before = receivable_ledger.get_bill(bill.id)

        with pytest.raises(ExcessAmountError) as exc_info:
            receivable_ledger.apply_settlement(settlement_payload(bill.id, "40.01"))

        assert exc_info.value.amount == Decimal("40.01")
        assert exc_info.value.balance == Decimal("40")
        assert receivable_ledger.get_bill(bill.id) == before
        assert len(receivable_ledger.list_settlements_for_bill(bill.id)) == 1

    def test_paid_bill_refused(self, receivable_ledger, bill_payload, settlement_payload):
        bill = receivable_ledger.create_bill(bill_payload(total_amount=Decimal("10")))
        receivable_ledger.apply_settlement(settlement_payload(bill.id, "10"))

        with pytest.raises(AlreadySettledError) as exc_info:
            receivable_ledger.apply_settlement(settlement_payload(bill.id, "1"))
        assert exc_info.value.bill_no == bill.bill_no

    def test_zero_value_bill_refuses_settlement(
        self, receivable_ledger, bill_payload, settlement_payload,
    ):
        bill = receivable_ledger.create_bill(bill_payload(total_amount=Decimal("0")))
        with pytest.raises(AlreadySettledError):
            receivable_ledger.apply_settlement(settlement_payload(bill.id, "0.01"))

    def test_unknown_bill(self, receivable_ledger, settlement_payload):
        with pytest.raises(BillNotFoundError):
            receivable_ledger.apply_settlement(settlement_payload(uuid4(), "1"))

    def test_below_minimum_amount(self, receivable_ledger, bill_payload, settlement_payload):
        bill = receivable_ledger.create_bill(bill_payload())
        with pytest.raises(ValidationError) as exc_info:
            receivable_ledger.apply_settlement(settlement_payload(bill.id, "0"))
        assert exc_info.value.fields == ("amount",)
        assert receivable_ledger.list_all_settlements() == []

    def test_explicit_number_and_method(
        self, receivable_ledger, bill_payload, settlement_payload,
    ):
        bill = receivable_ledger.create_bill(bill_payload())
        settlement = receivable_ledger.apply_settlement(
            settlement_payload(bill.id, "5", settlement_no="REC001", method="cash")
        )
        assert settlement.settlement_no == "REC001"
        assert settlement.method is SettlementMethod.CASH
        assert receivable_ledger.get_settlement_by_number("REC001") == settlement

    def test_duplicate_number_rejected_and_bill_unchanged(
        self, receivable_ledger, bill_payload, settlement_payload,
    ):
        bill = receivable_ledger.create_bill(bill_payload())
        receivable_ledger.apply_settlement(
            settlement_payload(bill.id, "5", settlement_no="REC001")
        )
        before = receivable_ledger.get_bill(bill.id)

        with pytest.raises(DuplicateNumberError):
            receivable_ledger.apply_settlement(
                settlement_payload(bill.id, "5", settlement_no="REC001")
            )
        assert receivable_ledger.get_bill(bill.id) == before


class TestReverseSettlement:

    def test_round_trip_restores_bill(
        self, receivable_ledger, bill_payload, settlement_payload,
    ):
        bill = receivable_ledger.create_bill(bill_payload(total_amount=Decimal("100")))
        receivable_ledger.apply_settlement(settlement_payload(bill.id, "30"))
        before = receivable_ledger.get_bill(bill.id)

        settlement = receivable_ledger.apply_settlement(settlement_payload(bill.id, "45.50"))
        restored = receivable_ledger.reverse_settlement(settlement.id)

        assert _balance_fields(restored) == _balance_fields(before)
        assert receivable_ledger.get_bill(bill.id) == restored

    def test_reverse_out_of_paid(
        self, receivable_ledger, bill_payload, settlement_payload,
    ):
        bill = receivable_ledger.create_bill(bill_payload(total_amount=Decimal("100")))
        settlement = receivable_ledger.apply_settlement(settlement_payload(bill.id, "100"))
        assert receivable_ledger.get_bill(bill.id).status is BillStatus.PAID

        restored = receivable_ledger.reverse_settlement(settlement.id)
        assert restored.status is BillStatus.UNPAID
        assert restored.balance_amount == Decimal("100")
        assert restored.paid_at is None

    def test_reversed_settlement_is_gone(
        self, receivable_ledger, bill_payload, settlement_payload,
    ):
        bill = receivable_ledger.create_bill(bill_payload())
        settlement = receivable_ledger.apply_settlement(settlement_payload(bill.id, "5"))
        receivable_ledger.reverse_settlement(settlement.id)

        assert receivable_ledger.list_settlements_for_bill(bill.id) == []
        assert receivable_ledger.get_settlement_by_number(settlement.settlement_no) is None
        receivable_ledger.delete_bill(bill.id)

    def test_reverse_unknown(self, receivable_ledger):
        with pytest.raises(SettlementNotFoundError):
            receivable_ledger.reverse_settlement(uuid4())

    def test_reverse_twice(self, receivable_ledger, bill_payload, settlement_payload):
        bill = receivable_ledger.create_bill(bill_payload())
        settlement = receivable_ledger.apply_settlement(settlement_payload(bill.id, "5"))
        receivable_ledger.reverse_settlement(settlement.id)
        with pytest.raises(SettlementNotFoundError):
            receivable_ledger.reverse_settlement(settlement.id)


class TestListings:

    def test_per_bill_newest_first(
        self, receivable_ledger, bill_payload, settlement_payload, deterministic_clock,
    ):
        bill = receivable_ledger.create_bill(bill_payload())
        other = receivable_ledger.create_bill(bill_payload())
        first = receivable_ledger.apply_settlement(settlement_payload(bill.id, "1"))
        deterministic_clock.advance(5)
        receivable_ledger.apply_settlement(settlement_payload(other.id, "1"))
        deterministic_clock.advance(5)
        third = receivable_ledger.apply_settlement(settlement_payload(bill.id, "1"))

        listed = receivable_ledger.list_settlements_for_bill(bill.id)
        assert [s.id for s in listed] == [third.id, first.id]
        assert len(receivable_ledger.list_all_settlements()) == 3
        assert receivable_ledger.list_all_settlements()[0] == third

    def test_same_instant_settlements_in_creation_order(
        self, receivable_ledger, bill_payload, settlement_payload,
    ):
        bill = receivable_ledger.create_bill(bill_payload())
        first = receivable_ledger.apply_settlement(
            settlement_payload(bill.id, "1", settlement_no="REC-Z"),
        )
        second = receivable_ledger.apply_settlement(
            settlement_payload(bill.id, "1", settlement_no="REC-A"),
        )

        listed = receivable_ledger.list_settlements_for_bill(bill.id)
        assert [s.id for s in listed] == [second.id, first.id]
        assert receivable_ledger.list_all_settlements()[0] == second

    def test_settlement_numbers_are_unique(
        self, receivable_ledger, bill_payload, settlement_payload,
    ):
        bill = receivable_ledger.create_bill(bill_payload(total_amount=Decimal("100")))
        for _ in range(10):
            receivable_ledger.apply_settlement(settlement_payload(bill.id, "1"))
        numbers = [s.settlement_no for s in receivable_ledger.list_all_settlements()]
        assert len(set(numbers)) == 10

    def test_settlement_dates_kept(
        self, receivable_ledger, bill_payload, settlement_payload, today,
    ):
        bill = receivable_ledger.create_bill(bill_payload())
        settlement = receivable_ledger.apply_settlement(
            settlement_payload(bill.id, "1", settlement_date=today - timedelta(days=3))
        )
        assert settlement.settlement_date == today - timedelta(days=3)
