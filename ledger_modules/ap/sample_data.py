"""Sample payables book: three supplier bills in mixed states."""

from __future__ import annotations

from decimal import Decimal

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.models import Bill, Settlement
from ledger_modules._sample_helpers import SampleBill, SampleSettlement, seed_book
from ledger_modules.open_items import OpenItemLedger

SAMPLE_BILLS = (
    SampleBill("AP001", "supplier-1", -30, -15, Decimal("150000"), "purchase-order-1"),
    SampleBill("AP002", "supplier-2", -20, 10, Decimal("89000"), "purchase-order-2"),
    SampleBill("AP003", "supplier-1", -10, 20, Decimal("45000")),
)

SAMPLE_PAYMENTS = (
    SampleSettlement("PAY001", 0, -25, Decimal("50000"), "finance clerk", "first installment"),
    SampleSettlement("PAY002", 2, -5, Decimal("45000"), "finance clerk", "paid in full"),
)


def seed_sample_data(
    ledger: OpenItemLedger, clock: Clock,
) -> tuple[list[Bill], list[Settlement]]:
    """
    AP001 partially paid and overdue, AP002 unpaid, AP003 paid in full.
    """
    return seed_book(ledger, clock, SAMPLE_BILLS, SAMPLE_PAYMENTS)
