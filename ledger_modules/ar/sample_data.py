"""Sample receivables book: three customer bills in mixed states."""

from __future__ import annotations

from decimal import Decimal

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.models import Bill, Settlement
from ledger_modules._sample_helpers import SampleBill, SampleSettlement, seed_book
from ledger_modules.open_items import OpenItemLedger

SAMPLE_BILLS = (
    SampleBill("AR001", "customer-1", -25, -10, Decimal("89000"), "sales-order-1"),
    SampleBill("AR002", "customer-2", -18, 12, Decimal("125000"), "sales-order-2"),
    SampleBill("AR003", "customer-1", -8, 22, Decimal("67000")),
)

SAMPLE_RECEIPTS = (
    SampleSettlement("REC001", 0, -20, Decimal("30000"), "sales clerk", "first installment"),
    SampleSettlement("REC002", 2, -3, Decimal("67000"), "sales clerk", "received in full"),
)


def seed_sample_data(
    ledger: OpenItemLedger, clock: Clock,
) -> tuple[list[Bill], list[Settlement]]:
    """
    AR001 partially received and overdue, AR002 unpaid, AR003 received
    in full.
    """
    return seed_book(ledger, clock, SAMPLE_BILLS, SAMPLE_RECEIPTS)
