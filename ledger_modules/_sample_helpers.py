"""
Shared helpers for seeding sample books.

Used by ledger_modules/{ap,ar}/sample_data.py.  Dates are offsets in days
from the ledger clock's current date, so a seeded book always has one
overdue bill regardless of when it is built.

Architecture: Modules layer. Goes through the ``OpenItemLedger`` API only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.models import Bill, Settlement, SettlementMethod
from ledger_kernel.logging_config import get_logger
from ledger_modules.open_items import OpenItemLedger

logger = get_logger("modules.sample_data")


@dataclass(frozen=True)
class SampleBill:
    bill_no: str
    counterparty_id: str
    bill_offset_days: int
    due_offset_days: int
    total_amount: Decimal
    order_id: str | None = None


@dataclass(frozen=True)
class SampleSettlement:
    """A settlement against ``bills[bill_index]`` of the same sample set."""
    settlement_no: str
    bill_index: int
    date_offset_days: int
    amount: Decimal
    operator: str
    remark: str
    method: SettlementMethod = SettlementMethod.BANK_TRANSFER


def seed_book(
    ledger: OpenItemLedger,
    clock: Clock,
    bills: tuple[SampleBill, ...],
    settlements: tuple[SampleSettlement, ...],
) -> tuple[list[Bill], list[Settlement]]:
    """Create ``bills`` then apply ``settlements``; returns what was created."""
    today = clock.today()

    created: list[Bill] = []
    for sample in bills:
        created.append(ledger.create_bill({
            "bill_no": sample.bill_no,
            "counterparty_id": sample.counterparty_id,
            "order_id": sample.order_id,
            "bill_date": today + timedelta(days=sample.bill_offset_days),
            "due_date": today + timedelta(days=sample.due_offset_days),
            "total_amount": sample.total_amount,
        }))

    applied: list[Settlement] = []
    for sample in settlements:
        applied.append(ledger.apply_settlement({
            "settlement_no": sample.settlement_no,
            "bill_id": created[sample.bill_index].id,
            "settlement_date": today + timedelta(days=sample.date_offset_days),
            "method": sample.method,
            "amount": sample.amount,
            "operator": sample.operator,
            "remark": sample.remark,
        }))

    logger.info(
        "sample_book_seeded",
        extra={
            "direction": ledger.config.direction.value,
            "bill_count": len(created),
            "settlement_count": len(applied),
        },
    )
    return created, applied
