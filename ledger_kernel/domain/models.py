"""
Open-Item Domain Models (``ledger_kernel.domain.models``).

Responsibility
--------------
Frozen dataclass value objects for the two nouns of the open-item ledger:
the *bill* (an obligation with a face amount and a due date) and the
*settlement* (a payment or receipt that reduces a bill's balance).  Also
home of the single status derivation rule.

Architecture position
---------------------
**Kernel > Domain** -- pure data definitions with ZERO I/O.  Consumed by
the registry, the settlement ledger, storage adapters and callers.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``settled_amount + balance_amount == total_amount`` and
  ``balance_amount >= 0`` (checked by ``check_bill_invariants``).
* ``status`` is always ``derive_status(total_amount, settled_amount)``.

Failure modes
-------------
* ``InvariantViolationError`` from ``check_bill_invariants``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.exceptions import InvariantViolationError

ZERO = Decimal("0")

# Money is stored as NUMERIC(MONEY_PRECISION, MONEY_SCALE); payload
# validation keeps every amount inside that envelope.
MONEY_SCALE = 2
MONEY_PRECISION = 18
MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_SCALE)
MAX_AMOUNT = Decimal(10) ** (MONEY_PRECISION - MONEY_SCALE) - MONEY_QUANTUM


class LedgerDirection(Enum):
    """Which side of the open-item book a ledger tracks."""
    PAYABLE = "payable"
    RECEIVABLE = "receivable"


class BillStatus(Enum):
    """Settlement state of a bill. Derived, never set directly."""
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class SettlementMethod(Enum):
    """How a settlement was transacted."""
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CREDIT_CARD = "credit_card"
    OTHER = "other"


def derive_status(total_amount: Decimal, settled_amount: Decimal) -> BillStatus:
    """
    The one status rule.

    PAID wins over UNPAID, so a zero-value bill is PAID from birth.
    """
    balance = total_amount - settled_amount
    if balance <= ZERO:
        return BillStatus.PAID
    if settled_amount == ZERO:
        return BillStatus.UNPAID
    return BillStatus.PARTIAL


@dataclass(frozen=True)
class Bill:
    """An open item: a payable or receivable obligation."""
    id: UUID
    bill_no: str
    counterparty_id: str
    bill_date: date
    due_date: date
    total_amount: Decimal
    settled_amount: Decimal
    balance_amount: Decimal
    status: BillStatus
    created_at: datetime
    updated_at: datetime
    order_id: str | None = None
    remark: str | None = None
    paid_at: datetime | None = None

    @property
    def is_paid(self) -> bool:
        return self.status is BillStatus.PAID

    def is_overdue(self, as_of: date) -> bool:
        return self.status is not BillStatus.PAID and self.due_date < as_of


@dataclass(frozen=True)
class Settlement:
    """A payment or receipt applied to exactly one bill."""
    id: UUID
    settlement_no: str
    bill_id: UUID
    settlement_date: date
    method: SettlementMethod
    amount: Decimal
    operator: str
    created_at: datetime
    updated_at: datetime
    remark: str | None = None


def with_settled_amount(bill: Bill, settled_amount: Decimal, at: datetime) -> Bill:
    """
    Return ``bill`` carrying a new cumulative settled amount.

    Balance is clamped at zero and status re-derived.  ``paid_at`` is
    stamped on the transition into PAID and cleared on the way out.
    """
    settled = max(settled_amount, ZERO)
    balance = max(bill.total_amount - settled, ZERO)
    status = derive_status(bill.total_amount, settled)
    if status is BillStatus.PAID:
        paid_at = bill.paid_at if bill.status is BillStatus.PAID else at
    else:
        paid_at = None
    return replace(
        bill,
        settled_amount=settled,
        balance_amount=balance,
        status=status,
        paid_at=paid_at,
        updated_at=at,
    )


def check_bill_invariants(bill: Bill) -> None:
    """Raise ``InvariantViolationError`` if ``bill`` is internally inconsistent."""
    if bill.balance_amount < ZERO:
        raise InvariantViolationError(
            "non_negative_balance", str(bill.id),
            f"balance_amount={bill.balance_amount}",
        )
    if bill.settled_amount + bill.balance_amount != bill.total_amount:
        raise InvariantViolationError(
            "balance_identity", str(bill.id),
            f"settled={bill.settled_amount} + balance={bill.balance_amount} "
            f"!= total={bill.total_amount}",
        )
    expected = derive_status(bill.total_amount, bill.settled_amount)
    if bill.status is not expected:
        raise InvariantViolationError(
            "status_derivation", str(bill.id),
            f"status={bill.status.value}, expected={expected.value}",
        )
