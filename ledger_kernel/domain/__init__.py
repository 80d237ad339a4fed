"""
Pure domain layer.

Immutable value objects, the status derivation rule, command payloads
and the injectable clock.  No dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O
"""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.models import (
    Bill,
    BillStatus,
    LedgerDirection,
    Settlement,
    SettlementMethod,
    check_bill_invariants,
    derive_status,
)
from ledger_kernel.domain.payloads import (
    BillDetailsUpdate,
    BillDraft,
    SettlementDraft,
)

__all__ = [
    "Bill",
    "BillDetailsUpdate",
    "BillDraft",
    "BillStatus",
    "Clock",
    "DeterministicClock",
    "LedgerDirection",
    "Settlement",
    "SettlementDraft",
    "SettlementMethod",
    "SystemClock",
    "check_bill_invariants",
    "derive_status",
]
