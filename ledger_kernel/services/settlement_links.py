"""
SettlementLinks -- bill id -> owned settlement ids.

Shared by BillRegistry (deletion guard) and SettlementLedger (per-bill
listing).  Rebuilt from storage on startup; mutated only after a storage
transaction has committed.  Not thread-safe; callers hold the ledger lock.
"""

from collections.abc import Iterable
from uuid import UUID


class SettlementLinks:

    def __init__(self) -> None:
        self._by_bill: dict[UUID, list[UUID]] = {}

    def add(self, bill_id: UUID, settlement_id: UUID) -> None:
        self._by_bill.setdefault(bill_id, []).append(settlement_id)

    def remove(self, bill_id: UUID, settlement_id: UUID) -> None:
        ids = self._by_bill.get(bill_id)
        if ids and settlement_id in ids:
            ids.remove(settlement_id)

    def ids_for(self, bill_id: UUID) -> tuple[UUID, ...]:
        return tuple(self._by_bill.get(bill_id, ()))

    def count(self, bill_id: UUID) -> int:
        return len(self._by_bill.get(bill_id, ()))

    def drop_bill(self, bill_id: UUID) -> None:
        self._by_bill.pop(bill_id, None)

    def rebuild(self, pairs: Iterable[tuple[UUID, UUID]]) -> None:
        self._by_bill = {}
        for bill_id, settlement_id in pairs:
            self.add(bill_id, settlement_id)
