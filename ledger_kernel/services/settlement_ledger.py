"""
SettlementLedger -- applies and reverses settlements against bills.

Responsibility:
    Record payments/receipts, move the owning bill's settled and balance
    amounts in the same storage transaction, and answer settlement queries.

Architecture position:
    Kernel > Services.  Writes bill balance fields only through
    ``BillRegistry.replace_settled_fields``.

Invariants enforced:
    - A settlement never takes a bill below zero balance: the excess check
      and the bill rewrite happen under one lock acquisition.
    - A PAID bill accepts no further settlements.
    - Reverse is the exact inverse of apply for settled/balance/status.
    - Settlement numbers are unique within the book.

Failure modes:
    - ValidationError: bad payload (amount below 0.01 or with more than two
      decimal places, missing operator, ...).
    - BillNotFoundError: the draft names an unknown bill.
    - AlreadySettledError: the bill is PAID.
    - ExcessAmountError: amount > balance.
    - DuplicateNumberError: explicit settlement number already taken.
    - SettlementNotFoundError: reverse of an unknown settlement.

Audit relevance:
    Every apply and reverse is logged with the before/after balance.
"""

from threading import RLock
from uuid import UUID, uuid4

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.models import Bill, Settlement, SettlementMethod
from ledger_kernel.domain.payloads import DEFAULT_REMARK_MAX_LENGTH, SettlementDraft
from ledger_kernel.exceptions import (
    AlreadySettledError,
    ExcessAmountError,
    SettlementNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.bill_registry import BillRegistry
from ledger_kernel.services.creation_order import CreationOrder
from ledger_kernel.services.sequence_service import (
    NumberIndex,
    NumberScope,
    NumberSequencer,
)
from ledger_kernel.services.settlement_links import SettlementLinks
from ledger_kernel.storage.base import LedgerStorage

logger = get_logger("services.settlement_ledger")


class SettlementLedger:
    """
    Settlement store bound to a bill registry.

    Contract:
        ``apply_settlement`` and ``reverse_settlement`` return only after
        the settlement and the rewritten bill are both committed.
    Guarantees:
        On any failure neither the settlement nor the bill is changed.
    """

    def __init__(
        self,
        storage: LedgerStorage,
        registry: BillRegistry,
        sequencer: NumberSequencer,
        clock: Clock,
        links: SettlementLinks,
        lock: RLock,
        *,
        settlement_prefix: str,
        default_method: SettlementMethod = SettlementMethod.BANK_TRANSFER,
        remark_max_length: int = DEFAULT_REMARK_MAX_LENGTH,
    ):
        self._storage = storage
        self._registry = registry
        self._sequencer = sequencer
        self._clock = clock
        self._links = links
        self._lock = lock
        self._settlement_prefix = settlement_prefix
        self._default_method = default_method
        self._remark_max_length = remark_max_length
        self._index = NumberIndex(NumberScope.SETTLEMENT)
        self._order = CreationOrder()
        sequencer.register(self._index)

    def rebuild_index(self) -> None:
        """Reload the number index and bill links from storage."""
        with self._lock:
            settlements = list(self._storage.settlements.scan())
            self._index.rebuild((s.settlement_no, s.id) for s in settlements)
            self._links.rebuild((s.bill_id, s.id) for s in settlements)
            self._order.rebuild((s.created_at, s.settlement_no, s.id) for s in settlements)
            logger.debug(
                "settlement_index_rebuilt",
                extra={"settlement_count": len(settlements)},
            )

    # =========================================================================
    # Commands
    # =========================================================================

    def apply_settlement(self, draft: SettlementDraft) -> Settlement:
        """Record a settlement and reduce the bill's balance by its amount."""
        draft = draft.validated(
            default_method=self._default_method,
            remark_max_length=self._remark_max_length,
        )

        with self._lock:
            bill = self._registry.get(draft.bill_id)
            if bill.is_paid:
                raise AlreadySettledError(str(bill.id), bill.bill_no)
            if draft.amount > bill.balance_amount:
                logger.warning(
                    "settlement_excess_rejected",
                    extra={
                        "bill_id": str(bill.id),
                        "amount": str(draft.amount),
                        "balance": str(bill.balance_amount),
                    },
                )
                raise ExcessAmountError(
                    str(bill.id), draft.amount, bill.balance_amount,
                )
            if draft.settlement_no is not None:
                self._index.check_free(draft.settlement_no)

            now = self._clock.now_utc()
            with self._storage.begin():
                settlement_no = draft.settlement_no or self._sequencer.allocate(
                    self._settlement_prefix, NumberScope.SETTLEMENT
                )
                settlement = Settlement(
                    id=uuid4(),
                    settlement_no=settlement_no,
                    bill_id=bill.id,
                    settlement_date=draft.settlement_date,
                    method=draft.method,
                    amount=draft.amount,
                    operator=draft.operator,
                    remark=draft.remark,
                    created_at=now,
                    updated_at=now,
                )
                self._storage.settlements.put(settlement)
                updated = self._registry.replace_settled_fields(
                    bill, bill.settled_amount + draft.amount, now,
                )
            self._index.claim(settlement.settlement_no, settlement.id)
            self._links.add(bill.id, settlement.id)
            self._order.record(settlement.id)

        logger.info(
            "settlement_applied",
            extra={
                "settlement_id": str(settlement.id),
                "settlement_no": settlement.settlement_no,
                "bill_id": str(bill.id),
                "amount": str(settlement.amount),
                "balance_before": str(bill.balance_amount),
                "balance_after": str(updated.balance_amount),
                "status": updated.status.value,
            },
        )
        return settlement

    def reverse_settlement(self, settlement_id: UUID) -> Bill:
        """Remove a settlement and restore its amount to the bill's balance."""
        with self._lock:
            settlement = self._storage.settlements.get(settlement_id)
            if settlement is None:
                raise SettlementNotFoundError(str(settlement_id))
            bill = self._registry.get(settlement.bill_id)

            now = self._clock.now_utc()
            with self._storage.begin():
                updated = self._registry.replace_settled_fields(
                    bill, bill.settled_amount - settlement.amount, now,
                )
                self._storage.settlements.delete(settlement.id)
            self._index.release(settlement.settlement_no)
            self._links.remove(bill.id, settlement.id)
            self._order.forget(settlement.id)

        logger.info(
            "settlement_reversed",
            extra={
                "settlement_id": str(settlement.id),
                "settlement_no": settlement.settlement_no,
                "bill_id": str(bill.id),
                "amount": str(settlement.amount),
                "balance_before": str(bill.balance_amount),
                "balance_after": str(updated.balance_amount),
                "status": updated.status.value,
            },
        )
        return updated

    # =========================================================================
    # Queries
    # =========================================================================

    def settlements_for(self, bill_id: UUID) -> list[Settlement]:
        with self._lock:
            found = [
                self._storage.settlements.get(sid)
                for sid in self._links.ids_for(bill_id)
            ]
        return self._newest_first([s for s in found if s is not None])

    def all_settlements(self) -> list[Settlement]:
        with self._lock:
            return self._newest_first(list(self._storage.settlements.scan()))

    def find_by_number(self, settlement_no: str) -> Settlement | None:
        with self._lock:
            settlement_id = self._index.lookup(settlement_no)
            if settlement_id is None:
                return None
            return self._storage.settlements.get(settlement_id)

    def count_for(self, bill_id: UUID) -> int:
        with self._lock:
            return self._links.count(bill_id)

    def _newest_first(self, settlements: list[Settlement]) -> list[Settlement]:
        return sorted(
            settlements,
            key=lambda s: (s.created_at, self._order.rank(s.id)),
            reverse=True,
        )

    def preview_number(self) -> str:
        """Scan-based candidate for the next settlement number."""
        with self._lock:
            return self._sequencer.next(self._settlement_prefix, NumberScope.SETTLEMENT)
