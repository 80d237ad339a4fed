"""
BillRegistry -- owner of bill records.

Responsibility:
    Create, update, delete and query bills; keep the bill-number
    uniqueness index; refuse to delete bills that own settlements.

Architecture position:
    Kernel > Services.  Called by the module-layer ledger facade and by
    SettlementLedger (through ``replace_settled_fields`` only).

Invariants enforced:
    - Bill numbers are unique within the book (NumberIndex + storage
      constraint).
    - Balance fields are never written from caller input: they are not
      representable in ``BillDraft``/``BillDetailsUpdate``, and the only
      write path for them is ``replace_settled_fields``.
    - Every bill is checked with ``check_bill_invariants`` before it is
      written.
    - No partial writes: validation and guards run before ``begin()``;
      in-process indices are touched only after the write commits.

Failure modes:
    - ValidationError: bad payload, or a new total below the settled amount.
    - DuplicateNumberError: bill number already taken.
    - BillNotFoundError: unknown bill id.
    - HasSettlementsError: delete of a bill with settlements.

Ordering:
    ``find_all``, ``find_by_counterparty`` and ``find_by_status`` return
    newest ``created_at`` first; bills of the same instant list the
    most recently created first (see ``CreationOrder``).
    ``find_overdue`` returns earliest ``due_date`` first.
"""

from dataclasses import replace
from decimal import Decimal
from threading import RLock
from uuid import UUID, uuid4

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.models import (
    ZERO,
    Bill,
    BillStatus,
    check_bill_invariants,
    derive_status,
    with_settled_amount,
)
from ledger_kernel.domain.payloads import (
    DEFAULT_REMARK_MAX_LENGTH,
    BillDetailsUpdate,
    BillDraft,
)
from ledger_kernel.exceptions import (
    BillNotFoundError,
    HasSettlementsError,
    ValidationError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.creation_order import CreationOrder
from ledger_kernel.services.sequence_service import (
    NumberIndex,
    NumberScope,
    NumberSequencer,
)
from ledger_kernel.services.settlement_links import SettlementLinks
from ledger_kernel.storage.base import LedgerStorage

logger = get_logger("services.bill_registry")


class BillRegistry:
    """
    Bill store plus number index.

    Contract:
        All public methods run under the shared ledger lock, so a registry
        call never observes a half-applied settlement.
    """

    def __init__(
        self,
        storage: LedgerStorage,
        sequencer: NumberSequencer,
        clock: Clock,
        links: SettlementLinks,
        lock: RLock,
        *,
        bill_prefix: str,
        remark_max_length: int = DEFAULT_REMARK_MAX_LENGTH,
    ):
        self._storage = storage
        self._sequencer = sequencer
        self._clock = clock
        self._links = links
        self._lock = lock
        self._bill_prefix = bill_prefix
        self._remark_max_length = remark_max_length
        self._index = NumberIndex(NumberScope.BILL)
        self._order = CreationOrder()
        sequencer.register(self._index)

    def rebuild_index(self) -> None:
        """Reload the number index from storage."""
        with self._lock:
            bills = list(self._storage.bills.scan())
            self._index.rebuild((b.bill_no, b.id) for b in bills)
            self._order.rebuild((b.created_at, b.bill_no, b.id) for b in bills)
            logger.debug("bill_index_rebuilt", extra={"bill_count": len(self._index)})

    # =========================================================================
    # Commands
    # =========================================================================

    def create(self, draft: BillDraft) -> Bill:
        """
        Register a new bill.

        The bill is born with nothing settled; its status follows the
        derivation rule (UNPAID, or PAID for a zero-value bill).
        """
        draft = draft.validated(remark_max_length=self._remark_max_length)

        with self._lock:
            if draft.bill_no is not None:
                self._index.check_free(draft.bill_no)

            now = self._clock.now_utc()
            with self._storage.begin():
                bill_no = draft.bill_no or self._sequencer.allocate(
                    self._bill_prefix, NumberScope.BILL
                )
                status = derive_status(draft.total_amount, ZERO)
                bill = Bill(
                    id=uuid4(),
                    bill_no=bill_no,
                    counterparty_id=draft.counterparty_id,
                    order_id=draft.order_id,
                    bill_date=draft.bill_date,
                    due_date=draft.due_date,
                    total_amount=draft.total_amount,
                    settled_amount=ZERO,
                    balance_amount=draft.total_amount,
                    status=status,
                    remark=draft.remark,
                    created_at=now,
                    updated_at=now,
                    paid_at=now if status is BillStatus.PAID else None,
                )
                check_bill_invariants(bill)
                self._storage.bills.put(bill)
            self._index.claim(bill.bill_no, bill.id)
            self._order.record(bill.id)

        logger.info(
            "bill_created",
            extra={
                "bill_id": str(bill.id),
                "bill_no": bill.bill_no,
                "counterparty_id": bill.counterparty_id,
                "total_amount": str(bill.total_amount),
                "number_allocated": draft.bill_no is None,
            },
        )
        return bill

    def update(self, bill_id: UUID, changes: BillDetailsUpdate) -> Bill:
        """
        Edit a bill's details.

        A changed ``total_amount`` re-derives balance and status from the
        amount already settled.
        """
        with self._lock:
            existing = self.get(bill_id)
            delta = changes.changes()

            merged = BillDraft(
                bill_no=delta.get("bill_no", existing.bill_no),
                counterparty_id=delta.get("counterparty_id", existing.counterparty_id),
                order_id=delta.get("order_id", existing.order_id),
                bill_date=delta.get("bill_date", existing.bill_date),
                due_date=delta.get("due_date", existing.due_date),
                total_amount=delta.get("total_amount", existing.total_amount),
                remark=delta.get("remark", existing.remark),
            ).validated(require_number=True, remark_max_length=self._remark_max_length)

            if merged.total_amount < existing.settled_amount:
                raise ValidationError("bill", [{
                    "field": "total_amount",
                    "message": (
                        f"must not be below the settled amount {existing.settled_amount}"
                    ),
                }])

            renumbered = merged.bill_no != existing.bill_no
            if renumbered:
                self._index.check_free(merged.bill_no, existing.id)

            now = self._clock.now_utc()
            updated = replace(
                existing,
                bill_no=merged.bill_no,
                counterparty_id=merged.counterparty_id,
                order_id=merged.order_id,
                bill_date=merged.bill_date,
                due_date=merged.due_date,
                total_amount=merged.total_amount,
                remark=merged.remark,
                updated_at=now,
            )
            if updated.total_amount != existing.total_amount:
                updated = with_settled_amount(updated, existing.settled_amount, now)
            check_bill_invariants(updated)

            with self._storage.begin():
                self._storage.bills.put(updated)
            if renumbered:
                self._index.release(existing.bill_no)
                self._index.claim(updated.bill_no, updated.id)

        logger.info(
            "bill_updated",
            extra={
                "bill_id": str(bill_id),
                "changed_fields": sorted(delta),
                "status": updated.status.value,
            },
        )
        return updated

    def delete(self, bill_id: UUID) -> None:
        """Remove a bill that owns no settlements."""
        with self._lock:
            existing = self.get(bill_id)
            count = self._links.count(bill_id)
            if count:
                logger.warning(
                    "bill_delete_refused",
                    extra={"bill_id": str(bill_id), "settlement_count": count},
                )
                raise HasSettlementsError(str(bill_id), count)

            with self._storage.begin():
                self._storage.bills.delete(bill_id)
            self._index.release(existing.bill_no)
            self._links.drop_bill(bill_id)
            self._order.forget(bill_id)

        logger.info(
            "bill_deleted",
            extra={"bill_id": str(bill_id), "bill_no": existing.bill_no},
        )

    def replace_settled_fields(self, bill: Bill, settled_amount: Decimal, at) -> Bill:
        """
        Write ``bill`` with a new cumulative settled amount.

        The settlement ledger's write path for balance fields.  Must be
        called inside the caller's ``storage.begin()`` block.
        """
        updated = with_settled_amount(bill, settled_amount, at)
        check_bill_invariants(updated)
        self._storage.bills.put(updated)
        return updated

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, bill_id: UUID) -> Bill:
        """Like ``find_by_id`` but raises ``BillNotFoundError``."""
        bill = self.find_by_id(bill_id)
        if bill is None:
            raise BillNotFoundError(str(bill_id))
        return bill

    def find_by_id(self, bill_id: UUID) -> Bill | None:
        with self._lock:
            return self._storage.bills.get(bill_id)

    def find_by_number(self, bill_no: str) -> Bill | None:
        with self._lock:
            bill_id = self._index.lookup(bill_no)
            return self._storage.bills.get(bill_id) if bill_id is not None else None

    def find_all(self) -> list[Bill]:
        with self._lock:
            return self._newest_first(list(self._storage.bills.scan()))

    def find_by_counterparty(self, counterparty_id: str) -> list[Bill]:
        return [b for b in self.find_all() if b.counterparty_id == counterparty_id]

    def find_by_status(self, status: BillStatus) -> list[Bill]:
        return [b for b in self.find_all() if b.status is status]

    def find_overdue(self) -> list[Bill]:
        """Unpaid or partially paid bills past their due date."""
        with self._lock:
            today = self._clock.today()
            overdue = [b for b in self._storage.bills.scan() if b.is_overdue(today)]
        return sorted(overdue, key=lambda b: (b.due_date, b.bill_no))

    def _newest_first(self, bills: list[Bill]) -> list[Bill]:
        return sorted(
            bills, key=lambda b: (b.created_at, self._order.rank(b.id)), reverse=True,
        )

    def preview_number(self) -> str:
        """Scan-based candidate for the next bill number. Reserves nothing."""
        with self._lock:
            return self._sequencer.next(self._bill_prefix, NumberScope.BILL)
