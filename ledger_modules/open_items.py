"""
Open-Item Ledger Facade (``ledger_modules.open_items``).

Responsibility
--------------
The single public entry point for one ledger book.  ``OpenItemLedger``
wires the kernel services -- ``BillRegistry``, ``SettlementLedger``,
``NumberSequencer``, ``StatsAggregator`` -- around one re-entrant lock and
exposes the bill, settlement, numbering and statistics operations.  The
same class serves payables and receivables; only the ``LedgerConfig``
differs.

Architecture position
---------------------
**Modules layer** -- reads ``LedgerConfig`` and hands plain values to the
kernel.  The kernel never imports ``ledger_config``.

Invariants enforced
-------------------
* Every operation runs inside the ledger's critical section, so the
  balance check and bill rewrite in apply/reverse, number allocation and
  index insertion, and index reads never interleave.
* In-process indices are rebuilt from storage at construction, so a
  ledger over existing SQL rows resumes where it left off.

Failure modes
-------------
* Kernel errors (``ValidationError``, ``BillNotFoundError``,
  ``ExcessAmountError`` ...) propagate unchanged after being logged.

Audit relevance
---------------
Each operation binds ``direction`` and, where known, ``bill_id`` /
``settlement_id`` into ``LogContext`` so every kernel log line it
triggers carries them.

Usage::

    ledger = OpenItemLedger(RECEIVABLES_CONFIG, clock=clock)
    bill = ledger.create_bill({
        "counterparty_id": "customer-1",
        "bill_date": "2025-01-02",
        "due_date": "2025-02-01",
        "total_amount": "1000.00",
    })
    ledger.apply_settlement({
        "bill_id": bill.id, "amount": "400", "operator": "clerk",
        "settlement_date": "2025-01-10",
    })
"""

from __future__ import annotations

from collections.abc import Mapping
from threading import RLock
from typing import Any
from uuid import UUID

from ledger_config import LedgerConfig
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.models import (
    Bill,
    BillStatus,
    Settlement,
    SettlementMethod,
)
from ledger_kernel.domain.payloads import (
    BillDetailsUpdate,
    BillDraft,
    SettlementDraft,
)
from ledger_kernel.exceptions import LedgerError, ValidationError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.services import (
    BillRegistry,
    BillStats,
    MethodTotals,
    NumberSequencer,
    SettlementLedger,
    SettlementLinks,
    StatsAggregator,
)
from ledger_kernel.storage import InMemoryStorage, LedgerStorage

logger = get_logger("modules.open_items")


def _as_draft(payload: BillDraft | Mapping[str, Any]) -> BillDraft:
    if isinstance(payload, BillDraft):
        return payload
    return BillDraft.from_mapping(payload)


def _as_update(payload: BillDetailsUpdate | Mapping[str, Any]) -> BillDetailsUpdate:
    if isinstance(payload, BillDetailsUpdate):
        return payload
    return BillDetailsUpdate.from_mapping(payload)


def _as_settlement(payload: SettlementDraft | Mapping[str, Any]) -> SettlementDraft:
    if isinstance(payload, SettlementDraft):
        return payload
    return SettlementDraft.from_mapping(payload)


def _as_status(status: BillStatus | str) -> BillStatus:
    """Accept a member, its value (``"paid"``) or its name (``"PAID"``)."""
    if isinstance(status, BillStatus):
        return status
    if isinstance(status, str):
        for member in BillStatus:
            if status in (member.value, member.name):
                return member
    raise ValidationError("bill", [{
        "field": "status",
        "message": f"is not a bill status: {status!r}",
    }])


class OpenItemLedger:
    """
    One open-item book: bills, settlements, numbering and stats.

    Contract
    --------
    * Payload arguments accept either the typed draft or a plain mapping.
    * Returned ``Bill``/``Settlement`` objects are frozen snapshots.

    Guarantees
    ----------
    * A failed operation leaves storage and indices unchanged.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT resolve counterparties or orders; their ids are opaque text.
    """

    def __init__(
        self,
        config: LedgerConfig,
        storage: LedgerStorage | None = None,
        clock: Clock | None = None,
    ):
        self._config = config
        self._storage = storage or InMemoryStorage()
        self._clock = clock or SystemClock()
        self._lock = RLock()
        self._links = SettlementLinks()

        self._sequencer = NumberSequencer(
            self._storage.counters, self._clock, width=config.sequence_width,
        )
        self._registry = BillRegistry(
            self._storage,
            self._sequencer,
            self._clock,
            self._links,
            self._lock,
            bill_prefix=config.bill_prefix,
            remark_max_length=config.remark_max_length,
        )
        self._settlements = SettlementLedger(
            self._storage,
            self._registry,
            self._sequencer,
            self._clock,
            self._links,
            self._lock,
            settlement_prefix=config.settlement_prefix,
            default_method=config.default_method,
            remark_max_length=config.remark_max_length,
        )
        self._stats = StatsAggregator(self._registry, self._settlements)

        with self._lock:
            self._registry.rebuild_index()
            self._settlements.rebuild_index()

        logger.info(
            "open_item_ledger_initialized",
            extra={
                "direction": config.direction.value,
                "bill_prefix": config.bill_prefix,
                "settlement_prefix": config.settlement_prefix,
                "storage": type(self._storage).__name__,
            },
        )

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @property
    def clock(self) -> Clock:
        return self._clock

    def _context(self, **fields: Any):
        return LogContext.bind(direction=self._config.direction.value, **fields)

    def _failed(self, operation: str, exc: LedgerError) -> None:
        logger.info(
            "ledger_operation_rejected",
            extra={"operation": operation, "error_code": exc.code, "reason": str(exc)},
        )

    # =========================================================================
    # Bills
    # =========================================================================

    def create_bill(self, payload: BillDraft | Mapping[str, Any]) -> Bill:
        """Register a bill; its number is allocated unless supplied."""
        with self._context():
            try:
                return self._registry.create(_as_draft(payload))
            except LedgerError as exc:
                self._failed("create_bill", exc)
                raise

    def update_bill(
        self, bill_id: UUID, payload: BillDetailsUpdate | Mapping[str, Any],
    ) -> Bill:
        """Edit bill details. Balance fields are not editable."""
        with self._context(bill_id=bill_id):
            try:
                return self._registry.update(bill_id, _as_update(payload))
            except LedgerError as exc:
                self._failed("update_bill", exc)
                raise

    def delete_bill(self, bill_id: UUID) -> None:
        with self._context(bill_id=bill_id):
            try:
                self._registry.delete(bill_id)
            except LedgerError as exc:
                self._failed("delete_bill", exc)
                raise

    def list_bills(
        self,
        *,
        counterparty_id: str | None = None,
        status: BillStatus | str | None = None,
    ) -> list[Bill]:
        """Bills newest first, optionally filtered by counterparty and status."""
        with self._context():
            if status is not None:
                try:
                    status = _as_status(status)
                except ValidationError as exc:
                    self._failed("list_bills", exc)
                    raise
            bills = self._registry.find_all()
        if counterparty_id is not None:
            bills = [b for b in bills if b.counterparty_id == counterparty_id]
        if status is not None:
            bills = [b for b in bills if b.status is status]
        return bills

    def get_bill(self, bill_id: UUID) -> Bill | None:
        return self._registry.find_by_id(bill_id)

    def get_bill_by_number(self, bill_no: str) -> Bill | None:
        return self._registry.find_by_number(bill_no)

    def list_overdue_bills(self) -> list[Bill]:
        return self._registry.find_overdue()

    # =========================================================================
    # Settlements
    # =========================================================================

    def apply_settlement(
        self, payload: SettlementDraft | Mapping[str, Any],
    ) -> Settlement:
        """Record a payment/receipt against a bill and reduce its balance."""
        if isinstance(payload, SettlementDraft):
            bill_id = payload.bill_id
        else:
            bill_id = payload.get("bill_id")
        with self._context(bill_id=bill_id):
            try:
                return self._settlements.apply_settlement(_as_settlement(payload))
            except LedgerError as exc:
                self._failed("apply_settlement", exc)
                raise

    def reverse_settlement(self, settlement_id: UUID) -> Bill:
        """Undo a settlement; returns the bill with its balance restored."""
        with self._context(settlement_id=settlement_id):
            try:
                return self._settlements.reverse_settlement(settlement_id)
            except LedgerError as exc:
                self._failed("reverse_settlement", exc)
                raise

    def list_settlements_for_bill(self, bill_id: UUID) -> list[Settlement]:
        return self._settlements.settlements_for(bill_id)

    def list_all_settlements(self) -> list[Settlement]:
        return self._settlements.all_settlements()

    def get_settlement_by_number(self, settlement_no: str) -> Settlement | None:
        return self._settlements.find_by_number(settlement_no)

    # =========================================================================
    # Numbering
    # =========================================================================

    def generate_bill_number(self) -> str:
        """Next free-looking bill number for this month. Reserves nothing."""
        return self._registry.preview_number()

    def generate_settlement_number(self) -> str:
        """Next free-looking settlement number for this month. Reserves nothing."""
        return self._settlements.preview_number()

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> BillStats:
        with self._lock:
            return self._stats.bill_stats()

    def get_stats_by_method(self) -> dict[SettlementMethod, MethodTotals]:
        with self._lock:
            return self._stats.stats_by_method()
