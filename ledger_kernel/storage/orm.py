"""
Open-Item ORM Models (``ledger_kernel.storage.orm``).

Responsibility
--------------
SQLAlchemy persistence models for bills, settlements and sequence counters.
Maps the frozen domain dataclasses from ``domain.models`` to tables.

Both books (payable and receivable) share the tables; the ``book`` column
partitions them, and the uniqueness constraints are scoped per book.

Guarantees
----------
* ``(book, bill_no)`` and ``(book, settlement_no)`` are unique; the
  database backs the ledger's in-process number index.
* Monetary fields use Decimal (``Money``, NUMERIC(18,2), via type_annotation_map).
* Enum fields are stored as their string value.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Date,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base
from ledger_kernel.domain.models import (
    Bill,
    BillStatus,
    Settlement,
    SettlementMethod,
)
from ledger_kernel.domain.payloads import (
    NUMBER_MAX_LENGTH,
    OPERATOR_MAX_LENGTH,
    REFERENCE_MAX_LENGTH,
    REMARK_COLUMN_LENGTH,
)


# ---------------------------------------------------------------------------
# 1. BillModel
# ---------------------------------------------------------------------------


class BillModel(Base):
    """ORM model for bills. Maps to the ``Bill`` frozen dataclass."""

    __tablename__ = "ledger_bills"

    __table_args__ = (
        UniqueConstraint("book", "bill_no", name="uq_ledger_bills_book_bill_no"),
        Index("idx_ledger_bills_counterparty_id", "counterparty_id"),
        Index("idx_ledger_bills_status", "status"),
        Index("idx_ledger_bills_due_date", "due_date"),
    )

    book: Mapped[str] = mapped_column(String(20), nullable=False)
    bill_no: Mapped[str] = mapped_column(String(NUMBER_MAX_LENGTH), nullable=False)
    counterparty_id: Mapped[str] = mapped_column(
        String(REFERENCE_MAX_LENGTH), nullable=False,
    )
    order_id: Mapped[str | None] = mapped_column(String(REFERENCE_MAX_LENGTH), nullable=True)
    bill_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    settled_amount: Mapped[Decimal] = mapped_column(nullable=False)
    balance_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    remark: Mapped[str | None] = mapped_column(String(REMARK_COLUMN_LENGTH), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self) -> Bill:
        """Convert ORM model to frozen dataclass."""
        return Bill(
            id=self.id,
            bill_no=self.bill_no,
            counterparty_id=self.counterparty_id,
            order_id=self.order_id,
            bill_date=self.bill_date,
            due_date=self.due_date,
            total_amount=self.total_amount,
            settled_amount=self.settled_amount,
            balance_amount=self.balance_amount,
            status=BillStatus(self.status),
            remark=self.remark,
            created_at=self.created_at,
            updated_at=self.updated_at,
            paid_at=self.paid_at,
        )

    def apply_dto(self, dto: Bill) -> None:
        """Copy every mutable field from the dataclass."""
        self.bill_no = dto.bill_no
        self.counterparty_id = dto.counterparty_id
        self.order_id = dto.order_id
        self.bill_date = dto.bill_date
        self.due_date = dto.due_date
        self.total_amount = dto.total_amount
        self.settled_amount = dto.settled_amount
        self.balance_amount = dto.balance_amount
        self.status = dto.status.value
        self.remark = dto.remark
        self.updated_at = dto.updated_at
        self.paid_at = dto.paid_at

    @classmethod
    def from_dto(cls, dto: Bill, book: str) -> "BillModel":
        """Create ORM model from frozen dataclass."""
        model = cls(id=dto.id, book=book, created_at=dto.created_at)
        model.apply_dto(dto)
        return model

    def __repr__(self) -> str:
        return f"<BillModel {self.book}:{self.bill_no} {self.status}>"


# ---------------------------------------------------------------------------
# 2. SettlementModel
# ---------------------------------------------------------------------------


class SettlementModel(Base):
    """
    ORM model for settlements.

    Settlements are never edited after creation; ``apply_dto`` exists only
    for a put that replaces an identical row.
    """

    __tablename__ = "ledger_settlements"

    __table_args__ = (
        UniqueConstraint(
            "book", "settlement_no", name="uq_ledger_settlements_book_settlement_no"
        ),
        Index("idx_ledger_settlements_bill_id", "bill_id"),
    )

    book: Mapped[str] = mapped_column(String(20), nullable=False)
    settlement_no: Mapped[str] = mapped_column(String(NUMBER_MAX_LENGTH), nullable=False)
    bill_id: Mapped[UUID] = mapped_column(
        ForeignKey("ledger_bills.id"), nullable=False
    )
    settlement_date: Mapped[date] = mapped_column(Date, nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    operator: Mapped[str] = mapped_column(String(OPERATOR_MAX_LENGTH), nullable=False)
    remark: Mapped[str | None] = mapped_column(String(REMARK_COLUMN_LENGTH), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> Settlement:
        """Convert ORM model to frozen dataclass."""
        return Settlement(
            id=self.id,
            settlement_no=self.settlement_no,
            bill_id=self.bill_id,
            settlement_date=self.settlement_date,
            method=SettlementMethod(self.method),
            amount=self.amount,
            operator=self.operator,
            remark=self.remark,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def apply_dto(self, dto: Settlement) -> None:
        self.settlement_no = dto.settlement_no
        self.bill_id = dto.bill_id
        self.settlement_date = dto.settlement_date
        self.method = dto.method.value
        self.amount = dto.amount
        self.operator = dto.operator
        self.remark = dto.remark
        self.updated_at = dto.updated_at

    @classmethod
    def from_dto(cls, dto: Settlement, book: str) -> "SettlementModel":
        """Create ORM model from frozen dataclass."""
        model = cls(id=dto.id, book=book, created_at=dto.created_at)
        model.apply_dto(dto)
        return model

    def __repr__(self) -> str:
        return f"<SettlementModel {self.book}:{self.settlement_no} {self.amount}>"


# ---------------------------------------------------------------------------
# 3. SequenceCounter
# ---------------------------------------------------------------------------


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row is a named counter (e.g. ``bill:AP2501``) holding the last
    sequence handed out.  Row-level locking keeps allocation monotonic
    under concurrent sessions.
    """

    __tablename__ = "ledger_sequence_counters"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
