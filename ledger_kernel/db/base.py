"""
Module: ledger_kernel.db.base
Responsibility: Declarative base and portable column types for the ledger's
    SQLAlchemy ORM models.
Architecture position: Kernel > DB.  Lowest-level import target for ORM
    code.  May import domain constants; MUST NOT import from storage/,
    services/ or outer layers.

Invariants enforced:
    - UUID primary keys stored as String(36) for cross-database portability.
    - Decimal maps to Money: NUMERIC(18, 2), stored as exact text on SQLite.
      NEVER use float for monetary amounts.
    - Timestamps are always returned timezone-aware (UTC), including on
      backends such as SQLite that drop the offset on storage.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from ledger_kernel.domain.models import MONEY_PRECISION, MONEY_QUANTUM, MONEY_SCALE


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime that always loads as UTC.

    Values are normalized to UTC on the way in.  Naive values read back
    from the database are tagged UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Money(TypeDecorator):
    """
    Fixed-point money column.

    PostgreSQL gets NUMERIC(MONEY_PRECISION, MONEY_SCALE).  SQLite has no
    decimal type and would round-trip through a float, so there the value
    is stored as its exact decimal text.

    Raises:
        ValueError: on bind, if the value has more than MONEY_SCALE
            decimal places.  Payload validation rejects such amounts first.
    """

    impl = Numeric(MONEY_PRECISION, MONEY_SCALE)
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(MONEY_PRECISION + 2))
        return dialect.type_descriptor(Numeric(MONEY_PRECISION, MONEY_SCALE))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        amount = Decimal(value)
        stored = amount.quantize(MONEY_QUANTUM)
        if stored != amount:
            raise ValueError(f"Money value {amount} has more than {MONEY_SCALE} decimal places")
        if dialect.name == "sqlite":
            return str(stored)
        return stored

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    """
    Declarative base for all ledger ORM models.

    Guarantees:
        - id is always a uuid4-generated UUID stored as String(36).
        - Decimal maps to Money.
        - datetime maps to UTCDateTime.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Money(),
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


UUID = PyUUID
