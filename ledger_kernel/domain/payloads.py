"""
Command payloads and schema validation (``ledger_kernel.domain.payloads``).

Responsibility
--------------
Typed input objects for the three mutating commands that accept caller
data -- create bill, update bill details, apply settlement -- together with
the schema checks that guard them.  Untyped callers (JSON bodies, CLI
arguments) go through ``from_mapping``.

Invariants enforced
-------------------
* Balance fields (``settled_amount``, ``balance_amount``, ``status``,
  ``paid_at``) and system fields (``id``, ``created_at``, ``updated_at``)
  are not representable in any payload; mappings that name them are
  rejected.
* Amounts are ``Decimal`` after validation.  ``float`` is rejected.
* Amounts and text fit the storage columns: at most ``MONEY_SCALE``
  decimal places and no more than ``MAX_AMOUNT``; text no longer than
  its column width.
* Validation reports every failing field at once.

Failure modes
-------------
* ``ValidationError`` carrying ``field_errors``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from ledger_kernel.domain.models import (
    MAX_AMOUNT,
    MONEY_QUANTUM,
    MONEY_SCALE,
    ZERO,
    SettlementMethod,
)
from ledger_kernel.exceptions import ValidationError

READ_ONLY_FIELDS = frozenset({
    "id",
    "settled_amount",
    "balance_amount",
    "status",
    "paid_at",
    "created_at",
    "updated_at",
})

DEFAULT_REMARK_MAX_LENGTH = 200

# Column widths in storage/orm.py
NUMBER_MAX_LENGTH = 100
REFERENCE_MAX_LENGTH = 100
OPERATOR_MAX_LENGTH = 255
REMARK_COLUMN_LENGTH = 4000


class _FieldErrors:
    """Accumulates field errors for one payload."""

    def __init__(self, entity: str):
        self.entity = entity
        self.errors: list[dict] = []

    def add(self, field_name: str, message: str) -> None:
        self.errors.append({"field": field_name, "message": message})

    def raise_if_any(self) -> None:
        if self.errors:
            raise ValidationError(self.entity, self.errors)

    def required_text(
        self, field_name: str, value: Any, max_length: int | None = None,
    ) -> str | None:
        if value is None:
            self.add(field_name, "is required")
            return None
        if not isinstance(value, str):
            self.add(field_name, "must be a string")
            return None
        if not value.strip():
            self.add(field_name, "must not be empty")
            return None
        text = value.strip()
        if max_length is not None and len(text) > max_length:
            self.add(field_name, f"must be at most {max_length} characters")
            return None
        return text

    def optional_text(
        self, field_name: str, value: Any, max_length: int | None = None,
    ) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            self.add(field_name, "must be a string")
            return None
        if max_length is not None and len(value) > max_length:
            self.add(field_name, f"must be at most {max_length} characters")
            return None
        return value or None

    def required_date(self, field_name: str, value: Any) -> date | None:
        if value is None:
            self.add(field_name, "is required")
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value)
            except ValueError:
                self.add(field_name, f"is not an ISO date: {value!r}")
                return None
        self.add(field_name, "must be a date")
        return None

    def amount(self, field_name: str, value: Any, *, positive: bool) -> Decimal | None:
        """
        Money within the stored envelope: at most MONEY_SCALE decimal
        places and no larger than MAX_AMOUNT.  A positive amount is
        therefore at least one MONEY_QUANTUM (0.01).
        """
        if value is None:
            self.add(field_name, "is required")
            return None
        if isinstance(value, (bool, float)):
            self.add(field_name, "must be a Decimal, int or numeric string")
            return None
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation:
            self.add(field_name, f"is not a number: {value!r}")
            return None
        if not amount.is_finite():
            self.add(field_name, "must be finite")
            return None
        if positive and amount <= ZERO:
            self.add(field_name, "must be greater than 0")
            return None
        if not positive and amount < ZERO:
            self.add(field_name, "must not be negative")
            return None
        if amount > MAX_AMOUNT:
            self.add(field_name, f"must not exceed {MAX_AMOUNT}")
            return None
        if amount.quantize(MONEY_QUANTUM) != amount:
            self.add(field_name, f"must have at most {MONEY_SCALE} decimal places")
            return None
        # -0 becomes 0
        return amount if amount else ZERO


def _check_keys(entity: str, data: Mapping[str, Any], allowed: frozenset[str]) -> None:
    errors = _FieldErrors(entity)
    for key in data:
        if key in READ_ONLY_FIELDS:
            errors.add(key, "is read-only and cannot be set by the caller")
        elif key not in allowed:
            errors.add(key, "is not a recognized field")
    errors.raise_if_any()


def _field_names(cls: type) -> frozenset[str]:
    return frozenset(f.name for f in fields(cls))


@dataclass(frozen=True)
class BillDraft:
    """Payload for creating a bill. ``bill_no`` is allocated when omitted."""
    counterparty_id: str
    bill_date: date
    due_date: date
    total_amount: Decimal
    bill_no: str | None = None
    order_id: str | None = None
    remark: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BillDraft:
        _check_keys("bill", data, _field_names(cls))
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})

    def validated(
        self,
        *,
        require_number: bool = False,
        remark_max_length: int = DEFAULT_REMARK_MAX_LENGTH,
    ) -> BillDraft:
        """Return a normalized copy, or raise ``ValidationError``."""
        errors = _FieldErrors("bill")
        if self.bill_no is None and not require_number:
            bill_no = None
        else:
            bill_no = errors.required_text("bill_no", self.bill_no, NUMBER_MAX_LENGTH)
        counterparty_id = errors.required_text(
            "counterparty_id", self.counterparty_id, REFERENCE_MAX_LENGTH,
        )
        bill_date = errors.required_date("bill_date", self.bill_date)
        due_date = errors.required_date("due_date", self.due_date)
        total_amount = errors.amount("total_amount", self.total_amount, positive=False)
        order_id = errors.optional_text("order_id", self.order_id, REFERENCE_MAX_LENGTH)
        remark = errors.optional_text(
            "remark", self.remark, min(remark_max_length, REMARK_COLUMN_LENGTH),
        )
        errors.raise_if_any()
        return replace(
            self,
            bill_no=bill_no,
            counterparty_id=counterparty_id,
            bill_date=bill_date,
            due_date=due_date,
            total_amount=total_amount,
            order_id=order_id,
            remark=remark,
        )


@dataclass(frozen=True)
class BillDetailsUpdate:
    """
    Narrow update payload for a bill.

    ``None`` means "leave unchanged".  An empty string clears
    ``order_id`` or ``remark``.
    """
    bill_no: str | None = None
    counterparty_id: str | None = None
    order_id: str | None = None
    bill_date: date | None = None
    due_date: date | None = None
    total_amount: Decimal | None = None
    remark: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BillDetailsUpdate:
        _check_keys("bill", data, _field_names(cls))
        return cls(**dict(data))

    def changes(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass(frozen=True)
class SettlementDraft:
    """
    Payload for applying a settlement.

    ``settlement_no`` is allocated when omitted; ``method`` falls back to
    the ledger's configured default.
    """
    bill_id: UUID
    amount: Decimal
    operator: str
    settlement_date: date
    method: SettlementMethod | None = None
    settlement_no: str | None = None
    remark: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SettlementDraft:
        _check_keys("settlement", data, _field_names(cls))
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})

    def validated(
        self,
        *,
        default_method: SettlementMethod = SettlementMethod.BANK_TRANSFER,
        remark_max_length: int = DEFAULT_REMARK_MAX_LENGTH,
    ) -> SettlementDraft:
        """Return a normalized copy, or raise ``ValidationError``."""
        errors = _FieldErrors("settlement")

        bill_id: UUID | None = None
        if self.bill_id is None:
            errors.add("bill_id", "is required")
        elif isinstance(self.bill_id, UUID):
            bill_id = self.bill_id
        else:
            try:
                bill_id = UUID(str(self.bill_id))
            except ValueError:
                errors.add("bill_id", f"is not a valid id: {self.bill_id!r}")

        method: SettlementMethod | None = default_method
        if self.method is not None:
            try:
                method = SettlementMethod(
                    self.method.value if isinstance(self.method, SettlementMethod) else self.method
                )
            except ValueError:
                errors.add("method", f"is not a settlement method: {self.method!r}")

        if self.settlement_no is None:
            settlement_no = None
        else:
            settlement_no = errors.required_text(
                "settlement_no", self.settlement_no, NUMBER_MAX_LENGTH,
            )
        amount = errors.amount("amount", self.amount, positive=True)
        operator = errors.required_text("operator", self.operator, OPERATOR_MAX_LENGTH)
        settlement_date = errors.required_date("settlement_date", self.settlement_date)
        remark = errors.optional_text(
            "remark", self.remark, min(remark_max_length, REMARK_COLUMN_LENGTH),
        )
        errors.raise_if_any()
        return replace(
            self,
            bill_id=bill_id,
            amount=amount,
            operator=operator,
            settlement_date=settlement_date,
            method=method,
            settlement_no=settlement_no,
            remark=remark,
        )
