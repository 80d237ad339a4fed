"""
Ledger Configuration Schema (``ledger_config.schema``).

Responsibility
--------------
Declarative settings for one open-item book: its direction, the business
number prefixes for bills and settlements, the sequence pad width, the
remark length limit and the default settlement method.  Defaults per
direction give the classic numbering of the two books
(``AP``/``PAY`` for payables, ``AR``/``REC`` for receivables).

Invariants enforced
-------------------
* Prefixes are non-empty upper-case ASCII letters and differ from each
  other, so bill and settlement numbers can never be confused.
* ``sequence_width`` in [1, 9]; ``remark_max_length`` in
  [1, 4000], the width of the remark columns.

Failure modes
-------------
* ``ValueError`` at construction if any constraint is violated.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Self

from ledger_kernel.domain.models import LedgerDirection, SettlementMethod
from ledger_kernel.domain.payloads import REMARK_COLUMN_LENGTH
from ledger_kernel.logging_config import get_logger

logger = get_logger("config.schema")

DEFAULT_PREFIXES: dict[LedgerDirection, tuple[str, str]] = {
    LedgerDirection.PAYABLE: ("AP", "PAY"),
    LedgerDirection.RECEIVABLE: ("AR", "REC"),
}


def _valid_prefix(prefix: str) -> bool:
    return bool(prefix) and prefix.isascii() and prefix.isalpha() and prefix.isupper()


@dataclass(frozen=True)
class LedgerConfig:
    """
    Configuration for one ledger book.

        config = LedgerConfig.for_direction(
            LedgerDirection.RECEIVABLE,
            remark_max_length=500,
        )
    """

    direction: LedgerDirection
    bill_prefix: str
    settlement_prefix: str
    sequence_width: int = 3
    remark_max_length: int = 200
    default_method: SettlementMethod = SettlementMethod.BANK_TRANSFER

    def __post_init__(self):
        if not isinstance(self.direction, LedgerDirection):
            raise ValueError(f"direction must be a LedgerDirection, got {self.direction!r}")
        if not _valid_prefix(self.bill_prefix):
            raise ValueError(f"bill_prefix must be upper-case letters, got {self.bill_prefix!r}")
        if not _valid_prefix(self.settlement_prefix):
            raise ValueError(
                f"settlement_prefix must be upper-case letters, got {self.settlement_prefix!r}"
            )
        if self.bill_prefix == self.settlement_prefix:
            raise ValueError("bill_prefix and settlement_prefix must differ")
        if not 1 <= self.sequence_width <= 9:
            raise ValueError("sequence_width must be between 1 and 9")
        if not 1 <= self.remark_max_length <= REMARK_COLUMN_LENGTH:
            raise ValueError(
                f"remark_max_length must be between 1 and {REMARK_COLUMN_LENGTH}"
            )
        if not isinstance(self.default_method, SettlementMethod):
            raise ValueError(
                f"default_method must be a SettlementMethod, got {self.default_method!r}"
            )
        logger.debug(
            "ledger_config_initialized",
            extra={
                "direction": self.direction.value,
                "bill_prefix": self.bill_prefix,
                "settlement_prefix": self.settlement_prefix,
                "sequence_width": self.sequence_width,
            },
        )

    @classmethod
    def for_direction(cls, direction: LedgerDirection, **overrides: Any) -> Self:
        """Defaults for ``direction`` with keyword overrides applied."""
        bill_prefix, settlement_prefix = DEFAULT_PREFIXES[direction]
        values: dict[str, Any] = {
            "bill_prefix": bill_prefix,
            "settlement_prefix": settlement_prefix,
        }
        values.update(overrides)
        return cls(direction=direction, **values)

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-safe representation (enum values, not members)."""
        return {
            "direction": self.direction.value,
            "bill_prefix": self.bill_prefix,
            "settlement_prefix": self.settlement_prefix,
            "sequence_width": self.sequence_width,
            "remark_max_length": self.remark_max_length,
            "default_method": self.default_method.value,
        }
