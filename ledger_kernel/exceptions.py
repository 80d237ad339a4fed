"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger (an HTTP layer, a CLI, a UI bridge) must react to
each failure differently: a validation failure goes back to the form, a
duplicate number triggers a regenerate-and-retry, an excess amount is shown
next to the outstanding balance.  Parsing message strings for this is
fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        ledger.apply_settlement(draft)
    except ExcessAmountError as e:
        return {"error": e.code, "balance": str(e.balance)}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from LedgerError:

    LedgerError (base)
    |
    +-- ValidationError
    |
    +-- NotFoundError
    |   +-- BillNotFoundError
    |   +-- SettlementNotFoundError
    |
    +-- NumberingError
    |   +-- DuplicateNumberError
    |
    +-- BillError
    |   +-- HasSettlementsError
    |
    +-- SettlementError
    |   +-- AlreadySettledError
    |   +-- ExcessAmountError
    |
    +-- InvariantViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                 | When Raised
-------------|----------------------|--------------------------------------------
Validation   | VALIDATION_ERROR     | Payload fails schema constraints
-------------|----------------------|--------------------------------------------
Lookup       | BILL_NOT_FOUND       | Bill ID doesn't exist
             | SETTLEMENT_NOT_FOUND | Settlement ID doesn't exist
-------------|----------------------|--------------------------------------------
Numbering    | DUPLICATE_NUMBER     | Bill/settlement number already taken
-------------|----------------------|--------------------------------------------
Bill         | HAS_SETTLEMENTS      | Delete attempted on a bill with settlements
-------------|----------------------|--------------------------------------------
Settlement   | ALREADY_SETTLED      | Settlement applied to a PAID bill
             | EXCESS_AMOUNT        | Amount exceeds the bill's balance
-------------|----------------------|--------------------------------------------
Integrity    | INVARIANT_VIOLATION  | Computed bill breaks the balance identity

===============================================================================
PROPAGATION
===============================================================================

All errors are raised synchronously by the operation that detected them.
Nothing is retried internally.  Validation and guard checks run before any
store mutation, so a raised error always means nothing was written.
"""

from decimal import Decimal


class LedgerError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_ERROR"


# Validation


class ValidationError(LedgerError):
    """
    Payload does not satisfy the entity schema.

    Carries every field error found, not just the first one.
    """

    code: str = "VALIDATION_ERROR"

    def __init__(self, entity: str, field_errors: list[dict]):
        self.entity = entity
        self.field_errors = field_errors
        summary = "; ".join(
            f"{err['field']}: {err['message']}" for err in field_errors
        )
        super().__init__(f"Invalid {entity} payload: {summary}")

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(err["field"] for err in self.field_errors)


# Lookup


class NotFoundError(LedgerError):
    """Base exception for unknown record references."""

    code: str = "NOT_FOUND"


class BillNotFoundError(NotFoundError):
    """Bill with given ID was not found."""

    code: str = "BILL_NOT_FOUND"

    def __init__(self, bill_id: str):
        self.bill_id = bill_id
        super().__init__(f"Bill not found: {bill_id}")


class SettlementNotFoundError(NotFoundError):
    """Settlement with given ID was not found."""

    code: str = "SETTLEMENT_NOT_FOUND"

    def __init__(self, settlement_id: str):
        self.settlement_id = settlement_id
        super().__init__(f"Settlement not found: {settlement_id}")


# Numbering


class NumberingError(LedgerError):
    """Base exception for business-number errors."""

    code: str = "NUMBERING_ERROR"


class DuplicateNumberError(NumberingError):
    """
    Business number collides with an existing record.

    The caller may regenerate a number and retry.
    """

    code: str = "DUPLICATE_NUMBER"

    def __init__(self, scope: str, number: str):
        self.scope = scope
        self.number = number
        super().__init__(f"Duplicate {scope} number: {number}")


# Bill guards


class BillError(LedgerError):
    """Base exception for bill lifecycle errors."""

    code: str = "BILL_ERROR"


class HasSettlementsError(BillError):
    """Bill cannot be deleted while it owns settlements."""

    code: str = "HAS_SETTLEMENTS"

    def __init__(self, bill_id: str, settlement_count: int):
        self.bill_id = bill_id
        self.settlement_count = settlement_count
        super().__init__(
            f"Bill {bill_id} has {settlement_count} settlement(s) and cannot be deleted"
        )


# Settlement guards


class SettlementError(LedgerError):
    """Base exception for settlement application errors."""

    code: str = "SETTLEMENT_ERROR"


class AlreadySettledError(SettlementError):
    """Bill is already PAID."""

    code: str = "ALREADY_SETTLED"

    def __init__(self, bill_id: str, bill_no: str):
        self.bill_id = bill_id
        self.bill_no = bill_no
        super().__init__(f"Bill {bill_no} ({bill_id}) is already fully settled")


class ExcessAmountError(SettlementError):
    """Settlement amount exceeds the bill's outstanding balance."""

    code: str = "EXCESS_AMOUNT"

    def __init__(self, bill_id: str, amount: Decimal, balance: Decimal):
        self.bill_id = bill_id
        self.amount = amount
        self.balance = balance
        super().__init__(
            f"Settlement amount {amount} exceeds balance {balance} on bill {bill_id}"
        )


# Integrity


class InvariantViolationError(LedgerError):
    """
    A computed record breaks a ledger invariant.

    Raised before the record is written; indicates a defect, not a
    caller error.
    """

    code: str = "INVARIANT_VIOLATION"

    def __init__(self, invariant: str, entity_id: str, detail: str):
        self.invariant = invariant
        self.entity_id = entity_id
        self.detail = detail
        super().__init__(
            f"Invariant {invariant} violated on {entity_id}: {detail}"
        )
