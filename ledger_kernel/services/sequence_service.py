"""
NumberSequencer -- period-scoped business numbers for bills and settlements.

Responsibility:
    Produces human-readable numbers of the form ``{prefix}{YY}{MM}{NNN}``
    (e.g. ``AR2501003``) and owns the uniqueness indices that make those
    numbers safe to insert.  Bills and settlements are separate numbering
    spaces (``NumberScope``).

Two entry points:
    ``next(prefix, scope)``
        The scan-based *candidate*: max existing sequence for the current
        year/month plus one.  Changes nothing, so two calls with no insert
        in between return the same string.  Suitable for pre-filling a
        form, NOT for inserting.
    ``allocate(prefix, scope)``
        The insertion-time allocator.  Advances a persisted per-period
        counter (never below the scanned maximum) and skips anything
        already claimed in the scope's index.  Must be called inside the
        ledger critical section together with ``NumberIndex.claim``.

Invariants enforced:
    - Counter monotonicity: numbers handed out by ``allocate`` are never
      handed out again in the same period, even after the record they
      named is deleted.
    - Uniqueness: ``NumberIndex.claim`` refuses a number already present.

Failure modes:
    - DuplicateNumberError from ``NumberIndex.claim``.
    - KeyError from ``next``/``allocate`` for a scope with no registered index.
"""

import re
from collections.abc import Iterable, Iterator
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.clock import Clock
from ledger_kernel.exceptions import DuplicateNumberError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.storage.base import CounterStore

logger = get_logger("services.sequence")


class NumberScope(Enum):
    """Independent numbering spaces."""
    BILL = "bill"
    SETTLEMENT = "settlement"


class NumberIndex:
    """
    Secondary uniqueness index: business number -> record id.

    Not thread-safe; callers hold the ledger lock.
    """

    def __init__(self, scope: NumberScope):
        self.scope = scope
        self._ids: dict[str, UUID] = {}

    def __contains__(self, number: object) -> bool:
        return number in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def lookup(self, number: str) -> UUID | None:
        return self._ids.get(number)

    def check_free(self, number: str, owner: UUID | None = None) -> None:
        """Raise if ``number`` is held by a record other than ``owner``."""
        holder = self._ids.get(number)
        if holder is not None and holder != owner:
            raise DuplicateNumberError(self.scope.value, number)

    def claim(self, number: str, record_id: UUID) -> None:
        self.check_free(number, record_id)
        self._ids[number] = record_id

    def release(self, number: str) -> None:
        self._ids.pop(number, None)

    def rebuild(self, pairs: Iterable[tuple[str, UUID]]) -> None:
        self._ids = {}
        for number, record_id in pairs:
            self.claim(number, record_id)


class NumberSequencer:
    """
    Builds and allocates ``{prefix}{YY}{MM}{NNN}`` numbers.

    Guarantees:
        - Year/month come from the injected clock (UTC).
        - Sequences wider than ``width`` digits are still recognized by
          the scan and emitted unpadded, so month 1000+ keeps working.
    """

    def __init__(self, counters: CounterStore, clock: Clock, width: int = 3):
        self._counters = counters
        self._clock = clock
        self._width = width
        self._indices: dict[NumberScope, NumberIndex] = {}

    def register(self, index: NumberIndex) -> None:
        self._indices[index.scope] = index

    def period_prefix(self, prefix: str) -> str:
        now = self._clock.now_utc()
        return f"{prefix}{now.year % 100:02d}{now.month:02d}"

    def format(self, period_prefix: str, sequence: int) -> str:
        return f"{period_prefix}{sequence:0{self._width}d}"

    def max_sequence(self, period_prefix: str, numbers: Iterable[str]) -> int:
        """Highest sequence among ``numbers`` that belong to ``period_prefix``."""
        pattern = re.compile(rf"^{re.escape(period_prefix)}(\d{{{self._width},}})$")
        highest = 0
        for number in numbers:
            match = pattern.match(number)
            if match:
                highest = max(highest, int(match.group(1)))
        return highest

    def next(self, prefix: str, scope: NumberScope) -> str:
        """Scan-based candidate; does not reserve anything."""
        period = self.period_prefix(prefix)
        highest = self.max_sequence(period, self._indices[scope])
        return self.format(period, highest + 1)

    def allocate(self, prefix: str, scope: NumberScope) -> str:
        """Reserve a number that is free in ``scope``'s index."""
        index = self._indices[scope]
        period = self.period_prefix(prefix)
        counter_name = f"{scope.value}:{period}"
        floor = self.max_sequence(period, index)
        while True:
            value = self._counters.advance(counter_name, floor)
            number = self.format(period, value)
            if number not in index:
                logger.debug(
                    "number_allocated",
                    extra={"scope": scope.value, "number": number, "counter": counter_name},
                )
                return number
            floor = value
