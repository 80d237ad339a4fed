"""
Module: ledger_kernel.storage.base
Responsibility: Repository interfaces the ledger engine runs against.
    The engine only ever calls get/put/delete/scan on record stores,
    advance/current on the counter store, and wraps each mutation in
    ``LedgerStorage.begin()``.  Any backend that honours these contracts
    (embedded map, SQL table, KV store) can carry a ledger unchanged.
Architecture position: Kernel > Storage.  Imports domain models only.

Invariants enforced:
    - ``begin()`` is all-or-nothing: on exception every write made inside
      the block is undone before the exception propagates.
    - ``CounterStore.advance`` never returns a value it returned before
      for the same name (monotonic).
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager
from typing import Generic, TypeVar
from uuid import UUID

from ledger_kernel.domain.models import Bill, Settlement

R = TypeVar("R", Bill, Settlement)


class RecordStore(ABC, Generic[R]):
    """Key-value store of frozen records keyed by ``record.id``."""

    @abstractmethod
    def get(self, record_id: UUID) -> R | None:
        ...

    @abstractmethod
    def put(self, record: R) -> None:
        """Insert or replace the record with the same id."""
        ...

    @abstractmethod
    def delete(self, record_id: UUID) -> None:
        """Remove the record. Deleting an absent id is a no-op."""
        ...

    @abstractmethod
    def scan(self) -> Iterator[R]:
        """Iterate all records in no particular order."""
        ...


class CounterStore(ABC):
    """Named monotonic counters backing the number allocator."""

    @abstractmethod
    def current(self, name: str) -> int:
        """Current value, 0 if the counter has never been advanced."""
        ...

    @abstractmethod
    def advance(self, name: str, floor: int = 0) -> int:
        """Set the counter to ``max(current, floor) + 1`` and return it."""
        ...


class LedgerStorage(ABC):
    """
    Storage bundle for one ledger book.

    Contract:
        ``bills``, ``settlements`` and ``counters`` share one transactional
        scope opened by ``begin()``.
    """

    bills: RecordStore[Bill]
    settlements: RecordStore[Settlement]
    counters: CounterStore

    @abstractmethod
    def begin(self) -> AbstractContextManager[None]:
        """Open an all-or-nothing write scope."""
        ...
