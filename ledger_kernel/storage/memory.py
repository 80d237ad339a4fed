"""
In-memory storage backend.

Dict-backed record stores with an undo log so that ``begin()`` rolls back
every write made in a failed block.  Not thread-safe on its own; the
ledger's lock serializes access.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Generator
from uuid import UUID

from ledger_kernel.logging_config import get_logger
from ledger_kernel.storage.base import CounterStore, LedgerStorage, R, RecordStore

logger = get_logger("storage.memory")

_MISSING = object()


class InMemoryRecordStore(RecordStore[R]):

    def __init__(self) -> None:
        self._records: dict[UUID, R] = {}
        self._undo: list[tuple[UUID, object]] | None = None

    def get(self, record_id: UUID) -> R | None:
        return self._records.get(record_id)

    def put(self, record: R) -> None:
        self._remember(record.id)
        self._records[record.id] = record

    def delete(self, record_id: UUID) -> None:
        if record_id in self._records:
            self._remember(record_id)
            del self._records[record_id]

    def scan(self) -> Iterator[R]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    # -- transaction support -------------------------------------------------

    def _remember(self, record_id: UUID) -> None:
        if self._undo is not None:
            self._undo.append((record_id, self._records.get(record_id, _MISSING)))

    def _start(self) -> None:
        self._undo = []

    def _commit(self) -> None:
        self._undo = None

    def _rollback(self) -> None:
        undo, self._undo = self._undo or [], None
        for record_id, previous in reversed(undo):
            if previous is _MISSING:
                self._records.pop(record_id, None)
            else:
                self._records[record_id] = previous


class InMemoryCounterStore(CounterStore):

    def __init__(self) -> None:
        self._values: dict[str, int] = {}

    def current(self, name: str) -> int:
        return self._values.get(name, 0)

    def advance(self, name: str, floor: int = 0) -> int:
        value = max(self._values.get(name, 0), floor) + 1
        self._values[name] = value
        return value


class InMemoryStorage(LedgerStorage):
    """
    Embedded-map storage.

    Counter advances are not undone on rollback; a rolled-back allocation
    leaves a gap in the numbering, never a duplicate.
    """

    def __init__(self) -> None:
        self.bills = InMemoryRecordStore()
        self.settlements = InMemoryRecordStore()
        self.counters = InMemoryCounterStore()

    @contextmanager
    def begin(self) -> Generator[None, None, None]:
        stores = (self.bills, self.settlements)
        for store in stores:
            store._start()
        try:
            yield
        except Exception:
            for store in stores:
                store._rollback()
            logger.warning("memory_transaction_rolled_back")
            raise
        for store in stores:
            store._commit()
