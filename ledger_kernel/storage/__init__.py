"""Storage layer - repository interfaces and backends."""

from ledger_kernel.storage.base import CounterStore, LedgerStorage, RecordStore
from ledger_kernel.storage.memory import InMemoryStorage

__all__ = [
    "CounterStore",
    "InMemoryStorage",
    "LedgerStorage",
    "RecordStore",
]
