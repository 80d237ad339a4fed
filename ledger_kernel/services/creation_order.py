"""
CreationOrder -- per-ledger insertion ordinal for records.

Records created in the same clock instant share ``created_at``; the
ordinal breaks the tie so listings follow creation order rather than
number order.  Records already in storage at rebuild are ranked by
``(created_at, number)``.  Records this ledger never saw (written by
another process after the rebuild) rank as older than every known
record of the same instant.  Not thread-safe; callers hold the ledger lock.
"""

from collections.abc import Iterable
from datetime import datetime
from itertools import count
from uuid import UUID


class CreationOrder:

    def __init__(self) -> None:
        self._ordinals: dict[UUID, int] = {}
        self._next = count()

    def record(self, record_id: UUID) -> None:
        self._ordinals[record_id] = next(self._next)

    def forget(self, record_id: UUID) -> None:
        self._ordinals.pop(record_id, None)

    def rank(self, record_id: UUID) -> int:
        return self._ordinals.get(record_id, -1)

    def rebuild(self, records: Iterable[tuple[datetime, str, UUID]]) -> None:
        """Reset from ``(created_at, number, id)`` triples."""
        self._ordinals = {}
        self._next = count()
        for _, _, record_id in sorted(records, key=lambda r: (r[0], r[1])):
            self.record(record_id)
