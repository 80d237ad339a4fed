"""
SqlLedgerStorage -- SQLAlchemy-backed ledger storage.

Responsibility:
    Runs the ledger engine over relational tables (``storage/orm.py``)
    through a single caller-supplied ``Session``.  One ledger book is one
    value of the ``book`` column.

Transaction boundary:
    ``begin()`` owns it: commit on success, rollback on failure.  Stores
    flush but never commit on their own.

Invariants enforced:
    - Sequence monotonicity via locked counter rows (``SELECT ... FOR
      UPDATE``); the max-plus-one query is never the source of truth.
    - Number uniqueness backed by per-book unique constraints.

Failure modes:
    - IntegrityError on a unique constraint that the in-process index
      did not see (another process wrote the same number).  Propagates
      after rollback.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Generator
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.domain.models import Bill, Settlement
from ledger_kernel.logging_config import get_logger
from ledger_kernel.storage.base import CounterStore, LedgerStorage, RecordStore
from ledger_kernel.storage.orm import BillModel, SequenceCounter, SettlementModel

logger = get_logger("storage.sql")


class _SqlRecordStore(RecordStore):
    """Shared get/put/delete/scan over one ORM model class."""

    model: type[BillModel] | type[SettlementModel]

    def __init__(self, session: Session, book: str):
        self._session = session
        self._book = book

    def _load(self, record_id: UUID):
        row = self._session.get(self.model, record_id)
        if row is None or row.book != self._book:
            return None
        return row

    def get(self, record_id: UUID) -> Bill | Settlement | None:
        row = self._load(record_id)
        return row.to_dto() if row is not None else None

    def put(self, record: Bill | Settlement) -> None:
        row = self._load(record.id)
        if row is None:
            self._session.add(self.model.from_dto(record, self._book))
        else:
            row.apply_dto(record)
        self._session.flush()

    def delete(self, record_id: UUID) -> None:
        row = self._load(record_id)
        if row is not None:
            self._session.delete(row)
            self._session.flush()

    def scan(self) -> Iterator[Bill | Settlement]:
        rows = self._session.scalars(
            select(self.model).where(self.model.book == self._book)
        ).all()
        return (row.to_dto() for row in rows)


class SqlBillStore(_SqlRecordStore):
    model = BillModel


class SqlSettlementStore(_SqlRecordStore):
    model = SettlementModel


class SqlCounterStore(CounterStore):
    """
    Counter rows locked FOR UPDATE.

    Mirrors a get-or-create-then-increment sequence: a concurrent first
    use of the same name is resolved through a savepoint and retry.
    """

    def __init__(self, session: Session):
        self._session = session
        # pysqlite cannot nest a SAVEPOINT inside the implicit transaction
        self._use_savepoint = session.get_bind().dialect.name != "sqlite"

    def _locked(self, name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def current(self, name: str) -> int:
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == name)
        ).scalar_one_or_none()
        return counter.current_value if counter else 0

    def advance(self, name: str, floor: int = 0) -> int:
        counter = self._locked(name)

        if counter is None and not self._use_savepoint:
            counter = SequenceCounter(name=name, current_value=floor + 1)
            self._session.add(counter)
            self._session.flush()
            logger.debug(
                "sequence_allocated",
                extra={"sequence_name": name, "value": counter.current_value},
            )
            return counter.current_value

        if counter is None:
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=name, current_value=floor + 1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": name, "value": counter.current_value},
                )
                return counter.current_value
            except IntegrityError:
                logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
                savepoint.rollback()
                counter = self._locked(name)
                if counter is None:
                    raise

        counter.current_value = max(counter.current_value, floor) + 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": name, "value": counter.current_value},
        )
        return counter.current_value


class SqlLedgerStorage(LedgerStorage):
    """
    Storage bundle over one SQLAlchemy session.

    Usage:
        init_engine_from_url("sqlite://")
        create_tables()
        storage = SqlLedgerStorage(get_session(), book="receivable")
    """

    def __init__(self, session: Session, book: str):
        self._session = session
        self.book = book
        self.bills = SqlBillStore(session, book)
        self.settlements = SqlSettlementStore(session, book)
        self.counters = SqlCounterStore(session)

    @property
    def session(self) -> Session:
        return self._session

    @contextmanager
    def begin(self) -> Generator[None, None, None]:
        try:
            yield
            self._session.commit()
        except Exception:
            self._session.rollback()
            logger.warning("sql_transaction_rolled_back", extra={"book": self.book})
            raise
