"""
Pytest fixtures for the ledger test suite.

Provides:
- Structured log capture
- A deterministic clock pinned to 2025-01-15 12:00 UTC
- In-memory payable and receivable ledgers
- SQLite-backed storage and ledgers (in-memory database per test)
- Payload builders for bills and settlements

Environment Variables:
- LEDGER_TEST_DATABASE_URL: PostgreSQL URL for tests marked ``postgres``.
  Those tests are skipped when it is not set.
"""

import json
import logging
import os
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO
from typing import Any, Generator

import pytest
from sqlalchemy.orm import Session

from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.storage.memory import InMemoryStorage
from ledger_kernel.storage.sql import SqlLedgerStorage
from ledger_modules.ap import build_payables_ledger
from ledger_modules.ar import build_receivables_ledger
from ledger_modules.open_items import OpenItemLedger


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )
    config.addinivalue_line(
        "markers", "slow_locks: mark test as running threads against the ledger lock"
    )


def get_postgres_url() -> str | None:
    return os.environ.get("LEDGER_TEST_DATABASE_URL")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, receivable_ledger):
            receivable_ledger.create_bill(...)
            logs = captured_logs()
            assert any(r["message"] == "bill_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and payloads
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def today(deterministic_clock) -> date:
    return deterministic_clock.today()


@pytest.fixture
def bill_payload(today):
    """
    Build a create-bill mapping; keyword overrides replace defaults.

    Defaults: counterparty ``customer-1``, billed today, due in 30 days,
    total 1000.00.
    """

    def _build(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "counterparty_id": "customer-1",
            "bill_date": today,
            "due_date": today + timedelta(days=30),
            "total_amount": Decimal("1000.00"),
        }
        payload.update(overrides)
        return payload

    return _build


@pytest.fixture
def settlement_payload(today):
    """Build an apply-settlement mapping for ``bill_id``."""

    def _build(bill_id, amount, **overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "bill_id": bill_id,
            "amount": Decimal(str(amount)),
            "operator": "clerk",
            "settlement_date": today,
        }
        payload.update(overrides)
        return payload

    return _build


# =============================================================================
# In-memory ledgers
# =============================================================================


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def receivable_ledger(memory_storage, deterministic_clock) -> OpenItemLedger:
    return build_receivables_ledger(storage=memory_storage, clock=deterministic_clock)


@pytest.fixture
def payable_ledger(deterministic_clock) -> OpenItemLedger:
    return build_payables_ledger(storage=InMemoryStorage(), clock=deterministic_clock)


@pytest.fixture(params=["payable", "receivable"])
def any_ledger(request, deterministic_clock) -> OpenItemLedger:
    """Runs the test once per direction."""
    if request.param == "payable":
        return build_payables_ledger(clock=deterministic_clock)
    return build_receivables_ledger(clock=deterministic_clock)


# =============================================================================
# SQLite-backed storage
# =============================================================================


@pytest.fixture
def sqlite_session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database with the ledger tables."""
    init_engine_from_url("sqlite://")
    create_tables()
    session = get_session()
    yield session
    session.close()
    drop_tables()
    reset_engine()


@pytest.fixture
def sql_storage(sqlite_session) -> SqlLedgerStorage:
    return SqlLedgerStorage(sqlite_session, book="receivable")


@pytest.fixture
def sql_receivable_ledger(sql_storage, deterministic_clock) -> OpenItemLedger:
    return build_receivables_ledger(storage=sql_storage, clock=deterministic_clock)


# =============================================================================
# PostgreSQL-backed storage
# =============================================================================


@pytest.fixture
def postgres_session() -> Generator[Session, None, None]:
    """Session on LEDGER_TEST_DATABASE_URL with freshly created tables."""
    url = get_postgres_url()
    if url is None:
        pytest.skip("LEDGER_TEST_DATABASE_URL not set")
    init_engine_from_url(url)
    drop_tables()
    create_tables()
    session = get_session()
    yield session
    session.close()
    drop_tables()
    reset_engine()
