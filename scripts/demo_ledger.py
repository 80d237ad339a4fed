#!/usr/bin/env python3
"""
Open-item ledger demo: build a payables or receivables book, seed the
sample bills and settlements, and print the book as JSON.

Usage:
    python3 scripts/demo_ledger.py                       # receivables, in memory
    python3 scripts/demo_ledger.py payable               # payables, in memory
    python3 scripts/demo_ledger.py receivable --db-url sqlite:///ledger.db
    python3 scripts/demo_ledger.py payable --config my_book.yaml --no-seed
"""

import argparse
import json
import sys
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from uuid import UUID

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from ledger_config import load_ledger_config
from ledger_kernel.db import create_tables, get_session, init_engine_from_url
from ledger_kernel.domain.clock import SystemClock
from ledger_kernel.logging_config import configure_logging
from ledger_kernel.storage.sql import SqlLedgerStorage
from ledger_modules import ap, ar


def _jsonable(obj):
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"not JSON serializable: {type(obj).__name__}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Open-item ledger demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "direction", nargs="?", default="receivable",
        choices=["payable", "receivable"],
        help="Which book to build (default: receivable)",
    )
    parser.add_argument("--db-url", default=None, help="SQLAlchemy URL (default: in memory)")
    parser.add_argument("--config", type=Path, default=None, help="Ledger config YAML")
    parser.add_argument("--no-seed", action="store_true", help="Skip the sample data")
    parser.add_argument("--log-level", default="WARNING", help="Log level for stderr")
    args = parser.parse_args()

    configure_logging(level=args.log_level, stream=sys.stderr)

    module = ap if args.direction == "payable" else ar
    builder = (
        ap.build_payables_ledger if args.direction == "payable"
        else ar.build_receivables_ledger
    )
    config = load_ledger_config(args.config) if args.config else None

    storage = None
    session = None
    if args.db_url:
        init_engine_from_url(args.db_url)
        create_tables()
        session = get_session()
        storage = SqlLedgerStorage(session, book=args.direction)

    clock = SystemClock()
    ledger = builder(storage=storage, clock=clock, config=config)
    if not args.no_seed:
        module.seed_sample_data(ledger, clock)

    by_method = {
        method.value: asdict(totals)
        for method, totals in ledger.get_stats_by_method().items()
    }
    report = {
        "direction": ledger.config.direction.value,
        "bills": [asdict(b) for b in ledger.list_bills()],
        "overdue": [b.bill_no for b in ledger.list_overdue_bills()],
        "settlements": [asdict(s) for s in ledger.list_all_settlements()],
        "stats": asdict(ledger.get_stats()),
        "stats_by_method": by_method,
        "next_bill_number": ledger.generate_bill_number(),
        "next_settlement_number": ledger.generate_settlement_number(),
    }
    print(json.dumps(report, indent=2, default=_jsonable))

    if session is not None:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
