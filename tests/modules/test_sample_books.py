"""
Tests for the payables/receivables modules and their sample books.

Covers:
- Builders pick the right configuration and refuse the wrong direction
- Seeded books reproduce the reference amounts and statuses
- Demo script prints the seeded book as JSON
"""

import json
import runpy
import sys
from decimal import Decimal
from pathlib import Path

import pytest

from ledger_kernel.domain.models import BillStatus, LedgerDirection, SettlementMethod
from ledger_modules import ap, ar

DEMO_SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "demo_ledger.py"


class TestBuilders:

    def test_payables_config(self, deterministic_clock):
        ledger = ap.build_payables_ledger(clock=deterministic_clock)
        assert ledger.config is ap.PAYABLES_CONFIG
        assert ledger.config.direction is LedgerDirection.PAYABLE
        assert ledger.generate_bill_number() == "AP2501001"
        assert ledger.generate_settlement_number() == "PAY2501001"

    def test_receivables_config(self, deterministic_clock):
        ledger = ar.build_receivables_ledger(clock=deterministic_clock)
        assert ledger.config.direction is LedgerDirection.RECEIVABLE
        assert ledger.generate_bill_number() == "AR2501001"
        assert ledger.generate_settlement_number() == "REC2501001"

    def test_wrong_direction_rejected(self):
        with pytest.raises(ValueError):
            ap.build_payables_ledger(config=ar.RECEIVABLES_CONFIG)
        with pytest.raises(ValueError):
            ar.build_receivables_ledger(config=ap.PAYABLES_CONFIG)


class TestReceivablesSample:

    def test_seeded_book(self, receivable_ledger, deterministic_clock):
        bills, receipts = ar.seed_sample_data(receivable_ledger, deterministic_clock)

        by_no = {b.bill_no: b for b in receivable_ledger.list_bills()}
        assert by_no["AR001"].settled_amount == Decimal("30000")
        assert by_no["AR001"].balance_amount == Decimal("59000")
        assert by_no["AR001"].status is BillStatus.PARTIAL
        assert by_no["AR002"].status is BillStatus.UNPAID
        assert by_no["AR002"].total_amount == Decimal("125000")
        assert by_no["AR003"].status is BillStatus.PAID

        assert [s.settlement_no for s in receipts] == ["REC001", "REC002"]
        assert [b.bill_no for b in receivable_ledger.list_overdue_bills()] == ["AR001"]

    def test_seeded_stats(self, receivable_ledger, deterministic_clock):
        ar.seed_sample_data(receivable_ledger, deterministic_clock)
        stats = receivable_ledger.get_stats()

        assert (stats.total, stats.unpaid, stats.partial, stats.paid) == (3, 1, 1, 1)
        assert stats.overdue == 1
        assert stats.total_amount == Decimal("281000")
        assert stats.balance_amount == Decimal("184000")
        # AR003: billed 8 days before a 12:00 payment
        assert stats.average_settlement_days == 9

        by_method = receivable_ledger.get_stats_by_method()
        assert by_method[SettlementMethod.BANK_TRANSFER].count == 2
        assert by_method[SettlementMethod.BANK_TRANSFER].amount == Decimal("97000")


class TestPayablesSample:

    def test_seeded_book(self, payable_ledger, deterministic_clock):
        ap.seed_sample_data(payable_ledger, deterministic_clock)

        by_no = {b.bill_no: b for b in payable_ledger.list_bills()}
        assert by_no["AP001"].balance_amount == Decimal("100000")
        assert by_no["AP001"].status is BillStatus.PARTIAL
        assert by_no["AP002"].status is BillStatus.UNPAID
        assert by_no["AP003"].status is BillStatus.PAID
        assert payable_ledger.get_settlement_by_number("PAY001").amount == Decimal("50000")
        assert [b.bill_no for b in payable_ledger.list_overdue_bills()] == ["AP001"]


class TestDemoScript:

    def test_prints_seeded_payables(self, monkeypatch, capsys):
        namespace = runpy.run_path(str(DEMO_SCRIPT), run_name="demo_ledger")
        monkeypatch.setattr(sys, "argv", ["demo_ledger.py", "payable"])

        assert namespace["main"]() == 0

        report = json.loads(capsys.readouterr().out)
        assert report["direction"] == "payable"
        assert {b["bill_no"] for b in report["bills"]} == {"AP001", "AP002", "AP003"}
        assert report["overdue"] == ["AP001"]
        assert report["stats"]["total"] == 3
        assert set(report["stats_by_method"]) == {m.value for m in SettlementMethod}
