"""
Tests for NumberSequencer and NumberIndex.

Covers:
- ``{prefix}{YY}{MM}{NNN}`` format and period rollover
- Scan-based preview is stable until something is inserted
- Allocator monotonicity and collision skipping
- Sequences wider than the pad width
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.exceptions import DuplicateNumberError
from ledger_kernel.services.sequence_service import (
    NumberIndex,
    NumberScope,
    NumberSequencer,
)
from ledger_kernel.storage.memory import InMemoryCounterStore


@pytest.fixture
def index():
    return NumberIndex(NumberScope.BILL)


@pytest.fixture
def sequencer(index, deterministic_clock):
    seq = NumberSequencer(InMemoryCounterStore(), deterministic_clock)
    seq.register(index)
    return seq


class TestNumberIndex:

    def test_claim_and_lookup(self, index):
        record_id = uuid4()
        index.claim("AP001", record_id)
        assert "AP001" in index
        assert index.lookup("AP001") == record_id

    def test_claim_taken_number(self, index):
        index.claim("AP001", uuid4())
        with pytest.raises(DuplicateNumberError):
            index.claim("AP001", uuid4())

    def test_owner_may_reclaim(self, index):
        record_id = uuid4()
        index.claim("AP001", record_id)
        index.check_free("AP001", record_id)

    def test_release(self, index):
        index.claim("AP001", uuid4())
        index.release("AP001")
        assert "AP001" not in index
        index.release("AP001")


class TestPreview:

    def test_first_number_of_month(self, sequencer):
        assert sequencer.next("AP", NumberScope.BILL) == "AP2501001"

    def test_preview_is_stable(self, sequencer):
        first = sequencer.next("AP", NumberScope.BILL)
        second = sequencer.next("AP", NumberScope.BILL)
        assert first == second

    def test_preview_follows_index(self, sequencer, index):
        index.claim("AP2501007", uuid4())
        index.claim("AP2412099", uuid4())
        index.claim("AP001", uuid4())
        assert sequencer.next("AP", NumberScope.BILL) == "AP2501008"

    def test_other_prefix_ignored(self, sequencer, index):
        index.claim("AR2501005", uuid4())
        assert sequencer.next("AP", NumberScope.BILL) == "AP2501001"


class TestAllocate:

    def test_allocations_increase(self, sequencer, index):
        numbers = []
        for _ in range(3):
            number = sequencer.allocate("AP", NumberScope.BILL)
            index.claim(number, uuid4())
            numbers.append(number)
        assert numbers == ["AP2501001", "AP2501002", "AP2501003"]

    def test_never_reissued_after_release(self, sequencer, index):
        number = sequencer.allocate("AP", NumberScope.BILL)
        index.claim(number, uuid4())
        index.release(number)
        assert sequencer.allocate("AP", NumberScope.BILL) == "AP2501002"

    def test_skips_claimed_numbers(self, sequencer, index):
        sequencer.allocate("AP", NumberScope.BILL)
        index.claim("AP2501002", uuid4())
        index.claim("AP2501003", uuid4())
        assert sequencer.allocate("AP", NumberScope.BILL) == "AP2501004"

    def test_new_month_restarts(self, index):
        clock = DeterministicClock(datetime(2025, 1, 31, 23, 59, 59, tzinfo=timezone.utc))
        sequencer = NumberSequencer(InMemoryCounterStore(), clock)
        sequencer.register(index)

        assert sequencer.allocate("AP", NumberScope.BILL) == "AP2501001"
        clock.tick()
        assert sequencer.allocate("AP", NumberScope.BILL) == "AP2502001"

    def test_overflow_past_width(self, sequencer, index):
        index.claim("AP2501999", uuid4())
        number = sequencer.allocate("AP", NumberScope.BILL)
        assert number == "AP25011000"
        index.claim(number, uuid4())
        assert sequencer.next("AP", NumberScope.BILL) == "AP25011001"

    def test_custom_width(self, index, deterministic_clock):
        sequencer = NumberSequencer(InMemoryCounterStore(), deterministic_clock, width=5)
        sequencer.register(index)
        assert sequencer.allocate("AP", NumberScope.BILL) == "AP250100001"

    def test_unregistered_scope(self, sequencer):
        with pytest.raises(KeyError):
            sequencer.allocate("PAY", NumberScope.SETTLEMENT)
