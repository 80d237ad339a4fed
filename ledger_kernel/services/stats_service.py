"""
StatsAggregator -- read-only summaries over one ledger book.

Pure projection: reads bills through the registry and settlements through
the settlement ledger, writes nothing.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ledger_kernel.domain.models import ZERO, BillStatus, SettlementMethod
from ledger_kernel.services.bill_registry import BillRegistry
from ledger_kernel.services.settlement_ledger import SettlementLedger

_SECONDS_PER_DAY = Decimal(86400)


@dataclass(frozen=True)
class BillStats:
    """Counts and amounts across every bill in the book."""
    total: int
    unpaid: int
    partial: int
    paid: int
    overdue: int
    total_amount: Decimal
    settled_amount: Decimal
    balance_amount: Decimal
    average_settlement_days: int


@dataclass(frozen=True)
class MethodTotals:
    count: int
    amount: Decimal


class StatsAggregator:

    def __init__(self, registry: BillRegistry, ledger: SettlementLedger):
        self._registry = registry
        self._ledger = ledger

    def bill_stats(self) -> BillStats:
        """
        Book-wide counts and totals.

        ``average_settlement_days`` is the mean time from ``bill_date`` to
        the moment a PAID bill became paid, rounded half-up to whole days;
        0 when nothing is paid.
        """
        bills = self._registry.find_all()
        overdue = self._registry.find_overdue()

        by_status = {status: 0 for status in BillStatus}
        for bill in bills:
            by_status[bill.status] += 1

        elapsed: list[Decimal] = []
        for bill in bills:
            if bill.status is not BillStatus.PAID:
                continue
            settled_on = bill.paid_at or bill.updated_at
            start = settled_on.replace(
                year=bill.bill_date.year,
                month=bill.bill_date.month,
                day=bill.bill_date.day,
                hour=0, minute=0, second=0, microsecond=0,
            )
            seconds = Decimal(str((settled_on - start).total_seconds()))
            elapsed.append(seconds / _SECONDS_PER_DAY)

        average = 0
        if elapsed:
            mean = sum(elapsed, ZERO) / len(elapsed)
            average = int(mean.quantize(Decimal(1), rounding=ROUND_HALF_UP))

        return BillStats(
            total=len(bills),
            unpaid=by_status[BillStatus.UNPAID],
            partial=by_status[BillStatus.PARTIAL],
            paid=by_status[BillStatus.PAID],
            overdue=len(overdue),
            total_amount=sum((b.total_amount for b in bills), ZERO),
            settled_amount=sum((b.settled_amount for b in bills), ZERO),
            balance_amount=sum((b.balance_amount for b in bills), ZERO),
            average_settlement_days=average,
        )

    def stats_by_method(self) -> dict[SettlementMethod, MethodTotals]:
        """Count and amount per settlement method; every method is present."""
        counts = {method: 0 for method in SettlementMethod}
        amounts = {method: ZERO for method in SettlementMethod}
        for settlement in self._ledger.all_settlements():
            counts[settlement.method] += 1
            amounts[settlement.method] += settlement.amount
        return {
            method: MethodTotals(count=counts[method], amount=amounts[method])
            for method in SettlementMethod
        }
