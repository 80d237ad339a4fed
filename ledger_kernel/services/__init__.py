"""Services for the ledger kernel."""

from ledger_kernel.services.bill_registry import BillRegistry
from ledger_kernel.services.creation_order import CreationOrder
from ledger_kernel.services.sequence_service import (
    NumberIndex,
    NumberScope,
    NumberSequencer,
)
from ledger_kernel.services.settlement_ledger import SettlementLedger
from ledger_kernel.services.settlement_links import SettlementLinks
from ledger_kernel.services.stats_service import (
    BillStats,
    MethodTotals,
    StatsAggregator,
)

__all__ = [
    "BillRegistry",
    "BillStats",
    "CreationOrder",
    "MethodTotals",
    "NumberIndex",
    "NumberScope",
    "NumberSequencer",
    "SettlementLedger",
    "SettlementLinks",
    "StatsAggregator",
]
