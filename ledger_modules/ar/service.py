"""
Accounts Receivable Ledger (``ledger_modules.ar.service``).

Builds an ``OpenItemLedger`` over customer bills: bills are amounts owed
by customers, settlements are incoming receipts.
"""

from __future__ import annotations

from ledger_config import LedgerConfig
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.models import LedgerDirection
from ledger_kernel.logging_config import get_logger
from ledger_kernel.storage import LedgerStorage
from ledger_modules.ar.config import RECEIVABLES_CONFIG
from ledger_modules.open_items import OpenItemLedger

logger = get_logger("modules.ar.service")


def build_receivables_ledger(
    storage: LedgerStorage | None = None,
    clock: Clock | None = None,
    config: LedgerConfig | None = None,
) -> OpenItemLedger:
    """
    Receivables book with ``RECEIVABLES_CONFIG`` unless ``config`` is given.

    Raises:
        ValueError: ``config`` is for the payable direction.
    """
    config = config or RECEIVABLES_CONFIG
    if config.direction is not LedgerDirection.RECEIVABLE:
        raise ValueError(
            f"receivables ledger needs a receivable config, got {config.direction.value}"
        )
    logger.debug("receivables_ledger_build", extra={"bill_prefix": config.bill_prefix})
    return OpenItemLedger(config, storage=storage, clock=clock)
