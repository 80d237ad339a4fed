"""
Accounts Payable Ledger (``ledger_modules.ap.service``).

Builds an ``OpenItemLedger`` over vendor bills: bills are amounts owed to
suppliers, settlements are outgoing payments.
"""

from __future__ import annotations

from ledger_config import LedgerConfig
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.models import LedgerDirection
from ledger_kernel.logging_config import get_logger
from ledger_kernel.storage import LedgerStorage
from ledger_modules.ap.config import PAYABLES_CONFIG
from ledger_modules.open_items import OpenItemLedger

logger = get_logger("modules.ap.service")


def build_payables_ledger(
    storage: LedgerStorage | None = None,
    clock: Clock | None = None,
    config: LedgerConfig | None = None,
) -> OpenItemLedger:
    """
    Payables book with ``PAYABLES_CONFIG`` unless ``config`` is given.

    Raises:
        ValueError: ``config`` is for the receivable direction.
    """
    config = config or PAYABLES_CONFIG
    if config.direction is not LedgerDirection.PAYABLE:
        raise ValueError(
            f"payables ledger needs a payable config, got {config.direction.value}"
        )
    logger.debug("payables_ledger_build", extra={"bill_prefix": config.bill_prefix})
    return OpenItemLedger(config, storage=storage, clock=clock)
