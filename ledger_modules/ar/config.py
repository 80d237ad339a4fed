"""
Accounts Receivable Configuration (``ledger_modules.ar.config``).

Responsibility
--------------
The default ``LedgerConfig`` for the receivables book: ``AR`` bill
numbers, ``REC`` settlement (receipt) numbers, bank transfer as the
default method.

Architecture position
---------------------
**Modules layer** -- configuration only.
"""

from ledger_config import LedgerConfig
from ledger_kernel.domain.models import LedgerDirection

RECEIVABLES_CONFIG = LedgerConfig.for_direction(LedgerDirection.RECEIVABLE)
