"""
Accounts Payable Configuration (``ledger_modules.ap.config``).

Responsibility
--------------
The default ``LedgerConfig`` for the payables book: ``AP`` bill numbers,
``PAY`` settlement (payment) numbers, bank transfer as the default method.

Architecture position
---------------------
**Modules layer** -- configuration only.  Override by passing a different
``LedgerConfig`` (or one loaded with ``load_ledger_config``) to
``build_payables_ledger``.
"""

from ledger_config import LedgerConfig
from ledger_kernel.domain.models import LedgerDirection

PAYABLES_CONFIG = LedgerConfig.for_direction(LedgerDirection.PAYABLE)
