"""
Accounts Payable Module (``ledger_modules.ap``).

Responsibility
--------------
The payables binding of the open-item ledger: supplier bills reduced by
outgoing payments.  Bill numbers use the ``AP`` prefix, payment numbers
``PAY``.

Architecture position
---------------------
**Modules layer** -- configuration and a builder.  All bill, settlement
and numbering logic lives in ``ledger_kernel`` behind ``OpenItemLedger``.
"""

from ledger_modules.ap.config import PAYABLES_CONFIG
from ledger_modules.ap.sample_data import seed_sample_data
from ledger_modules.ap.service import build_payables_ledger

__all__ = [
    "PAYABLES_CONFIG",
    "build_payables_ledger",
    "seed_sample_data",
]
