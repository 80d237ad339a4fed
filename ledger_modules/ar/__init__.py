"""
Accounts Receivable Module (``ledger_modules.ar``).

Responsibility
--------------
The receivables binding of the open-item ledger: customer bills reduced
by incoming receipts.  Bill numbers use the ``AR`` prefix, receipt numbers
``REC``.

Architecture position
---------------------
**Modules layer** -- configuration and a builder over ``OpenItemLedger``.
"""

from ledger_modules.ar.config import RECEIVABLES_CONFIG
from ledger_modules.ar.sample_data import seed_sample_data
from ledger_modules.ar.service import build_receivables_ledger

__all__ = [
    "RECEIVABLES_CONFIG",
    "build_receivables_ledger",
    "seed_sample_data",
]
