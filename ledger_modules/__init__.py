"""
Ledger Modules.

Thin bindings over the Ledger Kernel.  ``OpenItemLedger`` is the facade
for one book; each module supplies that book's configuration, a builder
and a sample data set.

Modules:
- AP: supplier bills and outgoing payments
- AR: customer bills and incoming receipts
"""

from ledger_modules.open_items import OpenItemLedger

__all__ = ["OpenItemLedger"]
