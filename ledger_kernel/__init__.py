"""
Ledger Kernel - open-item ledger engine

A single-sided open-item tracker with:
- Bills reduced by settlements (payments or receipts)
- Derived balance and status, never set independently
- Period-scoped business numbering with an atomic allocator
- Pluggable storage (in-memory or SQLAlchemy)
- Structured JSON logging and typed exceptions
"""

__version__ = "0.1.0"
