"""
ledger_config -- settings for open-item ledger books.

Provides the ``LedgerConfig`` schema with per-direction defaults and a
YAML loader.  Sits above ``ledger_kernel.domain`` (it reuses the
direction and settlement-method enums) and below ``ledger_modules``.
The kernel services never import this package; they receive plain
values from the module layer.
"""

from ledger_config.loader import (
    compute_checksum,
    load_ledger_config,
    load_yaml_file,
    parse_ledger_config,
)
from ledger_config.schema import DEFAULT_PREFIXES, LedgerConfig

__all__ = [
    "DEFAULT_PREFIXES",
    "LedgerConfig",
    "compute_checksum",
    "load_ledger_config",
    "load_yaml_file",
    "parse_ledger_config",
]
