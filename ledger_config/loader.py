"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a ledger configuration from a YAML file and parses it into a typed
``LedgerConfig``.  Keys left out of the file take the per-direction
defaults.

Expected shape::

    direction: receivable
    bill_prefix: AR          # optional
    settlement_prefix: REC   # optional
    sequence_width: 3        # optional
    remark_max_length: 200   # optional
    default_method: bank_transfer   # optional

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys, a missing ``direction`` or bad enum values -> ``ValueError``.

Audit relevance
---------------
``compute_checksum`` gives a deterministic SHA-256 identity for a
configuration so a running ledger can be matched to its source file.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import LedgerConfig
from ledger_kernel.domain.models import LedgerDirection, SettlementMethod
from ledger_kernel.logging_config import get_logger

logger = get_logger("config.loader")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Returns an empty dict for an empty file.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def parse_ledger_config(data: dict[str, Any]) -> LedgerConfig:
    """Parse a raw mapping into a ``LedgerConfig``."""
    unknown = set(data) - LedgerConfig.field_names()
    if unknown:
        raise ValueError(f"Unknown ledger config keys: {sorted(unknown)}")
    if "direction" not in data:
        raise ValueError("Ledger config requires 'direction'")

    try:
        direction = LedgerDirection(data["direction"])
    except ValueError:
        raise ValueError(f"Unknown ledger direction: {data['direction']!r}") from None

    overrides = {k: v for k, v in data.items() if k != "direction"}
    if "default_method" in overrides:
        try:
            overrides["default_method"] = SettlementMethod(overrides["default_method"])
        except ValueError:
            raise ValueError(
                f"Unknown settlement method: {overrides['default_method']!r}"
            ) from None
    return LedgerConfig.for_direction(direction, **overrides)


def load_ledger_config(path: Path | str) -> LedgerConfig:
    """Load and parse a ledger config file."""
    path = Path(path)
    config = parse_ledger_config(load_yaml_file(path))
    logger.info(
        "ledger_config_loaded",
        extra={
            "path": str(path),
            "direction": config.direction.value,
            "checksum": compute_checksum(config),
        },
    )
    return config


def compute_checksum(config: LedgerConfig) -> str:
    """Deterministic SHA-256 over the canonical JSON form of ``config``."""
    canonical = json.dumps(config.to_dict(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
