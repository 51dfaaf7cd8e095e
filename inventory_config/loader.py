"""
Configuration loader (``inventory_config.loader``).

Loads a YAML file and parses its ``inventory`` section into an
``InventoryConfig``.  Services never call this directly; runtime config flows
through ``inventory_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown or invalid keys  -> ``ValueError`` from the schema.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import InventoryConfig

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file gives an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_inventory_config(data: dict[str, Any]) -> InventoryConfig:
    section = data.get("inventory", {}) or {}
    if not isinstance(section, dict):
        raise ValueError("'inventory' section must be a mapping")
    return InventoryConfig.from_dict(section)


def load_config(path: Path | None = None) -> InventoryConfig:
    return parse_inventory_config(load_yaml_file(path or DEFAULTS_PATH))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization, for change detection."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
