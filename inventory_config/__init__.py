"""
inventory_config -- single public entrypoint for inventory configuration.

``get_active_config()`` returns the loaded InventoryConfig.  The first call
reads the YAML file named by the ``INVENTORY_CONFIG`` environment variable,
or the packaged defaults.yaml, and caches the result.  ``set_active_config()``
replaces the cached value (tests, embedding applications).
"""

from __future__ import annotations

import os
import threading
from pathlib import Path

from inventory_config.bridges import to_posting_policy
from inventory_config.loader import (
    compute_checksum,
    load_config,
    load_yaml_file,
)
from inventory_config.schema import InventoryConfig
from inventory_kernel.logging_config import get_logger

logger = get_logger("config")

_active: InventoryConfig | None = None
_lock = threading.Lock()


def get_active_config() -> InventoryConfig:
    global _active
    with _lock:
        if _active is None:
            env_path = os.environ.get("INVENTORY_CONFIG")
            path = Path(env_path) if env_path else None
            _active = load_config(path)
            logger.info(
                "inventory_config_loaded",
                extra={"source": str(path) if path else "defaults"},
            )
        return _active


def set_active_config(config: InventoryConfig | None) -> None:
    """Replace the active config; None forces a reload on next access."""
    global _active
    with _lock:
        _active = config


__all__ = [
    "InventoryConfig",
    "compute_checksum",
    "get_active_config",
    "load_config",
    "load_yaml_file",
    "set_active_config",
    "to_posting_policy",
]
