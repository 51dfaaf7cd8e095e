"""
Inventory configuration schema.

Defines the structure and defaults for the inventory ledger settings.  Actual
values come from a YAML file at runtime (see loader.py); the packaged
defaults.yaml mirrors the field defaults below.
"""

from dataclasses import dataclass, field, fields
from typing import Self

from inventory_kernel.domain.policy import DEFAULT_DOCUMENT_PREFIXES
from inventory_kernel.logging_config import get_logger

logger = get_logger("config.schema")

MAX_PREFIX_LENGTH = 16


@dataclass
class InventoryConfig:
    """
    Configuration schema for the inventory ledger.

        config = InventoryConfig(
            enforce_stock_availability=True,
            **load_yaml_file(path).get("inventory", {}),
        )
    """

    # Document numbering
    sequence_start: int = 1
    sequence_padding: int = 6
    document_prefixes: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DOCUMENT_PREFIXES)
    )

    # Posting checks
    enforce_stock_availability: bool = False
    require_batch_number: bool = False

    # Identifier limits
    serial_max_length: int = 128
    batch_max_length: int = 128

    # Reporting pagination
    report_default_take: int = 500
    report_max_take: int = 2000

    def __post_init__(self):
        if self.sequence_start < 1:
            raise ValueError("sequence_start must be at least 1")
        if not 1 <= self.sequence_padding <= 18:
            raise ValueError("sequence_padding must be between 1 and 18")

        missing = set(DEFAULT_DOCUMENT_PREFIXES) - set(self.document_prefixes)
        if missing:
            raise ValueError(
                f"document_prefixes is missing document types: {sorted(missing)}"
            )
        for document_type, prefix in self.document_prefixes.items():
            if not prefix or not prefix.strip():
                raise ValueError(f"prefix for {document_type} cannot be blank")
            if len(prefix) > MAX_PREFIX_LENGTH:
                raise ValueError(
                    f"prefix for {document_type} must be <= {MAX_PREFIX_LENGTH} characters"
                )
        if len(set(self.document_prefixes.values())) != len(self.document_prefixes):
            raise ValueError("document_prefixes must be unique per document type")

        if self.serial_max_length <= 0 or self.batch_max_length <= 0:
            raise ValueError("identifier max lengths must be positive")
        if self.report_max_take < 1:
            raise ValueError("report_max_take must be positive")
        if not 1 <= self.report_default_take <= self.report_max_take:
            raise ValueError("report_default_take must be between 1 and report_max_take")

        logger.info(
            "inventory_config_initialized",
            extra={
                "sequence_start": self.sequence_start,
                "enforce_stock_availability": self.enforce_stock_availability,
                "require_batch_number": self.require_batch_number,
                "report_max_take": self.report_max_take,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        logger.info("inventory_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from a dictionary; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown inventory config keys: {sorted(unknown)}")
        logger.info(
            "inventory_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        prefixes = data.get("document_prefixes")
        if prefixes is not None:
            data = {
                **data,
                "document_prefixes": {**DEFAULT_DOCUMENT_PREFIXES, **prefixes},
            }
        return cls(**data)
