"""
Bridges from configuration to kernel inputs.

The kernel never imports inventory_config; these functions hand it plain
frozen values instead.
"""

from inventory_config.schema import InventoryConfig
from inventory_kernel.domain.policy import PostingPolicy


def to_posting_policy(config: InventoryConfig) -> PostingPolicy:
    return PostingPolicy(
        enforce_stock_availability=config.enforce_stock_availability,
        require_batch_number=config.require_batch_number,
        serial_max_length=config.serial_max_length,
        batch_max_length=config.batch_max_length,
        sequence_start=config.sequence_start,
        sequence_padding=config.sequence_padding,
        document_prefixes=dict(config.document_prefixes),
    )
