"""
Stock posting rules.

    StockAdjustmentRule -- one ``adjustment`` movement; the sign follows the
                           line's signed quantity.  Exempt from the
                           availability check: adjustments may take stock
                           negative to record a correction.
    StockTransferRule   -- ``transfer_out`` (-q) at the source, then
                           ``transfer_in`` (+q) at the destination, both
                           referencing the same line at the line's cost.

Rules register with the default registry on import.
"""

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.document import DocumentType
from inventory_kernel.models.movement import MovementType
from inventory_kernel.posting_rules import (
    BasePostingRule,
    Leg,
    QuantityPolicy,
    register_rule,
)

logger = get_logger("modules.stock.profiles")


class StockAdjustmentRule(BasePostingRule):
    document_type = DocumentType.STOCK_ADJUSTMENT.value
    quantity_policy = QuantityPolicy.NON_ZERO
    checks_availability = False

    def legs(self, document, line):
        sign = 1 if line.quantity > 0 else -1
        return [Leg(document.warehouse_id, MovementType.ADJUSTMENT, sign)]


class StockTransferRule(BasePostingRule):
    document_type = DocumentType.STOCK_TRANSFER.value

    def legs(self, document, line):
        return [
            Leg(document.warehouse_id, MovementType.TRANSFER_OUT, -1),
            Leg(document.to_warehouse_id, MovementType.TRANSFER_IN, +1),
        ]


def register() -> None:
    register_rule(StockAdjustmentRule())
    register_rule(StockTransferRule())
    logger.debug("stock_rules_registered")


register()
