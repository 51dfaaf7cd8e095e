"""
Procurement posting rules.

    GoodsReceiptRule    -- ``receipt`` (+q) at the line's unit cost.
    SupplierReturnRule  -- ``supplier_return`` (-q) at the line's unit cost.
    DirectPurchaseRule  -- ``receipt`` (+q) at the line's unit price.

Rules register with the default registry on import.
"""

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.document import DocumentType
from inventory_kernel.models.movement import MovementType
from inventory_kernel.posting_rules import InboundRule, OutboundRule, register_rule

logger = get_logger("modules.procurement.profiles")


class GoodsReceiptRule(InboundRule):
    document_type = DocumentType.GOODS_RECEIPT.value
    movement_type = MovementType.RECEIPT


class SupplierReturnRule(OutboundRule):
    document_type = DocumentType.SUPPLIER_RETURN.value
    movement_type = MovementType.SUPPLIER_RETURN


class DirectPurchaseRule(InboundRule):
    document_type = DocumentType.DIRECT_PURCHASE.value
    movement_type = MovementType.RECEIPT


def register() -> None:
    register_rule(GoodsReceiptRule())
    register_rule(SupplierReturnRule())
    register_rule(DirectPurchaseRule())
    logger.debug("procurement_rules_registered")


register()
