"""
Sales posting rules.

    DirectDispatchRule -- ``issue`` (-q) valued at the item's default unit cost.
"""

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.document import DocumentType
from inventory_kernel.models.movement import MovementType
from inventory_kernel.posting_rules import OutboundRule, register_rule

logger = get_logger("modules.sales.profiles")


class DirectDispatchRule(OutboundRule):
    document_type = DocumentType.DIRECT_DISPATCH.value
    movement_type = MovementType.ISSUE

    def unit_cost(self, line, item):
        return item.default_unit_cost


def register() -> None:
    register_rule(DirectDispatchRule())
    logger.debug("sales_rules_registered")


register()
