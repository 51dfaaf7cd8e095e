"""
Service posting rules.

    MaterialRequisitionRule -- ``consumption`` (-q) valued at the item's
                               default unit cost.
"""

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.document import DocumentType
from inventory_kernel.models.movement import MovementType
from inventory_kernel.posting_rules import OutboundRule, register_rule

logger = get_logger("modules.service.profiles")


class MaterialRequisitionRule(OutboundRule):
    document_type = DocumentType.MATERIAL_REQUISITION.value
    movement_type = MovementType.CONSUMPTION

    def unit_cost(self, line, item):
        return item.default_unit_cost


def register() -> None:
    register_rule(MaterialRequisitionRule())
    logger.debug("service_rules_registered")


register()
