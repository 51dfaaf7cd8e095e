"""Service area: material requisitions."""

from inventory_modules.service.orm import MaterialRequisition
from inventory_modules.service.profiles import MaterialRequisitionRule
from inventory_modules.service.service import ServiceDocumentService

__all__ = ["MaterialRequisition", "MaterialRequisitionRule", "ServiceDocumentService"]
