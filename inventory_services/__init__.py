"""
Services built on the kernel: valuation reads and reorder orchestration.

    from inventory_services import ReorderService, ValuationService
"""

from inventory_services.reorder_service import (
    ProcurementGateway,
    ReorderService,
    RequisitionLine,
    RequisitionSummary,
)
from inventory_services.valuation_service import CostingReport, ValuationService

__all__ = [
    "CostingReport",
    "ProcurementGateway",
    "ReorderService",
    "RequisitionLine",
    "RequisitionSummary",
    "ValuationService",
]
