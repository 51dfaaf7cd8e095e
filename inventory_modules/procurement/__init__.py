"""Procurement area: goods receipts, supplier returns and direct purchases."""

from inventory_modules.procurement.orm import DirectPurchase, GoodsReceipt, SupplierReturn
from inventory_modules.procurement.profiles import (
    DirectPurchaseRule,
    GoodsReceiptRule,
    SupplierReturnRule,
)
from inventory_modules.procurement.service import ProcurementDocumentService

__all__ = [
    "DirectPurchase",
    "DirectPurchaseRule",
    "GoodsReceipt",
    "GoodsReceiptRule",
    "ProcurementDocumentService",
    "SupplierReturn",
    "SupplierReturnRule",
]
