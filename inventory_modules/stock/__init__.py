"""Stock area: stock adjustments and stock transfers."""

from inventory_modules.stock.orm import StockAdjustment, StockTransfer
from inventory_modules.stock.profiles import StockAdjustmentRule, StockTransferRule
from inventory_modules.stock.service import StockDocumentService

__all__ = [
    "StockAdjustment",
    "StockAdjustmentRule",
    "StockDocumentService",
    "StockTransfer",
    "StockTransferRule",
]
