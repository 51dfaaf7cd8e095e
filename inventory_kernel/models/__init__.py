"""ORM models for the inventory kernel."""

from inventory_kernel.models.document import (
    DocumentLine,
    DocumentLineSerial,
    DocumentType,
    PostingDocument,
)
from inventory_kernel.models.master_data import Item, ItemType, Warehouse
from inventory_kernel.models.movement import ItemKey, MovementEntry, MovementType, StockKey
from inventory_kernel.models.reorder import ReorderSetting

__all__ = [
    "DocumentLine",
    "DocumentLineSerial",
    "DocumentType",
    "Item",
    "ItemKey",
    "ItemType",
    "MovementEntry",
    "MovementType",
    "PostingDocument",
    "ReorderSetting",
    "StockKey",
    "Warehouse",
]
