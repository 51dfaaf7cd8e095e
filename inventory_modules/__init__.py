"""
Inventory document modules.

Each area declares its document types (orm.py), their posting rules
(profiles.py) and a thin service that owns the transaction boundary
(service.py):

- stock: stock adjustments, stock transfers
- procurement: goods receipts, supplier returns, direct purchases
- sales: direct dispatches
- service: material requisitions

The Draft / Posted / Voided lifecycle itself lives once, in
inventory_kernel.services.document_service.
"""

from inventory_modules import procurement, sales, service, stock

__all__ = ["procurement", "sales", "service", "stock"]
