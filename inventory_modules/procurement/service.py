"""
Procurement Module Service (``inventory_modules.procurement.service``).

Responsibility
--------------
Typed entry points for goods receipts, supplier returns and direct
purchases.  The lifecycle is inherited from DocumentModuleService.

Invariants
----------
- Each public method owns its transaction boundary.
- Every procurement document names a supplier.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

import inventory_modules.procurement.profiles  # noqa: F401  (registers rules)
from inventory_kernel.selectors.document_selector import DocumentView
from inventory_kernel.services.document_service import LineInput
from inventory_modules._document_module import DocumentModuleService
from inventory_modules.procurement.orm import (
    DirectPurchase,
    GoodsReceipt,
    SupplierReturn,
)


class ProcurementDocumentService(DocumentModuleService):

    def create_goods_receipt(
        self,
        warehouse_id: UUID,
        supplier_id: UUID,
        actor_id: UUID,
        purchase_order_id: UUID | None = None,
        notes: str | None = None,
        lines: Iterable[LineInput] = (),
        document_date: datetime | None = None,
    ) -> GoodsReceipt:
        return self._create(
            GoodsReceipt,
            actor_id,
            warehouse_id=warehouse_id,
            lines=lines,
            document_date=document_date,
            supplier_id=supplier_id,
            purchase_order_id=purchase_order_id,
            notes=notes,
        )

    def create_supplier_return(
        self,
        warehouse_id: UUID,
        supplier_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
        notes: str | None = None,
        lines: Iterable[LineInput] = (),
        document_date: datetime | None = None,
    ) -> SupplierReturn:
        return self._create(
            SupplierReturn,
            actor_id,
            warehouse_id=warehouse_id,
            lines=lines,
            document_date=document_date,
            supplier_id=supplier_id,
            reason=reason,
            notes=notes,
        )

    def create_direct_purchase(
        self,
        warehouse_id: UUID,
        supplier_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
        lines: Iterable[LineInput] = (),
        document_date: datetime | None = None,
    ) -> DirectPurchase:
        """Lines carry the unit price in ``unit_cost`` and an optional ``tax_percent``."""
        return self._create(
            DirectPurchase,
            actor_id,
            warehouse_id=warehouse_id,
            lines=lines,
            document_date=document_date,
            supplier_id=supplier_id,
            notes=notes,
        )

    def direct_purchase_totals(self, document_id: UUID) -> DocumentView:
        """Header and lines with subtotal, tax_total and grand_total."""
        return self.get_document_view(document_id)
