"""
Stock Module Service (``inventory_modules.stock.service``).

Responsibility
--------------
Typed entry points for stock adjustments and stock transfers.  The
lifecycle (line edits, post, void) is inherited from DocumentModuleService.

Invariants
----------
- Each public method owns its transaction boundary.
- A transfer's source and destination differ.

Usage::

    stock = StockDocumentService(session, clock=clock)
    doc = stock.create_stock_adjustment(
        warehouse_id=wh.id, actor_id=actor_id, reason="Cycle count",
        lines=[LineInput(item.id, Decimal("-2"))],
    )
    stock.post(doc.id, actor_id)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

import inventory_modules.stock.profiles  # noqa: F401  (registers rules)
from inventory_kernel.services.document_service import LineInput
from inventory_modules._document_module import DocumentModuleService
from inventory_modules.stock.orm import StockAdjustment, StockTransfer


class StockDocumentService(DocumentModuleService):

    def create_stock_adjustment(
        self,
        warehouse_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
        notes: str | None = None,
        lines: Iterable[LineInput] = (),
        document_date: datetime | None = None,
    ) -> StockAdjustment:
        return self._create(
            StockAdjustment,
            actor_id,
            warehouse_id=warehouse_id,
            lines=lines,
            document_date=document_date,
            reason=reason,
            notes=notes,
        )

    def create_stock_transfer(
        self,
        from_warehouse_id: UUID,
        to_warehouse_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
        lines: Iterable[LineInput] = (),
        document_date: datetime | None = None,
    ) -> StockTransfer:
        return self._create(
            StockTransfer,
            actor_id,
            warehouse_id=from_warehouse_id,
            lines=lines,
            document_date=document_date,
            to_warehouse_id=to_warehouse_id,
            notes=notes,
        )
