"""
Module: inventory_kernel.selectors.document_selector
Responsibility: Read-only retrieval of posting documents and their lines, in
    a shape sufficient for rendering (PDF service, API responses).  Owns no
    rendering logic.
Architecture position: Kernel > Selectors.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from inventory_kernel.exceptions import DocumentNotFoundError
from inventory_kernel.models.document import DocumentLine, PostingDocument
from inventory_kernel.models.master_data import Item, Warehouse
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class LineView:
    id: UUID
    line_number: int
    item_id: UUID
    sku: str
    item_name: str
    quantity: Decimal
    unit_cost: Decimal
    tax_percent: Decimal | None
    batch_number: str | None
    serial_numbers: tuple[str, ...]
    notes: str | None


@dataclass(frozen=True)
class DocumentView:
    id: UUID
    document_type: str
    document_number: str
    status: str
    document_date: datetime
    warehouse_id: UUID
    warehouse_code: str
    to_warehouse_id: UUID | None
    to_warehouse_code: str | None
    supplier_id: UUID | None
    customer_id: UUID | None
    service_job_id: UUID | None
    purchase_order_id: UUID | None
    reason: str | None
    notes: str | None
    posted_at: datetime | None
    voided_at: datetime | None
    lines: tuple[LineView, ...]

    @property
    def subtotal(self) -> Decimal:
        return sum((l.quantity * l.unit_cost for l in self.lines), Decimal("0"))

    @property
    def tax_total(self) -> Decimal:
        return sum(
            (
                l.quantity * l.unit_cost * ((l.tax_percent or Decimal("0")) / Decimal("100"))
                for l in self.lines
            ),
            Decimal("0"),
        )

    @property
    def grand_total(self) -> Decimal:
        return self.subtotal + self.tax_total


@dataclass(frozen=True)
class DocumentSummary:
    id: UUID
    document_type: str
    document_number: str
    status: str
    document_date: datetime
    warehouse_id: UUID
    line_count: int


class DocumentSelector(BaseSelector[PostingDocument]):

    def get_document_view(self, document_id: UUID) -> DocumentView:
        """
        Raises:
            DocumentNotFoundError: no document with this id.
        """
        document = self.session.execute(
            select(PostingDocument)
            .where(PostingDocument.id == document_id)
            .options(selectinload(PostingDocument.lines).selectinload(DocumentLine.serials))
        ).scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(document_id)

        item_ids = {line.item_id for line in document.lines}
        items = {
            item.id: item
            for item in self.session.execute(
                select(Item).where(Item.id.in_(item_ids))
            ).scalars()
        } if item_ids else {}

        warehouse_ids = {document.warehouse_id}
        if document.to_warehouse_id is not None:
            warehouse_ids.add(document.to_warehouse_id)
        codes = dict(
            self.session.execute(
                select(Warehouse.id, Warehouse.code).where(Warehouse.id.in_(warehouse_ids))
            ).all()
        )

        lines = tuple(
            LineView(
                id=line.id,
                line_number=line.line_number,
                item_id=line.item_id,
                sku=items[line.item_id].sku if line.item_id in items else "",
                item_name=items[line.item_id].name if line.item_id in items else "",
                quantity=line.quantity,
                unit_cost=line.unit_cost,
                tax_percent=line.tax_percent,
                batch_number=line.batch_number,
                serial_numbers=tuple(line.serial_numbers),
                notes=line.notes,
            )
            for line in document.lines
        )

        return DocumentView(
            id=document.id,
            document_type=document.document_type,
            document_number=document.document_number,
            status=str(getattr(document.status, "value", document.status)),
            document_date=document.document_date,
            warehouse_id=document.warehouse_id,
            warehouse_code=codes.get(document.warehouse_id, ""),
            to_warehouse_id=document.to_warehouse_id,
            to_warehouse_code=codes.get(document.to_warehouse_id),
            supplier_id=document.supplier_id,
            customer_id=document.customer_id,
            service_job_id=document.service_job_id,
            purchase_order_id=document.purchase_order_id,
            reason=document.reason,
            notes=document.notes,
            posted_at=document.posted_at,
            voided_at=document.voided_at,
            lines=lines,
        )

    def list_documents(
        self,
        document_type: str,
        status: str | None = None,
        skip: int = 0,
        take: int = 100,
    ) -> list[DocumentSummary]:
        """Newest first.  skip/take are expected pre-clamped by the caller."""
        line_count = (
            select(func.count(DocumentLine.id))
            .where(DocumentLine.document_id == PostingDocument.id)
            .correlate(PostingDocument)
            .scalar_subquery()
        )
        stmt = select(PostingDocument, line_count).where(
            PostingDocument.document_type == document_type
        )
        if status is not None:
            stmt = stmt.where(PostingDocument.status == status)
        stmt = (
            stmt.order_by(
                PostingDocument.document_date.desc(),
                PostingDocument.document_number.desc(),
            )
            .offset(max(skip, 0))
            .limit(take)
        )
        return [
            DocumentSummary(
                id=doc.id,
                document_type=doc.document_type,
                document_number=doc.document_number,
                status=str(getattr(doc.status, "value", doc.status)),
                document_date=doc.document_date,
                warehouse_id=doc.warehouse_id,
                line_count=count,
            )
            for doc, count in self.session.execute(stmt)
        ]
