"""
Module: inventory_kernel.models.document
Responsibility: ORM persistence for posting documents, their lines and the
    serial numbers attached to lines.  One table holds every document type
    (single-table polymorphism on ``document_type``); concrete types live in
    inventory_modules and contribute only behaviour and labels.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - document_number is unique across all document types.
    - status moves Draft -> Posted or Draft -> Voided and never leaves a
      terminal state (DocumentService + db/immutability.py).
    - Lines and serials are owned by their document (delete-orphan cascade).

Failure modes:
    - IntegrityError on duplicate document_number.
    - ImmutabilityViolationError on any change to a posted/voided document or
      its lines.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, TrackedBase, UUIDString
from inventory_kernel.domain.workflow import DocumentStatus


class DocumentType(str, Enum):
    STOCK_ADJUSTMENT = "stock_adjustment"
    STOCK_TRANSFER = "stock_transfer"
    GOODS_RECEIPT = "goods_receipt"
    SUPPLIER_RETURN = "supplier_return"
    DIRECT_DISPATCH = "direct_dispatch"
    DIRECT_PURCHASE = "direct_purchase"
    MATERIAL_REQUISITION = "material_requisition"


class PostingDocument(TrackedBase):
    """
    Header shared by every stock-affecting document.

    Contract:
        Subclasses set ``__mapper_args__['polymorphic_identity']`` to a
        DocumentType value, and ``title`` / ``plural_label`` for messages.
        Type-specific header rules go in ``validate_header()``.

    Guarantees:
        - ``document_number`` is assigned once, at draft creation.
        - ``lines`` are ordered by ``line_number``.

    Non-goals:
        - Posting logic.  See DocumentService and the posting rules.
    """

    __tablename__ = "posting_documents"

    __table_args__ = (
        Index("idx_document_type_status", "document_type", "status"),
        Index("idx_document_warehouse", "warehouse_id"),
    )

    title: ClassVar[str] = "Document"
    plural_label: ClassVar[str] = "documents"

    document_type: Mapped[str] = mapped_column(String(32), nullable=False)

    document_number: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True
    )

    status: Mapped[DocumentStatus] = mapped_column(
        String(10),
        nullable=False,
        default=DocumentStatus.DRAFT,
    )

    document_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Primary warehouse; the source warehouse for transfers.
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("warehouses.id"),
        nullable=False,
    )

    to_warehouse_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("warehouses.id"),
        nullable=True,
    )

    # Counterparts owned by other subsystems; ids only.
    supplier_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    customer_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    service_job_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), nullable=True
    )
    purchase_order_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), nullable=True
    )

    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    posted_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    voided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    voided_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    lines: Mapped[list["DocumentLine"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentLine.line_number",
    )

    __mapper_args__ = {
        "polymorphic_on": "document_type",
    }

    def validate_header(self) -> None:
        """Type-specific header checks.  Raise a ValidationError subclass."""

    def find_line(self, line_id: UUID) -> "DocumentLine | None":
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def next_line_number(self) -> int:
        return max((line.line_number for line in self.lines), default=0) + 1

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.document_number} ({self.status})>"


class DocumentLine(Base):
    """
    One line of a posting document.

    ``quantity`` is a signed delta for adjustments and a positive magnitude
    for every other type; the posting rule decides the movement sign.
    """

    __tablename__ = "posting_document_lines"

    __table_args__ = (
        CheckConstraint("unit_cost >= 0", name="ck_document_line_unit_cost"),
        CheckConstraint("quantity <> 0", name="ck_document_line_quantity"),
        Index("idx_document_line_document", "document_id"),
    )

    document_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("posting_documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id"),
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    tax_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    batch_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    document: Mapped[PostingDocument] = relationship(back_populates="lines")

    serials: Mapped[list["DocumentLineSerial"]] = relationship(
        back_populates="line",
        cascade="all, delete-orphan",
        order_by="DocumentLineSerial.position",
    )

    @property
    def serial_numbers(self) -> list[str]:
        return [s.serial_number for s in self.serials]

    @property
    def line_subtotal(self) -> Decimal:
        return self.quantity * self.unit_cost

    @property
    def line_tax(self) -> Decimal:
        return self.line_subtotal * ((self.tax_percent or Decimal("0")) / Decimal("100"))


class DocumentLineSerial(Base):
    __tablename__ = "posting_document_line_serials"

    line_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("posting_document_lines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    serial_number: Mapped[str] = mapped_column(String(128), nullable=False)

    line: Mapped[DocumentLine] = relationship(back_populates="serials")
