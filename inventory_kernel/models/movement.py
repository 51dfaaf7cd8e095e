"""
Module: inventory_kernel.models.movement
Responsibility: ORM persistence for movement entries -- the append-only stock
    ledger and the single source of truth for quantity and cost history.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - quantity <> 0 and unit_cost >= 0 (CHECK constraints).
    - Every entry references exactly one posting document (reference_id NOT
      NULL, reference_type NOT NULL).
    - seq is unique and strictly increasing in append order; it breaks ties
      between entries that share an occurred_at.
    - No UPDATE, no DELETE: ORM listeners in db/immutability.py and database
      triggers in db/triggers.py.

Failure modes:
    - IntegrityError on a CHECK violation.
    - ImmutabilityViolationError on any ORM update or delete.

Audit relevance:
    On-hand, weighted average cost and last receipt cost are all derived from
    these rows and nothing else.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, TrackedBase, UUIDString


class MovementType(str, Enum):
    RECEIPT = "receipt"
    ISSUE = "issue"
    ADJUSTMENT = "adjustment"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    CONSUMPTION = "consumption"
    SUPPLIER_RETURN = "supplier_return"


class MovementEntry(TrackedBase):
    """
    One signed stock movement for an item at a warehouse.

    Contract:
        Created only by MovementLedger.append() during a document's post
        transition.  Positive quantity is stock in, negative is stock out.

    Non-goals:
        Corrections are new compensating documents, never edits to a row.
    """

    __tablename__ = "inventory_movements"

    __table_args__ = (
        CheckConstraint("quantity <> 0", name="ck_movement_quantity_nonzero"),
        CheckConstraint("unit_cost >= 0", name="ck_movement_unit_cost"),
        Index("idx_movement_key", "warehouse_id", "item_id", "batch_number"),
        Index("idx_movement_reference", "reference_id"),
        Index("idx_movement_serial", "item_id", "serial_number"),
        Index("idx_movement_occurred", "occurred_at"),
        UniqueConstraint("seq", name="uq_movement_seq"),
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Monotonic ledger sequence, assigned at append
    seq: Mapped[int] = mapped_column(BigInteger, nullable=False)

    movement_type: Mapped[MovementType] = mapped_column(
        String(20),
        nullable=False,
    )

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("warehouses.id"),
        nullable=False,
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id"),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)

    # Source document: type tag + document id + optional line id
    reference_type: Mapped[str] = mapped_column(String(64), nullable=False)
    reference_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    reference_line_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), nullable=True
    )

    serial_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    batch_number: Mapped[str | None] = mapped_column(String(128), nullable=True)

    @property
    def is_inbound(self) -> bool:
        return self.quantity > 0

    def __repr__(self) -> str:
        return (
            f"<MovementEntry {self.movement_type} {self.quantity} "
            f"item={self.item_id} wh={self.warehouse_id}>"
        )


class StockKey(Base):
    """
    Lock row for one (warehouse, item) pair.

    Posting locks the keys it touches with SELECT ... FOR UPDATE so posts that
    hit the same pair serialize, while posts on other pairs proceed in
    parallel.  Carries no data of its own.
    """

    __tablename__ = "stock_keys"

    __table_args__ = (
        UniqueConstraint("warehouse_id", "item_id", name="uq_stock_key"),
    )

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    item_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("items.id"), nullable=False
    )


class ItemKey(Base):
    """
    Lock row for one item across every warehouse.

    Inbound serial checks read the serial's balance at all warehouses, so a
    post that receives serials locks this row as well as its stock keys.
    """

    __tablename__ = "item_keys"

    __table_args__ = (
        UniqueConstraint("item_id", name="uq_item_key"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("items.id"), nullable=False
    )
