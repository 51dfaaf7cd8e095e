"""
Module: inventory_kernel.models.master_data
Responsibility: ORM persistence for items and warehouses.  Both are owned by
    master-data management; the ledger and document services treat them as
    read-only reference data keyed by id.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase
from inventory_kernel.domain.tracking import TrackingType


class ItemType(str, Enum):
    SPARE_PART = "spare_part"
    EQUIPMENT = "equipment"
    CONSUMABLE = "consumable"


class Item(TrackedBase):
    """
    A stockable item.

    ``tracking_type`` decides what identity metadata each movement of the item
    must carry (see domain/tracking.py).  ``default_unit_cost`` is the costing
    fallback when no receipt history exists and the base for cost variance.
    """

    __tablename__ = "items"

    __table_args__ = (
        CheckConstraint("default_unit_cost >= 0", name="ck_item_default_cost"),
    )

    sku: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    item_type: Mapped[ItemType] = mapped_column(
        String(20), nullable=False, default=ItemType.SPARE_PART
    )
    tracking_type: Mapped[TrackingType] = mapped_column(
        String(10), nullable=False, default=TrackingType.NONE
    )
    unit_of_measure: Mapped[str] = mapped_column(
        String(16), nullable=False, default="EA"
    )
    default_unit_cost: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Item {self.sku} ({self.tracking_type})>"


class Warehouse(TrackedBase):
    __tablename__ = "warehouses"

    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Warehouse {self.code}>"
