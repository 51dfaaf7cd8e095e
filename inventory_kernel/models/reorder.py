"""
Module: inventory_kernel.models.reorder
Responsibility: Per warehouse/item reorder thresholds.  Written by warehouse
    management through ReorderService.upsert_setting(); read-only input to
    the reorder evaluator.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString


class ReorderSetting(TrackedBase):
    __tablename__ = "reorder_settings"

    __table_args__ = (
        UniqueConstraint("warehouse_id", "item_id", name="uq_reorder_setting"),
        CheckConstraint("reorder_point >= 0", name="ck_reorder_point"),
        CheckConstraint("reorder_quantity > 0", name="ck_reorder_quantity"),
    )

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    item_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("items.id"), nullable=False
    )
    reorder_point: Mapped[Decimal] = mapped_column(nullable=False)
    reorder_quantity: Mapped[Decimal] = mapped_column(nullable=False)
