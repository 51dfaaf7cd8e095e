"""
inventory_engines.reorder -- Reorder alert predicate and suggested quantity.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by inventory_services.reorder_service.

Invariants enforced:
    - An alert fires when on-hand <= reorder point (inclusive).
    - The suggested quantity is always > 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from inventory_engines.tracer import traced_engine

ZERO = Decimal("0")
ONE = Decimal("1")


@dataclass(frozen=True)
class ReorderAlert:
    warehouse_id: UUID
    item_id: UUID
    sku: str
    name: str
    on_hand: Decimal
    reorder_point: Decimal
    reorder_quantity: Decimal
    suggested_quantity: Decimal

    @property
    def shortage(self) -> Decimal:
        return max(self.reorder_point - self.on_hand, ZERO)


def is_below_reorder_point(on_hand: Decimal, reorder_point: Decimal) -> bool:
    return on_hand <= reorder_point


def suggested_quantity(
    reorder_quantity: Decimal,
    reorder_point: Decimal,
    on_hand: Decimal,
) -> Decimal:
    """
    The configured reorder quantity when positive, otherwise the shortage
    below the reorder point, otherwise 1.
    """
    if reorder_quantity > 0:
        return reorder_quantity
    shortage = reorder_point - on_hand
    if shortage > 0:
        return shortage
    return ONE


@traced_engine("reorder", "1.0", fingerprint_fields=("warehouse_id", "item_id", "on_hand"))
def evaluate_reorder(
    *,
    warehouse_id: UUID,
    item_id: UUID,
    sku: str,
    name: str,
    on_hand: Decimal,
    reorder_point: Decimal,
    reorder_quantity: Decimal,
) -> ReorderAlert | None:
    """An alert for one (warehouse, item) setting, or None when stock is above the point."""
    if not is_below_reorder_point(on_hand, reorder_point):
        return None
    return ReorderAlert(
        warehouse_id=warehouse_id,
        item_id=item_id,
        sku=sku,
        name=name,
        on_hand=on_hand,
        reorder_point=reorder_point,
        reorder_quantity=reorder_quantity,
        suggested_quantity=suggested_quantity(reorder_quantity, reorder_point, on_hand),
    )
