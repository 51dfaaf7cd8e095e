"""
Module: inventory_engines
Responsibility:
    Pure calculation engines for valuation and reorder evaluation.  This is
    the import surface for inventory_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    MUST NOT import inventory_services or inventory_modules.

Invariants enforced:
    - Engines never read the clock; timestamps are passed in.
    - Decimal-only arithmetic.
"""

from inventory_engines.reorder import (
    ReorderAlert,
    evaluate_reorder,
    is_below_reorder_point,
    suggested_quantity,
)
from inventory_engines.valuation import (
    CostingRow,
    LastReceipt,
    build_costing_row,
    clamp_take,
    cost_variance_percent,
    inventory_value,
    last_receipt,
    on_hand,
    weighted_average_cost,
)

__all__ = [
    "CostingRow",
    "LastReceipt",
    "ReorderAlert",
    "build_costing_row",
    "clamp_take",
    "cost_variance_percent",
    "evaluate_reorder",
    "inventory_value",
    "is_below_reorder_point",
    "last_receipt",
    "on_hand",
    "suggested_quantity",
    "weighted_average_cost",
]
