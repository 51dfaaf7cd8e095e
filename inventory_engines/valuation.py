"""
inventory_engines.valuation -- Costing math over movement history.

Responsibility:
    On-hand, weighted average cost, last receipt, cost variance and the
    per-item costing row, all computed from an ordered sequence of ledger
    entries.  Nothing is cached or carried between calls: every figure is
    recomputed from the full history it is given.

Architecture position:
    Engines -- pure calculation layer, zero I/O, no clock access.
    Consumed by inventory_services.valuation_service.

Invariants enforced:
    - Decimal-only arithmetic.
    - Weighted average = sum(qty * cost) / sum(qty) over inbound entries
      (quantity > 0).  Outbound entries never change it.
    - Variance is undefined (None) when there is no weighted average or the
      default cost is zero.

Failure modes:
    - None -- empty input yields zero on-hand and None for the cost figures.

Usage:
    from inventory_engines.valuation import weighted_average_cost
    wac = weighted_average_cost(ledger.entries(warehouse_id, item_id))
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from inventory_engines.tracer import traced_engine

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class LedgerEntry(Protocol):
    """The fields of a movement entry the valuation math reads."""

    quantity: Decimal
    unit_cost: Decimal
    occurred_at: datetime


@dataclass(frozen=True)
class LastReceipt:
    unit_cost: Decimal
    occurred_at: datetime
    quantity: Decimal


@dataclass(frozen=True)
class CostingRow:
    item_id: UUID
    sku: str
    name: str
    unit_of_measure: str
    default_unit_cost: Decimal
    on_hand: Decimal
    weighted_average_cost: Decimal | None
    last_receipt_cost: Decimal | None
    last_receipt_at: datetime | None
    inventory_value: Decimal
    variance_percent: Decimal | None

    @property
    def costing_unit(self) -> Decimal:
        """Unit cost used for the inventory value."""
        if self.weighted_average_cost is None:
            return self.default_unit_cost
        return self.weighted_average_cost


def on_hand(entries: Iterable[LedgerEntry]) -> Decimal:
    return sum((e.quantity for e in entries), ZERO)


def weighted_average_cost(entries: Iterable[LedgerEntry]) -> Decimal | None:
    """Sum of qty * cost over sum of qty, inbound entries only."""
    inbound_qty = ZERO
    inbound_value = ZERO
    for entry in entries:
        if entry.quantity > 0:
            inbound_qty += entry.quantity
            inbound_value += entry.quantity * entry.unit_cost
    if inbound_qty <= 0:
        return None
    return inbound_value / inbound_qty


def last_receipt(entries: Iterable[LedgerEntry]) -> LastReceipt | None:
    """
    Latest inbound entry by occurred_at.

    On a tie the entry later in the given order wins, so callers pass
    entries in ledger order (occurred_at, then seq).
    """
    latest = None
    latest_key = None
    for entry in entries:
        if entry.quantity <= 0:
            continue
        if latest_key is None or entry.occurred_at >= latest_key:
            latest, latest_key = entry, entry.occurred_at
    if latest is None:
        return None
    return LastReceipt(
        unit_cost=latest.unit_cost,
        occurred_at=latest.occurred_at,
        quantity=latest.quantity,
    )


def cost_variance_percent(
    wac: Decimal | None,
    default_unit_cost: Decimal,
) -> Decimal | None:
    """(wac - default) / default * 100."""
    if wac is None or default_unit_cost <= 0:
        return None
    return (wac - default_unit_cost) / default_unit_cost * HUNDRED


def inventory_value(
    quantity: Decimal,
    wac: Decimal | None,
    default_unit_cost: Decimal,
) -> Decimal:
    return quantity * (default_unit_cost if wac is None else wac)


@traced_engine("valuation", "1.0", fingerprint_fields=("item_id", "default_unit_cost"))
def build_costing_row(
    *,
    item_id: UUID,
    sku: str,
    name: str,
    unit_of_measure: str,
    default_unit_cost: Decimal,
    entries: list[LedgerEntry],
) -> CostingRow:
    quantity = on_hand(entries)
    wac = weighted_average_cost(entries)
    receipt = last_receipt(entries)
    return CostingRow(
        item_id=item_id,
        sku=sku,
        name=name,
        unit_of_measure=unit_of_measure,
        default_unit_cost=default_unit_cost,
        on_hand=quantity,
        weighted_average_cost=wac,
        last_receipt_cost=receipt.unit_cost if receipt else None,
        last_receipt_at=receipt.occurred_at if receipt else None,
        inventory_value=inventory_value(quantity, wac, default_unit_cost),
        variance_percent=cost_variance_percent(wac, default_unit_cost),
    )


def clamp_take(take: int | None, default: int, maximum: int) -> int:
    """Page size clamped to 1..maximum; None means ``default``."""
    if take is None:
        take = default
    return max(1, min(take, maximum))
