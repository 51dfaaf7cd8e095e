"""
inventory_services.valuation_service -- On-hand and cost figures read from the ledger.

Responsibility:
    Per (warehouse, item) on-hand, weighted average cost, last receipt cost
    and cost variance, plus the costing report across items.  Every figure
    is recomputed from movement history on each call; nothing is cached.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Reads through LedgerSelector; the math is inventory_engines.valuation.

Invariants enforced:
    - The costing report builds every row from ONE ledger query, so a
      concurrent post is either entirely in the report or entirely out.
    - Report page size is clamped to 1..report_max_take.

Failure modes:
    - ItemNotFoundError from cost_variance_percent for an unknown item.

Usage:
    valuation = ValuationService(session)
    valuation.on_hand(warehouse_id, item_id)
    report = valuation.costing_report(warehouse_id=warehouse_id, take=50)
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_engines.valuation import (
    CostingRow,
    LastReceipt,
    build_costing_row,
    clamp_take,
    cost_variance_percent,
    last_receipt,
    weighted_average_cost,
)
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import ItemNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.master_data import Item
from inventory_kernel.selectors.ledger_selector import LedgerSelector, MovementRow

logger = get_logger("services.valuation")

ZERO = Decimal("0")


@dataclass(frozen=True)
class CostingReport:
    warehouse_id: UUID | None
    item_id: UUID | None
    generated_at: datetime
    skip: int
    take: int
    rows: tuple[CostingRow, ...]

    @property
    def count(self) -> int:
        return len(self.rows)

    @property
    def total_on_hand(self) -> Decimal:
        return sum((r.on_hand for r in self.rows), ZERO)

    @property
    def total_inventory_value(self) -> Decimal:
        return sum((r.inventory_value for r in self.rows), ZERO)


class ValuationService:
    """
    Contract:
        Read-only.  Never flushes or commits.

    Non-goals:
        - FIFO / LIFO layers.  Costing is weighted average over history.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        *,
        default_take: int = 500,
        max_take: int = 2000,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._ledger = LedgerSelector(session)
        self._default_take = default_take
        self._max_take = max_take

    @classmethod
    def from_config(cls, session: Session, config, clock: Clock | None = None) -> ValuationService:
        return cls(
            session,
            clock,
            default_take=config.report_default_take,
            max_take=config.report_max_take,
        )

    def on_hand(
        self,
        warehouse_id: UUID,
        item_id: UUID,
        batch_number: str | None = None,
    ) -> Decimal:
        return self._ledger.on_hand(warehouse_id, item_id, batch_number)

    def weighted_average_cost(self, warehouse_id: UUID, item_id: UUID) -> Decimal | None:
        return weighted_average_cost(self._ledger.entries(warehouse_id, item_id))

    def last_receipt_cost(self, warehouse_id: UUID, item_id: UUID) -> LastReceipt | None:
        return last_receipt(self._ledger.entries(warehouse_id, item_id))

    def cost_variance_percent(self, warehouse_id: UUID, item_id: UUID) -> Decimal | None:
        """None when there is no receipt history or the default cost is zero."""
        item = self._session.get(Item, item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return cost_variance_percent(
            self.weighted_average_cost(warehouse_id, item_id),
            item.default_unit_cost,
        )

    def costing_report(
        self,
        warehouse_id: UUID | None = None,
        item_id: UUID | None = None,
        skip: int = 0,
        take: int | None = None,
    ) -> CostingReport:
        """
        One row per item, ordered by SKU.

        With ``warehouse_id`` the figures cover that warehouse only;
        without it they cover every warehouse.
        """
        take = clamp_take(take, self._default_take, self._max_take)
        skip = max(skip, 0)

        stmt = select(Item).order_by(Item.sku).offset(skip).limit(take)
        if item_id is not None:
            stmt = stmt.where(Item.id == item_id)
        items = list(self._session.execute(stmt).scalars())

        by_item: dict[UUID, list[MovementRow]] = defaultdict(list)
        if items:
            for row in self._ledger.snapshot(
                warehouse_id=warehouse_id,
                item_ids=[item.id for item in items],
            ):
                by_item[row.item_id].append(row)

        rows = tuple(
            build_costing_row(
                item_id=item.id,
                sku=item.sku,
                name=item.name,
                unit_of_measure=item.unit_of_measure,
                default_unit_cost=item.default_unit_cost,
                entries=by_item.get(item.id, []),
            )
            for item in items
        )

        report = CostingReport(
            warehouse_id=warehouse_id,
            item_id=item_id,
            generated_at=self._clock.now(),
            skip=skip,
            take=take,
            rows=rows,
        )
        logger.info(
            "costing_report_built",
            extra={
                "warehouse_id": str(warehouse_id) if warehouse_id else None,
                "row_count": report.count,
                "take": take,
                "total_inventory_value": str(report.total_inventory_value),
            },
        )
        return report
