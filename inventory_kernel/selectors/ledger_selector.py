"""
Module: inventory_kernel.selectors.ledger_selector
Responsibility: Read-only queries over the movement ledger: ordered entries,
    on-hand aggregates and serial balances.  There are no stored balances
    anywhere; every figure is computed from MovementEntry rows at query time.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - On-hand is SUM(quantity) over the matching rows, read in the caller's
      transaction, so it is consistent with the ledger at that instant.
    - Serial comparison is case-insensitive.

Failure modes:
    - Empty results / zero balances when no entries match.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.models.movement import MovementEntry, MovementType
from inventory_kernel.selectors.base import BaseSelector

ZERO = Decimal("0")


def as_decimal(value) -> Decimal:
    """Aggregates come back as float on SQLite; normalize without float noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; the stored values are UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class MovementRow:
    """One ledger entry as read by consumers outside the kernel."""

    id: UUID
    seq: int
    occurred_at: datetime
    created_at: datetime | None
    movement_type: MovementType
    warehouse_id: UUID
    item_id: UUID
    quantity: Decimal
    unit_cost: Decimal
    reference_type: str
    reference_id: UUID
    reference_line_id: UUID | None
    serial_number: str | None
    batch_number: str | None

    @property
    def is_inbound(self) -> bool:
        return self.quantity > 0


def _to_row(entry: MovementEntry) -> MovementRow:
    return MovementRow(
        id=entry.id,
        seq=entry.seq,
        occurred_at=as_utc(entry.occurred_at),
        created_at=as_utc(entry.created_at),
        movement_type=MovementType(entry.movement_type),
        warehouse_id=entry.warehouse_id,
        item_id=entry.item_id,
        quantity=entry.quantity,
        unit_cost=entry.unit_cost,
        reference_type=entry.reference_type,
        reference_id=entry.reference_id,
        reference_line_id=entry.reference_line_id,
        serial_number=entry.serial_number,
        batch_number=entry.batch_number,
    )


_LEDGER_ORDER = (MovementEntry.occurred_at, MovementEntry.seq)


class LedgerSelector(BaseSelector[MovementEntry]):
    """
    Contract:
        Read side of the movement ledger.  Entries are ordered by
        occurred_at, then seq (append order).

    Non-goals:
        - Valuation math (weighted average, variance).  See
          inventory_engines.valuation.
    """

    def entries(
        self,
        warehouse_id: UUID,
        item_id: UUID,
        batch_number: str | None = None,
    ) -> list[MovementRow]:
        stmt = select(MovementEntry).where(
            MovementEntry.warehouse_id == warehouse_id,
            MovementEntry.item_id == item_id,
        )
        if batch_number is not None:
            stmt = stmt.where(MovementEntry.batch_number == batch_number)
        rows = self.session.execute(stmt.order_by(*_LEDGER_ORDER)).scalars()
        return [_to_row(e) for e in rows]

    def entries_for_document(self, document_id: UUID) -> list[MovementRow]:
        rows = self.session.execute(
            select(MovementEntry)
            .where(MovementEntry.reference_id == document_id)
            .order_by(*_LEDGER_ORDER)
        ).scalars()
        return [_to_row(e) for e in rows]

    def snapshot(
        self,
        warehouse_id: UUID | None = None,
        item_ids: Iterable[UUID] | None = None,
    ) -> list[MovementRow]:
        """
        Every entry matching the filters, in one statement.

        Reports build all of their rows from a single snapshot so they never
        mix ledger states from before and after a concurrent post.
        """
        stmt = select(MovementEntry)
        if warehouse_id is not None:
            stmt = stmt.where(MovementEntry.warehouse_id == warehouse_id)
        if item_ids is not None:
            stmt = stmt.where(MovementEntry.item_id.in_(list(item_ids)))
        rows = self.session.execute(stmt.order_by(*_LEDGER_ORDER)).scalars()
        return [_to_row(e) for e in rows]

    def on_hand(
        self,
        warehouse_id: UUID,
        item_id: UUID,
        batch_number: str | None = None,
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(MovementEntry.quantity), ZERO)).where(
            MovementEntry.warehouse_id == warehouse_id,
            MovementEntry.item_id == item_id,
        )
        if batch_number is not None:
            stmt = stmt.where(MovementEntry.batch_number == batch_number)
        return as_decimal(self.session.execute(stmt).scalar_one())

    def serial_balance(
        self,
        item_id: UUID,
        serial_number: str,
        warehouse_id: UUID | None = None,
    ) -> Decimal:
        """Net quantity of one serial, at one warehouse or across all."""
        stmt = select(func.coalesce(func.sum(MovementEntry.quantity), ZERO)).where(
            MovementEntry.item_id == item_id,
            func.lower(MovementEntry.serial_number) == serial_number.lower(),
        )
        if warehouse_id is not None:
            stmt = stmt.where(MovementEntry.warehouse_id == warehouse_id)
        return as_decimal(self.session.execute(stmt).scalar_one())

    def is_serial_in_stock(
        self,
        warehouse_id: UUID,
        item_id: UUID,
        serial_number: str,
    ) -> bool:
        return self.serial_balance(item_id, serial_number, warehouse_id) > 0

    def open_serials(self, warehouse_id: UUID, item_id: UUID) -> list[str]:
        """Serials received and not yet issued at the warehouse."""
        total = func.sum(MovementEntry.quantity)
        stmt = (
            select(MovementEntry.serial_number)
            .where(
                MovementEntry.warehouse_id == warehouse_id,
                MovementEntry.item_id == item_id,
                MovementEntry.serial_number.is_not(None),
            )
            .group_by(MovementEntry.serial_number)
            .having(total > 0)
            .order_by(MovementEntry.serial_number)
        )
        return list(self.session.execute(stmt).scalars())

    def on_hand_by_key(
        self,
        warehouse_id: UUID | None = None,
    ) -> dict[tuple[UUID, UUID], Decimal]:
        """On-hand for every (warehouse, item) pair with entries, in one query."""
        stmt = select(
            MovementEntry.warehouse_id,
            MovementEntry.item_id,
            func.sum(MovementEntry.quantity),
        ).group_by(MovementEntry.warehouse_id, MovementEntry.item_id)
        if warehouse_id is not None:
            stmt = stmt.where(MovementEntry.warehouse_id == warehouse_id)
        return {
            (wh, item): as_decimal(total)
            for wh, item, total in self.session.execute(stmt)
        }
