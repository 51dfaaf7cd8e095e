"""
MovementLedger -- the only writer of movement entries.

Responsibility:
    Appends the movement entries produced by a document's post transition,
    and serializes concurrent posts that touch the same (warehouse, item)
    pair through stock-key row locks.

Architecture position:
    Kernel > Services.  Called only by DocumentService.post().  There is no
    update or delete path; ORM listeners and database triggers reject both.

Invariants enforced:
    - Every entry references exactly one posting document.
    - quantity != 0 and unit_cost >= 0 for every entry.
    - All entries of one append share the caller's transaction; they become
      visible together at commit or not at all.
    - Stock keys are locked in sorted order so two posts never deadlock on
      each other's keys.  Item keys, when needed, are locked first.
    - Each entry draws its seq from the movement counter, so ledger order
      is total even when entries share an occurred_at.

Failure modes:
    - InvalidQuantityError / NegativeUnitCostError on a malformed spec.
    - IntegrityError during concurrent first use of a stock key (handled via
      savepoint rollback and retry).
"""

from collections.abc import Iterable, Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import InvalidQuantityError, NegativeUnitCostError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.movement import ItemKey, MovementEntry, StockKey
from inventory_kernel.posting_rules.base import MovementSpec
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.sequence_service import SequenceService

logger = get_logger("services.movement_ledger")


class MovementLedger(BaseService[MovementEntry]):
    """
    Contract:
        ``append()`` writes every spec as one MovementEntry stamped with the
        clock's current time, then flushes.

    Non-goals:
        - Does NOT commit.  The post transaction owns the boundary.
        - Does NOT validate tracking or availability; DocumentService runs
          those checks before calling append().
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequence = SequenceService(session)

    def lock_stock_keys(self, keys: Iterable[tuple[UUID, UUID]]) -> None:
        """
        Lock the (warehouse_id, item_id) rows the caller is about to read and
        append to, creating missing rows on first use.
        """
        for warehouse_id, item_id in sorted(set(keys), key=lambda k: (str(k[0]), str(k[1]))):
            self._lock_or_create(
                StockKey,
                StockKey.warehouse_id == warehouse_id,
                StockKey.item_id == item_id,
                warehouse_id=warehouse_id,
                item_id=item_id,
            )

    def lock_items(self, item_ids: Iterable[UUID]) -> None:
        """Lock the item-wide rows for every item, creating them on first use."""
        for item_id in sorted(set(item_ids), key=str):
            self._lock_or_create(ItemKey, ItemKey.item_id == item_id, item_id=item_id)

    def _lock_or_create(self, model, *criteria, **values) -> None:
        if self._lock_row(model, criteria) is not None:
            return
        savepoint = self.session.begin_nested()
        try:
            self.session.add(model(**values))
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            logger.debug(
                "lock_row_race_retry",
                extra={"table": model.__tablename__, **{k: str(v) for k, v in values.items()}},
            )
            savepoint.rollback()
            if self._lock_row(model, criteria) is None:
                raise

    def _lock_row(self, model, criteria):
        return self.session.execute(
            select(model)
            .where(*criteria)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def append(
        self,
        specs: Sequence[MovementSpec],
        *,
        reference_type: str,
        reference_id: UUID,
        actor_id: UUID,
    ) -> list[MovementEntry]:
        """
        Preconditions:
            - The caller holds the stock-key locks for every spec's key.
        Postconditions:
            - One flushed MovementEntry per spec, with seq increasing in spec
              order.
        """
        occurred_at = self._clock.now()
        entries: list[MovementEntry] = []
        for spec in specs:
            if spec.quantity == 0:
                raise InvalidQuantityError(spec.quantity, "Movement quantity cannot be zero.")
            if spec.unit_cost < 0:
                raise NegativeUnitCostError(spec.unit_cost)
            entries.append(
                MovementEntry(
                    occurred_at=occurred_at,
                    seq=self._sequence.next_value(SequenceService.MOVEMENT_ENTRY),
                    movement_type=spec.movement_type,
                    warehouse_id=spec.warehouse_id,
                    item_id=spec.item_id,
                    quantity=spec.quantity,
                    unit_cost=spec.unit_cost,
                    reference_type=reference_type,
                    reference_id=reference_id,
                    reference_line_id=spec.reference_line_id,
                    serial_number=spec.serial_number,
                    batch_number=spec.batch_number,
                    created_by_id=actor_id,
                )
            )

        self.session.add_all(entries)
        self.session.flush()

        logger.info(
            "ledger_entries_appended",
            extra={
                "reference_type": reference_type,
                "reference_id": str(reference_id),
                "entry_count": len(entries),
                "net_quantity": str(sum((e.quantity for e in entries), Decimal("0"))),
            },
        )
        return entries
