"""
TrackingValidator -- serial / batch identity rules enforced before posting.

Responsibility:
    One rule set, applied the same way to every document type:

    * line level (domain/tracking.py): serial-tracked lines carry a whole
      quantity and exactly that many distinct serials; batch-tracked lines
      carry a batch number when the policy requires it.
    * ledger level (here): an inbound serial must not already be open
      anywhere in the ledger for the item; an outbound serial must be in
      stock at the warehouse it leaves.

    Ledger checks walk the document's movements in order and account for the
    document's own earlier movements, so a transfer's outbound leg frees the
    serial its inbound leg then receives, and the same serial cannot be
    received twice by two lines of one document.

    StockAvailabilityCheck is the opt-in non-negative on-hand hook.

Architecture position:
    Kernel > Services.  Read-only; called by DocumentService.post() while the
    stock keys are locked.

Failure modes:
    - TrackingError subclasses for identity violations.
    - InsufficientStockError from StockAvailabilityCheck.
"""

from collections import defaultdict
from collections.abc import Mapping, Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.policy import PostingPolicy
from inventory_kernel.domain.tracking import (
    TrackingType,
    check_batch_line,
    check_serial_line,
    serial_key,
)
from inventory_kernel.exceptions import (
    InsufficientStockError,
    SerialAlreadyInStockError,
    SerialNotInStockError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.document import DocumentLine
from inventory_kernel.models.master_data import Item, Warehouse
from inventory_kernel.posting_rules.base import MovementSpec
from inventory_kernel.selectors.ledger_selector import LedgerSelector

logger = get_logger("services.tracking_validator")

ZERO = Decimal("0")


class TrackingValidator:

    def __init__(self, session: Session, policy: PostingPolicy | None = None):
        self._session = session
        self._policy = policy or PostingPolicy()
        self._ledger = LedgerSelector(session)

    def validate_line(self, item: Item, line: DocumentLine) -> None:
        tracking = TrackingType(item.tracking_type)
        if tracking == TrackingType.SERIAL:
            check_serial_line(item.sku, line.quantity, line.serial_numbers)
        elif tracking == TrackingType.BATCH:
            check_batch_line(item.sku, line.batch_number, self._policy.require_batch_number)

    def validate_movements(
        self,
        specs: Sequence[MovementSpec],
        items: Mapping[UUID, Item],
    ) -> None:
        pending_global: dict[tuple[UUID, str], Decimal] = defaultdict(Decimal)
        pending_local: dict[tuple[UUID, UUID, str], Decimal] = defaultdict(Decimal)

        for spec in specs:
            if spec.serial_number is None:
                continue
            sku = items[spec.item_id].sku
            key = serial_key(spec.serial_number)
            global_key = (spec.item_id, key)
            local_key = (spec.warehouse_id, spec.item_id, key)

            if spec.is_inbound:
                balance = (
                    self._ledger.serial_balance(spec.item_id, spec.serial_number)
                    + pending_global[global_key]
                )
                if balance > 0:
                    raise SerialAlreadyInStockError(sku, spec.serial_number)
            else:
                balance = (
                    self._ledger.serial_balance(
                        spec.item_id, spec.serial_number, spec.warehouse_id
                    )
                    + pending_local[local_key]
                )
                if balance <= 0:
                    raise SerialNotInStockError(sku, spec.serial_number)

            pending_global[global_key] += spec.quantity
            pending_local[local_key] += spec.quantity


class StockAvailabilityCheck:
    """
    Opt-in check that no outbound movement takes on-hand below zero.

    On-hand is read under the stock-key locks, so two concurrent posts cannot
    both pass against the same stale figure.
    """

    def __init__(self, session: Session):
        self._session = session
        self._ledger = LedgerSelector(session)

    def check(self, specs: Sequence[MovementSpec], items: Mapping[UUID, Item]) -> None:
        """
        Running balances per (warehouse, item) and, for batched movements,
        per (warehouse, item, batch).  Either going negative rejects the post.
        """
        on_hand: dict[tuple[UUID, UUID, str | None], Decimal] = {}
        for spec in specs:
            keys = [(spec.warehouse_id, spec.item_id, None)]
            if spec.batch_number:
                keys.append((spec.warehouse_id, spec.item_id, spec.batch_number))
            for key in keys:
                if key not in on_hand:
                    on_hand[key] = self._ledger.on_hand(*key)
                before = on_hand[key]
                on_hand[key] = before + spec.quantity
                if spec.quantity < 0 and on_hand[key] < 0:
                    self._reject(spec, items, before, batch_number=key[2])

    def _reject(self, spec, items, before, batch_number=None):
        warehouse = self._session.get(Warehouse, spec.warehouse_id)
        logger.info(
            "stock_availability_rejected",
            extra={
                "warehouse_id": str(spec.warehouse_id),
                "item_id": str(spec.item_id),
                "batch_number": batch_number,
                "on_hand": str(before),
                "requested": str(-spec.quantity),
            },
        )
        raise InsufficientStockError(
            items[spec.item_id].sku,
            warehouse.code if warehouse else str(spec.warehouse_id),
            before,
            -spec.quantity,
        )
