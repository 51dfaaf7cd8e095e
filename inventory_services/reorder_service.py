"""
inventory_services.reorder_service -- Reorder settings, alerts and requisitions.

Responsibility:
    Maintains per (warehouse, item) reorder settings, reports the pairs whose
    on-hand has fallen to or below the reorder point, and turns a
    warehouse's alerts into one purchase requisition through the
    procurement gateway.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    The requisition itself belongs to the procurement subsystem; this
    service only computes the suggested lines and hands them over.

Invariants enforced:
    - One setting per (warehouse, item); upsert updates in place.
    - reorder_point >= 0 and reorder_quantity > 0.
    - Alerts read on-hand for every setting from one grouped ledger query.

Failure modes:
    - InvalidQuantityError for a negative point or non-positive quantity.
    - NoReorderSettingsError / NoReorderAlertsError from
      create_purchase_requisition_from_alerts.
    - WarehouseNotFoundError / ItemNotFoundError for unknown references.

Usage:
    reorder = ReorderService(session, procurement=gateway)
    reorder.upsert_setting(wh.id, item.id, Decimal("20"), Decimal("50"), actor_id)
    summary = reorder.create_purchase_requisition_from_alerts(wh.id, actor_id)
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_engines.reorder import ReorderAlert, evaluate_reorder
from inventory_kernel.domain.cancellation import raise_if_cancelled
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import (
    InvalidQuantityError,
    ItemNotFoundError,
    NoReorderAlertsError,
    NoReorderSettingsError,
    WarehouseNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.master_data import Item, Warehouse
from inventory_kernel.models.reorder import ReorderSetting
from inventory_kernel.selectors.ledger_selector import LedgerSelector

logger = get_logger("services.reorder")

ZERO = Decimal("0")


@dataclass(frozen=True)
class RequisitionLine:
    item_id: UUID
    quantity: Decimal
    notes: str


@dataclass(frozen=True)
class RequisitionSummary:
    id: UUID
    number: str
    line_count: int
    total_suggested_quantity: Decimal


class ProcurementGateway(Protocol):
    """The procurement subsystem's requisition entry point."""

    def create_requisition(
        self,
        warehouse_id: UUID,
        lines: Sequence[RequisitionLine],
        notes: str,
        submit: bool,
        actor_id: UUID,
    ) -> RequisitionSummary:
        ...


def format_quantity(value: Decimal) -> str:
    """Plain decimal text without trailing zeros (``15``, ``2.5``)."""
    text = format(value.normalize(), "f")
    return "0" if text in ("-0", "") else text


class ReorderService:
    """
    Contract:
        Flushes; never commits.  The caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        procurement: ProcurementGateway | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._procurement = procurement
        self._clock = clock or SystemClock()
        self._ledger = LedgerSelector(session)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def upsert_setting(
        self,
        warehouse_id: UUID,
        item_id: UUID,
        reorder_point: Decimal,
        reorder_quantity: Decimal,
        actor_id: UUID,
    ) -> ReorderSetting:
        if reorder_point < 0:
            raise InvalidQuantityError(reorder_point, "Reorder point cannot be negative.")
        if reorder_quantity <= 0:
            raise InvalidQuantityError(reorder_quantity, "Reorder quantity must be positive.")
        if self._session.get(Warehouse, warehouse_id) is None:
            raise WarehouseNotFoundError(warehouse_id)
        if self._session.get(Item, item_id) is None:
            raise ItemNotFoundError(item_id)

        setting = self._session.execute(
            select(ReorderSetting).where(
                ReorderSetting.warehouse_id == warehouse_id,
                ReorderSetting.item_id == item_id,
            )
        ).scalar_one_or_none()

        if setting is None:
            setting = ReorderSetting(
                warehouse_id=warehouse_id,
                item_id=item_id,
                reorder_point=reorder_point,
                reorder_quantity=reorder_quantity,
                created_by_id=actor_id,
            )
            self._session.add(setting)
            inserted = True
        else:
            setting.reorder_point = reorder_point
            setting.reorder_quantity = reorder_quantity
            setting.updated_by_id = actor_id
            inserted = False

        self._session.flush()
        logger.info(
            "reorder_setting_upserted",
            extra={
                "warehouse_id": str(warehouse_id),
                "item_id": str(item_id),
                "reorder_point": str(reorder_point),
                "reorder_quantity": str(reorder_quantity),
                "inserted": inserted,
            },
        )
        return setting

    def list_settings(self, warehouse_id: UUID | None = None) -> list[ReorderSetting]:
        stmt = select(ReorderSetting).order_by(
            ReorderSetting.warehouse_id, ReorderSetting.item_id
        )
        if warehouse_id is not None:
            stmt = stmt.where(ReorderSetting.warehouse_id == warehouse_id)
        return list(self._session.execute(stmt).scalars())

    def delete_setting(self, setting_id: UUID) -> bool:
        """Remove a setting.  False if it did not exist."""
        setting = self._session.get(ReorderSetting, setting_id)
        if setting is None:
            return False
        self._session.delete(setting)
        self._session.flush()
        return True

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def alerts(self, warehouse_id: UUID | None = None) -> list[ReorderAlert]:
        """Settings whose on-hand is at or below the reorder point, by warehouse then SKU."""
        return self._evaluate(self._settings_with_items(warehouse_id), warehouse_id)

    def _settings_with_items(
        self, warehouse_id: UUID | None
    ) -> list[tuple[ReorderSetting, Item]]:
        stmt = (
            select(ReorderSetting, Item)
            .join(Item, Item.id == ReorderSetting.item_id)
            .order_by(ReorderSetting.warehouse_id, Item.sku)
        )
        if warehouse_id is not None:
            stmt = stmt.where(ReorderSetting.warehouse_id == warehouse_id)
        return [(setting, item) for setting, item in self._session.execute(stmt)]

    def _evaluate(
        self,
        settings: list[tuple[ReorderSetting, Item]],
        warehouse_id: UUID | None,
    ) -> list[ReorderAlert]:
        on_hand = self._ledger.on_hand_by_key(warehouse_id)
        alerts = []
        for setting, item in settings:
            alert = evaluate_reorder(
                warehouse_id=setting.warehouse_id,
                item_id=setting.item_id,
                sku=item.sku,
                name=item.name,
                on_hand=on_hand.get((setting.warehouse_id, setting.item_id), ZERO),
                reorder_point=setting.reorder_point,
                reorder_quantity=setting.reorder_quantity,
            )
            if alert is not None:
                alerts.append(alert)

        logger.info(
            "reorder_alerts_evaluated",
            extra={
                "warehouse_id": str(warehouse_id) if warehouse_id else None,
                "settings": len(settings),
                "alerts": len(alerts),
            },
        )
        return alerts

    # ------------------------------------------------------------------
    # Requisition
    # ------------------------------------------------------------------

    def create_purchase_requisition_from_alerts(
        self,
        warehouse_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
        submit: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> RequisitionSummary:
        """
        One requisition line per alerting item of the warehouse.

        Raises:
            NoReorderSettingsError: the warehouse has no settings.
            NoReorderAlertsError: nothing is at or below its reorder point.
            WarehouseNotFoundError: unknown warehouse.
        """
        if self._procurement is None:
            raise RuntimeError("ReorderService was created without a procurement gateway")

        operation = "create_purchase_requisition_from_alerts"
        raise_if_cancelled(cancel_event, operation, "start")

        settings = self._settings_with_items(warehouse_id)
        if not settings:
            raise NoReorderSettingsError(warehouse_id)

        alerts = self._evaluate(settings, warehouse_id)
        if not alerts:
            raise NoReorderAlertsError(warehouse_id)

        warehouse = self._session.get(Warehouse, warehouse_id)
        if warehouse is None:
            raise WarehouseNotFoundError(warehouse_id)

        if not notes or not notes.strip():
            notes = (
                f"Auto-generated from reorder alerts for warehouse {warehouse.code} "
                f"on {self._clock.now():%Y-%m-%d %H:%M} UTC."
            )

        lines = [
            RequisitionLine(
                item_id=alert.item_id,
                quantity=alert.suggested_quantity,
                notes=(
                    f"Reorder alert: on hand {format_quantity(alert.on_hand)}, "
                    f"reorder point {format_quantity(alert.reorder_point)}, "
                    f"configured reorder qty {format_quantity(alert.reorder_quantity)}."
                ),
            )
            for alert in alerts
        ]

        raise_if_cancelled(cancel_event, operation, "create_requisition")
        created = self._procurement.create_requisition(
            warehouse_id, lines, notes, submit, actor_id
        )
        summary = RequisitionSummary(
            id=created.id,
            number=created.number,
            line_count=created.line_count,
            total_suggested_quantity=sum((line.quantity for line in lines), ZERO),
        )

        logger.info(
            "reorder_requisition_created",
            extra={
                "warehouse_id": str(warehouse_id),
                "requisition_id": str(summary.id),
                "requisition_number": summary.number,
                "line_count": summary.line_count,
                "submitted": submit,
            },
        )
        return summary
