"""Tests for reorder settings, alerts and requisitions (inventory_services/reorder_service.py)."""

import threading
from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import (
    InvalidQuantityError,
    ItemNotFoundError,
    NoReorderAlertsError,
    NoReorderSettingsError,
    OperationCancelledError,
    WarehouseNotFoundError,
)
from inventory_kernel.services.document_service import LineInput
from inventory_modules.procurement.orm import GoodsReceipt
from inventory_services.reorder_service import (
    ReorderService,
    RequisitionSummary,
    format_quantity,
)
from tests.conftest import TEST_SUPPLIER_ID


class FakeProcurement:
    """Records requisition requests instead of calling a procurement system."""

    def __init__(self):
        self.calls = []

    def create_requisition(self, warehouse_id, lines, notes, submit, actor_id):
        self.calls.append(
            {
                "warehouse_id": warehouse_id,
                "lines": list(lines),
                "notes": notes,
                "submit": submit,
                "actor_id": actor_id,
            }
        )
        return RequisitionSummary(
            id=uuid4(),
            number=f"PR{len(self.calls):06d}",
            line_count=len(lines),
            total_suggested_quantity=Decimal("0"),
        )


@pytest.fixture
def procurement():
    return FakeProcurement()


@pytest.fixture
def reorder(session, procurement, deterministic_clock):
    return ReorderService(session, procurement=procurement, clock=deterministic_clock)


@pytest.fixture
def receive(document_service, test_actor_id):
    def _receive(warehouse, item, quantity):
        doc = document_service.create_draft(
            GoodsReceipt,
            test_actor_id,
            warehouse_id=warehouse.id,
            supplier_id=TEST_SUPPLIER_ID,
            lines=[LineInput(item.id, Decimal(quantity))],
        )
        document_service.post(doc.id, test_actor_id)

    return _receive


class TestSettings:

    def test_insert_then_update(self, reorder, warehouse, item, test_actor_id):
        first = reorder.upsert_setting(warehouse.id, item.id, Decimal("5"), Decimal("20"), test_actor_id)
        second = reorder.upsert_setting(warehouse.id, item.id, Decimal("8"), Decimal("30"), test_actor_id)

        assert second.id == first.id
        assert second.reorder_point == Decimal("8")
        assert second.reorder_quantity == Decimal("30")
        assert second.updated_by_id == test_actor_id
        assert len(reorder.list_settings(warehouse.id)) == 1

    def test_upsert_logged(self, reorder, warehouse, item, test_actor_id, captured_logs):
        reorder.upsert_setting(warehouse.id, item.id, Decimal("20"), Decimal("50"), test_actor_id)
        reorder.upsert_setting(warehouse.id, item.id, Decimal("25"), Decimal("50"), test_actor_id)

        records = [r for r in captured_logs() if r["message"] == "reorder_setting_upserted"]
        assert [r["inserted"] for r in records] == [True, False]
        assert records[1]["reorder_point"] == "25"

    def test_zero_point_allowed(self, reorder, warehouse, item, test_actor_id):
        setting = reorder.upsert_setting(warehouse.id, item.id, Decimal("0"), Decimal("1"), test_actor_id)
        assert setting.reorder_point == Decimal("0")

    def test_negative_point(self, reorder, warehouse, item, test_actor_id):
        with pytest.raises(InvalidQuantityError, match="Reorder point cannot be negative."):
            reorder.upsert_setting(warehouse.id, item.id, Decimal("-1"), Decimal("5"), test_actor_id)

    @pytest.mark.parametrize("quantity", ["0", "-3"])
    def test_quantity_must_be_positive(self, reorder, warehouse, item, test_actor_id, quantity):
        with pytest.raises(InvalidQuantityError, match="Reorder quantity must be positive."):
            reorder.upsert_setting(warehouse.id, item.id, Decimal("1"), Decimal(quantity), test_actor_id)

    def test_unknown_references(self, reorder, warehouse, item, test_actor_id):
        with pytest.raises(WarehouseNotFoundError):
            reorder.upsert_setting(uuid4(), item.id, Decimal("1"), Decimal("1"), test_actor_id)
        with pytest.raises(ItemNotFoundError):
            reorder.upsert_setting(warehouse.id, uuid4(), Decimal("1"), Decimal("1"), test_actor_id)

    def test_list_filters_by_warehouse(self, reorder, warehouse, second_warehouse, item, test_actor_id):
        reorder.upsert_setting(warehouse.id, item.id, Decimal("1"), Decimal("1"), test_actor_id)
        reorder.upsert_setting(second_warehouse.id, item.id, Decimal("1"), Decimal("1"), test_actor_id)
        assert len(reorder.list_settings()) == 2
        assert [s.warehouse_id for s in reorder.list_settings(second_warehouse.id)] == [second_warehouse.id]

    def test_delete(self, reorder, warehouse, item, test_actor_id):
        setting = reorder.upsert_setting(warehouse.id, item.id, Decimal("1"), Decimal("1"), test_actor_id)
        assert reorder.delete_setting(setting.id) is True
        assert reorder.delete_setting(setting.id) is False
        assert reorder.list_settings() == []


class TestAlerts:

    def test_at_or_below_point_alerts(self, reorder, receive, warehouse, create_item, test_actor_id):
        low = create_item("LOW")
        exact = create_item("EXACT")
        plenty = create_item("PLENTY")
        receive(warehouse, low, "2")
        receive(warehouse, exact, "5")
        receive(warehouse, plenty, "9")
        for item in (low, exact, plenty):
            reorder.upsert_setting(warehouse.id, item.id, Decimal("5"), Decimal("20"), test_actor_id)

        alerts = reorder.alerts(warehouse.id)
        assert [a.sku for a in alerts] == ["EXACT", "LOW"]
        assert alerts[1].on_hand == Decimal("2")
        assert alerts[1].suggested_quantity == Decimal("20")

    def test_no_history_counts_as_zero(self, reorder, warehouse, item, test_actor_id):
        reorder.upsert_setting(warehouse.id, item.id, Decimal("0"), Decimal("4"), test_actor_id)
        [alert] = reorder.alerts()
        assert alert.on_hand == Decimal("0")

    def test_on_hand_is_per_warehouse(
        self, reorder, receive, warehouse, second_warehouse, item, test_actor_id
    ):
        receive(second_warehouse, item, "50")
        reorder.upsert_setting(warehouse.id, item.id, Decimal("5"), Decimal("10"), test_actor_id)
        reorder.upsert_setting(second_warehouse.id, item.id, Decimal("5"), Decimal("10"), test_actor_id)
        assert [a.warehouse_id for a in reorder.alerts()] == [warehouse.id]


class TestRequisitionFromAlerts:

    def test_one_line_per_alert(
        self, reorder, procurement, receive, warehouse, item, create_item, test_actor_id
    ):
        other = create_item("NUT-2")
        receive(warehouse, item, "3")
        reorder.upsert_setting(warehouse.id, item.id, Decimal("5"), Decimal("15"), test_actor_id)
        reorder.upsert_setting(warehouse.id, other.id, Decimal("2.5"), Decimal("4"), test_actor_id)

        summary = reorder.create_purchase_requisition_from_alerts(warehouse.id, test_actor_id, submit=True)

        assert summary.number == "PR000001"
        assert summary.line_count == 2
        assert summary.total_suggested_quantity == Decimal("19")

        [call] = procurement.calls
        assert call["submit"] is True
        assert call["actor_id"] == test_actor_id
        assert [line.item_id for line in call["lines"]] == [item.id, other.id]
        assert call["lines"][0].notes == (
            "Reorder alert: on hand 3, reorder point 5, configured reorder qty 15."
        )
        assert call["lines"][1].notes == (
            "Reorder alert: on hand 0, reorder point 2.5, configured reorder qty 4."
        )

    def test_default_notes(self, reorder, procurement, warehouse, item, test_actor_id):
        reorder.upsert_setting(warehouse.id, item.id, Decimal("1"), Decimal("1"), test_actor_id)
        reorder.create_purchase_requisition_from_alerts(warehouse.id, test_actor_id, notes="  ")
        assert procurement.calls[0]["notes"] == (
            "Auto-generated from reorder alerts for warehouse MAIN on 2024-01-01 12:00 UTC."
        )

    def test_caller_notes_kept(self, reorder, procurement, warehouse, item, test_actor_id):
        reorder.upsert_setting(warehouse.id, item.id, Decimal("1"), Decimal("1"), test_actor_id)
        reorder.create_purchase_requisition_from_alerts(warehouse.id, test_actor_id, notes="Weekly run")
        assert procurement.calls[0]["notes"] == "Weekly run"
        assert procurement.calls[0]["submit"] is False

    def test_no_settings(self, reorder, procurement, warehouse, test_actor_id):
        with pytest.raises(NoReorderSettingsError):
            reorder.create_purchase_requisition_from_alerts(warehouse.id, test_actor_id)
        assert procurement.calls == []

    def test_no_alerts(self, reorder, procurement, receive, warehouse, item, test_actor_id):
        receive(warehouse, item, "10")
        reorder.upsert_setting(warehouse.id, item.id, Decimal("5"), Decimal("10"), test_actor_id)
        with pytest.raises(NoReorderAlertsError):
            reorder.create_purchase_requisition_from_alerts(warehouse.id, test_actor_id)
        assert procurement.calls == []

    def test_cancelled(self, reorder, procurement, warehouse, item, test_actor_id):
        reorder.upsert_setting(warehouse.id, item.id, Decimal("1"), Decimal("1"), test_actor_id)
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(OperationCancelledError):
            reorder.create_purchase_requisition_from_alerts(warehouse.id, test_actor_id, cancel_event=cancel)
        assert procurement.calls == []

    def test_requires_gateway(self, session, warehouse, test_actor_id):
        with pytest.raises(RuntimeError, match="procurement gateway"):
            ReorderService(session).create_purchase_requisition_from_alerts(warehouse.id, test_actor_id)


class TestFormatQuantity:

    @pytest.mark.parametrize(
        "value,expected",
        [("15.000000000", "15"), ("2.50", "2.5"), ("0E-9", "0"), ("100", "100"), ("-0", "0")],
    )
    def test_plain_text(self, value, expected):
        assert format_quantity(Decimal(value)) == expected
