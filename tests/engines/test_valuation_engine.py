"""
Tests for the valuation engine (inventory_engines/valuation.py).

Covers:
- On-hand as the signed sum of history
- Weighted average cost over inbound entries only
- Last receipt ordering and tie-breaks
- Cost variance edge cases
- Costing rows and page-size clamping
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_engines.valuation import (
    build_costing_row,
    clamp_take,
    cost_variance_percent,
    inventory_value,
    last_receipt,
    on_hand,
    weighted_average_cost,
)

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Entry:
    quantity: Decimal
    unit_cost: Decimal
    occurred_at: datetime = T0


def _e(qty: str, cost: str, minutes: int = 0) -> Entry:
    return Entry(Decimal(qty), Decimal(cost), T0 + timedelta(minutes=minutes))


class TestOnHand:

    def test_empty_history(self):
        assert on_hand([]) == Decimal("0")

    def test_signed_sum(self):
        assert on_hand([_e("10", "5"), _e("-3", "5"), _e("2", "6")]) == Decimal("9")

    def test_may_go_negative(self):
        assert on_hand([_e("-4", "0")]) == Decimal("-4")


class TestWeightedAverageCost:

    def test_no_receipts(self):
        assert weighted_average_cost([]) is None
        assert weighted_average_cost([_e("-2", "10")]) is None

    def test_two_receipts(self):
        """10 @ 10 and 10 @ 12 average to 11."""
        assert weighted_average_cost([_e("10", "10"), _e("10", "12")]) == Decimal("11")

    def test_outbound_does_not_change_average(self):
        history = [_e("10", "10"), _e("-5", "99"), _e("10", "12")]
        assert weighted_average_cost(history) == Decimal("11")

    def test_weighted_by_quantity(self):
        """30 @ 2 and 10 @ 6 -> (60 + 60) / 40 = 3."""
        assert weighted_average_cost([_e("30", "2"), _e("10", "6")]) == Decimal("3")


class TestLastReceipt:

    def test_none_without_receipts(self):
        assert last_receipt([_e("-1", "3")]) is None

    def test_latest_by_occurred_at(self):
        receipt = last_receipt([_e("5", "12", minutes=10), _e("5", "10", minutes=0)])
        assert receipt.unit_cost == Decimal("12")
        assert receipt.occurred_at == T0 + timedelta(minutes=10)

    def test_later_position_wins_tie(self):
        history = [_e("1", "8"), _e("1", "9")]
        assert last_receipt(history).unit_cost == Decimal("9")

    def test_outbound_entries_ignored(self):
        history = [_e("2", "7", minutes=0), _e("-2", "100", minutes=5)]
        assert last_receipt(history).unit_cost == Decimal("7")


class TestCostVariance:

    def test_variance_percent(self):
        assert cost_variance_percent(Decimal("11"), Decimal("10")) == Decimal("10")

    def test_negative_variance(self):
        assert cost_variance_percent(Decimal("9"), Decimal("10")) == Decimal("-10")

    def test_zero_default_cost_is_undefined(self):
        assert cost_variance_percent(Decimal("11"), Decimal("0")) is None

    def test_no_average_is_undefined(self):
        assert cost_variance_percent(None, Decimal("10")) is None


class TestCostingRow:

    def test_row_from_history(self):
        item_id = uuid4()
        row = build_costing_row(
            item_id=item_id,
            sku="BOLT",
            name="Bolt",
            unit_of_measure="EA",
            default_unit_cost=Decimal("10"),
            entries=[_e("10", "10", 0), _e("10", "12", 1), _e("-5", "11", 2)],
        )
        assert row.item_id == item_id
        assert row.on_hand == Decimal("15")
        assert row.weighted_average_cost == Decimal("11")
        assert row.last_receipt_cost == Decimal("12")
        assert row.inventory_value == Decimal("165")
        assert row.variance_percent == Decimal("10")
        assert row.costing_unit == Decimal("11")

    def test_row_without_history_values_at_default(self):
        row = build_costing_row(
            item_id=uuid4(),
            sku="NEW",
            name="New",
            unit_of_measure="EA",
            default_unit_cost=Decimal("4"),
            entries=[],
        )
        assert row.on_hand == Decimal("0")
        assert row.weighted_average_cost is None
        assert row.last_receipt_cost is None
        assert row.last_receipt_at is None
        assert row.inventory_value == Decimal("0")
        assert row.variance_percent is None
        assert row.costing_unit == Decimal("4")

    def test_inventory_value_falls_back_to_default(self):
        assert inventory_value(Decimal("-2"), None, Decimal("5")) == Decimal("-10")

    def test_emits_engine_trace(self, captured_logs):
        build_costing_row(
            item_id=uuid4(),
            sku="T",
            name="T",
            unit_of_measure="EA",
            default_unit_cost=Decimal("1"),
            entries=[],
        )
        traces = [r for r in captured_logs() if r["message"] == "INVENTORY_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "valuation"
        assert len(traces[0]["input_fingerprint"]) == 16


class TestClampTake:

    @pytest.mark.parametrize(
        "take,expected",
        [(None, 500), (0, 1), (-5, 1), (10, 10), (5000, 2000)],
    )
    def test_clamp(self, take, expected):
        assert clamp_take(take, default=500, maximum=2000) == expected
