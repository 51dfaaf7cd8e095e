"""Tests for the line-local tracking rules (inventory_kernel/domain/tracking.py)."""

from decimal import Decimal

import pytest

from inventory_kernel.domain.tracking import (
    MovementDirection,
    check_batch_line,
    check_serial_line,
    find_duplicate_serial,
    is_whole_number,
    normalize_identifier,
    normalize_serials,
)
from inventory_kernel.exceptions import (
    BatchNumberRequiredError,
    DuplicateSerialError,
    FieldValidationError,
    FractionalSerialQuantityError,
    SerialCountMismatchError,
)


class TestNormalization:

    def test_identifier_trimmed(self):
        assert normalize_identifier("  LOT-7 ", field="Batch number", max_length=20) == "LOT-7"

    def test_blank_identifier_becomes_none(self):
        assert normalize_identifier("   ", field="Batch number", max_length=20) is None
        assert normalize_identifier(None, field="Batch number", max_length=20) is None

    def test_identifier_too_long(self):
        with pytest.raises(FieldValidationError) as exc_info:
            normalize_identifier("X" * 11, field="Batch number", max_length=10)
        assert exc_info.value.field == "Batch number"
        assert str(exc_info.value) == "Batch number must be <= 10 characters."

    def test_serials_trimmed_and_blanks_dropped(self):
        assert normalize_serials([" SN1", "", None, "SN2 ", "  "], max_length=128) == [
            "SN1",
            "SN2",
        ]

    def test_serials_keep_order(self):
        assert normalize_serials(["b", "a", "c"], max_length=128) == ["b", "a", "c"]


class TestSerialLine:

    def test_valid_inbound_line(self):
        check_serial_line("PUMP", Decimal("2"), ["SN1", "SN2"])

    def test_valid_outbound_line_uses_magnitude(self):
        check_serial_line("PUMP", Decimal("-2"), ["SN1", "SN2"])

    def test_fractional_quantity_rejected(self):
        with pytest.raises(FractionalSerialQuantityError):
            check_serial_line("PUMP", Decimal("1.5"), ["SN1"])

    def test_count_mismatch(self):
        with pytest.raises(SerialCountMismatchError) as exc_info:
            check_serial_line("PUMP", Decimal("3"), ["SN1", "SN2"])
        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2

    def test_duplicate_is_case_insensitive(self):
        with pytest.raises(DuplicateSerialError) as exc_info:
            check_serial_line("PUMP", Decimal("2"), ["sn-1", "SN-1"])
        assert exc_info.value.serial_number == "SN-1"

    def test_find_duplicate_none(self):
        assert find_duplicate_serial(["A", "B", "C"]) is None


class TestBatchLine:

    def test_batch_optional_by_default(self):
        check_batch_line("OIL", None, required=False)

    def test_batch_required_when_flagged(self):
        with pytest.raises(BatchNumberRequiredError) as exc_info:
            check_batch_line("OIL", None, required=True)
        assert exc_info.value.sku == "OIL"

    def test_batch_present_when_required(self):
        check_batch_line("OIL", "LOT-1", required=True)


class TestHelpers:

    @pytest.mark.parametrize(
        "value,expected",
        [("3", True), ("3.000", True), ("0.5", False), ("-2", True)],
    )
    def test_is_whole_number(self, value, expected):
        assert is_whole_number(Decimal(value)) is expected

    def test_direction_of(self):
        assert MovementDirection.of(Decimal("1")) == MovementDirection.INBOUND
        assert MovementDirection.of(Decimal("-1")) == MovementDirection.OUTBOUND
