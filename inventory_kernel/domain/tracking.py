"""
Tracking rules -- serial / batch identity checks that need no ledger access.

Responsibility:
    Normalization of serial and batch identifiers and the per-line rules of
    the tracking validator that can be decided from the line alone:
    whole-number quantity, serial count equals quantity, no duplicate serials.
    Checks that need the ledger (serial already open, serial in stock) live in
    services/tracking_validator.py.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Serial identifiers are trimmed; blank entries are dropped.
    - Serial comparison is case-insensitive.
    - A serial-tracked line carries exactly |quantity| distinct serials.
"""

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum

from inventory_kernel.exceptions import (
    BatchNumberRequiredError,
    DuplicateSerialError,
    FieldValidationError,
    FractionalSerialQuantityError,
    SerialCountMismatchError,
)


class TrackingType(str, Enum):
    NONE = "none"
    BATCH = "batch"
    SERIAL = "serial"


class MovementDirection(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"

    @classmethod
    def of(cls, signed_quantity: Decimal) -> "MovementDirection":
        return cls.INBOUND if signed_quantity > 0 else cls.OUTBOUND


def normalize_identifier(
    value: str | None,
    *,
    field: str,
    max_length: int,
) -> str | None:
    """Trim an optional identifier; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise FieldValidationError.too_long(field, max_length)
    return value


def normalize_serials(
    serials: Iterable[str | None] | None,
    *,
    max_length: int,
) -> list[str]:
    """Trim serials and drop blanks, preserving order."""
    result: list[str] = []
    for raw in serials or ():
        serial = normalize_identifier(
            raw, field="Serial number", max_length=max_length
        )
        if serial is not None:
            result.append(serial)
    return result


def serial_key(serial: str) -> str:
    return serial.lower()


def find_duplicate_serial(serials: Iterable[str]) -> str | None:
    seen: set[str] = set()
    for serial in serials:
        key = serial_key(serial)
        if key in seen:
            return serial
        seen.add(key)
    return None


def is_whole_number(quantity: Decimal) -> bool:
    return quantity == quantity.to_integral_value()


def check_serial_line(sku: str, quantity: Decimal, serials: list[str]) -> None:
    """
    Line-local serial rules.

    Raises:
        FractionalSerialQuantityError: quantity is not a whole number.
        SerialCountMismatchError: serial count differs from |quantity|.
        DuplicateSerialError: the same serial appears twice.
    """
    magnitude = abs(quantity)
    if not is_whole_number(magnitude):
        raise FractionalSerialQuantityError(sku, quantity)
    expected = int(magnitude)
    if len(serials) != expected:
        raise SerialCountMismatchError(sku, expected, len(serials))
    duplicate = find_duplicate_serial(serials)
    if duplicate is not None:
        raise DuplicateSerialError(sku, duplicate)


def check_batch_line(sku: str, batch_number: str | None, required: bool) -> None:
    if required and not batch_number:
        raise BatchNumberRequiredError(sku)
