"""
Typed exception hierarchy for the inventory kernel.

Every error raised by the kernel, the document modules and the read services
is an ``InventoryKernelError`` subclass with:

  1. a TYPED class (catch by type, not by message),
  2. a ``code`` class attribute (machine-readable, API-safe),
  3. structured attributes describing the failure.

Messages are human-readable and suitable for returning to an API caller.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- ValidationError                 caller's fault, never retried
    |   +-- FieldValidationError
    |   +-- InvalidQuantityError
    |   +-- NegativeUnitCostError
    |   +-- InvalidDocumentStateError
    |   +-- EmptyDocumentError
    |   +-- DocumentNotFoundError
    |   +-- LineNotFoundError
    |   +-- SameWarehouseTransferError
    |   +-- MissingDispatchReferenceError
    |   +-- ReferenceDataError
    |   |   +-- ItemNotFoundError
    |   |   +-- WarehouseNotFoundError
    |   |   +-- InactiveReferenceError
    |   +-- TrackingError
    |   |   +-- FractionalSerialQuantityError
    |   |   +-- SerialCountMismatchError
    |   |   +-- DuplicateSerialError
    |   |   +-- SerialAlreadyInStockError
    |   |   +-- SerialNotInStockError
    |   |   +-- BatchNumberRequiredError
    |   +-- InsufficientStockError
    |   +-- ReorderError
    |       +-- NoReorderSettingsError
    |       +-- NoReorderAlertsError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- TransientError                  retry the whole operation
        +-- ConcurrencyConflictError
        +-- OperationCancelledError

===============================================================================
HANDLING GUIDE
===============================================================================

    ValidationError    -> return to caller (HTTP 400 / 404 / 409 equivalent)
    ImmutabilityError  -> programming error or tampering; log and alert
    TransientError     -> caller may retry; posting is atomic so a fresh
                          attempt never duplicates ledger entries
"""

from decimal import Decimal
from typing import Any


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation errors


class ValidationError(InventoryKernelError):
    """Base class for caller errors. These are rejected, never retried."""

    code: str = "VALIDATION_ERROR"


class FieldValidationError(ValidationError):
    """A header or line field failed a required / length guard."""

    code: str = "FIELD_INVALID"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(reason)

    @classmethod
    def required(cls, field: str) -> "FieldValidationError":
        return cls(field, f"{field} is required.")

    @classmethod
    def too_long(cls, field: str, max_length: int) -> "FieldValidationError":
        return cls(field, f"{field} must be <= {max_length} characters.")


class InvalidQuantityError(ValidationError):
    """Quantity is zero where a delta is required, or not strictly positive."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Decimal, reason: str):
        self.quantity = quantity
        self.reason = reason
        super().__init__(reason)


class NegativeUnitCostError(ValidationError):
    code: str = "NEGATIVE_UNIT_COST"

    def __init__(self, unit_cost: Decimal, field: str = "Unit cost"):
        self.unit_cost = unit_cost
        super().__init__(f"{field} cannot be negative.")


class InvalidDocumentStateError(ValidationError):
    """
    Lifecycle action attempted from a status that does not allow it.

    The message mirrors what an operator sees, e.g.
    ``"Only draft stock adjustments can be posted."``.
    """

    code: str = "INVALID_DOCUMENT_STATE"

    def __init__(
        self,
        document_id: Any,
        document_label: str,
        current_status: str,
        action: str,
    ):
        self.document_id = str(document_id)
        self.document_label = document_label
        self.current_status = current_status
        self.action = action
        super().__init__(f"Only draft {document_label} can be {action}.")


class EmptyDocumentError(ValidationError):
    code: str = "EMPTY_DOCUMENT"

    def __init__(self, document_id: Any, document_title: str):
        self.document_id = str(document_id)
        super().__init__(f"{document_title} must have at least one line.")


class DocumentNotFoundError(ValidationError):
    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: Any, document_title: str = "Document"):
        self.document_id = str(document_id)
        super().__init__(f"{document_title} not found.")


class LineNotFoundError(ValidationError):
    code: str = "LINE_NOT_FOUND"

    def __init__(self, document_id: Any, line_id: Any, document_title: str):
        self.document_id = str(document_id)
        self.line_id = str(line_id)
        super().__init__(f"{document_title} line not found.")


class SameWarehouseTransferError(ValidationError):
    code: str = "SAME_WAREHOUSE_TRANSFER"

    def __init__(self, warehouse_id: Any):
        self.warehouse_id = str(warehouse_id)
        super().__init__("From and To warehouses must be different.")


class MissingDispatchReferenceError(ValidationError):
    code: str = "MISSING_DISPATCH_REFERENCE"

    def __init__(self) -> None:
        super().__init__(
            "Direct dispatch requires a customer or service job reference."
        )


# Reference data


class ReferenceDataError(ValidationError):
    """Base class for item / warehouse lookup failures."""

    code: str = "REFERENCE_DATA_ERROR"


class ItemNotFoundError(ReferenceDataError):
    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: Any, document_title: str | None = None):
        self.item_id = str(item_id)
        if document_title:
            msg = f"Invalid item on {document_title.lower()}."
        else:
            msg = f"Item not found: {item_id}"
        super().__init__(msg)


class WarehouseNotFoundError(ReferenceDataError):
    code: str = "WAREHOUSE_NOT_FOUND"

    def __init__(self, warehouse_id: Any):
        self.warehouse_id = str(warehouse_id)
        super().__init__(f"Warehouse not found: {warehouse_id}")


class InactiveReferenceError(ReferenceDataError):
    code: str = "INACTIVE_REFERENCE"

    def __init__(self, entity_type: str, entity_id: Any, label: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.label = label
        super().__init__(f"{entity_type} '{label}' is inactive.")


# Tracking (serial / batch identity)


class TrackingError(ValidationError):
    """Base class for serial / batch identity violations."""

    code: str = "TRACKING_ERROR"

    def __init__(self, sku: str, message: str):
        self.sku = sku
        super().__init__(message)


class FractionalSerialQuantityError(TrackingError):
    code: str = "FRACTIONAL_SERIAL_QUANTITY"

    def __init__(self, sku: str, quantity: Decimal):
        self.quantity = quantity
        super().__init__(
            sku,
            f"Serial-tracked item '{sku}' requires a whole-number quantity.",
        )


class SerialCountMismatchError(TrackingError):
    code: str = "SERIAL_COUNT_MISMATCH"

    def __init__(self, sku: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            sku,
            f"Serial count ({actual}) must match quantity ({expected}) "
            f"for item '{sku}'.",
        )


class DuplicateSerialError(TrackingError):
    code: str = "DUPLICATE_SERIAL"

    def __init__(self, sku: str, serial_number: str):
        self.serial_number = serial_number
        super().__init__(
            sku, f"Duplicate serial '{serial_number}' for item '{sku}'."
        )


class SerialAlreadyInStockError(TrackingError):
    code: str = "SERIAL_ALREADY_IN_STOCK"

    def __init__(self, sku: str, serial_number: str):
        self.serial_number = serial_number
        super().__init__(
            sku,
            f"Serial '{serial_number}' for item '{sku}' is already in stock.",
        )


class SerialNotInStockError(TrackingError):
    code: str = "SERIAL_NOT_IN_STOCK"

    def __init__(self, sku: str, serial_number: str):
        self.serial_number = serial_number
        super().__init__(sku, f"Serial '{serial_number}' is not in stock.")


class BatchNumberRequiredError(TrackingError):
    code: str = "BATCH_NUMBER_REQUIRED"

    def __init__(self, sku: str):
        super().__init__(sku, f"Batch number is required for item '{sku}'.")


class InsufficientStockError(ValidationError):
    """Raised by the opt-in on-hand check when a post would go negative."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        sku: str,
        warehouse_code: str,
        on_hand: Decimal,
        requested: Decimal,
    ):
        self.sku = sku
        self.warehouse_code = warehouse_code
        self.on_hand = on_hand
        self.requested = requested
        super().__init__(
            f"Insufficient stock for item '{sku}' in warehouse "
            f"'{warehouse_code}'."
        )


# Reorder


class ReorderError(ValidationError):
    code: str = "REORDER_ERROR"


class NoReorderSettingsError(ReorderError):
    code: str = "NO_REORDER_SETTINGS"

    def __init__(self, warehouse_id: Any):
        self.warehouse_id = str(warehouse_id)
        super().__init__("No reorder settings found for the selected warehouse.")


class NoReorderAlertsError(ReorderError):
    code: str = "NO_REORDER_ALERTS"

    def __init__(self, warehouse_id: Any):
        self.warehouse_id = str(warehouse_id)
        super().__init__("No items are currently at or below reorder point for the selected warehouse.")


# Immutability


class ImmutabilityError(InventoryKernelError):
    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Movement entries are immutable from creation; documents and their lines
    are immutable once they leave Draft.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Transient


class TransientError(InventoryKernelError):
    """The operation failed for a reason unrelated to its inputs."""

    code: str = "TRANSIENT_ERROR"


class ConcurrencyConflictError(TransientError):
    """The database aborted the transaction (serialization failure, deadlock)."""

    code: str = "CONCURRENCY_CONFLICT"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(
            f"Concurrent modification during {operation}; retry the operation. "
            f"({detail})"
        )


class OperationCancelledError(TransientError):
    code: str = "OPERATION_CANCELLED"

    def __init__(self, operation: str, stage: str):
        self.operation = operation
        self.stage = stage
        super().__init__(f"{operation} cancelled at stage '{stage}'")
