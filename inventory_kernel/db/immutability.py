"""
ORM-level immutability enforcement (layer 1 of 2).

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable                      | Layer 2 (db/triggers.py)
--------------------|-------------------------------------|-------------------------
MovementEntry       | ALWAYS (from creation)              | UPDATE/DELETE triggers
PostingDocument     | After status leaves DRAFT           | --
DocumentLine        | When parent document is not DRAFT   | --
DocumentLineSerial  | When parent document is not DRAFT   | --

The DRAFT -> POSTED and DRAFT -> VOIDED flips themselves are allowed: the
check looks at what the status WAS before the flush, using SQLAlchemy
attribute history.  ``updated_at`` / ``updated_by_id`` are audit metadata and
may always change.

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once, at startup

Tests that must forge a violation call ``unregister_immutability_listeners()``
and re-register afterwards.
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})
_TERMINAL_STATUSES = frozenset({"posted", "voided"})


def _status_value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


def _blocked(entity_type: str, entity_id, operation: str, reason: str, **extra):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            **extra,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


# =============================================================================
# MovementEntry: always immutable
# =============================================================================


def _check_movement_update(mapper, connection, target):
    raise _blocked(
        "MovementEntry",
        target.id,
        "UPDATE",
        "Movement entries are append-only and cannot be modified",
    )


def _check_movement_delete(mapper, connection, target):
    raise _blocked(
        "MovementEntry",
        target.id,
        "DELETE",
        "Movement entries are append-only and cannot be deleted",
    )


# =============================================================================
# PostingDocument: immutable once it leaves DRAFT
# =============================================================================


def _was_terminal_before(target) -> bool:
    """
    True if the document was already posted/voided before this flush.

    Status changing FROM a terminal value, or unchanged AND terminal, means
    the row is sealed.  Status changing TO a terminal value is the post/void
    transition itself.
    """
    status_history = get_history(target, "status")
    if status_history.deleted:
        return _status_value(status_history.deleted[0]) in _TERMINAL_STATUSES
    if not status_history.added:
        return _status_value(target.status) in _TERMINAL_STATUSES
    return False


def _check_document_update(mapper, connection, target):
    if not _was_terminal_before(target):
        return

    for attr in inspect(target).attrs:
        if attr.key in _AUDIT_FIELDS or attr.key == "lines":
            continue
        if attr.history.has_changes():
            raise _blocked(
                "PostingDocument",
                target.id,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on {_status_value(target.status)} "
                f"document {target.document_number}",
                field=attr.key,
            )


def _check_document_delete(mapper, connection, target):
    if _status_value(target.status) in _TERMINAL_STATUSES:
        raise _blocked(
            "PostingDocument",
            target.id,
            "DELETE",
            f"{_status_value(target.status).capitalize()} documents cannot be deleted",
        )


# =============================================================================
# Lines and serials: frozen with their document
# =============================================================================


def _parent_sealed(document) -> bool:
    if document is None:
        return False
    return _was_terminal_before(document)


def _check_line_mutation(operation: str):
    def _check(mapper, connection, target):
        if _parent_sealed(target.document):
            raise _blocked(
                "DocumentLine",
                target.id,
                operation,
                "Lines cannot change once the document has left draft",
            )

    return _check


def _check_serial_mutation(operation: str):
    def _check(mapper, connection, target):
        line = target.line
        if line is not None and _parent_sealed(line.document):
            raise _blocked(
                "DocumentLineSerial",
                target.id,
                operation,
                "Serials cannot change once the document has left draft",
            )

    return _check


_check_line_insert = _check_line_mutation("INSERT")
_check_line_update = _check_line_mutation("UPDATE")
_check_line_delete = _check_line_mutation("DELETE")
_check_serial_update = _check_serial_mutation("UPDATE")
_check_serial_delete = _check_serial_mutation("DELETE")


def _listener_table():
    from inventory_kernel.models.document import (
        DocumentLine,
        DocumentLineSerial,
        PostingDocument,
    )
    from inventory_kernel.models.movement import MovementEntry

    return [
        (MovementEntry, "before_update", _check_movement_update),
        (MovementEntry, "before_delete", _check_movement_delete),
        (PostingDocument, "before_update", _check_document_update),
        (PostingDocument, "before_delete", _check_document_delete),
        (DocumentLine, "before_insert", _check_line_insert),
        (DocumentLine, "before_update", _check_line_update),
        (DocumentLine, "before_delete", _check_line_delete),
        (DocumentLineSerial, "before_update", _check_serial_update),
        (DocumentLineSerial, "before_delete", _check_serial_delete),
    ]


def register_immutability_listeners():
    """
    Register all immutability event listeners (idempotent).

    Call once after the models are imported and before any database work.
    Listeners on PostingDocument propagate to every document subclass.
    """
    for target, event_name, fn in _listener_table():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn, propagate=True)


def unregister_immutability_listeners():
    """
    Remove the immutability listeners.

    WARNING: tests only, to forge a violation deliberately.
    """
    for target, event_name, fn in _listener_table():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)
