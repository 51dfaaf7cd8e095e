"""
Cooperative cancellation for long-running service calls.

Callers pass a ``threading.Event``; services call ``raise_if_cancelled``
between stages.  Raising before commit lets the owning transaction roll back
with nothing persisted.
"""

import threading

from inventory_kernel.exceptions import OperationCancelledError


def raise_if_cancelled(
    cancel_event: threading.Event | None,
    operation: str,
    stage: str,
) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError(operation, stage)
