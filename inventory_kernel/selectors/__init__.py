"""Read-only selectors for the inventory kernel."""

from inventory_kernel.selectors.document_selector import (
    DocumentSelector,
    DocumentSummary,
    DocumentView,
    LineView,
)
from inventory_kernel.selectors.ledger_selector import LedgerSelector, MovementRow

__all__ = [
    "DocumentSelector",
    "DocumentSummary",
    "DocumentView",
    "LedgerSelector",
    "LineView",
    "MovementRow",
]
