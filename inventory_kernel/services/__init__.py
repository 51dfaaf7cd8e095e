"""Kernel services: write-side operations that flush but never commit."""

from inventory_kernel.services.base import BaseService
from inventory_kernel.services.document_service import (
    DocumentService,
    LineInput,
    PostingResult,
)
from inventory_kernel.services.movement_ledger import MovementLedger
from inventory_kernel.services.sequence_service import SequenceCounter, SequenceService
from inventory_kernel.services.tracking_validator import (
    StockAvailabilityCheck,
    TrackingValidator,
)

__all__ = [
    "BaseService",
    "DocumentService",
    "LineInput",
    "MovementLedger",
    "PostingResult",
    "SequenceCounter",
    "SequenceService",
    "StockAvailabilityCheck",
    "TrackingValidator",
]
