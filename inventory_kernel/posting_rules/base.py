"""
Posting rule protocol.

A posting rule turns one document line into the movement entries its post
transition appends to the ledger.  Every document type has exactly one rule;
the Draft / Posted / Voided lifecycle around it is shared (DocumentService).

Rules are:
- Deterministic: the same document, line and item always give the same specs.
- Stateless: no session access, no side effects.
- Versioned: the registry can hold several versions per document type.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol, runtime_checkable
from uuid import UUID

from inventory_kernel.domain.tracking import TrackingType
from inventory_kernel.models.document import DocumentLine, PostingDocument
from inventory_kernel.models.master_data import Item
from inventory_kernel.models.movement import MovementType


class QuantityPolicy(str, Enum):
    NON_ZERO = "non_zero"   # signed delta, sign chosen by the caller
    POSITIVE = "positive"   # magnitude, sign chosen by the rule


@dataclass(frozen=True)
class Leg:
    """One ledger side of a line: where, what kind, and which direction."""
    warehouse_id: UUID
    movement_type: MovementType
    sign: int


@dataclass(frozen=True)
class MovementSpec:
    """A movement entry to append, before it has an id or timestamp."""
    warehouse_id: UUID
    item_id: UUID
    movement_type: MovementType
    quantity: Decimal
    unit_cost: Decimal
    reference_line_id: UUID | None = None
    serial_number: str | None = None
    batch_number: str | None = None

    @property
    def is_inbound(self) -> bool:
        return self.quantity > 0


@runtime_checkable
class PostingRule(Protocol):

    @property
    def document_type(self) -> str:
        ...

    @property
    def version(self) -> int:
        ...

    @property
    def quantity_policy(self) -> QuantityPolicy:
        ...

    @property
    def checks_availability(self) -> bool:
        """Whether the opt-in on-hand check applies to this rule's outbound legs."""
        ...

    def compute_movements(
        self,
        document: PostingDocument,
        line: DocumentLine,
        item: Item,
    ) -> list[MovementSpec]:
        ...


class BasePostingRule(ABC):
    """
    Common posting behaviour.

    Subclasses declare the legs of a line and, where it differs from the line,
    the unit cost.  Serial-tracked items are expanded into one +/-1 spec per
    serial so each unit stays traceable; batch is carried only on non-serial
    movements.
    """

    version: int = 1
    quantity_policy: QuantityPolicy = QuantityPolicy.POSITIVE
    checks_availability: bool = True

    @property
    @abstractmethod
    def document_type(self) -> str:
        pass

    @abstractmethod
    def legs(self, document: PostingDocument, line: DocumentLine) -> list[Leg]:
        pass

    def unit_cost(self, line: DocumentLine, item: Item) -> Decimal:
        return line.unit_cost

    def compute_movements(
        self,
        document: PostingDocument,
        line: DocumentLine,
        item: Item,
    ) -> list[MovementSpec]:
        magnitude = abs(line.quantity)
        cost = self.unit_cost(line, item)
        serial_tracked = item.tracking_type == TrackingType.SERIAL

        specs: list[MovementSpec] = []
        for leg in self.legs(document, line):
            if serial_tracked:
                for serial in line.serial_numbers:
                    specs.append(
                        MovementSpec(
                            warehouse_id=leg.warehouse_id,
                            item_id=line.item_id,
                            movement_type=leg.movement_type,
                            quantity=Decimal(leg.sign),
                            unit_cost=cost,
                            reference_line_id=line.id,
                            serial_number=serial,
                        )
                    )
            else:
                specs.append(
                    MovementSpec(
                        warehouse_id=leg.warehouse_id,
                        item_id=line.item_id,
                        movement_type=leg.movement_type,
                        quantity=magnitude * leg.sign,
                        unit_cost=cost,
                        reference_line_id=line.id,
                        batch_number=line.batch_number,
                    )
                )
        return specs


class InboundRule(BasePostingRule):
    """Single positive leg at the document warehouse."""

    movement_type: MovementType = MovementType.RECEIPT

    def legs(self, document, line):
        return [Leg(document.warehouse_id, self.movement_type, +1)]


class OutboundRule(BasePostingRule):
    """Single negative leg at the document warehouse."""

    movement_type: MovementType = MovementType.ISSUE

    def legs(self, document, line):
        return [Leg(document.warehouse_id, self.movement_type, -1)]
