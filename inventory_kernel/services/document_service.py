"""
DocumentService -- the Draft / Posted / Voided lifecycle shared by every
posting document type.

Responsibility:
    Creates numbered drafts, edits their lines while they are drafts, and
    runs the post pipeline that turns a draft into immutable movement
    entries.  Type-specific behaviour comes from two places only: the
    document's ORM subclass (labels, ``validate_header``) and its posting
    rule (legs, unit cost, quantity policy).

Architecture position:
    Kernel > Services.  Called by the module services in inventory_modules,
    which own the transaction boundary.

Post pipeline (one transaction):
    1. Lock the document row (SELECT ... FOR UPDATE) and require Draft.
    2. Require at least one line; re-run the header rule.
    3. Per line: item exists and is active, quantity policy, tracking rules.
    4. Build movement specs through the type's posting rule.
    5. Lock the stock keys the specs touch, in sorted order.
    6. Ledger-level serial checks, then the opt-in availability check.
    7. Append the movements, flip the status, flush.

    ``cancel_event`` is checked between stages.  Any failure leaves the
    document in Draft with no movements once the caller rolls back.

Invariants enforced:
    - Only Draft documents are edited, posted or voided.
    - A posted document's movements all reference it; there is no partial
      post.
    - Void from Voided is a no-op; void from Posted is rejected (corrections
      are made with a new compensating document).

Failure modes:
    - ValidationError subclasses for every caller error, raised before any
      movement is written.
    - OperationCancelledError when ``cancel_event`` is set.
"""

import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.cancellation import raise_if_cancelled
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.policy import PostingPolicy
from inventory_kernel.domain.tracking import normalize_identifier, normalize_serials
from inventory_kernel.domain.workflow import (
    DOCUMENT_WORKFLOW,
    DocumentAction,
    DocumentStatus,
)
from inventory_kernel.exceptions import (
    DocumentNotFoundError,
    EmptyDocumentError,
    FieldValidationError,
    InactiveReferenceError,
    InvalidDocumentStateError,
    InvalidQuantityError,
    ItemNotFoundError,
    LineNotFoundError,
    NegativeUnitCostError,
    WarehouseNotFoundError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.document import (
    DocumentLine,
    DocumentLineSerial,
    PostingDocument,
)
from inventory_kernel.models.master_data import Item, Warehouse
from inventory_kernel.posting_rules.base import MovementSpec, PostingRule, QuantityPolicy
from inventory_kernel.posting_rules.registry import (
    PostingRuleRegistry,
    get_default_registry,
)
from inventory_kernel.selectors.document_selector import DocumentSelector, DocumentSummary
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.movement_ledger import MovementLedger
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.tracking_validator import (
    StockAvailabilityCheck,
    TrackingValidator,
)

logger = get_logger("services.document")

# Header fields a draft may change after creation.
EDITABLE_HEADER_FIELDS = frozenset({
    "document_date",
    "warehouse_id",
    "to_warehouse_id",
    "supplier_id",
    "customer_id",
    "service_job_id",
    "purchase_order_id",
    "reason",
    "notes",
})

_TEXT_LIMITS = {"reason": 500, "notes": 2000}

_PAST_TENSE = {
    DocumentAction.POST: "posted",
    DocumentAction.VOID: "voided",
    DocumentAction.EDIT: "edited",
}


@dataclass(frozen=True)
class LineInput:
    """
    Caller-supplied line.  ``unit_cost`` None means the item's default cost.
    """

    item_id: UUID
    quantity: Decimal
    unit_cost: Decimal | None = None
    batch_number: str | None = None
    serial_numbers: tuple[str, ...] = ()
    tax_percent: Decimal | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PostingResult:
    document_id: UUID
    document_number: str
    document_type: str
    status: DocumentStatus
    movement_count: int = 0
    posted_at: datetime | None = None
    movement_ids: tuple[UUID, ...] = field(default_factory=tuple)


def _status(document: PostingDocument) -> str:
    return getattr(document.status, "value", document.status)


class DocumentService(BaseService[PostingDocument]):
    """
    Contract:
        Every mutating method flushes and leaves commit / rollback to the
        caller.

    Usage:
        service = DocumentService(session, policy, clock)
        doc = service.create_draft(StockAdjustment, actor_id,
                                   warehouse_id=wh.id, reason="Count")
        service.add_line(doc.id, LineInput(item.id, Decimal("5")), actor_id)
        result = service.post(doc.id, actor_id)
    """

    def __init__(
        self,
        session: Session,
        policy: PostingPolicy | None = None,
        clock: Clock | None = None,
        registry: PostingRuleRegistry | None = None,
    ):
        super().__init__(session)
        self._policy = policy or PostingPolicy()
        self._clock = clock or SystemClock()
        self._registry = registry or get_default_registry()
        self._sequence = SequenceService(
            session,
            start_value=self._policy.sequence_start,
            padding=self._policy.sequence_padding,
        )
        self._ledger = MovementLedger(session, self._clock)
        self._tracking = TrackingValidator(session, self._policy)
        self._availability = StockAvailabilityCheck(session)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_document(
        self,
        document_id: UUID,
        document_cls: type[PostingDocument] = PostingDocument,
        *,
        for_update: bool = False,
    ) -> PostingDocument:
        """
        Raises:
            DocumentNotFoundError: no document of ``document_cls`` with this id.
        """
        stmt = select(document_cls).where(document_cls.id == document_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        document = self.session.execute(stmt).scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(document_id, document_cls.title)
        return document

    def list_documents(
        self,
        document_type: str,
        status: str | None = None,
        skip: int = 0,
        take: int = 100,
    ) -> list[DocumentSummary]:
        return DocumentSelector(self.session).list_documents(
            document_type, status=status, skip=skip, take=max(1, take)
        )

    def rule_for(self, document: PostingDocument | type[PostingDocument]) -> PostingRule:
        if isinstance(document, type):
            document_type = inspect(document).polymorphic_identity
        else:
            document_type = document.document_type
        return self._registry.require_rule(document_type)

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def create_draft(
        self,
        document_cls: type[PostingDocument],
        actor_id: UUID,
        *,
        warehouse_id: UUID,
        document_date: datetime | None = None,
        lines: Iterable[LineInput] = (),
        **header,
    ) -> PostingDocument:
        """
        Create a numbered Draft.

        The number is drawn from the sequence in the caller's transaction, so
        a failed creation returns it.
        """
        document_type = inspect(document_cls).polymorphic_identity
        rule = self._registry.require_rule(document_type)

        unknown = set(header) - EDITABLE_HEADER_FIELDS
        if unknown:
            raise TypeError(f"Unknown header fields: {sorted(unknown)}")

        document = document_cls(
            warehouse_id=warehouse_id,
            document_date=document_date or self._clock.now(),
            status=DocumentStatus.DRAFT.value,
            created_by_id=actor_id,
            **self._clean_header(header),
        )
        self._check_header_references(document)
        document.validate_header()

        document.document_number = self._sequence.next_number(
            self._policy.prefix_for(document_type)
        )
        self.session.add(document)

        for line_input in lines:
            self._append_line(document, rule, line_input)

        self.session.flush()

        logger.info(
            "document_draft_created",
            extra={
                "document_id": str(document.id),
                "document_type": document_type,
                "document_number": document.document_number,
                "line_count": len(document.lines),
            },
        )
        return document

    def update_header(
        self,
        document_id: UUID,
        actor_id: UUID,
        **changes,
    ) -> PostingDocument:
        document = self.get_document(document_id, for_update=True)
        self._require_draft(document, "edited")

        unknown = set(changes) - EDITABLE_HEADER_FIELDS
        if unknown:
            raise TypeError(f"Unknown header fields: {sorted(unknown)}")

        for name, value in self._clean_header(changes).items():
            setattr(document, name, value)
        self._check_header_references(document)
        document.validate_header()

        document.updated_by_id = actor_id
        self.session.flush()
        return document

    def add_line(
        self,
        document_id: UUID,
        line_input: LineInput,
        actor_id: UUID,
    ) -> DocumentLine:
        document = self.get_document(document_id, for_update=True)
        self._require_draft(document, "edited")

        line = self._append_line(document, self.rule_for(document), line_input)
        document.updated_by_id = actor_id
        self.session.flush()
        return line

    def update_line(
        self,
        document_id: UUID,
        line_id: UUID,
        line_input: LineInput,
        actor_id: UUID,
    ) -> DocumentLine:
        document = self.get_document(document_id, for_update=True)
        self._require_draft(document, "edited")

        line = document.find_line(line_id)
        if line is None:
            raise LineNotFoundError(document_id, line_id, document.title)

        item = self._require_item(document, line_input.item_id)
        values = self._line_values(document, self.rule_for(document), item, line_input)
        serials = values.pop("serials")
        for name, value in values.items():
            setattr(line, name, value)
        line.serials = [
            DocumentLineSerial(position=i, serial_number=s)
            for i, s in enumerate(serials, start=1)
        ]

        document.updated_by_id = actor_id
        self.session.flush()
        return line

    def remove_line(
        self,
        document_id: UUID,
        line_id: UUID,
        actor_id: UUID,
    ) -> None:
        document = self.get_document(document_id, for_update=True)
        self._require_draft(document, "edited")

        line = document.find_line(line_id)
        if line is None:
            raise LineNotFoundError(document_id, line_id, document.title)

        document.lines.remove(line)
        document.updated_by_id = actor_id
        self.session.flush()

    def replace_lines(
        self,
        document_id: UUID,
        lines: Sequence[LineInput],
        actor_id: UUID,
    ) -> list[DocumentLine]:
        """Swap every line of a draft for ``lines``, renumbering from 1."""
        document = self.get_document(document_id, for_update=True)
        self._require_draft(document, "edited")
        rule = self.rule_for(document)

        # Validate everything before touching the existing lines.
        prepared = [
            (line_input, self._require_item(document, line_input.item_id))
            for line_input in lines
        ]
        values = [
            self._line_values(document, rule, item, line_input)
            for line_input, item in prepared
        ]

        document.lines.clear()
        self.session.flush()
        for number, line_values in enumerate(values, start=1):
            document.lines.append(self._make_line(number, line_values))

        document.updated_by_id = actor_id
        self.session.flush()
        return list(document.lines)

    # ------------------------------------------------------------------
    # Lifecycle transitions
    # ------------------------------------------------------------------

    def post(
        self,
        document_id: UUID,
        actor_id: UUID,
        cancel_event: threading.Event | None = None,
    ) -> PostingResult:
        """
        Post a Draft: append its movements and seal it.

        Preconditions:
            - The caller owns the transaction and rolls back on any error.
        Postconditions:
            - Status is Posted and every movement references the document,
              or an exception was raised and nothing must be committed.
        """
        operation = "post"
        raise_if_cancelled(cancel_event, operation, "start")

        document = self.get_document(document_id, for_update=True)
        self._require_transition(document, DocumentAction.POST)

        with LogContext.bind(
            document_id=document.id,
            document_type=document.document_type,
            actor_id=actor_id,
        ):
            if not document.lines:
                raise EmptyDocumentError(document.id, document.title)
            document.validate_header()
            raise_if_cancelled(cancel_event, operation, "validate_lines")

            rule = self.rule_for(document)
            items = self._load_items(document)

            specs: list[MovementSpec] = []
            for line in document.lines:
                item = items[line.item_id]
                self._check_quantity(rule, line.quantity)
                self._tracking.validate_line(item, line)
                specs.extend(rule.compute_movements(document, line, item))

            # Inbound serials are checked against every warehouse
            self._ledger.lock_items(
                s.item_id for s in specs if s.serial_number and s.is_inbound
            )
            self._ledger.lock_stock_keys((s.warehouse_id, s.item_id) for s in specs)
            raise_if_cancelled(cancel_event, operation, "validate_ledger")

            self._tracking.validate_movements(specs, items)
            if self._policy.enforce_stock_availability and rule.checks_availability:
                self._availability.check(specs, items)
            raise_if_cancelled(cancel_event, operation, "append")

            entries = self._ledger.append(
                specs,
                reference_type=document.document_type,
                reference_id=document.id,
                actor_id=actor_id,
            )

            posted_at = self._clock.now()
            document.status = DocumentStatus.POSTED.value
            document.posted_at = posted_at
            document.posted_by_id = actor_id
            document.updated_by_id = actor_id
            self.session.flush()
            raise_if_cancelled(cancel_event, operation, "finalize")

            logger.info(
                "document_posted",
                extra={
                    "document_number": document.document_number,
                    "movement_count": len(entries),
                    "rule_version": rule.version,
                },
            )

        return PostingResult(
            document_id=document.id,
            document_number=document.document_number,
            document_type=document.document_type,
            status=DocumentStatus.POSTED,
            movement_count=len(entries),
            posted_at=posted_at,
            movement_ids=tuple(e.id for e in entries),
        )

    def void(self, document_id: UUID, actor_id: UUID) -> PostingResult:
        document = self.get_document(document_id, for_update=True)

        if _status(document) == DocumentStatus.VOIDED.value:
            logger.info(
                "document_void_noop",
                extra={
                    "document_id": str(document.id),
                    "document_number": document.document_number,
                },
            )
            return PostingResult(
                document_id=document.id,
                document_number=document.document_number,
                document_type=document.document_type,
                status=DocumentStatus.VOIDED,
            )

        self._require_transition(document, DocumentAction.VOID)

        document.status = DocumentStatus.VOIDED.value
        document.voided_at = self._clock.now()
        document.voided_by_id = actor_id
        document.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "document_voided",
            extra={
                "document_id": str(document.id),
                "document_type": document.document_type,
                "document_number": document.document_number,
            },
        )
        return PostingResult(
            document_id=document.id,
            document_number=document.document_number,
            document_type=document.document_type,
            status=DocumentStatus.VOIDED,
        )

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _reject_state(self, document: PostingDocument, action: str) -> None:
        logger.info(
            "document_state_rejected",
            extra={
                "document_id": str(document.id),
                "status": _status(document),
                "action": action,
            },
        )
        raise InvalidDocumentStateError(
            document.id, document.plural_label, _status(document), action
        )

    def _require_draft(self, document: PostingDocument, action: str) -> None:
        if not DOCUMENT_WORKFLOW.allows_edit(_status(document)):
            self._reject_state(document, action)

    def _require_transition(
        self, document: PostingDocument, action: DocumentAction
    ) -> None:
        if DOCUMENT_WORKFLOW.find_transition(_status(document), action.value) is None:
            self._reject_state(document, _PAST_TENSE[action])

    def _check_quantity(self, rule: PostingRule, quantity: Decimal) -> None:
        if rule.quantity_policy == QuantityPolicy.NON_ZERO:
            if quantity == 0:
                raise InvalidQuantityError(quantity, "Quantity cannot be zero.")
        elif quantity <= 0:
            raise InvalidQuantityError(quantity, "Quantity must be positive.")

    def _require_item(self, document: PostingDocument, item_id: UUID) -> Item:
        item = self.session.get(Item, item_id)
        if item is None:
            raise ItemNotFoundError(item_id, document.title)
        if not item.is_active:
            raise InactiveReferenceError("Item", item.id, item.sku)
        return item

    def _require_warehouse(self, warehouse_id: UUID) -> Warehouse:
        warehouse = self.session.get(Warehouse, warehouse_id)
        if warehouse is None:
            raise WarehouseNotFoundError(warehouse_id)
        if not warehouse.is_active:
            raise InactiveReferenceError("Warehouse", warehouse.id, warehouse.code)
        return warehouse

    def _check_header_references(self, document: PostingDocument) -> None:
        self._require_warehouse(document.warehouse_id)
        if document.to_warehouse_id is not None:
            self._require_warehouse(document.to_warehouse_id)

    def _load_items(self, document: PostingDocument) -> dict[UUID, Item]:
        item_ids = {line.item_id for line in document.lines}
        items = {
            item.id: item
            for item in self.session.execute(
                select(Item).where(Item.id.in_(item_ids))
            ).scalars()
        }
        for item_id in item_ids:
            if item_id not in items:
                raise ItemNotFoundError(item_id, document.title)
            if not items[item_id].is_active:
                raise InactiveReferenceError("Item", item_id, items[item_id].sku)
        return items

    # ------------------------------------------------------------------
    # Line construction
    # ------------------------------------------------------------------

    @staticmethod
    def _clean_header(header: dict) -> dict:
        cleaned = dict(header)
        for name, limit in _TEXT_LIMITS.items():
            if name in cleaned:
                value = normalize_identifier(
                    cleaned[name], field=name.capitalize(), max_length=limit
                )
                cleaned[name] = value
        return cleaned

    def _line_values(
        self,
        document: PostingDocument,
        rule: PostingRule,
        item: Item,
        line_input: LineInput,
    ) -> dict:
        quantity = Decimal(line_input.quantity)
        self._check_quantity(rule, quantity)

        unit_cost = (
            item.default_unit_cost
            if line_input.unit_cost is None
            else Decimal(line_input.unit_cost)
        )
        if unit_cost < 0:
            raise NegativeUnitCostError(unit_cost)

        tax_percent = line_input.tax_percent
        if tax_percent is not None and tax_percent < 0:
            raise FieldValidationError("Tax percent", "Tax percent cannot be negative.")

        return {
            "item_id": item.id,
            "quantity": quantity,
            "unit_cost": unit_cost,
            "tax_percent": tax_percent,
            "batch_number": normalize_identifier(
                line_input.batch_number,
                field="Batch number",
                max_length=self._policy.batch_max_length,
            ),
            "notes": normalize_identifier(
                line_input.notes, field="Notes", max_length=500
            ),
            "serials": normalize_serials(
                line_input.serial_numbers,
                max_length=self._policy.serial_max_length,
            ),
        }

    @staticmethod
    def _make_line(line_number: int, values: dict) -> DocumentLine:
        values = dict(values)
        serials = values.pop("serials")
        line = DocumentLine(line_number=line_number, **values)
        line.serials = [
            DocumentLineSerial(position=i, serial_number=s)
            for i, s in enumerate(serials, start=1)
        ]
        return line

    def _append_line(
        self,
        document: PostingDocument,
        rule: PostingRule,
        line_input: LineInput,
    ) -> DocumentLine:
        item = self._require_item(document, line_input.item_id)
        values = self._line_values(document, rule, item, line_input)
        line = self._make_line(document.next_line_number(), values)
        document.lines.append(line)
        return line
