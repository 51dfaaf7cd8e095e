"""
Shared base for the document module services.

Used by inventory_modules/*/service.py so each area only declares its typed
``create_*`` methods.  The base owns the transaction boundary: every public
method commits on success and rolls back on failure, and database
serialization failures surface as ConcurrencyConflictError.

Architecture: Modules layer.  Imports from inventory_kernel and
inventory_config only.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import TypeVar
from uuid import UUID

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from inventory_config import get_active_config, to_posting_policy
from inventory_config.schema import InventoryConfig
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import ConcurrencyConflictError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.document import DocumentLine, PostingDocument
from inventory_kernel.selectors.document_selector import (
    DocumentSelector,
    DocumentSummary,
    DocumentView,
)
from inventory_kernel.services.document_service import (
    DocumentService,
    LineInput,
    PostingResult,
)

logger = get_logger("modules.documents")

T = TypeVar("T")

# SQLSTATE codes PostgreSQL uses for serialization failure, deadlock and
# lock timeout.  The whole operation may be retried.
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def is_retryable_db_error(exc: DBAPIError) -> bool:
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode in _RETRYABLE_SQLSTATES:
        return True
    # SQLite: "database is locked" once the busy timeout expires.
    return isinstance(exc, OperationalError) and "locked" in str(exc.orig).lower()


class DocumentModuleService:
    """
    Lifecycle operations shared by every document module.

    Contract
    --------
    Subclasses add typed ``create_*`` methods.  Lifecycle calls accept any
    document id; the document row decides its own posting rule.

    Transaction boundary: this service commits on success, rolls back on
    failure.  The kernel DocumentService underneath only flushes.
    """

    def __init__(
        self,
        session: Session,
        config: InventoryConfig | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._documents = DocumentService(
            session,
            policy=to_posting_policy(self._config),
            clock=self._clock,
        )
        self._selector = DocumentSelector(session)

    def _in_transaction(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            result = fn()
            self._session.commit()
            return result
        except DBAPIError as exc:
            self._session.rollback()
            if is_retryable_db_error(exc):
                logger.warning(
                    "document_operation_conflict",
                    extra={"operation": operation, "detail": str(exc.orig)},
                )
                raise ConcurrencyConflictError(operation, str(exc.orig)) from exc
            raise
        except Exception:
            self._session.rollback()
            raise

    def _create(
        self,
        document_cls: type[PostingDocument],
        actor_id: UUID,
        *,
        warehouse_id: UUID,
        lines: Iterable[LineInput],
        document_date: datetime | None,
        **header,
    ) -> PostingDocument:
        return self._in_transaction(
            f"create_{document_cls.__name__}",
            lambda: self._documents.create_draft(
                document_cls,
                actor_id,
                warehouse_id=warehouse_id,
                document_date=document_date,
                lines=list(lines),
                **header,
            ),
        )

    # =========================================================================
    # Draft editing
    # =========================================================================

    def update_header(self, document_id: UUID, actor_id: UUID, **changes) -> PostingDocument:
        return self._in_transaction(
            "update_header",
            lambda: self._documents.update_header(document_id, actor_id, **changes),
        )

    def add_line(self, document_id: UUID, line: LineInput, actor_id: UUID) -> DocumentLine:
        return self._in_transaction(
            "add_line",
            lambda: self._documents.add_line(document_id, line, actor_id),
        )

    def update_line(
        self,
        document_id: UUID,
        line_id: UUID,
        line: LineInput,
        actor_id: UUID,
    ) -> DocumentLine:
        return self._in_transaction(
            "update_line",
            lambda: self._documents.update_line(document_id, line_id, line, actor_id),
        )

    def remove_line(self, document_id: UUID, line_id: UUID, actor_id: UUID) -> None:
        self._in_transaction(
            "remove_line",
            lambda: self._documents.remove_line(document_id, line_id, actor_id),
        )

    def replace_lines(
        self,
        document_id: UUID,
        lines: Sequence[LineInput],
        actor_id: UUID,
    ) -> list[DocumentLine]:
        return self._in_transaction(
            "replace_lines",
            lambda: self._documents.replace_lines(document_id, lines, actor_id),
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def post(
        self,
        document_id: UUID,
        actor_id: UUID,
        cancel_event: threading.Event | None = None,
    ) -> PostingResult:
        return self._in_transaction(
            "post",
            lambda: self._documents.post(document_id, actor_id, cancel_event),
        )

    def void(self, document_id: UUID, actor_id: UUID) -> PostingResult:
        return self._in_transaction(
            "void",
            lambda: self._documents.void(document_id, actor_id),
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get_document(self, document_id: UUID) -> PostingDocument:
        return self._documents.get_document(document_id)

    def get_document_view(self, document_id: UUID) -> DocumentView:
        return self._selector.get_document_view(document_id)

    def list_documents(
        self,
        document_cls: type[PostingDocument],
        status: str | None = None,
        skip: int = 0,
        take: int | None = None,
    ) -> list[DocumentSummary]:
        if take is None:
            take = self._config.report_default_take
        take = max(1, min(take, self._config.report_max_take))
        return self._documents.list_documents(
            document_cls.__mapper_args__["polymorphic_identity"],
            status=status,
            skip=skip,
            take=take,
        )
