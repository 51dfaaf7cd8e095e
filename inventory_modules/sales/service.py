"""
Sales Module Service (``inventory_modules.sales.service``).

Typed entry point for direct dispatches; the lifecycle is inherited from
DocumentModuleService.  A dispatch names a customer, a service job, or both.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

import inventory_modules.sales.profiles  # noqa: F401  (registers rules)
from inventory_kernel.services.document_service import LineInput
from inventory_modules._document_module import DocumentModuleService
from inventory_modules.sales.orm import DirectDispatch


class SalesDocumentService(DocumentModuleService):

    def create_direct_dispatch(
        self,
        warehouse_id: UUID,
        actor_id: UUID,
        customer_id: UUID | None = None,
        service_job_id: UUID | None = None,
        reason: str | None = None,
        notes: str | None = None,
        lines: Iterable[LineInput] = (),
        document_date: datetime | None = None,
    ) -> DirectDispatch:
        return self._create(
            DirectDispatch,
            actor_id,
            warehouse_id=warehouse_id,
            lines=lines,
            document_date=document_date,
            customer_id=customer_id,
            service_job_id=service_job_id,
            reason=reason,
            notes=notes,
        )
