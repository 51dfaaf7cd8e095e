"""
Service Module Service (``inventory_modules.service.service``).

Typed entry point for material requisitions against a service job; the
lifecycle is inherited from DocumentModuleService.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

import inventory_modules.service.profiles  # noqa: F401  (registers rules)
from inventory_kernel.services.document_service import LineInput
from inventory_modules._document_module import DocumentModuleService
from inventory_modules.service.orm import MaterialRequisition


class ServiceDocumentService(DocumentModuleService):

    def create_material_requisition(
        self,
        warehouse_id: UUID,
        service_job_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
        lines: Iterable[LineInput] = (),
        document_date: datetime | None = None,
    ) -> MaterialRequisition:
        return self._create(
            MaterialRequisition,
            actor_id,
            warehouse_id=warehouse_id,
            lines=lines,
            document_date=document_date,
            service_job_id=service_job_id,
            notes=notes,
        )
