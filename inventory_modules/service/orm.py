"""
Module: inventory_modules.service.orm
Responsibility: Material requisition -- parts consumed by a service job.
Architecture position: Modules > Service > ORM.
"""

from inventory_kernel.exceptions import FieldValidationError
from inventory_kernel.models.document import DocumentType, PostingDocument


class MaterialRequisition(PostingDocument):
    __mapper_args__ = {"polymorphic_identity": DocumentType.MATERIAL_REQUISITION.value}

    title = "Material requisition"
    plural_label = "material requisitions"

    def validate_header(self) -> None:
        if self.service_job_id is None:
            raise FieldValidationError.required("Service job")
