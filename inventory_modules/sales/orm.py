"""
Module: inventory_modules.sales.orm
Responsibility: Direct dispatch -- stock issued to a customer or a service
    job without a sales order.
Architecture position: Modules > Sales > ORM.
"""

from inventory_kernel.exceptions import MissingDispatchReferenceError
from inventory_kernel.models.document import DocumentType, PostingDocument


class DirectDispatch(PostingDocument):
    __mapper_args__ = {"polymorphic_identity": DocumentType.DIRECT_DISPATCH.value}

    title = "Direct dispatch"
    plural_label = "direct dispatches"

    def validate_header(self) -> None:
        if self.customer_id is None and self.service_job_id is None:
            raise MissingDispatchReferenceError()
