"""
Module: inventory_modules.stock.orm
Responsibility: Document types of the stock area: stock adjustments and
    stock transfers.  Both share the posting_documents table; these classes
    contribute labels and header rules only.
Architecture position: Modules > Stock > ORM.  Subclasses
    inventory_kernel.models.document.PostingDocument.
"""

from uuid import UUID

from inventory_kernel.exceptions import FieldValidationError, SameWarehouseTransferError
from inventory_kernel.models.document import DocumentType, PostingDocument


class StockAdjustment(PostingDocument):
    """Signed quantity corrections at one warehouse (counts, damage, write-offs)."""

    __mapper_args__ = {"polymorphic_identity": DocumentType.STOCK_ADJUSTMENT.value}

    title = "Stock adjustment"
    plural_label = "stock adjustments"


class StockTransfer(PostingDocument):
    """
    Moves stock between two warehouses.

    ``warehouse_id`` is the source; ``to_warehouse_id`` the destination.
    """

    __mapper_args__ = {"polymorphic_identity": DocumentType.STOCK_TRANSFER.value}

    title = "Stock transfer"
    plural_label = "stock transfers"

    @property
    def from_warehouse_id(self) -> UUID:
        return self.warehouse_id

    def validate_header(self) -> None:
        if self.to_warehouse_id is None:
            raise FieldValidationError.required("To warehouse")
        if self.to_warehouse_id == self.warehouse_id:
            raise SameWarehouseTransferError(self.warehouse_id)
