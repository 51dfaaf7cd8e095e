"""
Module: inventory_modules.procurement.orm
Responsibility: Document types of the procurement area: goods receipts,
    supplier returns and direct purchases.
Architecture position: Modules > Procurement > ORM.  Subclasses
    inventory_kernel.models.document.PostingDocument.  Supplier and purchase
    order ids reference the procurement subsystem; no foreign keys.
"""

from decimal import Decimal

from inventory_kernel.exceptions import FieldValidationError
from inventory_kernel.models.document import DocumentType, PostingDocument

ZERO = Decimal("0")


class _RequiresSupplier:
    """Header rule shared by the procurement documents."""

    def validate_header(self) -> None:
        if self.supplier_id is None:
            raise FieldValidationError.required("Supplier")


class GoodsReceipt(_RequiresSupplier, PostingDocument):
    """Stock received from a supplier, optionally against a purchase order."""

    __mapper_args__ = {"polymorphic_identity": DocumentType.GOODS_RECEIPT.value}

    title = "Goods receipt"
    plural_label = "goods receipts"


class SupplierReturn(_RequiresSupplier, PostingDocument):
    __mapper_args__ = {"polymorphic_identity": DocumentType.SUPPLIER_RETURN.value}

    title = "Supplier return"
    plural_label = "supplier returns"


class DirectPurchase(_RequiresSupplier, PostingDocument):
    """
    Purchase and receipt in one step.

    Lines carry the unit price in ``unit_cost`` and an optional tax percent;
    the header totals are computed from the lines.
    """

    __mapper_args__ = {"polymorphic_identity": DocumentType.DIRECT_PURCHASE.value}

    title = "Direct purchase"
    plural_label = "direct purchases"

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_subtotal for line in self.lines), ZERO)

    @property
    def tax_total(self) -> Decimal:
        return sum((line.line_tax for line in self.lines), ZERO)

    @property
    def grand_total(self) -> Decimal:
        return self.subtotal + self.tax_total
