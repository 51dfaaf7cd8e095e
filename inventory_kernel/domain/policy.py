"""
PostingPolicy -- the configuration the kernel needs, as a frozen value.

The kernel never reads configuration files.  ``inventory_config.bridges``
translates the loaded InventoryConfig into this object, and services take it
by constructor injection.
"""

from dataclasses import dataclass, field

DEFAULT_DOCUMENT_PREFIXES: dict[str, str] = {
    "stock_adjustment": "ADJ",
    "stock_transfer": "TRF",
    "goods_receipt": "GRN",
    "supplier_return": "SR",
    "direct_dispatch": "DDN",
    "direct_purchase": "DPR",
    "material_requisition": "MR",
}


@dataclass(frozen=True)
class PostingPolicy:
    """
    Guarantees:
        - ``enforce_stock_availability`` False means outbound posts may take
          on-hand negative; True turns on the on-hand check at post time.
        - ``require_batch_number`` False accepts batch-tracked lines without
          a batch number.
    """

    enforce_stock_availability: bool = False
    require_batch_number: bool = False
    serial_max_length: int = 128
    batch_max_length: int = 128
    sequence_start: int = 1
    sequence_padding: int = 6
    document_prefixes: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DOCUMENT_PREFIXES)
    )

    def prefix_for(self, document_type: str) -> str:
        try:
            return self.document_prefixes[document_type]
        except KeyError:
            raise ValueError(
                f"No document number prefix configured for {document_type}"
            ) from None
