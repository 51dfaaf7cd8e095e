"""
Module ORM Registry (``inventory_modules._orm_registry``).

Responsibility
--------------
Import every ORM model and posting rule so that ``Base.metadata`` holds all
tables and every document type in posting_documents has a mapped class
before tables are created or queried.

Architecture position
---------------------
**Modules layer** -- utility.  ``inventory_kernel.db.engine.create_tables``
imports it lazily; nothing else in the kernel does.
"""


def import_all_orm_models() -> None:
    """Idempotent; repeated calls are harmless."""
    # fmt: off
    import inventory_kernel.models  # noqa: F401
    import inventory_kernel.services.sequence_service  # noqa: F401  # document_sequences
    import inventory_modules.procurement.orm  # noqa: F401
    import inventory_modules.procurement.profiles  # noqa: F401
    import inventory_modules.sales.orm  # noqa: F401
    import inventory_modules.sales.profiles  # noqa: F401
    import inventory_modules.service.orm  # noqa: F401
    import inventory_modules.service.profiles  # noqa: F401
    import inventory_modules.stock.orm  # noqa: F401
    import inventory_modules.stock.profiles  # noqa: F401
    # fmt: on
