"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session contract for every write-side kernel
    service.  Services persist through ``session.flush()`` and never
    ``session.commit()``: the module service (or test harness) that called
    them owns the transaction, so a post is atomic across sequence issue,
    validation, ledger append and status flip.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Guarantees:
        - Never calls ``session.commit()`` or ``session.rollback()``.

    Non-goals:
        - Read-only queries.  Those belong in ``inventory_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
