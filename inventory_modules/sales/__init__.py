"""Sales area: direct dispatches."""

from inventory_modules.sales.orm import DirectDispatch
from inventory_modules.sales.profiles import DirectDispatchRule
from inventory_modules.sales.service import SalesDocumentService

__all__ = ["DirectDispatch", "DirectDispatchRule", "SalesDocumentService"]
