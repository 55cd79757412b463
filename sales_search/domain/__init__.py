"""
Domain package for the sales search service.

Exports the sale record schema, the search criteria and result models, and
the error taxonomy shared by both search backends.
"""

from sales_search.domain.errors import (
    CriteriaValidationError,
    RowParseError,
    SalesSearchError,
    SourceUnavailableError,
    StoreQueryError,
)
from sales_search.domain.models import SaleRecord, SearchCriteria, SearchPage

__all__ = [
    "SaleRecord",
    "SearchCriteria",
    "SearchPage",
    "SalesSearchError",
    "CriteriaValidationError",
    "SourceUnavailableError",
    "RowParseError",
    "StoreQueryError",
]
