"""
Sales Search - filtered, sorted, paginated queries over retail sale records.

Records normally live in a PostgreSQL table; while that table is empty the
same queries are answered by scanning the sales CSV instead. Both paths share
one definition of matching and ordering:

- a predicate tree built from the search criteria (compiled to SQL for the
  store, evaluated record by record for the scan)
- a sort policy (rendered as ORDER BY for the store, a stable in-memory sort
  for the scan)

The backend selector checks the store's population on every query and routes
accordingly.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from sales_search.config import Settings, get_settings
from sales_search.domain.errors import (
    CriteriaValidationError,
    RowParseError,
    SalesSearchError,
    SourceUnavailableError,
    StoreQueryError,
)
from sales_search.domain.models import SaleRecord, SearchCriteria, SearchPage
from sales_search.search.predicates import build_predicate
from sales_search.search.sorting import SortPolicy
from sales_search.selector import BackendSelector, available_backends, build_selector
from sales_search.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "SaleRecord",
    "SearchCriteria",
    "SearchPage",
    # Errors
    "SalesSearchError",
    "CriteriaValidationError",
    "SourceUnavailableError",
    "RowParseError",
    "StoreQueryError",
    # Search semantics
    "build_predicate",
    "SortPolicy",
    # Backend selection
    "BackendSelector",
    "available_backends",
    "build_selector",
    # Logging
    "configure_logging",
    "get_logger",
]
