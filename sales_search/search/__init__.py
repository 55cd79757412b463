"""
Search package for the sales search service.

This module re-exports the backend interfaces, the predicate builder, the sort
policy and the two concrete backends so downstream code can import from
`sales_search.search` directly.
"""

from sales_search.search.abstract import SearchBackend
from sales_search.search.predicates import Predicate, build_predicate
from sales_search.search.scan import CsvScanBackend, paginate
from sales_search.search.sorting import SortKey, SortPolicy
from sales_search.search.store import StoreSearchBackend

__all__ = [
    # Abstracts
    "SearchBackend",
    # Shared semantics
    "Predicate",
    "build_predicate",
    "SortKey",
    "SortPolicy",
    "paginate",
    # Concrete backends
    "CsvScanBackend",
    "StoreSearchBackend",
]
