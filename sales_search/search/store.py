"""
Store backend: answer queries from the structured store.

The predicate tree and sort policy are handed to the store, which evaluates
them with its own indexes and returns only the requested page plus the full
match count.
"""

from __future__ import annotations

import time
from typing import List, Protocol, Tuple

from sales_search.domain.models import SaleRecord, SearchCriteria, SearchPage
from sales_search.search.abstract import SearchBackend
from sales_search.search.predicates import Predicate, build_predicate
from sales_search.search.sorting import SortPolicy
from sales_search.utils.logging import get_logger

log = get_logger(__name__)


class PagedRecordStore(Protocol):
    def find_page(
        self,
        predicate: Predicate,
        policy: SortPolicy,
        offset: int,
        limit: int,
    ) -> Tuple[List[SaleRecord], int]:
        ...


class StoreSearchBackend(SearchBackend):
    """
    Delegate filtering, ordering and paging to the structured store.

    Store failures propagate as StoreQueryError.
    """

    name: str = "store"
    description: str = "Predicate tree compiled to SQL; store-side sort and LIMIT/OFFSET."

    def __init__(self, store: PagedRecordStore) -> None:
        self.store = store

    def search(self, criteria: SearchCriteria) -> SearchPage:
        predicate = build_predicate(criteria)
        policy = SortPolicy.resolve(criteria.sort_by, criteria.sort_direction)

        start = time.perf_counter()
        records, total = self.store.find_page(
            predicate, policy, offset=criteria.offset, limit=criteria.size
        )
        log.debug(
            "Store query complete",
            extra={
                "matched": total,
                "returned": len(records),
                "duration_seconds": round(time.perf_counter() - start, 4),
            },
        )
        return SearchPage(
            records=records,
            total=total,
            page=criteria.page,
            size=criteria.size,
            backend=self.name,
        )


__all__ = ["PagedRecordStore", "StoreSearchBackend"]
