"""
Scan backend: search the delimited-text source directly.

Used when the structured store holds no rows. Each query:

1. opens the row source (scoped; released on every exit path),
2. keeps every record the predicate tree accepts, never stopping at page bounds,
3. closes the source, then sorts the whole matching subset,
4. slices the requested page out of the sorted subset.

Page contents never depend on scan position: concatenated pages form a prefix
of the fully sorted match set.
"""

from __future__ import annotations

import time
from contextlib import AbstractContextManager
from typing import Iterator, List, Protocol, Sequence, TypeVar

from sales_search.domain.models import SaleRecord, SearchCriteria, SearchPage
from sales_search.search.abstract import SearchBackend
from sales_search.search.predicates import build_predicate
from sales_search.search.sorting import SortPolicy
from sales_search.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


class RecordSource(Protocol):
    """Anything that can hand out a fresh, scoped iterator of records."""

    def open(self) -> AbstractContextManager[Iterator[SaleRecord]]:
        ...


def paginate(items: Sequence[T], page: int, size: int) -> List[T]:
    """
    Slice `[page * size, min((page + 1) * size, len(items)))` out of a sorted sequence.

    Pages past the end are empty.
    """
    start = page * size
    if start >= len(items):
        return []
    return list(items[start : min(start + size, len(items))])


class CsvScanBackend(SearchBackend):
    """
    Filter, sort and paginate records streamed from a row source.
    """

    name: str = "csv"
    description: str = "Full scan of the delimited-text source with in-memory sort."

    def __init__(self, source: RecordSource) -> None:
        self.source = source

    def search(self, criteria: SearchCriteria) -> SearchPage:
        predicate = build_predicate(criteria)
        policy = SortPolicy.resolve(criteria.sort_by, criteria.sort_direction)

        start = time.perf_counter()
        scanned = 0
        matches: List[SaleRecord] = []
        with self.source.open() as records:
            for record in records:
                scanned += 1
                if predicate.matches(record):
                    matches.append(record)

        ordered = policy.sort(matches)
        page = paginate(ordered, criteria.page, criteria.size)
        log.debug(
            "CSV scan complete",
            extra={
                "scanned": scanned,
                "matched": len(ordered),
                "returned": len(page),
                "duration_seconds": round(time.perf_counter() - start, 4),
            },
        )
        return SearchPage(
            records=page,
            total=len(ordered),
            page=criteria.page,
            size=criteria.size,
            backend=self.name,
        )


__all__ = ["CsvScanBackend", "RecordSource", "paginate"]
