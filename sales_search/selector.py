"""
Backend selection for sales searches.

Usage (example from CLI):
    from sales_search.domain.models import SearchCriteria
    from sales_search.selector import build_selector

    selector = build_selector()
    page = selector.search(SearchCriteria.from_params(customer_regions=["North"]))
    print(page.total, [r.transaction_id for r in page.records])

For every query the selector asks the structured store how many rows it
holds. A populated store answers the query itself; an empty one hands the
query to the scan backend over the delimited-text source. The count is read
fresh for every query and never cached.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Protocol

from sales_search.config import Settings, get_settings
from sales_search.domain.errors import SalesSearchError
from sales_search.domain.models import SearchCriteria, SearchPage
from sales_search.infrastructure.repository import SaleRecordRepository
from sales_search.infrastructure.row_source import CsvRowSource
from sales_search.search.abstract import SearchBackend
from sales_search.search.scan import CsvScanBackend
from sales_search.search.store import StoreSearchBackend
from sales_search.utils.logging import get_logger
from sales_search.utils.profiler import profile_block

log = get_logger(__name__)

AUTO = "auto"


class RowCounter(Protocol):
    def count(self) -> int:
        ...


class BackendSelector:
    """
    Route each query to the store or the scan backend.

    Parameters
    ----------
    counter : RowCounter
        Reports how many records the structured store holds.
    store_backend : SearchBackend
        Backend used while the store is populated.
    scan_backend : SearchBackend
        Backend used while the store is empty.
    """

    def __init__(
        self,
        counter: RowCounter,
        store_backend: SearchBackend,
        scan_backend: SearchBackend,
    ) -> None:
        self.counter = counter
        self.store_backend = store_backend
        self.scan_backend = scan_backend

    def _backends(self) -> Dict[str, Callable[[], SearchBackend]]:
        """Registry of selectable backends."""
        return {
            AUTO: self.select,
            self.store_backend.name: lambda: self.store_backend,
            self.scan_backend.name: lambda: self.scan_backend,
        }

    def available_backends(self) -> List[str]:
        """List backend names accepted by `search`."""
        return sorted(self._backends().keys())

    def select(self) -> SearchBackend:
        """Pick the backend for one query from the current store population."""
        population = self.counter.count()
        backend = self.store_backend if population > 0 else self.scan_backend
        log.info(
            f"[BACKEND] {backend.name}",
            extra={"backend": backend.name, "store_rows": population},
        )
        return backend

    def _resolve(self, name: str) -> SearchBackend:
        factories = self._backends()
        if name not in factories:
            raise ValueError(f"Unknown backend '{name}'. Available: {', '.join(factories)}")
        return factories[name]()

    def search(self, criteria: SearchCriteria, backend: str = AUTO) -> SearchPage:
        """
        Answer one query.

        Parameters
        ----------
        criteria : SearchCriteria
            Normalized query parameters.
        backend : str
            "auto" (default) selects by store population; a backend name forces it.

        Raises
        ------
        SalesSearchError
            Any search-layer failure, unchanged; nothing is retried here.
        """
        resolved = self._resolve(backend)
        with profile_block(f"search:{resolved.name}") as stats:
            try:
                page = resolved.search(criteria)
            except SalesSearchError as exc:
                log.warning(
                    f"[SEARCH FAILED] {resolved.name}",
                    extra={"backend": resolved.name, "error": str(exc)},
                )
                raise
        stats.extra.update(
            {"backend": page.backend, "total": page.total, "returned": len(page.records)}
        )
        log.info(f"[SEARCH COMPLETE] {page.backend}", extra=stats.as_log_extra())
        return page


def build_selector(
    settings: Optional[Settings] = None,
    repository: Optional[SaleRecordRepository] = None,
    source: Optional[CsvRowSource] = None,
) -> BackendSelector:
    """Wire the repository, row source and backends, defaulting each from settings."""
    settings = settings or get_settings()
    repository = repository or SaleRecordRepository()
    source = source or CsvRowSource.from_settings(settings)
    return BackendSelector(
        counter=repository,
        store_backend=StoreSearchBackend(repository),
        scan_backend=CsvScanBackend(source),
    )


def available_backends() -> List[str]:
    """List backend names accepted on the command line."""
    return sorted([AUTO, StoreSearchBackend.name, CsvScanBackend.name])


__all__ = [
    "AUTO",
    "BackendSelector",
    "RowCounter",
    "available_backends",
    "build_selector",
]
