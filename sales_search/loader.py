"""
Bulk loading of the delimited-text source into the structured store.

Loading only happens while the store is empty; a populated store is left
untouched. A row with a malformed date aborts the whole load (the COPY runs in
one transaction), so the store is never left with a silently truncated copy.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, TypedDict

from sales_search.config import Settings, get_settings
from sales_search.domain.models import SaleRecord
from sales_search.search.scan import RecordSource
from sales_search.utils.logging import get_logger
from sales_search.utils.profiler import profile_block

log = get_logger(__name__)


class RecordSink(Protocol):
    def count(self) -> int:
        ...

    def save_all(self, records: Iterable[SaleRecord]) -> int:
        ...


class LoadResult(TypedDict, total=False):
    """
    Outcome of one load attempt.
    """

    existing_records: int
    records_loaded: int
    already_loaded: bool
    source: str
    duration_seconds: float


def load_sales(store: RecordSink, source: RecordSource, source_label: str = "csv") -> LoadResult:
    """
    Copy every record from `source` into `store` if the store is empty.

    Parameters
    ----------
    store : RecordSink
        Destination; must report its population and accept bulk writes.
    source : RecordSource
        Delimited-text records, opened once for the load.
    source_label : str
        Human-readable description of the source for logs and the result.

    Returns
    -------
    LoadResult
        Existing population, rows written and whether the load was skipped.
    """
    existing = store.count()
    if existing > 0:
        log.info(
            "Store already populated, skipping CSV load",
            extra={"existing_records": existing},
        )
        return LoadResult(
            existing_records=existing,
            records_loaded=0,
            already_loaded=True,
            source=source_label,
        )

    with profile_block("load") as stats:
        with source.open() as records:
            written = store.save_all(records)

    if written == 0:
        log.warning("No records loaded from CSV", extra={"source": source_label})
    else:
        log.info(
            "CSV load complete",
            extra={"records_loaded": written, "source": source_label, **stats.as_log_extra()},
        )
    return LoadResult(
        existing_records=existing,
        records_loaded=written,
        already_loaded=False,
        source=source_label,
        duration_seconds=round(stats.duration_seconds, 2),
    )


def load_on_startup(
    store: RecordSink,
    source: RecordSource,
    settings: Optional[Settings] = None,
    source_label: str = "csv",
) -> Optional[LoadResult]:
    """Run `load_sales` when STARTUP_LOAD_ENABLED is set; otherwise do nothing."""
    settings = settings or get_settings()
    if not settings.startup_load_enabled:
        log.debug("Startup load disabled, skipping store pre-load")
        return None
    return load_sales(store, source, source_label=source_label)


__all__ = ["LoadResult", "RecordSink", "load_on_startup", "load_sales"]
