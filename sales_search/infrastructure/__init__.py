"""
Infrastructure package for the sales search service.

Centralizes I/O concerns: the PostgreSQL pool and repository behind the store
backend, SQL rendering of predicate trees, and the delimited-text row source
behind the scan backend. Keep this layer focused on I/O and resource
management, decoupled from search semantics.
"""

from sales_search.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)
from sales_search.infrastructure.repository import SaleRecordRepository
from sales_search.infrastructure.row_source import CsvRowSource, parse_row

__all__ = [
    "PoolManager",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
    "SaleRecordRepository",
    "CsvRowSource",
    "parse_row",
]
