"""
Structured-store access for sale records.

Wraps a psycopg connection pool with the three operations the service needs:
a population count (backend selection), a filtered/sorted/paged read (store
search path), and a bulk COPY (loading). Any driver error surfaces as
StoreQueryError; nothing here retries.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Tuple

import psycopg
from psycopg import sql
from psycopg.rows import class_row
from psycopg_pool import ConnectionPool

from sales_search.domain.errors import StoreQueryError
from sales_search.domain.models import SaleRecord
from sales_search.infrastructure.db_factory import get_sync_pool
from sales_search.infrastructure.sql_compiler import (
    COLUMNS,
    TABLE,
    compile_order,
    compile_predicate,
)
from sales_search.search.predicates import Predicate
from sales_search.search.sorting import SortPolicy
from sales_search.utils.logging import get_logger

log = get_logger(__name__)

_SNAPSHOT = sql.SQL("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ, READ ONLY")


class SaleRecordRepository:
    """
    Sale records stored in the `sale_records` table.
    """

    def __init__(self, pool: Optional[ConnectionPool] = None) -> None:
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = get_sync_pool()
        return self._pool

    def count(self) -> int:
        """Return the number of stored records."""
        query = sql.SQL("SELECT count(*) FROM {}").format(sql.Identifier(TABLE))
        try:
            with self._get_pool().connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query)
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise StoreQueryError(f"Counting {TABLE} failed: {exc}") from exc
        return int(row[0]) if row else 0

    def find_page(
        self,
        predicate: Predicate,
        policy: SortPolicy,
        offset: int,
        limit: int,
    ) -> Tuple[List[SaleRecord], int]:
        """
        Return one ordered page of matching records plus the full match count.

        Both statements run in one read-only REPEATABLE READ transaction so the
        count and the page describe the same snapshot.
        """
        where, params = compile_predicate(predicate)
        count_query = sql.SQL("SELECT count(*) FROM {table} WHERE {where}").format(
            table=sql.Identifier(TABLE), where=where
        )
        page_query = sql.SQL(
            "SELECT {columns} FROM {table} WHERE {where} "
            "ORDER BY {order} LIMIT {limit} OFFSET {offset}"
        ).format(
            columns=sql.SQL(", ").join(sql.Identifier(column) for column in COLUMNS),
            table=sql.Identifier(TABLE),
            where=where,
            order=compile_order(policy),
            limit=sql.Placeholder(),
            offset=sql.Placeholder(),
        )
        page_params: List[Any] = [*params, limit, offset]

        try:
            with self._get_pool().connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(_SNAPSHOT)
                    cur.execute(count_query, params)
                    count_row = cur.fetchone()
                with conn.cursor(row_factory=class_row(SaleRecord)) as cur:
                    cur.execute(page_query, page_params)
                    records = cur.fetchall()
        except psycopg.Error as exc:
            raise StoreQueryError(f"Querying {TABLE} failed: {exc}") from exc

        total = int(count_row[0]) if count_row else 0
        return records, total

    def save_all(self, records: Iterable[SaleRecord]) -> int:
        """
        Bulk insert records with COPY and return how many were written.

        Records keep their `id`, so source row order is preserved as the
        stable tie-break order of the store.
        """
        copy_sql = sql.SQL("COPY {} ({}) FROM STDIN").format(
            sql.Identifier(TABLE),
            sql.SQL(", ").join(sql.Identifier(column) for column in COLUMNS),
        )
        written = 0
        try:
            with self._get_pool().connection() as conn:
                with conn.cursor() as cur:
                    with cur.copy(copy_sql) as copy:
                        for record in records:
                            copy.write_row(tuple(getattr(record, column) for column in COLUMNS))
                            written += 1
        except psycopg.Error as exc:
            raise StoreQueryError(f"Loading into {TABLE} failed: {exc}") from exc
        log.info("Records copied into store", extra={"rows": written, "table": TABLE})
        return written

    def truncate(self) -> None:
        """Remove every stored record."""
        query = sql.SQL("TRUNCATE TABLE {}").format(sql.Identifier(TABLE))
        try:
            with self._get_pool().connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query)
        except psycopg.Error as exc:
            raise StoreQueryError(f"Truncating {TABLE} failed: {exc}") from exc


__all__ = ["SaleRecordRepository"]
