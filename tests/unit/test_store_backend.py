from __future__ import annotations

from contextlib import contextmanager
from typing import Any, List, Optional

import psycopg
import pytest

from sales_search.domain.errors import StoreQueryError
from sales_search.domain.models import SearchCriteria
from sales_search.infrastructure.repository import SaleRecordRepository
from sales_search.infrastructure.sql_compiler import COLUMNS
from sales_search.search.predicates import AlwaysTrue, In, build_predicate
from sales_search.search.sorting import SortPolicy
from sales_search.search.store import StoreSearchBackend

MATCH_COUNT = 42


class FakeCopy:
    def __init__(self, sink: List[tuple]) -> None:
        self.sink = sink

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def write_row(self, row) -> None:
        self.sink.append(tuple(row))


class FakeCursor:
    def __init__(self, conn: "FakeConnection", row_factory: Any = None) -> None:
        self.conn = conn
        self.row_factory = row_factory

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params: Optional[list] = None) -> None:
        if self.conn.fail_with is not None:
            raise self.conn.fail_with
        self.conn.executed.append((query.as_string(None), params))

    def fetchone(self):
        return (self.conn.count_result,)

    def fetchall(self):
        return list(self.conn.page_rows)

    def copy(self, statement):
        self.conn.executed.append((statement.as_string(None), None))
        return FakeCopy(self.conn.copied)


class FakeConnection:
    def __init__(self) -> None:
        self.executed: List[tuple] = []
        self.copied: List[tuple] = []
        self.count_result = 0
        self.page_rows: List[Any] = []
        self.fail_with: Optional[Exception] = None

    def cursor(self, row_factory: Any = None) -> FakeCursor:
        return FakeCursor(self, row_factory)


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()
        self.checkouts = 0

    @contextmanager
    def connection(self):
        self.checkouts += 1
        yield self.conn


@pytest.fixture
def pool() -> FakePool:
    return FakePool()


class TestRepository:
    def test_count(self, pool: FakePool):
        pool.conn.count_result = 1234

        assert SaleRecordRepository(pool).count() == 1234
        assert pool.conn.executed == [('SELECT count(*) FROM "sale_records"', None)]

    def test_find_page_runs_count_and_page_in_one_snapshot(self, pool: FakePool, record_factory):
        rows = [record_factory(), record_factory()]
        pool.conn.count_result = MATCH_COUNT
        pool.conn.page_rows = rows

        records, total = SaleRecordRepository(pool).find_page(
            In("customer_region", ("North",)),
            SortPolicy.resolve("quantity", "asc"),
            offset=20,
            limit=10,
        )

        assert records == rows
        assert total == MATCH_COUNT
        assert pool.checkouts == 1
        (snapshot, _), (count_sql, count_params), (page_sql, page_params) = pool.conn.executed
        assert snapshot == "SET TRANSACTION ISOLATION LEVEL REPEATABLE READ, READ ONLY"
        assert count_sql == 'SELECT count(*) FROM "sale_records" WHERE "customer_region" = ANY(%s)'
        assert count_params == [["North"]]
        assert page_sql.endswith(
            'WHERE "customer_region" = ANY(%s) '
            'ORDER BY COALESCE("quantity", 0) ASC, "id" ASC LIMIT %s OFFSET %s'
        )
        assert page_params == [["North"], 10, 20]

    def test_find_page_selects_every_record_column(self, pool: FakePool):
        SaleRecordRepository(pool).find_page(
            AlwaysTrue(), SortPolicy(), offset=0, limit=5
        )

        page_sql = pool.conn.executed[-1][0]
        for column in COLUMNS:
            assert f'"{column}"' in page_sql

    def test_driver_errors_become_store_query_errors(self, pool: FakePool):
        pool.conn.fail_with = psycopg.OperationalError("server closed the connection")
        repository = SaleRecordRepository(pool)

        with pytest.raises(StoreQueryError):
            repository.count()
        with pytest.raises(StoreQueryError, match="server closed"):
            repository.find_page(AlwaysTrue(), SortPolicy(), offset=0, limit=10)
        with pytest.raises(StoreQueryError):
            repository.truncate()

    def test_save_all_copies_every_column_in_order(self, pool: FakePool, record_factory):
        records = [record_factory(quantity=3), record_factory(quantity=None)]

        written = SaleRecordRepository(pool).save_all(iter(records))

        assert written == 2
        assert pool.conn.executed[0][0].startswith('COPY "sale_records" ("id", "transaction_id"')
        assert pool.conn.copied[0][0] == 1
        assert pool.conn.copied[1][COLUMNS.index("quantity")] is None
        assert len(pool.conn.copied[0]) == len(COLUMNS)


class RecordingStore:
    def __init__(self, records, total: int) -> None:
        self.records = records
        self.total = total
        self.calls: List[dict] = []

    def find_page(self, predicate, policy, offset, limit):
        self.calls.append(
            {"predicate": predicate, "policy": policy, "offset": offset, "limit": limit}
        )
        return self.records, self.total


def test_store_backend_passes_page_window_and_shared_semantics(record_factory):
    store = RecordingStore([record_factory()], total=MATCH_COUNT)
    criteria = SearchCriteria(
        customer_regions=["East"], sort_by="customerName", sort_direction="asc", page=3, size=5
    )

    page = StoreSearchBackend(store).search(criteria)

    (call,) = store.calls
    assert call["offset"] == 15
    assert call["limit"] == 5
    assert call["predicate"] == build_predicate(criteria)
    assert call["policy"] == SortPolicy.resolve("customerName", "asc")
    assert page.backend == "store"
    assert page.total == MATCH_COUNT
    assert page.page == 3
    assert page.size == 5


def test_store_backend_propagates_store_failures():
    class BrokenStore:
        def find_page(self, predicate, policy, offset, limit):
            raise StoreQueryError("Querying sale_records failed: timeout")

    with pytest.raises(StoreQueryError):
        StoreSearchBackend(BrokenStore()).search(SearchCriteria())
