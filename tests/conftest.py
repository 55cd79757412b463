"""
Pytest configuration for the sales search service.

Provides fixtures for:
- Building SaleRecord instances and sales CSV files for unit tests
- Database connection management
- Store seeding for integration tests
"""

from __future__ import annotations

import csv
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Iterable

import psycopg
import pytest

from sales_search.config import Settings
from sales_search.domain.models import SaleRecord
from sales_search.infrastructure.row_source import CSV_HEADERS

RecordFactory = Callable[..., SaleRecord]
CsvWriter = Callable[[Iterable[Dict[str, str]]], Path]

_RECORD_DEFAULTS: Dict[str, Any] = {
    "transaction_id": "T0000001",
    "date": date(2024, 1, 15),
    "customer_id": "C00001",
    "customer_name": "Neha Sharma",
    "phone_number": "9876543210",
    "gender": "Female",
    "age": 30,
    "customer_region": "North",
    "customer_type": "Returning",
    "product_id": "P0001",
    "product_name": "Headphones",
    "brand": "Acme",
    "product_category": "Electronics",
    "tags": "wireless,gift",
    "quantity": 1,
    "price_per_unit": Decimal("100.00"),
    "discount_percentage": Decimal("0"),
    "total_amount": Decimal("100.00"),
    "final_amount": Decimal("100.00"),
    "payment_method": "UPI",
    "order_status": "Completed",
    "delivery_type": "Standard",
    "store_id": "ST01",
    "store_location": "Delhi",
    "salesperson_id": "SP001",
    "employee_name": "Arjun Nair",
}

_CSV_DEFAULTS: Dict[str, str] = {
    "Transaction ID": "T0000001",
    "Date": "2024-01-15",
    "Customer ID": "C00001",
    "Customer Name": "Neha Sharma",
    "Phone Number": "9876543210",
    "Gender": "Female",
    "Age": "30",
    "Customer Region": "North",
    "Customer Type": "Returning",
    "Product ID": "P0001",
    "Product Name": "Headphones",
    "Brand": "Acme",
    "Product Category": "Electronics",
    "Tags": "wireless,gift",
    "Quantity": "1",
    "Price per Unit": "100.00",
    "Discount Percentage": "0",
    "Total Amount": "100.00",
    "Final Amount": "100.00",
    "Payment Method": "UPI",
    "Order Status": "Completed",
    "Delivery Type": "Standard",
    "Store ID": "ST01",
    "Store Location": "Delhi",
    "Salesperson ID": "SP001",
    "Employee Name": "Arjun Nair",
}


@pytest.fixture
def record_factory() -> RecordFactory:
    """
    Build SaleRecords from sensible defaults; keyword arguments override fields.

    Each call gets the next id unless one is given, mimicking source row numbers.
    """
    counter = {"next_id": 1}

    def make(**overrides: Any) -> SaleRecord:
        values = dict(_RECORD_DEFAULTS)
        values["id"] = counter["next_id"]
        values.update(overrides)
        counter["next_id"] += 1
        return SaleRecord(**values)

    return make


@pytest.fixture
def csv_row() -> Callable[..., Dict[str, str]]:
    """Build one raw CSV row keyed by source header; keyword arguments override cells."""

    def make(**overrides: str) -> Dict[str, str]:
        row = dict(_CSV_DEFAULTS)
        row.update(overrides)
        return row

    return make


@pytest.fixture
def write_sales_csv(tmp_path: Path) -> CsvWriter:
    """Write raw rows (header -> cell) to a CSV file under tmp_path and return its path."""

    def write(rows: Iterable[Dict[str, str]]) -> Path:
        path = tmp_path / "sales_data.csv"
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_HEADERS)
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        return path

    return write


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "retail_sales"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the sale_records table exists, creating it from db/init.sql.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_sales_table(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the sale_records table before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.sale_records;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.sale_records;")
    db_connection.commit()


@pytest.fixture(scope="function")
def seeded_sales_csv(tmp_path: Path) -> Path:
    """
    Generate a deterministic 300-row sales CSV.
    """
    from scripts.generate_data import _generate_rows_csv

    csv_path = tmp_path / "generated_sales.csv"
    _generate_rows_csv(csv_path, rows=300, batch_size=100, seed=7)
    return csv_path
