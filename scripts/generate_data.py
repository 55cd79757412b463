"""
Data generation and loading script for the sales search service.

Implements deterministic pseudo-random sale generation, CSV emission in the
exact header layout the row source expects, and optional loading into the
store through the regular bulk loader.
"""

from __future__ import annotations

import csv
import random
import sys
import time
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

import typer
from psycopg_pool import ConnectionPool

from sales_search.infrastructure.db_factory import build_dsn
from sales_search.infrastructure.repository import SaleRecordRepository
from sales_search.infrastructure.row_source import CSV_HEADERS, CsvRowSource
from sales_search.loader import load_sales

app = typer.Typer(help="Generate synthetic sales data and optionally load it into Postgres.")

FIRST_NAMES = [
    "Aarav", "Neha", "Rohan", "Priya", "Kabir", "Ishita", "Vikram", "Ananya", "Arjun", "Meera"
]
LAST_NAMES = ["Sharma", "Verma", "Iyer", "Reddy", "Patel", "Khan", "Das", "Nair", "Gupta", "Singh"]
REGIONS = ["North", "South", "East", "West", "Central"]
GENDERS = ["Male", "Female"]
CUSTOMER_TYPES = ["New", "Returning", "Loyal"]
CATEGORIES = {
    "Electronics": ["Headphones", "Smartwatch", "Speaker", "Charger"],
    "Clothing": ["T-Shirt", "Jeans", "Jacket", "Sneakers"],
    "Beauty": ["Lipstick", "Moisturizer", "Perfume", "Serum"],
    "Home": ["Lamp", "Cushion", "Mug", "Blanket"],
    "Sports": ["Yoga Mat", "Dumbbell", "Football", "Water Bottle"],
}
BRANDS = ["Acme", "Zenith", "Orbit", "Nimbus", "Vertex"]
TAGS = ["organic", "wireless", "gift", "premium", "eco-friendly", "fashion", "smart", "portable"]
PAYMENT_METHODS = ["Cash", "Credit Card", "Debit Card", "UPI", "Net Banking", "Wallet"]
ORDER_STATUSES = ["Completed", "Pending", "Cancelled", "Returned"]
DELIVERY_TYPES = ["Standard", "Express", "Store Pickup"]
STORES = {
    "ST01": "Delhi",
    "ST02": "Mumbai",
    "ST03": "Chennai",
    "ST04": "Kolkata",
    "ST05": "Bengaluru",
}

START_DATE = date(2023, 1, 1)
DATE_SPAN_DAYS = 730
CENT = Decimal("0.01")


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _generate_row(rng: random.Random, index: int) -> list[str]:
    category = rng.choice(list(CATEGORIES))
    product = rng.choice(CATEGORIES[category])
    store_id = rng.choice(list(STORES))
    quantity = rng.randint(1, 10)
    price = Decimal(str(round(rng.uniform(5, 500), 2)))
    discount = Decimal(rng.choice([0, 5, 10, 15, 20, 25]))
    total = (price * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
    final = (total * (100 - discount) / 100).quantize(CENT, rounding=ROUND_HALF_UP)
    customer_number = rng.randint(1, 500)
    return [
        f"T{index:07d}",
        (START_DATE + timedelta(days=rng.randrange(DATE_SPAN_DAYS))).isoformat(),
        f"C{customer_number:05d}",
        f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
        f"9{rng.randint(100_000_000, 999_999_999)}",
        rng.choice(GENDERS),
        str(rng.randint(18, 70)),
        rng.choice(REGIONS),
        rng.choice(CUSTOMER_TYPES),
        f"P{rng.randint(1, 200):04d}",
        product,
        rng.choice(BRANDS),
        category,
        ",".join(rng.sample(TAGS, k=rng.randint(1, 3))),
        str(quantity),
        f"{price:.2f}",
        f"{discount}",
        f"{total:.2f}",
        f"{final:.2f}",
        rng.choice(PAYMENT_METHODS),
        rng.choice(ORDER_STATUSES),
        rng.choice(DELIVERY_TYPES),
        store_id,
        STORES[store_id],
        f"SP{rng.randint(1, 40):03d}",
        f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
    ]


def _generate_rows_csv(csv_path: Path, rows: int, batch_size: int, seed: int) -> None:
    rng = random.Random(seed)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADERS)

        buffer: list[list[str]] = []
        for i in range(1, rows + 1):
            buffer.append(_generate_row(rng, i))
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _load_into_db(dsn: str, csv_path: Path) -> int:
    with ConnectionPool(conninfo=dsn, min_size=1, max_size=1, open=True) as pool:
        result = load_sales(
            SaleRecordRepository(pool), CsvRowSource(path=csv_path), source_label=str(csv_path)
        )
    return result.get("records_loaded", 0)


@app.command()
def main(
    rows: int = typer.Option(
        10_000,
        "--rows",
        "-r",
        help="Number of sales to generate.",
    ),
    batch_size: int = typer.Option(
        5_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("data/sales_data.csv"),
        "--output",
        "-o",
        help="CSV output path.",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate synthetic sales and optionally load them into an empty store.
    """
    start = time.perf_counter()
    output.parent.mkdir(parents=True, exist_ok=True)

    typer.echo(f"Generating {rows:,} sales -> {output} (batch={batch_size}, seed={seed})")
    _generate_rows_csv(output, rows=rows, batch_size=batch_size, seed=seed)
    gen_duration = time.perf_counter() - start
    typer.echo(f"CSV generation completed in {gen_duration:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into Postgres via COPY...")
    loaded = _load_into_db(_build_dsn(dsn), output)
    typer.echo(f"Loaded {loaded:,} rows in {time.perf_counter() - load_start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
