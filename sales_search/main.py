from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import List, Optional

import psycopg
import typer

from sales_search.config import get_settings
from sales_search.domain.errors import (
    CriteriaValidationError,
    RowParseError,
    SalesSearchError,
    SourceUnavailableError,
    StoreQueryError,
)
from sales_search.domain.models import SearchCriteria
from sales_search.infrastructure.db_factory import get_sync_connection
from sales_search.infrastructure.repository import SaleRecordRepository
from sales_search.infrastructure.row_source import CsvRowSource
from sales_search.loader import load_on_startup, load_sales
from sales_search.reporter import print_page
from sales_search.selector import AUTO, available_backends, build_selector
from sales_search.utils.logging import configure_logging

app = typer.Typer(help="Retail sales search CLI.")

# Distinct exit codes so scripts can tell "no matches" (0) from "could not run".
EXIT_CODES = {
    CriteriaValidationError: 2,
    SourceUnavailableError: 3,
    RowParseError: 4,
    StoreQueryError: 5,
}


def _fail(exc: SalesSearchError) -> typer.Exit:
    code = next((c for kind, c in EXIT_CODES.items() if isinstance(exc, kind)), 1)
    typer.echo(f"{type(exc).__name__}: {exc}", err=True)
    return typer.Exit(code=code)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"csv={settings.csv_path} url={settings.csv_url or '-'} | "
        f"page_size={settings.default_page_size} startup_load={settings.startup_load_enabled}"
    )


@app.command()
def search(
    q: Optional[str] = typer.Option(
        None, "--query", "-q", help="Customer name or phone substring."
    ),
    region: Optional[List[str]] = typer.Option(
        None, "--region", help="Customer region (repeatable)."
    ),
    gender: Optional[List[str]] = typer.Option(None, "--gender", help="Gender (repeatable)."),
    category: Optional[List[str]] = typer.Option(
        None, "--category", help="Product category (repeatable)."
    ),
    tag: Optional[List[str]] = typer.Option(None, "--tag", help="Tag substring (repeatable)."),
    payment_method: Optional[List[str]] = typer.Option(
        None, "--payment-method", help="Payment method (repeatable)."
    ),
    min_age: Optional[int] = typer.Option(None, "--min-age"),
    max_age: Optional[int] = typer.Option(None, "--max-age"),
    start_date: Optional[str] = typer.Option(None, "--start-date", help="YYYY-MM-DD, inclusive."),
    end_date: Optional[str] = typer.Option(None, "--end-date", help="YYYY-MM-DD, inclusive."),
    sort_by: str = typer.Option("date", "--sort-by", help="date, quantity or customerName."),
    direction: str = typer.Option("desc", "--direction", help="asc or desc."),
    page: int = typer.Option(0, "--page", "-p", help="0-based page index."),
    size: Optional[int] = typer.Option(
        None, "--size", "-n", help="Page size (default from settings)."
    ),
    backend: str = typer.Option(
        AUTO,
        "--backend",
        "-b",
        help=f"Backend to use ({', '.join(available_backends())}).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the page as JSON."),
) -> None:
    """
    Run one filtered, sorted, paginated query over the sales records.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        criteria = SearchCriteria.from_params(
            query=q,
            customer_regions=region,
            genders=gender,
            product_categories=category,
            tags=tag,
            payment_methods=payment_method,
            min_age=min_age,
            max_age=max_age,
            start_date=start_date,
            end_date=end_date,
            sort_by=sort_by,
            sort_direction=direction,
            page=page,
            size=settings.default_page_size if size is None else size,
        )
        repository = SaleRecordRepository()
        source = CsvRowSource.from_settings(settings)
        load_on_startup(repository, source, settings, source_label=source.describe())
        selector = build_selector(settings, repository=repository, source=source)
        result = selector.search(criteria, backend=backend)
    except SalesSearchError as exc:
        raise _fail(exc) from exc
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        print_page(result)


@app.command()
def load() -> None:
    """
    Bulk-load the sales CSV into the store if the store is empty.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    source = CsvRowSource.from_settings(settings)
    try:
        result = load_sales(SaleRecordRepository(), source, source_label=source.describe())
    except SalesSearchError as exc:
        raise _fail(exc) from exc
    typer.echo(json.dumps(result, indent=2))


@app.command("init-db")
def init_db(
    schema: Path = typer.Option(
        Path("db/init.sql"), "--schema", help="SQL file creating the sale_records table."
    ),
) -> None:
    """
    Create the store schema.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    ddl = schema.read_text(encoding="utf-8")
    try:
        with get_sync_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(ddl)
    except psycopg.Error as exc:
        raise _fail(StoreQueryError(f"Applying {schema} failed: {exc}")) from exc
    typer.echo(f"Schema applied from {schema}.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
