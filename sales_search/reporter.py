from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.table import Table

from sales_search.domain.models import SaleRecord, SearchPage

# (header, field, justify, style)
_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("Transaction", "transaction_id", "left", "cyan"),
    ("Date", "date", "left", "green"),
    ("Customer", "customer_name", "left", "bold"),
    ("Phone", "phone_number", "left", "dim"),
    ("Gender", "gender", "left", ""),
    ("Age", "age", "right", "magenta"),
    ("Region", "customer_region", "left", "blue"),
    ("Category", "product_category", "left", ""),
    ("Qty", "quantity", "right", "magenta"),
    ("Final Amount", "final_amount", "right", "bold green"),
    ("Payment", "payment_method", "left", "yellow"),
]


def _cell(record: SaleRecord, field: str) -> str:
    value = getattr(record, field)
    if value is None:
        return "-"
    if isinstance(value, Decimal):
        return f"{value:,.2f}"
    return str(value)


def build_table(page: SearchPage) -> Table:
    """
    Render one search page as a rich table.

    The caption carries the paging position and the full match count so an
    empty page of a successful search reads differently from a failed one.
    """
    shown_from = page.page * page.size + 1 if page.records else 0
    shown_to = page.page * page.size + len(page.records)
    table = Table(
        title=f"Sales ({page.backend} backend)",
        box=box.ROUNDED,
        caption=(
            f"Page {page.page + 1} of {max(page.total_pages, 1)} │ "
            f"showing {shown_from}-{shown_to} of {page.total:,} matches"
        ),
    )
    for header, _, justify, style in _COLUMNS:
        table.add_column(header, justify=justify, style=style or None, no_wrap=True)
    for record in page.records:
        table.add_row(*(_cell(record, field) for _, field, _, _ in _COLUMNS))
    return table


def print_page(page: SearchPage, console: Optional[Console] = None) -> None:
    """Print a search page; an empty page prints a notice instead of a table."""
    console = console or Console()
    if not page.records:
        console.print(
            f"[yellow]No matching sales on page {page.page + 1} "
            f"({page.total:,} total matches, {page.backend} backend).[/yellow]"
        )
        return
    console.print(build_table(page))


__all__ = ["build_table", "print_page"]
