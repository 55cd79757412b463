"""
Delimited-text row source for the fallback search path.

Opens the sales CSV either from a local path or, when no local file exists,
streams it from a configured URL with httpx. Each data row is mapped onto a
SaleRecord by `parse_row`.

Parsing policy:
- blank string cells become None;
- numeric cells that fail to parse become None and the row is kept;
- a blank or malformed date raises RowParseError, which aborts the read;
- bytes that are not valid UTF-8 raise RowParseError as well.
"""

from __future__ import annotations

import codecs
import csv
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Generator, Iterable, Iterator, Mapping, Optional

import httpx

from sales_search.config import Settings, get_settings
from sales_search.domain.errors import RowParseError, SourceUnavailableError
from sales_search.domain.models import SaleRecord, parse_calendar_date
from sales_search.utils.logging import get_logger

log = get_logger(__name__)

# Source header -> SaleRecord field, in file column order.
HEADER_FIELDS: Dict[str, str] = {
    "Transaction ID": "transaction_id",
    "Date": "date",
    "Customer ID": "customer_id",
    "Customer Name": "customer_name",
    "Phone Number": "phone_number",
    "Gender": "gender",
    "Age": "age",
    "Customer Region": "customer_region",
    "Customer Type": "customer_type",
    "Product ID": "product_id",
    "Product Name": "product_name",
    "Brand": "brand",
    "Product Category": "product_category",
    "Tags": "tags",
    "Quantity": "quantity",
    "Price per Unit": "price_per_unit",
    "Discount Percentage": "discount_percentage",
    "Total Amount": "total_amount",
    "Final Amount": "final_amount",
    "Payment Method": "payment_method",
    "Order Status": "order_status",
    "Delivery Type": "delivery_type",
    "Store ID": "store_id",
    "Store Location": "store_location",
    "Salesperson ID": "salesperson_id",
    "Employee Name": "employee_name",
}
CSV_HEADERS = list(HEADER_FIELDS)

_INT_FIELDS = frozenset({"age", "quantity"})
_DECIMAL_FIELDS = frozenset(
    {"price_per_unit", "discount_percentage", "total_amount", "final_amount"}
)


def _text(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


def _parse_int(value: Optional[str]) -> Optional[int]:
    text = (value or "").strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _parse_decimal(value: Optional[str]) -> Optional[Decimal]:
    text = (value or "").strip()
    if not text or "_" in text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def parse_row(row: Mapping[str, Optional[str]], row_number: Optional[int] = None) -> SaleRecord:
    """
    Map one raw CSV row (header -> cell) onto a SaleRecord.

    Parameters
    ----------
    row : Mapping[str, Optional[str]]
        Cells keyed by the source headers; missing headers read as blank.
    row_number : int, optional
        1-based data row number, stored as the record id.

    Raises
    ------
    RowParseError
        If the Date cell is blank or not a YYYY-MM-DD calendar date.
    """
    values: Dict[str, object] = {"id": row_number}
    for header, field in HEADER_FIELDS.items():
        raw = row.get(header)
        if field == "date":
            try:
                parsed = parse_calendar_date(raw)
            except ValueError as exc:
                raise RowParseError(
                    f"Row {row_number}: malformed date {raw!r}", row_number=row_number
                ) from exc
            if parsed is None:
                raise RowParseError(f"Row {row_number}: missing date", row_number=row_number)
            values[field] = parsed
        elif field in _INT_FIELDS:
            values[field] = _parse_int(raw)
        elif field in _DECIMAL_FIELDS:
            values[field] = _parse_decimal(raw)
        else:
            values[field] = _text(raw)
    return SaleRecord(**values)


def iter_records(rows: Iterable[Mapping[str, Optional[str]]]) -> Iterator[SaleRecord]:
    """Lazily parse raw rows, numbering them from 1."""
    for row_number, row in enumerate(rows, start=1):
        yield parse_row(row, row_number)


def _text_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    """
    Decode a byte stream as UTF-8 (dropping a leading byte order mark) and
    split it after each newline, keeping line endings as a file opened with
    `newline=""` would.
    """
    decoder = codecs.getincrementaldecoder("utf-8-sig")()
    pending = ""
    for chunk in chunks:
        pending += decoder.decode(chunk)
        *lines, pending = pending.split("\n")
        for line in lines:
            yield line + "\n"
    pending += decoder.decode(b"", final=True)
    if pending:
        yield pending


def _decoded_rows(reader: Iterable[Dict[str, str]]) -> Iterator[Dict[str, str]]:
    """Re-raise undecodable source bytes as RowParseError."""
    rows = iter(reader)
    read = 0
    while True:
        try:
            row = next(rows)
        except StopIteration:
            return
        except UnicodeDecodeError as exc:
            raise RowParseError(
                f"Invalid UTF-8 in CSV source after data row {read}: {exc}"
            ) from exc
        read += 1
        yield row


class CsvRowSource:
    """
    Sales CSV available from a local file or a remote URL.

    Every call to `open` acquires its own read handle and releases it when the
    context exits, whether the caller finished, stopped early or raised.
    """

    def __init__(
        self,
        path: Optional[Path | str] = None,
        url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.path = Path(path) if path else None
        self.url = url or None
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CsvRowSource":
        settings = settings or get_settings()
        return cls(
            path=settings.csv_path,
            url=settings.csv_url,
            timeout=settings.csv_http_timeout_seconds,
        )

    def describe(self) -> str:
        if self.path is not None and self.path.is_file():
            return str(self.path)
        return self.url or f"{self.path} (missing)"

    @contextmanager
    def _open_local(self, path: Path) -> Generator[Iterator[str], None, None]:
        log.info("Streaming CSV from local path", extra={"path": str(path)})
        try:
            handle = path.open("r", newline="", encoding="utf-8-sig")
        except OSError as exc:
            raise SourceUnavailableError(f"Cannot open CSV file {path}: {exc}") from exc
        with handle:
            yield iter(handle)

    @contextmanager
    def _open_remote(self, url: str) -> Generator[Iterator[str], None, None]:
        log.info("CSV not found locally, streaming from URL", extra={"url": url})
        owns_client = self._client is None
        client = self._client or httpx.Client(timeout=self.timeout, follow_redirects=True)
        try:
            with client.stream("GET", url) as response:
                if response.is_error:
                    raise SourceUnavailableError(
                        f"CSV URL {url} answered HTTP {response.status_code}"
                    )
                yield _text_lines(response.iter_bytes())
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(f"Cannot stream CSV from {url}: {exc}") from exc
        finally:
            if owns_client:
                client.close()

    @contextmanager
    def open_rows(self) -> Generator[Iterator[Dict[str, str]], None, None]:
        """
        Open the source and yield raw rows keyed by header.

        Raises
        ------
        SourceUnavailableError
            If no local file exists and no URL is configured, or the URL
            cannot be fetched.
        """
        if self.path is not None and self.path.is_file():
            opener = self._open_local(self.path)
        elif self.url:
            opener = self._open_remote(self.url)
        else:
            raise SourceUnavailableError(
                f"CSV file not found at {self.path} and no CSV URL configured"
            )
        with opener as lines:
            yield _decoded_rows(csv.DictReader(lines))

    @contextmanager
    def open(self) -> Generator[Iterator[SaleRecord], None, None]:
        """Open the source and yield a lazy iterator of parsed records."""
        with self.open_rows() as rows:
            yield iter_records(rows)


__all__ = [
    "CSV_HEADERS",
    "HEADER_FIELDS",
    "CsvRowSource",
    "iter_records",
    "parse_row",
]
