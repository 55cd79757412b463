"""
Domain models for the sales search service.

Defines the sale transaction schema (aligned with `db/init.sql`), the
normalized search criteria for one query, and the page returned by either
search backend.

Numeric fields on SaleRecord tolerate unparseable source text: a
value that fails to parse becomes `None` instead of rejecting the row.
"""
from __future__ import annotations

import datetime as dt
import math
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from sales_search.domain.errors import CriteriaValidationError

DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class SaleRecord(BaseModel):
    """
    Representation of a single sale transaction (a row in `sale_records`).
    """

    id: Optional[int] = Field(None, description="Surrogate key; source row number for file rows.")
    transaction_id: Optional[str] = None
    date: Optional[dt.date] = None

    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    phone_number: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    customer_region: Optional[str] = None
    customer_type: Optional[str] = None

    product_id: Optional[str] = None
    product_name: Optional[str] = None
    brand: Optional[str] = None
    product_category: Optional[str] = None
    tags: Optional[str] = Field(None, description="Comma separated, matched by substring.")

    quantity: Optional[int] = None
    price_per_unit: Optional[Decimal] = None
    discount_percentage: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    final_amount: Optional[Decimal] = None

    payment_method: Optional[str] = None
    order_status: Optional[str] = None
    delivery_type: Optional[str] = None
    store_id: Optional[str] = None
    store_location: Optional[str] = None
    salesperson_id: Optional[str] = None
    employee_name: Optional[str] = None

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }


def parse_calendar_date(value: Any) -> Optional[dt.date]:
    """
    Parse a `YYYY-MM-DD` string into a date.

    Blank strings and None yield None. Anything else that is not a valid
    calendar date in that exact format raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value {value!r}")
    text = value.strip()
    if not text:
        return None
    if not _DATE_PATTERN.match(text):
        raise ValueError(f"Date {value!r} does not match {DATE_FORMAT}")
    return dt.datetime.strptime(text, DATE_FORMAT).date()


def _normalize_values(values: Any) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    seen: Dict[str, None] = {}
    for value in values:
        if value is None or not str(value).strip():
            continue
        seen.setdefault(str(value), None)
    return tuple(seen)


class SearchCriteria(BaseModel):
    """
    Normalized filter, sort and paging parameters for one query.

    Empty value sets and unset bounds mean "no constraint". Instances are
    immutable once built.
    """

    query: Optional[str] = None
    customer_regions: Tuple[str, ...] = ()
    genders: Tuple[str, ...] = ()
    product_categories: Tuple[str, ...] = ()
    payment_methods: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    sort_by: str = "date"
    sort_direction: str = "desc"
    page: int = Field(0, ge=0)
    size: int = Field(10, gt=0)

    model_config = {"frozen": True}

    @field_validator("query", mode="before")
    @classmethod
    def _blank_query_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator(
        "customer_regions",
        "genders",
        "product_categories",
        "payment_methods",
        "tags",
        mode="before",
    )
    @classmethod
    def _normalize_value_sets(cls, value: Any) -> Tuple[str, ...]:
        return _normalize_values(value)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Optional[dt.date]:
        return parse_calendar_date(value)

    @field_validator("sort_by", "sort_direction", mode="before")
    @classmethod
    def _blank_sort_uses_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value

    @classmethod
    def from_params(cls, **params: Any) -> "SearchCriteria":
        """
        Build criteria from raw caller input, raising CriteriaValidationError on bad input.

        Keys whose value is None are dropped so model defaults apply.
        """
        cleaned = {key: value for key, value in params.items() if value is not None}
        try:
            return cls(**cleaned)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
            raise CriteriaValidationError(f"Invalid search criteria: {details}") from exc

    @property
    def offset(self) -> int:
        return self.page * self.size


class SearchPage(BaseModel):
    """
    One page of search results plus the size of the full match set.
    """

    records: List[SaleRecord] = Field(default_factory=list)
    total: int = Field(0, ge=0, description="Matches across all pages.")
    page: int = 0
    size: int = 10
    backend: str = Field(..., description="Backend that answered: 'store' or 'csv'.")

    model_config = {"frozen": True}

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0


__all__ = [
    "DATE_FORMAT",
    "SaleRecord",
    "SearchCriteria",
    "SearchPage",
    "parse_calendar_date",
]
