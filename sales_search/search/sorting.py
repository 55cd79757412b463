"""
Sort policy shared by both search backends.

Resolves a caller-supplied sort key and direction into an ordering over
SaleRecord. The scan backend applies it with `SortPolicy.sort`; the store
backend renders the same ordering as SQL (see `compile_order`).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key
from typing import Iterable, List, Optional

from sales_search.domain.models import SaleRecord


class SortKey(str, Enum):
    DATE = "date"
    QUANTITY = "quantity"
    CUSTOMER_NAME = "customerName"


_KEY_ALIASES = {
    "quantity": SortKey.QUANTITY,
    "customername": SortKey.CUSTOMER_NAME,
    "customer_name": SortKey.CUSTOMER_NAME,
}


def _compare_dates(a: SaleRecord, b: SaleRecord) -> int:
    # An absent date ties with everything.
    if a.date is None or b.date is None:
        return 0
    return (a.date > b.date) - (a.date < b.date)


@dataclass(frozen=True)
class SortPolicy:
    """
    A resolved sort: which key, which direction.

    Sorting is stable: records with equal keys keep their input order in both
    directions.
    """

    key: SortKey = SortKey.DATE
    ascending: bool = False

    @classmethod
    def resolve(cls, sort_by: Optional[str], direction: Optional[str]) -> "SortPolicy":
        """
        Map a sort key name and direction onto a policy.

        Unknown or missing keys fall back to date; only "asc" (any case) sorts
        ascending, so the overall default is newest date first.
        """
        normalized = (sort_by or "").strip().lower()
        key = _KEY_ALIASES.get(normalized, SortKey.DATE)
        ascending = (direction or "").strip().lower() == "asc"
        return cls(key=key, ascending=ascending)

    def sort(self, records: Iterable[SaleRecord]) -> List[SaleRecord]:
        reverse = not self.ascending
        if self.key is SortKey.QUANTITY:
            return sorted(
                records,
                key=lambda r: r.quantity if r.quantity is not None else 0,
                reverse=reverse,
            )
        if self.key is SortKey.CUSTOMER_NAME:
            return sorted(records, key=lambda r: r.customer_name or "", reverse=reverse)
        return sorted(records, key=cmp_to_key(_compare_dates), reverse=reverse)


__all__ = ["SortKey", "SortPolicy"]
