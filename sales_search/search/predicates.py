"""
Predicate tree for sale record searches.

`build_predicate` turns a SearchCriteria into a conjunctive tree of AND/OR/IN/
BETWEEN/substring nodes. The tree is the single definition of which records
match a query:

- the store backend compiles it to a SQL WHERE clause
  (see `sales_search.infrastructure.sql_compiler`);
- the scan backend evaluates it record by record via `matches`.

Evaluation follows SQL semantics for absent values: a field that is None never
satisfies a leaf node. The tree has no negation, so two-valued evaluation
gives exactly the rows a SQL engine would return.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from sales_search.domain.models import SaleRecord, SearchCriteria


@dataclass(frozen=True)
class AlwaysTrue:
    def matches(self, record: SaleRecord) -> bool:
        return True


@dataclass(frozen=True)
class AlwaysFalse:
    def matches(self, record: SaleRecord) -> bool:
        return False


@dataclass(frozen=True)
class In:
    """Field value is one of `values` (exact, case-sensitive)."""

    field: str
    values: Tuple[Any, ...]

    def matches(self, record: SaleRecord) -> bool:
        value = getattr(record, self.field)
        return value is not None and value in self.values


@dataclass(frozen=True)
class Between:
    """Inclusive range on an ordered field."""

    field: str
    low: Any
    high: Any

    def matches(self, record: SaleRecord) -> bool:
        value = getattr(record, self.field)
        return value is not None and self.low <= value <= self.high


@dataclass(frozen=True)
class Compare:
    """Single-bound comparison; `op` is "ge" or "le"."""

    field: str
    op: str
    value: Any

    def matches(self, record: SaleRecord) -> bool:
        actual = getattr(record, self.field)
        if actual is None:
            return False
        if self.op == "ge":
            return actual >= self.value
        if self.op == "le":
            return actual <= self.value
        raise ValueError(f"Unsupported comparison operator '{self.op}'")


@dataclass(frozen=True)
class Contains:
    """Substring containment, optionally case-insensitive."""

    field: str
    needle: str
    case_insensitive: bool = False

    def matches(self, record: SaleRecord) -> bool:
        value = getattr(record, self.field)
        if value is None:
            return False
        if self.case_insensitive:
            return self.needle.lower() in value.lower()
        return self.needle in value


@dataclass(frozen=True)
class And:
    children: Tuple["Predicate", ...]

    def matches(self, record: SaleRecord) -> bool:
        return all(child.matches(record) for child in self.children)


@dataclass(frozen=True)
class Or:
    children: Tuple["Predicate", ...]

    def matches(self, record: SaleRecord) -> bool:
        return any(child.matches(record) for child in self.children)


Predicate = Union[AlwaysTrue, AlwaysFalse, In, Between, Compare, Contains, And, Or]


def _range(field: str, low: Optional[Any], high: Optional[Any]) -> Optional[Predicate]:
    """
    Tri-state range policy shared by age and date bounds.

    Both bounds with low > high is a contradiction and yields AlwaysFalse.
    """
    if low is not None and high is not None:
        if low > high:
            return AlwaysFalse()
        return Between(field, low, high)
    if low is not None:
        return Compare(field, "ge", low)
    if high is not None:
        return Compare(field, "le", high)
    return None


def build_predicate(criteria: SearchCriteria) -> Predicate:
    """
    Translate criteria into a predicate tree.

    Pure function of its input. Returns AlwaysTrue when no constraint applies,
    otherwise an And over the included conjuncts in a fixed order: text query,
    region, gender, category, payment method, age, tags, date.
    """
    conjuncts: List[Predicate] = []

    if criteria.query:
        conjuncts.append(
            Or(
                (
                    Contains("customer_name", criteria.query, case_insensitive=True),
                    Contains("phone_number", criteria.query),
                )
            )
        )

    for field, values in (
        ("customer_region", criteria.customer_regions),
        ("gender", criteria.genders),
        ("product_category", criteria.product_categories),
        ("payment_method", criteria.payment_methods),
    ):
        if values:
            conjuncts.append(In(field, tuple(values)))

    age = _range("age", criteria.min_age, criteria.max_age)
    if age is not None:
        conjuncts.append(age)

    tag_predicates = tuple(
        Contains("tags", tag, case_insensitive=True)
        for tag in criteria.tags
        if tag and tag.strip()
    )
    if tag_predicates:
        conjuncts.append(Or(tag_predicates))

    dates = _range("date", criteria.start_date, criteria.end_date)
    if dates is not None:
        conjuncts.append(dates)

    if not conjuncts:
        return AlwaysTrue()
    return And(tuple(conjuncts))


__all__ = [
    "Predicate",
    "AlwaysTrue",
    "AlwaysFalse",
    "In",
    "Between",
    "Compare",
    "Contains",
    "And",
    "Or",
    "build_predicate",
]
