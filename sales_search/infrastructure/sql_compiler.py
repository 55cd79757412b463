"""
Render predicate trees and sort policies as PostgreSQL fragments.

`compile_predicate` produces a parameterized WHERE clause plus its parameter
list; `compile_order` produces the ORDER BY clause. Both are pure and only
reference columns of the `sale_records` table.

Substring tests use `strpos` rather than LIKE so caller text containing `%`
or `_` is matched literally.
"""

from __future__ import annotations

from typing import Any, List, Tuple

from psycopg import sql

from sales_search.domain.models import SaleRecord
from sales_search.search.predicates import (
    AlwaysFalse,
    AlwaysTrue,
    And,
    Between,
    Compare,
    Contains,
    In,
    Or,
    Predicate,
)
from sales_search.search.sorting import SortKey, SortPolicy

TABLE = "sale_records"
COLUMNS: Tuple[str, ...] = tuple(SaleRecord.model_fields)

_COMPARISONS = {"ge": ">=", "le": "<="}


def _column(field: str) -> sql.Identifier:
    if field not in COLUMNS:
        raise ValueError(f"Unknown column '{field}'")
    return sql.Identifier(field)


def _compile(node: Predicate, params: List[Any]) -> sql.Composable:
    if isinstance(node, AlwaysTrue):
        return sql.SQL("TRUE")
    if isinstance(node, AlwaysFalse):
        return sql.SQL("FALSE")
    if isinstance(node, In):
        params.append(list(node.values))
        return sql.SQL("{} = ANY({})").format(_column(node.field), sql.Placeholder())
    if isinstance(node, Between):
        params.extend([node.low, node.high])
        return sql.SQL("{} BETWEEN {} AND {}").format(
            _column(node.field), sql.Placeholder(), sql.Placeholder()
        )
    if isinstance(node, Compare):
        if node.op not in _COMPARISONS:
            raise ValueError(f"Unsupported comparison operator '{node.op}'")
        params.append(node.value)
        return sql.SQL("{} {} {}").format(
            _column(node.field), sql.SQL(_COMPARISONS[node.op]), sql.Placeholder()
        )
    if isinstance(node, Contains):
        params.append(node.needle)
        template = (
            "strpos(lower({}), lower({})) > 0" if node.case_insensitive else "strpos({}, {}) > 0"
        )
        return sql.SQL(template).format(_column(node.field), sql.Placeholder())
    if isinstance(node, (And, Or)):
        if not node.children:
            return sql.SQL("TRUE" if isinstance(node, And) else "FALSE")
        joiner = sql.SQL(" AND ") if isinstance(node, And) else sql.SQL(" OR ")
        parts = [_compile(child, params) for child in node.children]
        return sql.SQL("({})").format(joiner.join(parts))
    raise TypeError(f"Unsupported predicate node {type(node).__name__}")


def compile_predicate(node: Predicate) -> Tuple[sql.Composable, List[Any]]:
    """
    Compile a predicate tree into a WHERE-clause fragment and its parameters.

    Returns
    -------
    tuple[sql.Composable, list]
        The boolean SQL expression (without the WHERE keyword) and the
        positional parameters in placeholder order.
    """
    params: List[Any] = []
    clause = _compile(node, params)
    return clause, params


def compile_order(policy: SortPolicy) -> sql.Composable:
    """
    Render a sort policy as an ORDER BY expression list.

    Absent quantities sort as 0 and absent names as the empty string; names
    compare by code point (`COLLATE "C"`) to match in-memory string ordering.
    Rows with equal keys fall back to `id ASC`, i.e. source order.
    """
    direction = sql.SQL("ASC" if policy.ascending else "DESC")
    if policy.key is SortKey.QUANTITY:
        key = sql.SQL("COALESCE({}, 0) {}").format(sql.Identifier("quantity"), direction)
    elif policy.key is SortKey.CUSTOMER_NAME:
        key = sql.SQL("COALESCE({}, '') COLLATE \"C\" {}").format(
            sql.Identifier("customer_name"), direction
        )
    else:
        key = sql.SQL("{} {} NULLS LAST").format(sql.Identifier("date"), direction)
    return sql.SQL("{}, {} ASC").format(key, sql.Identifier("id"))


__all__ = ["COLUMNS", "TABLE", "compile_order", "compile_predicate"]
