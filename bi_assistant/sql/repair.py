"""
Deterministic rewrites for the execution failures we know how to fix.

Models often select product or customer columns straight from `sales`. When
the database reports the missing column, the statement is rewritten once to
join the owning table and run again.
"""
from __future__ import annotations

import re
from typing import Callable, Dict, Optional, Tuple

from ..errors import FailureReason

PRODUCT_COLUMN_ERRORS = (
    'column "product_name" does not exist',
    'column "category" does not exist',
)
CUSTOMER_COLUMN_ERRORS = ('column "customer_name" does not exist',)

CLAUSE_WORDS = (
    "WHERE|GROUP|ORDER|HAVING|LIMIT|OFFSET|FETCH|WINDOW|UNION|INTERSECT|EXCEPT|"
    "JOIN|INNER|LEFT|RIGHT|FULL|CROSS|NATURAL|ON|USING"
)
# group 1 is the alias given to sales, if any
FROM_SALES_RE = re.compile(
    rf"\bFROM\s+sales\b(?:\s+(?:AS\s+)?(?!(?:{CLAUSE_WORDS})\b)([A-Za-z_]\w*))?",
    re.IGNORECASE,
)
FROM_PRODUCTS_RE = re.compile(r"\bFROM\s+products\b", re.IGNORECASE)
FROM_CUSTOMERS_RE = re.compile(r"\bFROM\s+customers\b", re.IGNORECASE)
JOIN_RE = re.compile(r"\bJOIN\b", re.IGNORECASE)
STRING_LITERAL_RE = re.compile(r"('(?:[^']|'')*')")
SALES_PREFIX_RE = re.compile(r"\bsales\.", re.IGNORECASE)

PRODUCT_JOIN = "FROM products p JOIN sales s ON p.id = s.product_id"
CUSTOMER_JOIN = "FROM customers c JOIN sales s ON c.id = s.customer_id"


def _bare_column_re(column: str) -> "re.Pattern[str]":
    # not qualified ("x."), not an output alias ("AS x"), not part of a longer name
    return re.compile(rf"(?<![\w.])(?<!AS ){column}\b", re.IGNORECASE)


PRODUCT_NAME_RE = _bare_column_re("product_name")
CATEGORY_RE = _bare_column_re("category")
CUSTOMER_NAME_RE = _bare_column_re("customer_name")
PRODUCT_COLUMN_REF_RE = re.compile(r"\b(product_name|category)\b", re.IGNORECASE)
CUSTOMER_COLUMN_REF_RE = re.compile(r"\bcustomer_name\b", re.IGNORECASE)


def classify_failure(db_message: Optional[str]) -> FailureReason:
    """Map a driver error message onto a failure class, first match wins."""
    msg = db_message or ""
    if any(p in msg for p in PRODUCT_COLUMN_ERRORS):
        return FailureReason.MISSING_PRODUCT_JOIN
    if any(p in msg for p in CUSTOMER_COLUMN_ERRORS):
        return FailureReason.MISSING_CUSTOMER_JOIN
    if "relation" in msg and "does not exist" in msg:
        return FailureReason.UNKNOWN_RELATION
    if "syntax error" in msg:
        return FailureReason.SYNTAX_ERROR
    if "column" in msg and "must appear" in msg:
        return FailureReason.GROUPING_ERROR
    return FailureReason.DATABASE_ERROR


def _joinable_from_sales(sql: str, owner_re: "re.Pattern[str]") -> bool:
    return (
        not JOIN_RE.search(sql)
        and not owner_re.search(sql)
        and FROM_SALES_RE.search(sql) is not None
    )


def _outside_literals(sql: str, rewrite: Callable[[str], str]) -> str:
    parts = STRING_LITERAL_RE.split(sql)
    # odd indexes hold the quoted literals
    return "".join(part if i % 2 else rewrite(part) for i, part in enumerate(parts))


def _inject_join(sql: str, join: str, *column_rewrites: Tuple["re.Pattern[str]", str]) -> str:
    match = FROM_SALES_RE.search(sql)
    alias = match.group(1)
    alias_re = re.compile(rf"(?<![\w.]){re.escape(alias)}\.", re.IGNORECASE) if alias else None

    def requalify(part: str) -> str:
        if alias_re is not None:
            part = alias_re.sub("s.", part)
        part = SALES_PREFIX_RE.sub("s.", part)
        for pattern, replacement in column_rewrites:
            part = pattern.sub(replacement, part)
        return part

    head, tail = sql[: match.start()], sql[match.end():]
    return _outside_literals(head, requalify) + join + _outside_literals(tail, requalify)


def repair_product_join(sql: str) -> str:
    """Join `products` into a sales-only query; returns `sql` unchanged when the shape doesn't fit."""
    if not _joinable_from_sales(sql, FROM_PRODUCTS_RE):
        return sql
    if not PRODUCT_COLUMN_REF_RE.search(STRING_LITERAL_RE.sub("''", sql)):
        return sql
    return _inject_join(
        sql,
        PRODUCT_JOIN,
        (PRODUCT_NAME_RE, "p.product_name"),
        (CATEGORY_RE, "p.category"),
    )


def repair_customer_join(sql: str) -> str:
    """Join `customers` into a sales-only query; returns `sql` unchanged when the shape doesn't fit."""
    if not _joinable_from_sales(sql, FROM_CUSTOMERS_RE):
        return sql
    if not CUSTOMER_COLUMN_REF_RE.search(STRING_LITERAL_RE.sub("''", sql)):
        return sql
    return _inject_join(sql, CUSTOMER_JOIN, (CUSTOMER_NAME_RE, "c.customer_name"))



REPAIRS: Dict[FailureReason, Callable[[str], str]] = {
    FailureReason.MISSING_PRODUCT_JOIN: repair_product_join,
    FailureReason.MISSING_CUSTOMER_JOIN: repair_customer_join,
}


def failure_message(reason: FailureReason, sql: str, db_message: str) -> str:
    if reason is FailureReason.MISSING_PRODUCT_JOIN:
        return (
            "Column not found in sales table. Product information (product_name, category) "
            f"requires JOIN with products table. Query attempted: {sql}"
        )
    if reason is FailureReason.MISSING_CUSTOMER_JOIN:
        return (
            "Column 'customer_name' not found in sales table. Customer information requires "
            f"JOIN with customers table. Query attempted: {sql}"
        )
    if reason is FailureReason.UNKNOWN_RELATION:
        return "Referenced table or column does not exist in the database"
    if reason is FailureReason.SYNTAX_ERROR:
        return f"Generated SQL query has syntax errors: {sql}"
    if reason is FailureReason.GROUPING_ERROR:
        return "Query grouping error - all selected columns must be in GROUP BY clause"
    return f"SQL execution failed: {db_message}"
