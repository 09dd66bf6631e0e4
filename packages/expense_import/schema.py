"""Schema inference and category-signal extraction for unknown sheets.

Two shapes are recognized:

- **list**: one row per transaction with a single amount column.
- **matrix**: one row per date with one amount column per category.

For list sheets the detector also decides where the category signal comes
from. Bank exports often carry a "category" column that is really payment
rail metadata (``UPI``, ``Debit``, ``NEFT``); such columns are rejected in
favor of the free-text description.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from .headers import CATEGORY_ALIASES, DESCRIPTION_ALIASES, HeaderIndex, is_populated
from .models import CategorySource, ImportMode, RawRow

DATE_HEADER_RE = re.compile(r"(date|dt|when|day)", re.IGNORECASE)
AMOUNT_HEADER_RE = re.compile(r"(amount|amt|price|cost|debit|spending|value)", re.IGNORECASE)

# Matrix headers that never carry a category (exact, lower-cased).
MATRIX_IGNORED_HEADERS: frozenset[str] = frozenset(
    {"total", "final", "subtotal", "sum", "notes", "comments", "description"}
)

# Category values that describe the payment channel rather than the spend.
GENERIC_CATEGORY_TERMS: frozenset[str] = frozenset(
    {
        "debit",
        "credit",
        "dr",
        "cr",
        "withdrawal",
        "deposit",
        "transfer",
        "upi",
        "pos",
        "atm",
        "card",
        "imps",
        "neft",
        "rtgs",
        "mbk",
        "mobile",
        "net",
        "banking",
        "txn",
        "transaction",
        "expense",
        "payment",
    }
)

# Quality thresholds for an explicit category column. Both are checked
# independently; either one rejects the column.
GENERIC_RATIO_LIMIT = 0.5
MIN_DISTINCT_CATEGORIES = 3
MANY_ROWS = 5

MIN_TOKEN_LENGTH = 2


@dataclass(frozen=True, slots=True)
class SchemaDecision:
    mode: ImportMode
    category_source: CategorySource
    date_header: str | None = None
    amount_header: str | None = None
    # List mode only: the one header matched as the explicit category column.
    category_header: str | None = None
    # Matrix mode only: original header keys whose columns hold amounts.
    category_headers: tuple[str, ...] = ()


def distinct_values(
    rows: Sequence[RawRow], index: HeaderIndex, aliases: Sequence[str]
) -> list[str]:
    """Distinct non-empty trimmed cell values in first-seen order."""

    seen: dict[str, None] = {}
    for row in rows:
        text = index.first_populated_text(row, aliases)
        if text:
            seen.setdefault(text, None)
    return list(seen)


def column_values(rows: Sequence[RawRow], header: str | None) -> list[str]:
    """Distinct non-empty trimmed values of one column in first-seen order."""

    if header is None:
        return []
    seen: dict[str, None] = {}
    for row in rows:
        value = row.get(header)
        if is_populated(value):
            text = str(value).strip()
            seen.setdefault(text, None)
    return list(seen)


def is_weak_category_column(values: Sequence[str], row_count: int) -> bool:
    """Return True when a category column is too generic to be useful.

    ``values`` are the column's distinct non-empty values. An absent column
    (no values) is weak by definition.
    """

    if not values:
        return True
    generic = sum(1 for v in values if v.lower() in GENERIC_CATEGORY_TERMS)
    if generic / len(values) > GENERIC_RATIO_LIMIT:
        return True
    return len(values) < MIN_DISTINCT_CATEGORIES and row_count > MANY_ROWS


def _matrix_category_headers(index: HeaderIndex, date_header: str) -> tuple[str, ...]:
    date_lower = date_header.strip().lower()
    out: list[str] = []
    for h in index.headers:
        lower = h.strip().lower()
        if not lower or lower == date_lower:
            continue
        if lower in MATRIX_IGNORED_HEADERS or "total" in lower:
            continue
        if len(h.strip()) < MIN_TOKEN_LENGTH:
            continue
        out.append(h)
    return tuple(out)


def detect_schema(headers: Sequence[str], rows: Sequence[RawRow]) -> SchemaDecision:
    """Decide list vs matrix layout and the category-signal source.

    Matrix mode requires a date header, no amount header, and more than two
    headers in total. Everything else is treated as a list.
    """

    index = HeaderIndex(headers)
    date_header = index.match(DATE_HEADER_RE)
    amount_header = index.match(AMOUNT_HEADER_RE)

    if date_header is not None and amount_header is None and len(index) > 2:
        return SchemaDecision(
            mode="matrix",
            category_source="matrix",
            date_header=date_header,
            category_headers=_matrix_category_headers(index, date_header),
        )

    category_header = index.find_first(CATEGORY_ALIASES)
    category_values = column_values(rows, category_header)
    source: CategorySource = (
        "description"
        if is_weak_category_column(category_values, len(rows))
        else "explicit_category"
    )
    return SchemaDecision(
        mode="list",
        category_source=source,
        date_header=date_header,
        amount_header=amount_header,
        category_header=category_header,
    )


def extract_category_tokens(
    decision: SchemaDecision, headers: Sequence[str], rows: Sequence[RawRow]
) -> list[str]:
    """Distinct raw category tokens (trimmed, longer than one char) to classify."""

    if decision.mode == "matrix":
        candidates = [h.strip() for h in decision.category_headers]
    elif decision.category_source == "explicit_category":
        candidates = column_values(rows, decision.category_header)
    else:
        candidates = distinct_values(rows, HeaderIndex(headers), DESCRIPTION_ALIASES)
    return [t for t in dict.fromkeys(candidates) if len(t) >= MIN_TOKEN_LENGTH]
