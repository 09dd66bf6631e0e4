"""Cell-level normalization: amounts, dates, and display names.

Spreadsheet cells arrive as strings, numbers, or native dates depending on the
reader and the sheet. These helpers never raise for bad cell content; callers
get ``None`` (amounts) or a default (dates) and decide what to do.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

_CURRENCY_PREFIXES: tuple[str, ...] = ("$", "₹", "€", "£", "¥", "Rs.", "Rs", "INR", "USD")


def to_decimal(raw: str) -> Decimal:
    """Parse a free-form amount string, raising ``ValueError`` when invalid.

    Accepts a leading sign, a currency marker, surrounding parentheses for
    negatives, and comma thousands separators in any combination, e.g.
    ``"-₹(1,234.50)"``.
    """

    s = raw.strip()
    if not s:
        raise ValueError("amount is empty")
    negative = False

    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        for prefix in _CURRENCY_PREFIXES:
            if s.upper().startswith(prefix.upper()):
                s = s[len(prefix) :].lstrip()
                changed = True
                break
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    s = s.replace(",", "").replace(" ", "")
    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    if not d.is_finite():
        raise ValueError(f"invalid amount: {raw!r}")
    return -abs(d) if negative else d


def parse_amount(value: Any) -> Decimal | None:
    """Return the cell as a ``Decimal`` or ``None`` when absent/non-numeric."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        # str() keeps the shortest repr (500.1 -> "500.1", not binary noise)
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return to_decimal(value)
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

# Day-first numeric dates: D-M-YYYY / DD/MM/YYYY.
_DAY_FIRST_RE = re.compile(r"(\d{1,2})[-/](\d{1,2})[-/](\d{4})")


def _to_local_date(value: datetime) -> date:
    if value.tzinfo is not None:
        return value.astimezone().date()
    return value.date()


def parse_date(value: Any, *, today: date | None = None) -> str:
    """Normalize a date cell to ``YYYY-MM-DD``.

    Order of attempts:

    1. native ``datetime``/``date`` values (converted to the local date);
    2. ``D[-/]M[-/]YYYY`` strings, always read day-first;
    3. a generic parse via ``dateutil`` (month-first for ambiguous input);
    4. ``today`` (defaults to the current date) when nothing else works.
    """

    fallback = (today or date.today()).isoformat()

    if isinstance(value, datetime):
        return _to_local_date(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return fallback

    s = value.strip()
    if not s:
        return fallback

    m = _DAY_FIRST_RE.fullmatch(s)
    if m:
        day, month, year = (int(g) for g in m.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            pass

    try:
        parsed = date_parser.parse(s)
    except (ValueError, OverflowError):
        return fallback
    return _to_local_date(parsed).isoformat()


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

_WORD_RE = re.compile(r"\w\S*")


def title_case(text: str) -> str:
    """Capitalize the first letter of each word and lower-case the rest."""

    return _WORD_RE.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text.strip())
