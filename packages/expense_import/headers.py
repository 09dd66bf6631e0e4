"""Case-insensitive header lookups over arbitrary spreadsheet rows.

Bank exports name the same column many ways (``Amount``, ``AMT``, ``Debit``
...). Every lookup goes through :class:`HeaderIndex`, which resolves an
ordered tuple of aliases against the actual header set once and then reads
cells by the original header text.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

from .models import RawRow

# Ordered alias tuples: earlier entries win when several are present.
DESCRIPTION_ALIASES: tuple[str, ...] = ("description", "desc", "details", "particulars", "narration")
AMOUNT_ALIASES: tuple[str, ...] = ("amount", "amt", "cost", "price", "debit", "spending", "value")
DATE_ALIASES: tuple[str, ...] = ("date", "dt", "time", "when")
CATEGORY_ALIASES: tuple[str, ...] = ("category", "cat", "type", "expense type")
NOTES_ALIASES: tuple[str, ...] = ("notes", "remarks", "comment")


def is_populated(value: Any) -> bool:
    """Return True for any value other than ``None`` or a blank string."""

    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


class HeaderIndex:
    """Lower-cased header -> original header, first occurrence wins."""

    __slots__ = ("_headers", "_by_lower")

    def __init__(self, headers: Iterable[str]) -> None:
        self._headers: list[str] = [h for h in headers if isinstance(h, str)]
        self._by_lower: dict[str, str] = {}
        for h in self._headers:
            self._by_lower.setdefault(h.strip().lower(), h)

    @classmethod
    def from_rows(cls, rows: Sequence[RawRow]) -> HeaderIndex:
        return cls(rows[0].keys() if rows else ())

    @property
    def headers(self) -> list[str]:
        return list(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def lookup(self, alias: str) -> str | None:
        """Return the original header text for ``alias`` (any case), if present."""

        return self._by_lower.get(alias.strip().lower())

    def find_first(self, aliases: Sequence[str]) -> str | None:
        """Return the first alias present as a header, regardless of cell values."""

        for alias in aliases:
            header = self.lookup(alias)
            if header is not None:
                return header
        return None

    def match(self, pattern: re.Pattern[str]) -> str | None:
        """Return the first header (in sheet order) that fully matches ``pattern``."""

        for h in self._headers:
            if pattern.fullmatch(h.strip()):
                return h
        return None

    def first_populated(self, row: RawRow, aliases: Sequence[str]) -> Any | None:
        """Return the cell of the first alias header populated in ``row``."""

        for alias in aliases:
            header = self.lookup(alias)
            if header is None:
                continue
            value = row.get(header)
            if is_populated(value):
                return value
        return None

    def first_populated_text(self, row: RawRow, aliases: Sequence[str]) -> str | None:
        value = self.first_populated(row, aliases)
        if value is None:
            return None
        text = str(value).strip()
        return text or None
