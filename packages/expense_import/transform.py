"""Row → expense conversion for list and matrix sheets.

Row-level problems never raise: rows without a usable amount are dropped,
missing dates fall back to today, missing descriptions to a placeholder.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import date

from .headers import (
    AMOUNT_ALIASES,
    DATE_ALIASES,
    DESCRIPTION_ALIASES,
    NOTES_ALIASES,
    HeaderIndex,
    is_populated,
)
from .models import Expense, RawRow
from .normalizers import parse_amount, parse_date, title_case
from .resolver import CategoryResolver
from .schema import SchemaDecision

DEFAULT_DESCRIPTION = "Imported Expense"
FALLBACK_TOKEN = "Others"
MATRIX_NOTES = "Imported via Matrix"

# Date cells containing these markers are summary rows in matrix sheets.
_SUMMARY_MARKERS: tuple[str, ...] = ("total", "final")


def _new_id() -> str:
    return str(uuid.uuid4())


class RowTransformer:
    """Convert decoded rows into :class:`Expense` records.

    One instance serves one import call; it shares the call's resolver so
    category tokens resolve consistently across rows.
    """

    def __init__(
        self,
        decision: SchemaDecision,
        index: HeaderIndex,
        resolver: CategoryResolver,
        *,
        today: date | None = None,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._decision = decision
        self._index = index
        self._resolver = resolver
        self._today = today
        self._id_factory = id_factory

    def transform(self, row: RawRow) -> list[Expense]:
        """Return zero or more expenses for ``row``."""

        if self._decision.mode == "matrix":
            return self._matrix_row(row)
        expense = self._list_row(row)
        return [expense] if expense is not None else []

    # ---- list mode -------------------------------------------------------

    def _list_row(self, row: RawRow) -> Expense | None:
        idx = self._index
        description = idx.first_populated_text(row, DESCRIPTION_ALIASES) or DEFAULT_DESCRIPTION

        amount = parse_amount(idx.first_populated(row, AMOUNT_ALIASES))
        if amount is None:
            return None
        amount = abs(amount)
        if amount == 0:
            return None

        date_str = parse_date(idx.first_populated(row, DATE_ALIASES), today=self._today)

        explicit = self._decision.category_source == "explicit_category"
        token = self._category_cell(row) if explicit else description

        if token:
            result = self._resolver.resolve(token)
            if explicit and not result.is_new:
                mapped_name = self._resolver.existing_name(result.category_id)
                token_lower = token.lower()
                if (
                    mapped_name is not None
                    and mapped_name.lower() != token_lower
                    and token_lower not in description.lower()
                ):
                    description = f"{description} ({token})"
        else:
            result = self._resolver.resolve(FALLBACK_TOKEN)

        return Expense(
            id=self._id_factory(),
            amount=amount,
            description=description,
            category_id=result.category_id,
            date=date_str,
            notes=idx.first_populated_text(row, NOTES_ALIASES) or "",
        )

    def _category_cell(self, row: RawRow) -> str | None:
        header = self._decision.category_header
        value = row.get(header) if header is not None else None
        if not is_populated(value):
            return None
        return str(value).strip()

    # ---- matrix mode -----------------------------------------------------

    def _is_summary_or_blank(self, date_cell: object) -> bool:
        if not is_populated(date_cell):
            return True
        lowered = str(date_cell).lower()
        return any(marker in lowered for marker in _SUMMARY_MARKERS)

    def _matrix_row(self, row: RawRow) -> list[Expense]:
        date_header = self._decision.date_header
        date_cell = row.get(date_header) if date_header is not None else None
        if self._is_summary_or_blank(date_cell):
            return []
        date_str = parse_date(date_cell, today=self._today)

        out: list[Expense] = []
        for header in self._decision.category_headers:
            amount = parse_amount(row.get(header))
            if amount is None or amount <= 0:
                continue

            token = header.strip()
            result = self._resolver.resolve(token)
            description = f"{title_case(token)} Expense"
            if not result.is_new:
                mapped_name = self._resolver.existing_name(result.category_id)
                if mapped_name is not None and mapped_name.lower() != token.lower():
                    description = f"{mapped_name} Expense ({token})"

            out.append(
                Expense(
                    id=self._id_factory(),
                    amount=amount,
                    description=description,
                    category_id=result.category_id,
                    date=date_str,
                    notes=MATRIX_NOTES,
                )
            )
        return out
