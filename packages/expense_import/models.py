"""Data models and type aliases for ``expense_import``.

Categories and expenses are plain frozen dataclasses handed to the caller once
per import; nothing here holds state across calls. The oracle wire shapes are
Pydantic models so response validation stays declarative.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Core records
# ---------------------------------------------------------------------------

# One decoded source row keyed by the original header text. Values are raw
# cell values: strings, numbers, or native dates/datetimes from spreadsheets.
type RawRow = Mapping[str, Any]

# Raw token (exact case as supplied) -> existing category id or ``"NEW"``.
type ClassificationMap = Mapping[str, str]

NEW_SENTINEL = "NEW"


@dataclass(frozen=True, slots=True)
class Category:
    """A spending category. Identity is ``id``; names are not unique."""

    id: str
    name: str
    color: str
    is_custom: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color, "isCustom": self.is_custom}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Category:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            color=str(data.get("color") or ""),
            is_custom=bool(data.get("isCustom", data.get("is_custom", False))),
        )


@dataclass(frozen=True, slots=True)
class Expense:
    """A normalized expense. ``amount`` is always strictly positive."""

    id: str
    amount: Decimal
    description: str
    category_id: str
    date: str  # YYYY-MM-DD
    notes: str = ""

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError(f"Expense.amount must be positive, got {self.amount}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": float(self.amount),
            "description": self.description,
            "categoryId": self.category_id,
            "date": self.date,
            "notes": self.notes,
        }


ImportMode = Literal["list", "matrix"]
CategorySource = Literal["explicit_category", "description", "matrix"]
OracleStatus = Literal["ok", "skipped", "failed"]


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of one import call.

    Every ``category_id`` referenced by ``expenses`` is either one of the
    caller's existing categories or listed in ``new_categories``. The trailing
    fields are diagnostics only.
    """

    expenses: list[Expense] = field(default_factory=list)
    new_categories: list[Category] = field(default_factory=list)
    mode: ImportMode | None = None
    category_source: CategorySource | None = None
    oracle_status: OracleStatus = "skipped"
    skipped_rows: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "expenses": [e.to_dict() for e in self.expenses],
            "newCategories": [c.to_dict() for c in self.new_categories],
        }


# ---------------------------------------------------------------------------
# Oracle result type
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OracleOutcome:
    """Best-effort classification result.

    ``status`` separates "nothing to classify" (``skipped``) from "the call
    failed" (``failed``). Callers treat both empty cases the same way.
    """

    mapping: dict[str, str] = field(default_factory=dict)
    status: OracleStatus = "ok"
    reason: str | None = None

    @classmethod
    def skipped(cls, reason: str) -> OracleOutcome:
        return cls(mapping={}, status="skipped", reason=reason)

    @classmethod
    def failed(cls, reason: str) -> OracleOutcome:
        return cls(mapping={}, status="failed", reason=reason)


# ---------------------------------------------------------------------------
# Oracle wire DTOs
# ---------------------------------------------------------------------------


class OracleMappingItem(BaseModel):
    """One ``raw -> category_id`` pair as returned by the model."""

    model_config = ConfigDict(extra="ignore")

    raw: str
    category_id: str

    @field_validator("category_id")
    @classmethod
    def _strip_id(cls, v: str) -> str:
        return v.strip()


class OracleMappingBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mappings: list[OracleMappingItem]


class CategorySuggestion(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    category_id: str | None = None
