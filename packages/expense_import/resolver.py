"""Deterministic resolution of raw category tokens to category ids.

The oracle mapping is only a hint. For each raw token the resolver applies,
first match wins:

1. oracle mapping to an id that exists in the caller's categories;
2. a category already minted for the same lower-cased token in this session;
3. an existing category whose name equals the token (case-insensitive);
4. a freshly minted custom category, recorded in the session map.

Results are memoized by lower-cased token, so repeated tokens always land on
the same category within one import call.
"""

from __future__ import annotations

import random
import uuid
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from dataclasses import dataclass

from .logging_setup import get_logger
from .models import NEW_SENTINEL, Category
from .normalizers import title_case

CATEGORY_PALETTE: tuple[str, ...] = (
    "#EF4444",
    "#F97316",
    "#F59E0B",
    "#84CC16",
    "#10B981",
    "#06B6D4",
    "#3B82F6",
    "#6366F1",
    "#8B5CF6",
    "#D946EF",
    "#F43F5E",
    "#64748B",
)

FALLBACK_CATEGORY_NAME = "Imported Misc"

_logger = get_logger("expense_import.resolver")


@dataclass(frozen=True, slots=True)
class Resolution:
    category_id: str
    is_new: bool
    # Set only when the oracle supplied the mapping.
    original_token: str | None = None


def _new_id() -> str:
    return str(uuid.uuid4())


class CategoryResolver:
    """Resolve raw tokens for one import session.

    Parameters
    ----------
    existing_categories:
        Categories the caller already has. Never mutated.
    mapping:
        Oracle output (raw token -> category id or ``"NEW"``); may be empty.
    session:
        Lower-cased token -> newly created category. Owned by the pipeline
        call and filled in place; a fresh dict is used when omitted.
    rng:
        Random source for palette picks.
    id_factory:
        Produces ids for new categories (``uuid4`` strings by default).
    """

    def __init__(
        self,
        existing_categories: Sequence[Category],
        mapping: Mapping[str, str] | None = None,
        session: MutableMapping[str, Category] | None = None,
        *,
        rng: random.Random | None = None,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._existing: dict[str, Category] = {}
        for c in existing_categories:
            self._existing.setdefault(c.id, c)
        self._existing_order: list[Category] = list(existing_categories)
        self._mapping: Mapping[str, str] = mapping or {}
        self._session: MutableMapping[str, Category] = session if session is not None else {}
        self._memo: dict[str, Resolution] = {}
        self._rng = rng
        self._id_factory = id_factory

    # ---- lookups ---------------------------------------------------------

    def existing_name(self, category_id: str) -> str | None:
        """Return the name of a pre-existing category, or ``None``."""

        cat = self._existing.get(category_id)
        return cat.name if cat is not None else None

    @property
    def new_categories(self) -> list[Category]:
        return list(self._session.values())

    def _oracle_hint(self, raw_token: str) -> str | None:
        clean = raw_token.strip()
        for key in (raw_token, clean, clean.lower()):
            if key in self._mapping:
                return self._mapping[key]
        return None

    def _match_by_name(self, lower: str) -> Category | None:
        for c in self._existing_order:
            if c.name.lower() == lower:
                return c
        return None

    def _mint(self, clean: str) -> Category:
        rng = self._rng or random
        return Category(
            id=self._id_factory(),
            name=title_case(clean) or FALLBACK_CATEGORY_NAME,
            color=rng.choice(CATEGORY_PALETTE),
            is_custom=True,
        )

    # ---- resolution ------------------------------------------------------

    def resolve(self, raw_token: str) -> Resolution:
        clean = raw_token.strip()
        lower = clean.lower()
        memo = self._memo.get(lower)
        if memo is not None:
            return memo

        result = self._resolve_uncached(raw_token, clean, lower)
        self._memo[lower] = result
        return result

    def _resolve_uncached(self, raw_token: str, clean: str, lower: str) -> Resolution:
        hinted = self._oracle_hint(raw_token)
        if hinted and hinted != NEW_SENTINEL:
            if hinted in self._existing:
                return Resolution(category_id=hinted, is_new=False, original_token=clean)
            _logger.debug("resolver:unknown_oracle_id token=%r id=%r", clean, hinted)

        created = self._session.get(lower)
        if created is not None:
            return Resolution(category_id=created.id, is_new=True)

        named = self._match_by_name(lower)
        if named is not None:
            return Resolution(category_id=named.id, is_new=False)

        cat = self._mint(clean)
        self._session[lower] = cat
        _logger.debug("resolver:new_category token=%r name=%r id=%s", clean, cat.name, cat.id)
        return Resolution(category_id=cat.id, is_new=True)
