"""Public import API: spreadsheet or decoded rows → expenses + new categories.

Flow for one call:

1. read the file (only step that can raise, via ``UnreadableFileError``);
2. detect list vs matrix layout and the category-signal source;
3. extract distinct raw category tokens;
4. consult the classification oracle once (skipped when there are no tokens);
5. transform every row, sharing one resolver session across the call.

Nothing persists between calls: the session map of newly minted categories
is created here and returned in the result.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Mapping, Sequence
from datetime import date
from os import PathLike

from .config import ORACLE_BATCH_LIMIT
from .headers import HeaderIndex
from .logging_setup import get_logger
from .models import Category, Expense, ImportResult, OracleOutcome, RawRow
from .oracle import OpenAIClassificationOracle
from .reader import read_table
from .resolver import CategoryResolver
from .schema import detect_schema, extract_category_tokens
from .transform import RowTransformer

type Oracle = Callable[[Sequence[str], Sequence[Category]], OracleOutcome | Mapping[str, str]]

_logger = get_logger("expense_import.api")


def _consult_oracle(
    oracle: Oracle, tokens: Sequence[str], categories: Sequence[Category]
) -> OracleOutcome:
    if not tokens:
        return OracleOutcome.skipped("no_tokens")
    try:
        outcome = oracle(list(tokens[:ORACLE_BATCH_LIMIT]), categories)
    except Exception as e:  # noqa: BLE001 - oracle failure degrades to local fallbacks
        _logger.warning("oracle:failed reason=%s", e.__class__.__name__)
        return OracleOutcome.failed(e.__class__.__name__)
    if isinstance(outcome, OracleOutcome):
        return outcome
    if isinstance(outcome, Mapping):
        return OracleOutcome(mapping={str(k): str(v) for k, v in outcome.items()}, status="ok")
    _logger.warning("oracle:failed reason=unexpected_result type=%s", type(outcome).__name__)
    return OracleOutcome.failed("unexpected_result")


def import_rows(
    rows: Sequence[RawRow],
    existing_categories: Sequence[Category],
    *,
    headers: Sequence[str] | None = None,
    oracle: Oracle | None = None,
    rng: random.Random | None = None,
    today: date | None = None,
) -> ImportResult:
    """Convert already-decoded rows into an :class:`ImportResult`.

    Parameters
    ----------
    rows:
        Header-keyed rows. When ``headers`` is omitted, the first row's keys
        define the sheet shape.
    existing_categories:
        Categories the caller already has; never modified.
    oracle:
        Callable ``(tokens, categories)`` returning an :class:`OracleOutcome`
        (or a plain mapping). Defaults to the OpenAI-backed adapter.
    rng, today:
        Injection points for palette picks and the missing-date default.
    """

    rows = list(rows)
    if not rows:
        return ImportResult()

    header_list = list(headers) if headers is not None else list(rows[0].keys())
    existing = list(existing_categories)

    decision = detect_schema(header_list, rows)
    tokens = extract_category_tokens(decision, header_list, rows)
    _logger.info(
        "import:schema mode=%s source=%s rows=%d tokens=%d",
        decision.mode,
        decision.category_source,
        len(rows),
        len(tokens),
    )

    outcome = _consult_oracle(oracle or OpenAIClassificationOracle(), tokens, existing)

    session: dict[str, Category] = {}
    resolver = CategoryResolver(existing, outcome.mapping, session, rng=rng)
    transformer = RowTransformer(decision, HeaderIndex(header_list), resolver, today=today)

    expenses: list[Expense] = []
    skipped = 0
    for row in rows:
        produced = transformer.transform(row)
        if not produced:
            skipped += 1
        expenses.extend(produced)

    _logger.info(
        "import:done expenses=%d new_categories=%d skipped_rows=%d oracle=%s",
        len(expenses),
        len(session),
        skipped,
        outcome.status,
    )
    return ImportResult(
        expenses=expenses,
        new_categories=list(session.values()),
        mode=decision.mode,
        category_source=decision.category_source,
        oracle_status=outcome.status,
        skipped_rows=skipped,
    )


def import_file(
    path: str | PathLike[str],
    existing_categories: Sequence[Category],
    *,
    oracle: Oracle | None = None,
    rng: random.Random | None = None,
    today: date | None = None,
) -> ImportResult:
    """Read ``path`` and import it. Raises ``UnreadableFileError`` only."""

    table = read_table(path)
    return import_rows(
        table.rows,
        existing_categories,
        headers=table.headers,
        oracle=oracle,
        rng=rng,
        today=today,
    )
