"""Classification oracle backed by the OpenAI Responses API.

Public API:
    - :class:`OpenAIClassificationOracle` (callable adapter used by the pipeline)
    - :func:`classify_tokens`
    - :func:`suggest_category`

The adapter never raises. Missing credentials, HTTP errors, timeouts and
malformed output all become ``OracleOutcome(status="failed")`` with an empty
mapping; the resolver then falls back to local heuristics. No client is
created and no environment is read at import time.
"""

from __future__ import annotations

import json
import random
import time
from collections.abc import Mapping, Sequence
from typing import Any

from openai import OpenAI
from pydantic import ValidationError

from . import prompting
from .config import ORACLE_BATCH_LIMIT, Settings, load_settings
from .logging_setup import get_logger
from .models import Category, CategorySuggestion, OracleMappingBody, OracleOutcome

# ---- Tunables (private) ------------------------------------------------------

_MAX_ATTEMPTS: int = 3
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20

_logger = get_logger("expense_import.oracle")


# ---- Internal helpers --------------------------------------------------------


def _create_client(settings: Settings) -> OpenAI:
    # Retries are handled here so that only 429/5xx are retried.
    return OpenAI(api_key=settings.api_key, timeout=settings.oracle_timeout_sec, max_retries=0)


def _extract_response_json(resp: Any) -> Any:
    """Decode the JSON payload from a Responses SDK result.

    Prefers ``resp.output_text`` and falls back to
    ``resp.output[0].content[0].text``. Raises ``ValueError`` when no text is
    found or it is not valid JSON.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        try:
            first = resp.output[0] if getattr(resp, "output", None) else None
            content = getattr(first, "content", None)
            if content:
                txt_obj = getattr(content[0], "text", None)
                if isinstance(txt_obj, str):
                    text = txt_obj
                else:
                    maybe_val = getattr(txt_obj, "value", None)
                    if isinstance(maybe_val, str):
                        text = maybe_val
        except (AttributeError, IndexError, TypeError):
            text = None
    if not text or not isinstance(text, str):
        raise ValueError("Unexpected Responses API shape; unable to locate text output")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError("Model output was not valid JSON") from e


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for HTTP 429 and 5xx errors."""

    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    base = _BACKOFF_SCHEDULE_SEC[min(attempt_no - 1, len(_BACKOFF_SCHEDULE_SEC) - 1)]
    jitter = base * _JITTER_PCT
    time.sleep(max(0.0, base + random.uniform(-jitter, jitter)))


def _create_with_retries(client: OpenAI, *, label: str, **request: Any) -> Any:
    """Call ``client.responses.create`` retrying 429/5xx; re-raise the rest."""

    attempt = 1
    while True:
        t0 = time.perf_counter()
        try:
            resp = client.responses.create(**request)
            _logger.info(
                "%s:done latency_ms=%.2f attempt=%d",
                label,
                (time.perf_counter() - t0) * 1000.0,
                attempt,
            )
            return resp
        except Exception as e:
            if attempt >= _MAX_ATTEMPTS or not _is_retryable(e):
                raise
            _logger.warning(
                "%s:retry latency_ms=%.2f error=%s attempt=%d",
                label,
                (time.perf_counter() - t0) * 1000.0,
                e.__class__.__name__,
                attempt,
            )
            _sleep_backoff(attempt)
            attempt += 1


def parse_mapping_body(body: Any) -> dict[str, str]:
    """Validate the oracle JSON and flatten it to ``{raw: category_id}``.

    Blank ``raw`` values are dropped; the first entry wins for duplicates.
    Raises ``ValueError`` (or pydantic's ``ValidationError``) on bad shape.
    """

    if not isinstance(body, Mapping):
        raise ValueError("Invalid response: expected a JSON object at top level")
    parsed = OracleMappingBody.model_validate(body)
    out: dict[str, str] = {}
    for item in parsed.mappings:
        if not item.raw.strip() or not item.category_id:
            continue
        out.setdefault(item.raw, item.category_id)
    return out


# ---- Public adapter ----------------------------------------------------------


class OpenAIClassificationOracle:
    """Callable ``(tokens, categories) -> OracleOutcome`` over OpenAI.

    Settings are read lazily from the environment on each call unless an
    explicit :class:`Settings` is supplied.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings

    def __call__(self, tokens: Sequence[str], categories: Sequence[Category]) -> OracleOutcome:
        return classify_tokens(tokens, categories, settings=self._settings)


def classify_tokens(
    tokens: Sequence[str],
    categories: Sequence[Category],
    *,
    settings: Settings | None = None,
) -> OracleOutcome:
    """Ask the oracle to map raw tokens to existing category ids or ``"NEW"``.

    At most ``ORACLE_BATCH_LIMIT`` tokens are sent; the rest are silently
    left unmapped. Values are returned as the model produced them; checking
    them against ``categories`` is the resolver's job.
    """

    if not tokens:
        return OracleOutcome.skipped("no_tokens")
    cfg = settings or load_settings()
    if cfg.oracle_disabled:
        return OracleOutcome.skipped("disabled")
    if not cfg.api_key:
        _logger.warning("oracle:failed reason=missing_api_key")
        return OracleOutcome.failed("missing_api_key")

    batch = list(tokens[:ORACLE_BATCH_LIMIT])
    if len(tokens) > ORACLE_BATCH_LIMIT:
        _logger.debug("oracle:truncated sent=%d dropped=%d", len(batch), len(tokens) - len(batch))

    _logger.info("oracle:request tokens=%d categories=%d", len(batch), len(categories))
    try:
        client = _create_client(cfg)
        resp = _create_with_retries(
            client,
            label="oracle",
            model=cfg.model,
            instructions=prompting.build_system_instructions(),
            input=prompting.build_user_content(batch, categories),
            text={"format": prompting.build_response_format(categories)},
        )
        mapping = parse_mapping_body(_extract_response_json(resp))
    except (ValueError, ValidationError) as e:
        _logger.warning("oracle:failed reason=malformed_response error=%s", e)
        return OracleOutcome.failed("malformed_response")
    except Exception as e:  # noqa: BLE001 - oracle failures are recoverable by contract
        _logger.warning("oracle:failed reason=%s", e.__class__.__name__)
        return OracleOutcome.failed(e.__class__.__name__)

    _logger.info("oracle:mapped tokens=%d mapped=%d", len(batch), len(mapping))
    return OracleOutcome(mapping=mapping, status="ok")


def suggest_category(
    description: str,
    categories: Sequence[Category],
    *,
    settings: Settings | None = None,
) -> str | None:
    """Suggest an existing category id for a single free-text description.

    Returns ``None`` on any failure or when the suggestion is not one of
    ``categories``.
    """

    if not description or not description.strip() or not categories:
        return None
    cfg = settings or load_settings()
    if cfg.oracle_disabled or not cfg.api_key:
        return None

    try:
        client = _create_client(cfg)
        resp = _create_with_retries(
            client,
            label="suggest",
            model=cfg.model,
            instructions=prompting.build_system_instructions(),
            input=prompting.build_suggestion_content(description.strip(), categories),
            text={"format": prompting.build_suggestion_format(categories)},
        )
        body = _extract_response_json(resp)
        suggestion = CategorySuggestion.model_validate(body)
    except Exception as e:  # noqa: BLE001 - suggestion is best-effort
        _logger.warning("suggest:failed error=%s", e.__class__.__name__)
        return None

    known = {c.id for c in categories}
    if suggestion.category_id in known:
        return suggestion.category_id
    return None
