"""Environment-driven settings for the import pipeline.

Settings are read on demand (never at import time) so tests and host
applications can adjust the environment between calls. Malformed values fall
back to defaults rather than raising.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_ORACLE_TIMEOUT_SEC = 30.0

# Upper bound on raw tokens sent to the oracle in one request.
ORACLE_BATCH_LIMIT = 1000

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class Settings:
    api_key: str | None
    model: str = DEFAULT_MODEL
    oracle_timeout_sec: float = DEFAULT_ORACLE_TIMEOUT_SEC
    oracle_disabled: bool = False


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_flag(name: str) -> bool:
    raw = os.getenv(name)
    return bool(raw) and raw.strip().lower() in _TRUTHY


def load_settings() -> Settings:
    """Snapshot the relevant environment variables.

    - ``OPENAI_API_KEY``: required for oracle calls.
    - ``EXPENSE_IMPORT_MODEL``: Responses API model name.
    - ``EXPENSE_IMPORT_ORACLE_TIMEOUT``: per-request timeout in seconds.
    - ``EXPENSE_IMPORT_ORACLE_DISABLED``: truthy value skips the oracle.
    """

    api_key = (os.getenv("OPENAI_API_KEY") or "").strip() or None
    model = (os.getenv("EXPENSE_IMPORT_MODEL") or "").strip() or DEFAULT_MODEL
    return Settings(
        api_key=api_key,
        model=model,
        oracle_timeout_sec=_env_float("EXPENSE_IMPORT_ORACLE_TIMEOUT", DEFAULT_ORACLE_TIMEOUT_SEC),
        oracle_disabled=_env_flag("EXPENSE_IMPORT_ORACLE_DISABLED"),
    )
