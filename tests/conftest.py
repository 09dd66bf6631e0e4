"""Pytest configuration for test isolation.

The import pipeline reads its oracle settings (API key, model, timeout,
disable flag) from the environment on every call. A developer's shell or a
local ``.env`` could otherwise make tests reach the real OpenAI API, so each
test starts from a clean slate: no API key and no ``EXPENSE_IMPORT_*``
overrides.
"""

from __future__ import annotations

import pytest

_ENV_VARS = (
    "OPENAI_API_KEY",
    "EXPENSE_IMPORT_MODEL",
    "EXPENSE_IMPORT_ORACLE_TIMEOUT",
    "EXPENSE_IMPORT_ORACLE_DISABLED",
    "EXPENSE_IMPORT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
