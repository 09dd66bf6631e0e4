import io
import logging

import pytest

from expense_import import logging_setup
from expense_import.config import DEFAULT_MODEL, DEFAULT_ORACLE_TIMEOUT_SEC, load_settings


def test_defaults_without_environment():
    s = load_settings()
    assert s.api_key is None
    assert s.model == DEFAULT_MODEL
    assert s.oracle_timeout_sec == DEFAULT_ORACLE_TIMEOUT_SEC
    assert s.oracle_disabled is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("OPENAI_API_KEY", "  sk-test  ")
    monkeypatch.setenv("EXPENSE_IMPORT_MODEL", "gpt-x")
    monkeypatch.setenv("EXPENSE_IMPORT_ORACLE_TIMEOUT", "12.5")
    monkeypatch.setenv("EXPENSE_IMPORT_ORACLE_DISABLED", "Yes")
    s = load_settings()
    assert s.api_key == "sk-test"
    assert s.model == "gpt-x"
    assert s.oracle_timeout_sec == 12.5
    assert s.oracle_disabled is True


@pytest.mark.parametrize("raw", ["abc", "-3", "0"])
def test_bad_timeout_falls_back_to_default(monkeypatch: pytest.MonkeyPatch, raw: str):
    monkeypatch.setenv("EXPENSE_IMPORT_ORACLE_TIMEOUT", raw)
    assert load_settings().oracle_timeout_sec == DEFAULT_ORACLE_TIMEOUT_SEC


def test_disabled_oracle_is_skipped_by_pipeline(monkeypatch: pytest.MonkeyPatch):
    from expense_import import import_rows

    monkeypatch.setenv("OPENAI_API_KEY", "k")
    monkeypatch.setenv("EXPENSE_IMPORT_ORACLE_DISABLED", "1")
    result = import_rows([{"Description": "tea", "Amount": 1}], [])
    assert result.oracle_status == "skipped"


def test_configure_logging_installs_single_handler(monkeypatch: pytest.MonkeyPatch):
    logger = logging.getLogger("expense_import")
    saved_handlers = list(logger.handlers)
    monkeypatch.setattr(logging_setup, "_configured_handler", None)
    try:
        stream = io.StringIO()
        logging_setup.configure_logging("DEBUG", stream=stream)
        logging_setup.configure_logging("WARNING", stream=io.StringIO())

        ours = [h for h in logger.handlers if h not in saved_handlers]
        assert len(ours) == 1
        assert logger.level == logging.WARNING

        logging_setup.get_logger("expense_import.test").warning("import:done expenses=%d", 3)
        assert "import:done expenses=3" in stream.getvalue()
    finally:
        for h in list(logger.handlers):
            if h not in saved_handlers:
                logger.removeHandler(h)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


def test_level_parsing(monkeypatch: pytest.MonkeyPatch):
    assert logging_setup._parse_level("debug") == logging.DEBUG
    assert logging_setup._parse_level("15") == 15
    assert logging_setup._parse_level("nonsense") == logging.INFO
    monkeypatch.setenv("EXPENSE_IMPORT_LOG_LEVEL", "ERROR")
    assert logging_setup._parse_level(None) == logging.ERROR
