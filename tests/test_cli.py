from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import expense_import.oracle as oracle_mod
from expense_import.cli import app
from tests.helpers.openai_stub import OpenAIStub

runner = CliRunner()


@pytest.fixture()
def statement(tmp_path: Path) -> Path:
    p = tmp_path / "statement.csv"
    p.write_text(
        "Date,Description,Amount\n"
        "2024-01-01,kirana store,500\n"
        "2024-01-02,Food,-200\n"
        "2024-01-03,nothing,0\n",
        encoding="utf-8",
    )
    return p


@pytest.fixture()
def categories_file(tmp_path: Path) -> Path:
    p = tmp_path / "categories.json"
    p.write_text(
        json.dumps([{"id": "c-food", "name": "Food", "color": "#EF4444", "isCustom": False}]),
        encoding="utf-8",
    )
    return p


def test_import_json_output(statement: Path, categories_file: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(statement.parent)
    result = runner.invoke(
        app, ["import", str(statement), "--categories", str(categories_file), "--no-oracle", "--json"]
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [e["amount"] for e in payload["expenses"]] == [500.0, 200.0]
    assert payload["expenses"][1]["categoryId"] == "c-food"
    assert [c["name"] for c in payload["newCategories"]] == ["Kirana Store"]


def test_import_preview_output(statement: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(statement.parent)
    result = runner.invoke(app, ["import", str(statement), "--no-oracle"])
    assert result.exit_code == 0, result.output
    lines = [ln for ln in result.stdout.splitlines() if ln and not ln.startswith("#")]
    assert lines[0].split("\t") == ["2024-01-01", "500", "Kirana Store", "kirana store"]


def test_import_unreadable_file_exits_nonzero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["import", str(tmp_path / "missing.csv"), "--no-oracle"])
    assert result.exit_code == 1


def test_bad_categories_file_exits_nonzero(statement: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    bad = tmp_path / "bad.json"
    bad.write_text("{}", encoding="utf-8")
    result = runner.invoke(app, ["import", str(statement), "--categories", str(bad)])
    assert result.exit_code == 1


def test_suggest_prints_category_id(categories_file: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(categories_file.parent)
    monkeypatch.setenv("OPENAI_API_KEY", "k")
    stub = OpenAIStub(raw_text=json.dumps({"category_id": "c-food"}))
    monkeypatch.setattr(oracle_mod, "OpenAI", lambda **kw: stub)

    result = runner.invoke(app, ["suggest", "dominos pizza", "--categories", str(categories_file)])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "c-food"
