# ruff: noqa: I001
"""CLI for the ``expense_import`` package.

Typer-based console interface over :mod:`expense_import.api`. Environment
variables (notably ``OPENAI_API_KEY``) are loaded from a local ``.env`` with
``python-dotenv`` before any command runs; already-set variables win.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging
from .models import Category, ImportResult, OracleOutcome


def _load_categories(path: Path | None) -> list[Category]:
    """Read existing categories from a JSON array of ``{id, name, color, isCustom}``."""

    if path is None:
        return []
    raw: Any = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError("categories file must contain a JSON array")
    return [Category.from_dict(item) for item in raw if isinstance(item, dict) and item.get("id")]


def _skip_oracle(tokens: Any, categories: Any) -> OracleOutcome:
    return OracleOutcome.skipped("disabled")


def _print_preview(result: ImportResult, categories: list[Category]) -> None:
    names = {c.id: c.name for c in categories}
    names.update({c.id: c.name for c in result.new_categories})
    for e in result.expenses:
        print(f"{e.date}\t{e.amount}\t{names.get(e.category_id, e.category_id)}\t{e.description}")
    print(
        f"# {len(result.expenses)} expenses, {len(result.new_categories)} new categories "
        f"(mode={result.mode}, source={result.category_source}, oracle={result.oracle_status})",
        file=sys.stderr,
    )


def cmd_import(
    file_path: str,
    *,
    categories_path: str | None = None,
    use_oracle: bool = True,
    as_json: bool = False,
) -> int:
    """Import ``file_path`` and print the result; return a process exit code."""

    from .api import import_file
    from .reader import UnreadableFileError

    try:
        categories = _load_categories(Path(categories_path) if categories_path else None)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: failed to load categories: {e}", file=sys.stderr)
        return 1

    try:
        result = import_file(
            file_path, categories, oracle=None if use_oracle else _skip_oracle
        )
    except UnreadableFileError as e:
        print(f"Error: could not read '{file_path}': {e}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_preview(result, categories)
    return 0


def cmd_suggest(description: str, *, categories_path: str) -> int:
    from .oracle import suggest_category

    try:
        categories = _load_categories(Path(categories_path))
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: failed to load categories: {e}", file=sys.stderr)
        return 1

    suggested = suggest_category(description, categories)
    if suggested:
        print(suggested)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import an expense spreadsheet or CSV of unknown shape into categorized "
        "expenses. Loads OPENAI_API_KEY from a local .env before running."
    ),
)


# Module-level option objects keep calls out of parameter defaults.
CATEGORIES_OPTION: OptionInfo = typer.Option(
    "--categories",
    help="JSON file with existing categories: [{id, name, color, isCustom}, ...]",
    dir_okay=False,
    file_okay=True,
)


@app.command("import")
def import_cmd(
    file_path: Annotated[Path, typer.Argument(help="Spreadsheet (.xlsx) or delimited file")],
    categories: Annotated[Path | None, CATEGORIES_OPTION] = None,
    *,
    oracle: bool = typer.Option(True, help="Consult the classification oracle (OpenAI)."),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON."),
) -> None:
    """Import a file and print the resulting expenses."""

    code = cmd_import(
        str(file_path),
        categories_path=str(categories) if categories else None,
        use_oracle=oracle,
        as_json=as_json,
    )
    raise typer.Exit(code)


@app.command("suggest")
def suggest_cmd(
    description: Annotated[str, typer.Argument(help="Free-text expense description")],
    categories: Annotated[Path, typer.Option("--categories", help="Existing categories JSON")],
) -> None:
    """Suggest an existing category id for one description."""

    raise typer.Exit(cmd_suggest(description, categories_path=str(categories)))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Logging level (falls back to EXPENSE_IMPORT_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


def main() -> None:  # pragma: no cover - console script shim
    app()


if __name__ == "__main__":  # pragma: no cover
    app()
