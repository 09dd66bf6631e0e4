"""Decode spreadsheet and delimited-text exports into header-keyed rows.

- ``.xlsx``/``.xlsm``/``.xltx``/``.xltm``: first worksheet via ``openpyxl``;
  the first row is the header row and date cells arrive as native
  ``datetime`` values.
- anything else: delimited text via the stdlib :mod:`csv` module with the
  delimiter sniffed from a prefix (``,``, ``;``, tab or ``|``).

Empty cells materialize as ``""``; fully blank rows are skipped; blank
header cells drop their column; duplicate headers get ``_1``, ``_2`` ...
suffixes. Any failure to read or decode raises :class:`UnreadableFileError`.
"""

from __future__ import annotations

import csv
import io
import zipfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .headers import is_populated
from .logging_setup import get_logger

SPREADSHEET_SUFFIXES: frozenset[str] = frozenset({".xlsx", ".xlsm", ".xltx", ".xltm"})
UNSUPPORTED_SUFFIXES: frozenset[str] = frozenset({".xls", ".ods", ".numbers"})

_TEXT_ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp1252")
_SNIFF_BYTES = 8192

_logger = get_logger("expense_import.reader")


class UnreadableFileError(ValueError):
    """The input could not be read or decoded as a table."""


@dataclass(frozen=True, slots=True)
class Table:
    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)


def _unique_headers(raw: Sequence[Any]) -> list[tuple[int, str]]:
    """Return ``(column_position, header)`` for non-blank header cells."""

    seen: dict[str, int] = {}
    out: list[tuple[int, str]] = []
    for pos, cell in enumerate(raw):
        name = str(cell).strip() if cell is not None else ""
        if not name:
            continue
        count = seen.get(name, 0)
        seen[name] = count + 1
        out.append((pos, name if count == 0 else f"{name}_{count}"))
    return out


def _build_table(records: Iterable[Sequence[Any]]) -> Table:
    it = iter(records)
    header_cells = next(it, None)
    if header_cells is None:
        return Table()
    columns = _unique_headers(header_cells)
    headers = [name for _, name in columns]

    rows: list[dict[str, Any]] = []
    for record in it:
        row: dict[str, Any] = {}
        for pos, name in columns:
            value = record[pos] if pos < len(record) else None
            row[name] = "" if value is None else value
        if any(is_populated(v) for v in row.values()):
            rows.append(row)
    return Table(headers=headers, rows=rows)


# ---- delimited text ----------------------------------------------------------


def _decode(data: bytes) -> str:
    for encoding in _TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise UnreadableFileError("could not decode file as text")


def read_delimited_text(text: str) -> Table:
    """Parse delimited text whose first line is the header row."""

    if "\x00" in text:
        raise UnreadableFileError("file looks binary, not delimited text")
    sample = text[:_SNIFF_BYTES]
    try:
        dialect: type[csv.Dialect] | csv.Dialect = csv.Sniffer().sniff(sample, delimiters=",;\t|")
    except csv.Error:
        dialect = csv.excel
    try:
        with io.StringIO(text, newline="") as f:
            return _build_table(csv.reader(f, dialect))
    except csv.Error as e:
        raise UnreadableFileError(f"failed to parse delimited text: {e}") from e


# ---- spreadsheets ------------------------------------------------------------


def read_workbook(source: str | PathLike[str] | io.BytesIO) -> Table:
    """Read the first worksheet of an OOXML workbook."""

    try:
        wb = load_workbook(source, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise UnreadableFileError(f"failed to open workbook: {e}") from e
    try:
        if not wb.worksheets:
            return Table()
        ws = wb.worksheets[0]
        return _build_table(ws.iter_rows(values_only=True))
    finally:
        wb.close()


# ---- entry points ------------------------------------------------------------


def read_table_bytes(data: bytes, filename: str) -> Table:
    """Decode an uploaded file's bytes, dispatching on ``filename``'s suffix."""

    suffix = Path(filename).suffix.lower()
    if suffix in UNSUPPORTED_SUFFIXES:
        raise UnreadableFileError(f"unsupported file type: {suffix}")
    if suffix in SPREADSHEET_SUFFIXES:
        table = read_workbook(io.BytesIO(data))
    else:
        table = read_delimited_text(_decode(data))
    _logger.debug(
        "reader:table file=%s headers=%d rows=%d", filename, len(table.headers), len(table.rows)
    )
    return table


def read_table(path: str | PathLike[str]) -> Table:
    """Read ``path`` into a :class:`Table`."""

    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as e:
        raise UnreadableFileError(f"cannot read {p}: {e}") from e
    return read_table_bytes(data, p.name)
