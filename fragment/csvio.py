"""Reading and writing the occurrence and translation unit tables."""

from __future__ import annotations

import csv
import io
import pathlib
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple

from .errors import OutputWriteError, TableFormatError
from .records import content_key
from .structures import ExtractedLine, TranslationUnit

LINE_COLUMNS = (
    "FILE",
    "OFFSET",
    "LENGTH",
    "ORIGINAL_TEXT",
    "TRANSLATED_TEXT",
    "STATUS",
    "TL_LENGTH",
    "NOTES",
    "TEXT_KEY",
)

UNIT_COLUMNS = (
    "TEXT_KEY",
    "LENGTH",
    "TL_LENGTH",
    "ORIGINAL_TEXT",
    "TRANSLATED_TEXT",
    "NOTES",
    "STATUS",
    "TL_CREDIT",
    "ORIG_LINES",
    "TL_LINES",
    "LINE_STATUS",
)

REQUIRED_LINE_COLUMNS = ("FILE", "OFFSET", "LENGTH")
REQUIRED_UNIT_COLUMNS = ("ORIGINAL_TEXT",)


def _line_row(line: ExtractedLine) -> Dict[str, object]:
    return {
        "FILE": line.file,
        "OFFSET": line.offset,
        "LENGTH": line.length,
        "ORIGINAL_TEXT": line.original_text,
        "TRANSLATED_TEXT": line.translated_text,
        "STATUS": line.status,
        "TL_LENGTH": line.tl_length,
        "NOTES": line.notes,
        "TEXT_KEY": line.text_key,
    }


def _unit_row(unit: TranslationUnit) -> Dict[str, object]:
    return {
        "TEXT_KEY": unit.text_key,
        "LENGTH": unit.length,
        "TL_LENGTH": unit.tl_length,
        "ORIGINAL_TEXT": unit.original_text,
        "TRANSLATED_TEXT": unit.translated_text,
        "NOTES": unit.notes,
        "STATUS": unit.status,
        "TL_CREDIT": unit.tl_credit,
        "ORIG_LINES": unit.orig_lines,
        "TL_LINES": unit.tl_lines,
        "LINE_STATUS": unit.line_status,
    }


def _dump(columns: Sequence[str], rows: Iterable[Mapping[str, object]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(columns), lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def dump_lines(lines: Iterable[ExtractedLine]) -> str:
    return _dump(LINE_COLUMNS, (_line_row(line) for line in lines))


def dump_units(units: Iterable[TranslationUnit]) -> str:
    return _dump(UNIT_COLUMNS, (_unit_row(unit) for unit in units))


def _write(path: pathlib.Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8", newline="")
    except OSError as exc:
        raise OutputWriteError(f"Could not write table {path}: {exc}") from exc


def write_lines(path: pathlib.Path, lines: Iterable[ExtractedLine]) -> None:
    _write(path, dump_lines(lines))


def write_units(path: pathlib.Path, units: Iterable[TranslationUnit]) -> None:
    _write(path, dump_units(units))


def _reader(data: bytes | str, required: Sequence[str], label: str) -> csv.DictReader:
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise TableFormatError(
                f"Translation table {label} is not UTF-8 encoded ({exc.reason} at byte "
                f"{exc.start}). Re-save it as UTF-8 CSV."
            ) from exc
    else:
        text = data
    reader = csv.DictReader(io.StringIO(text, newline=""))
    try:
        header = reader.fieldnames or []
    except csv.Error as exc:
        raise TableFormatError(f"Translation table {label} is not valid CSV: {exc}") from exc
    missing = [column for column in required if column not in header]
    if missing:
        raise TableFormatError(
            f"Translation table {label} is missing required columns: " + ", ".join(missing)
        )
    return reader


def _rows(reader: csv.DictReader, label: str) -> Iterator[Tuple[int, Dict[str, str]]]:
    """Yield data rows with their 1-based line numbers in the table."""

    try:
        yield from enumerate(reader, start=2)
    except csv.Error as exc:
        raise TableFormatError(
            f"Translation table {label} is not valid CSV near line {reader.line_num}: {exc}"
        ) from exc


def _int_cell(row: Mapping[str, str | None], column: str, row_number: int, *, required: bool) -> int:
    raw = (row.get(column) or "").strip()
    if not raw:
        if required:
            raise TableFormatError(f"Row {row_number}: column {column} is empty.")
        return 0
    try:
        value = int(raw)
    except ValueError as exc:
        raise TableFormatError(
            f"Row {row_number}: column {column} is not an integer ({raw!r})."
        ) from exc
    if value < 0:
        raise TableFormatError(f"Row {row_number}: column {column} is negative ({value}).")
    return value


def _text_cell(row: Mapping[str, str | None], column: str) -> str:
    return row.get(column) or ""


def parse_lines(data: bytes | str, *, label: str = "<table>") -> List[ExtractedLine]:
    """Parse an occurrence table; blank translations mean untranslated."""

    lines: List[ExtractedLine] = []
    reader = _reader(data, REQUIRED_LINE_COLUMNS, label)
    for row_number, row in _rows(reader, label):
        original = _text_cell(row, "ORIGINAL_TEXT")
        lines.append(
            ExtractedLine(
                file=_text_cell(row, "FILE"),
                offset=_int_cell(row, "OFFSET", row_number, required=True),
                length=_int_cell(row, "LENGTH", row_number, required=True),
                original_text=original,
                translated_text=_text_cell(row, "TRANSLATED_TEXT"),
                status=_text_cell(row, "STATUS"),
                tl_length=_int_cell(row, "TL_LENGTH", row_number, required=False),
                notes=_text_cell(row, "NOTES"),
                text_key=_text_cell(row, "TEXT_KEY") or content_key(original),
            )
        )
    return lines


def parse_units(data: bytes | str, *, label: str = "<table>") -> List[TranslationUnit]:
    units: List[TranslationUnit] = []
    reader = _reader(data, REQUIRED_UNIT_COLUMNS, label)
    for row_number, row in _rows(reader, label):
        original = _text_cell(row, "ORIGINAL_TEXT")
        units.append(
            TranslationUnit(
                text_key=_text_cell(row, "TEXT_KEY") or content_key(original),
                original_text=original,
                length=_int_cell(row, "LENGTH", row_number, required=False),
                translated_text=_text_cell(row, "TRANSLATED_TEXT"),
                tl_length=_int_cell(row, "TL_LENGTH", row_number, required=False),
                notes=_text_cell(row, "NOTES"),
                status=_text_cell(row, "STATUS"),
                tl_credit=_text_cell(row, "TL_CREDIT"),
                orig_lines=_int_cell(row, "ORIG_LINES", row_number, required=False),
                tl_lines=_int_cell(row, "TL_LINES", row_number, required=False),
                line_status=_text_cell(row, "LINE_STATUS"),
            )
        )
    return units
