from __future__ import annotations

import csv

import pytest

from fragment.csvio import (
    LINE_COLUMNS,
    UNIT_COLUMNS,
    dump_lines,
    dump_units,
    parse_lines,
    parse_units,
    write_lines,
)
from fragment.errors import TableFormatError
from fragment.records import content_key
from fragment.structures import ExtractedLine, TranslationUnit


def test_headers_follow_column_order():
    assert dump_lines([]).splitlines()[0] == ",".join(LINE_COLUMNS)
    assert dump_units([]).splitlines()[0] == ",".join(UNIT_COLUMNS)


def test_written_lines_read_back(tmp_path):
    lines = [
        ExtractedLine(
            file="GCMNF.PRG",
            offset=1234,
            length=19,
            original_text="こんにちは\n世界です",
            text_key=content_key("こんにちは\n世界です"),
        )
    ]
    path = tmp_path / "gamelines.csv"
    write_lines(path, lines)

    assert parse_lines(path.read_bytes()) == lines


def test_partially_translated_table():
    data = (
        "FILE,OFFSET,LENGTH,ORIGINAL_TEXT,TRANSLATED_TEXT,STATUS,TL_LENGTH,NOTES,TEXT_KEY\n"
        "A.PRG,10,8,あいうえ,Hello,done,,,\n"
        "A.PRG,30,8,かきくけ,,,,,\n"
    )
    lines = parse_lines(data)

    assert lines[0].translated_text == "Hello"
    assert lines[0].tl_length == 0
    assert lines[1].translated_text == ""
    assert lines[1].text_key == content_key("かきくけ")


def test_byte_order_mark_is_ignored():
    data = "\ufeffFILE,OFFSET,LENGTH\nA.PRG,1,4\n".encode("utf-8")
    [line] = parse_lines(data)
    assert (line.file, line.offset, line.length) == ("A.PRG", 1, 4)


def test_missing_required_column():
    with pytest.raises(TableFormatError, match="OFFSET"):
        parse_lines("FILE,LENGTH\nA.PRG,4\n")


def test_bad_integer_names_the_row():
    with pytest.raises(TableFormatError, match="Row 3"):
        parse_lines("FILE,OFFSET,LENGTH\nA.PRG,1,4\nA.PRG,x,4\n")


def test_units_table_reads_back():
    unit = TranslationUnit(
        text_key=content_key("あいう"),
        original_text="あいう",
        length=6,
        translated_text="abc",
        tl_credit="someone",
        orig_lines=1,
    )
    assert parse_units(dump_units([unit])) == [unit]


def test_shift_jis_saved_table_is_reported_as_format_error():
    data = "FILE,OFFSET,LENGTH,ORIGINAL_TEXT\nA.PRG,1,10,こんにちは\n".encode("cp932")
    with pytest.raises(TableFormatError, match="gamelines.csv is not UTF-8"):
        parse_lines(data, label="gamelines.csv")


def test_malformed_csv_is_reported_as_format_error():
    with pytest.raises(TableFormatError, match="not valid CSV"):
        parse_lines("FILE,OFFSET,LENGTH,NOTES\nA.PRG,1,4," + "x" * (csv.field_size_limit() + 1) + "\n")


@pytest.mark.parametrize("row", ["A.PRG,-1,10", "A.PRG,1,-10"])
def test_negative_slot_position_is_rejected(row):
    with pytest.raises(TableFormatError, match="Row 2: column .* is negative"):
        parse_lines(f"FILE,OFFSET,LENGTH\n{row}\n")
