from __future__ import annotations

import csv
from collections import Counter

import pytest

from fragment.csvio import parse_lines, parse_units
from fragment.errors import FragmentError, InputReadError
from fragment.extractor import ExtractionRunner, extract_lines
from fragment.structures import ManualExclusionRange

from .helpers import sjis

HELLO = sjis("こんにちは")
WORLD = sjis("世界です")

# 1: control bytes, 4: HELLO, 15: WORLD (continuation), 25: ASCII, 32: HELLO again
GAME_DATA = (
    b"\x00\x01\x02\x00"
    + HELLO
    + b"\x00"
    + WORLD
    + b"\x00\x00HEADER\x00"
    + HELLO
    + b"\x00"
)


def test_kana_run_between_ascii_runs():
    data = b"AB\x00" + sjis("あい") + b"\x00CD\x00"
    [line] = extract_lines(data, "X")
    assert (line.offset, line.length, line.original_text) == (3, 4, "あい")


def test_extract_lines_filters_and_counts():
    stats = Counter()
    lines = extract_lines(GAME_DATA, "A.PRG", stats=stats)

    assert [(line.offset, line.length) for line in lines] == [(4, 10), (15, 8), (32, 10)]
    assert stats["fragments"] == 5
    assert stats["rejected:length"] == 1
    assert stats["rejected:ascii"] == 1


def test_extract_lines_honours_exclusions():
    lines = extract_lines(
        GAME_DATA,
        "A.PRG",
        exclusions=[ManualExclusionRange("A.PRG", 30, 40)],
    )
    assert [line.offset for line in lines] == [4, 15]


@pytest.fixture
def game_files(tmp_path):
    first = tmp_path / "A.PRG"
    first.write_bytes(GAME_DATA)
    second = tmp_path / "B.PRG"
    second.write_bytes(b"\x00" + HELLO + b"\x00")
    out = tmp_path / "out"
    out.mkdir()
    return [first, second], out


def test_runner_writes_both_tables(game_files):
    inputs, out = game_files

    summary = ExtractionRunner(input_paths=inputs, output_folder=out).run()

    lines = parse_lines((out / "gamelines.csv").read_bytes())
    units = parse_units((out / "tllines.csv").read_bytes())

    assert [(line.file, line.offset, line.length) for line in lines] == [
        ("A.PRG", 4, 19),
        ("A.PRG", 32, 10),
        ("B.PRG", 1, 10),
    ]
    assert lines[0].original_text == "こんにちは\n世界です"
    assert lines[1].text_key == lines[2].text_key
    assert [unit.original_text for unit in units] == ["こんにちは\n世界です", "こんにちは"]
    assert units[0].orig_lines == 2

    sizes = {path.name: path.stat().st_size for path in inputs}
    for line in lines:
        assert line.offset + line.length <= sizes[line.file]

    assert summary.input_files == 2
    assert summary.extracted_lines == 3
    assert summary.translation_units == 2
    assert summary.rejections == {"length": 1, "ascii": 1}


def test_runner_output_has_expected_header(game_files):
    inputs, out = game_files
    ExtractionRunner(input_paths=inputs, output_folder=out).run()

    with (out / "tllines.csv").open(encoding="utf-8", newline="") as handle:
        header = next(csv.reader(handle))
    assert header[0] == "TEXT_KEY"
    assert header[-1] == "LINE_STATUS"


def test_runner_missing_input(tmp_path):
    with pytest.raises(InputReadError):
        ExtractionRunner(input_paths=[tmp_path / "nope.PRG"], output_folder=tmp_path).run()


def test_runner_missing_output_folder(game_files, tmp_path):
    inputs, _ = game_files
    with pytest.raises(FragmentError, match="does not exist"):
        ExtractionRunner(input_paths=inputs, output_folder=tmp_path / "absent").run()


def test_runner_rejects_inputs_sharing_a_file_name(game_files, tmp_path):
    inputs, out = game_files
    other = tmp_path / "disc2" / "A.PRG"
    other.parent.mkdir()
    other.write_bytes(b"\x00" + HELLO + b"\x00")

    with pytest.raises(FragmentError, match="share the name 'A.PRG'"):
        ExtractionRunner(input_paths=[*inputs, other], output_folder=out).run()
    assert not (out / "gamelines.csv").exists()
