from __future__ import annotations

import pytest

from fragment import cli
from fragment.csvio import parse_lines, write_lines

from .helpers import sjis


@pytest.fixture
def game_dir(tmp_path):
    root = tmp_path / "game"
    root.mkdir()
    (root / "A.PRG").write_bytes(b"\x00" + sjis("こんにちは") + b"\x00" + b"\x02" * 4)
    return root


@pytest.fixture
def use_settings(monkeypatch, settings):
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    return settings


def test_extract_then_patch(tmp_path, game_dir, use_settings, capsys):
    tables = tmp_path / "tables"
    tables.mkdir()

    assert cli.main(["extract", str(tables), str(game_dir / "A.PRG")]) == 0
    assert "Extraction complete." in capsys.readouterr().out

    lines = parse_lines((tables / "gamelines.csv").read_bytes())
    assert len(lines) == 1
    lines[0].translated_text = "Hello"
    write_lines(tables / "gamelines.csv", lines)

    output = tmp_path / "patched"
    exit_code = cli.main(
        ["patch", str(tables / "gamelines.csv"), str(game_dir), str(output), "--pad", "space"]
    )

    assert exit_code == 0
    assert "Patching complete." in capsys.readouterr().out
    assert (output / "A.PRG").read_bytes() == b"\x00Hello     \x00" + b"\x02" * 4


def test_patch_without_table_needs_configured_url(tmp_path, game_dir, use_settings, capsys):
    exit_code = cli.main(["patch", str(game_dir), str(tmp_path / "out")])

    assert exit_code == 1
    assert "FRAGMENT_TABLE_URL" in capsys.readouterr().out


def test_patch_without_table_uses_configured_url(tmp_path, game_dir, settings, monkeypatch):
    settings.FRAGMENT_TABLE_URL = "https://example.com/sheet.csv"
    seen = {}

    class FakeRunner:
        def __init__(self, **kwargs):
            seen.update(kwargs)

        def run(self):
            return None

    monkeypatch.setattr(cli, "PatchRunner", FakeRunner)
    exit_code, _, message = cli.execute_patch(
        locations=[str(game_dir), str(tmp_path / "out")],
        units=None,
        prefix=None,
        pad=None,
        halt_on_oversize=False,
        settings=settings,
    )

    assert (exit_code, message) == (0, None)
    assert seen["table"] == "https://example.com/sheet.csv"
    assert seen["padding"] == "null"
    assert seen["prefix"] == ""


def test_patch_refuses_to_overwrite_input(game_dir, use_settings, capsys):
    exit_code = cli.main(["patch", "table.csv", str(game_dir), str(game_dir)])

    assert exit_code == 1
    assert "Refusing to overwrite" in capsys.readouterr().out


def test_missing_container_entry_exits_non_zero(tmp_path, game_dir, use_settings, capsys):
    lines = parse_lines(
        "FILE,OFFSET,LENGTH,ORIGINAL_TEXT,TRANSLATED_TEXT\nGONE.PRG,1,10,こんにちは,Hello\n"
    )
    table = tmp_path / "gamelines.csv"
    write_lines(table, lines)

    exit_code = cli.main(["patch", str(table), str(game_dir), str(tmp_path / "out")])

    assert exit_code == 1
    assert "GONE.PRG" in capsys.readouterr().out


def test_oversize_lines_are_summarised(tmp_path, game_dir, use_settings, capsys):
    lines = parse_lines(
        "FILE,OFFSET,LENGTH,ORIGINAL_TEXT,TRANSLATED_TEXT\n"
        "A.PRG,1,10,こんにちは,This is much too long\n"
    )
    table = tmp_path / "gamelines.csv"
    write_lines(table, lines)

    exit_code = cli.main(["patch", str(table), str(game_dir), str(tmp_path / "out")])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "1 skipped" in out
    assert "oversize 1" in out
    assert (tmp_path / "out" / "A.PRG").read_bytes() == (game_dir / "A.PRG").read_bytes()


def test_halt_on_oversize_flag(tmp_path, game_dir, use_settings, capsys):
    lines = parse_lines(
        "FILE,OFFSET,LENGTH,ORIGINAL_TEXT,TRANSLATED_TEXT\n"
        "A.PRG,1,10,こんにちは,This is much too long\n"
    )
    table = tmp_path / "gamelines.csv"
    write_lines(table, lines)

    exit_code = cli.main(
        ["patch", str(table), str(game_dir), str(tmp_path / "out"), "--halt-on-oversize"]
    )

    assert exit_code == 1
    assert "Stopping" in capsys.readouterr().out
    assert not (tmp_path / "out").exists()


def test_non_utf8_table_exits_non_zero(tmp_path, game_dir, use_settings, capsys):
    table = tmp_path / "gamelines.csv"
    table.write_bytes(
        "FILE,OFFSET,LENGTH,ORIGINAL_TEXT,TRANSLATED_TEXT\nA.PRG,1,10,こんにちは,Hi\n".encode("cp932")
    )

    exit_code = cli.main(["patch", str(table), str(game_dir), str(tmp_path / "out")])

    assert exit_code == 1
    assert "not UTF-8" in capsys.readouterr().out
