from __future__ import annotations

import pytest

from fragment.errors import TranslationEncodingError
from fragment.scanner import FragmentScanner, decode_text, encode_text, scan_fragments

from .helpers import sjis

BUFFERS = [
    b"",
    b"\x00",
    b"\x00\x00\x00",
    b"abc",
    b"abc\x00",
    b"\x00abc",
    b"AB\x00\x00CD\x00\x00\x00EFG",
    b"\x00" + sjis("こんにちは") + b"\x00\x01\x02\x03\x00\x00" + sjis("世界"),
]


@pytest.mark.parametrize("data", BUFFERS)
def test_fragments_rebuild_the_buffer(data):
    rebuilt = bytearray(len(data))
    for fragment in scan_fragments(data, "F"):
        assert fragment.length == len(fragment.raw) > 0
        assert b"\x00" not in fragment.raw
        rebuilt[fragment.offset:fragment.offset + fragment.length] = fragment.raw
    assert bytes(rebuilt) == data


def test_offsets_point_at_run_start():
    data = b"AB\x00" + sjis("あい") + b"\x00CD\x00"
    fragments = list(scan_fragments(data, "X"))
    assert [(f.offset, f.length) for f in fragments] == [(0, 2), (3, 4), (8, 2)]
    assert fragments[1].raw == sjis("あい")
    assert all(f.file == "X" for f in fragments)


def test_scanner_can_be_walked_twice():
    scanner = FragmentScanner(b"one\x00two\x00", "F")
    assert list(scanner) == list(scanner)
    assert len(list(scanner)) == 2


def test_decode_returns_text_unmodified():
    assert decode_text(sjis(" あい ")) == " あい "


def test_decode_rejects_truncated_double_byte():
    assert decode_text(sjis("あい") + b"\x82") is None


def test_decode_rejects_invalid_trail_byte():
    assert decode_text(b"\x81\x20\x41\x42") is None


def test_decode_rejects_single_character():
    assert decode_text(b"A") is None
    assert decode_text(sjis("あ")) is None


def test_encode_round_trips_japanese():
    assert encode_text("テスト") == b"\x83\x65\x83\x58\x83\x67"


def test_encode_reports_unencodable_character():
    with pytest.raises(TranslationEncodingError, match="cannot be encoded"):
        encode_text("hi 한")
