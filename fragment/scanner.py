"""Null-delimited byte run scanning and legacy encoding helpers."""

from __future__ import annotations

from typing import Iterator

from .errors import TranslationEncodingError
from .structures import TextFragment

# Shift-JIS as written by Windows, including the NEC special rows.
DEFAULT_ENCODING = "cp932"
MIN_DECODED_CHARS = 2


class FragmentScanner:
    """Iterable over the non-empty null-delimited runs of a buffer.

    Each iteration starts again from the beginning of the buffer, so the
    scanner can be walked as many times as needed.
    """

    def __init__(self, data: bytes, file: str) -> None:
        self.data = data
        self.file = file

    def __iter__(self) -> Iterator[TextFragment]:
        data = self.data
        size = len(data)
        start = 0
        while start < size:
            end = data.find(b"\x00", start)
            if end < 0:
                end = size
            if end > start:
                yield TextFragment(
                    file=self.file,
                    offset=start,
                    length=end - start,
                    raw=bytes(data[start:end]),
                )
            start = end + 1


def scan_fragments(data: bytes, file: str) -> Iterator[TextFragment]:
    """Yield one fragment per maximal run of non-zero bytes."""

    return iter(FragmentScanner(data, file))


def decode_text(raw: bytes, *, encoding: str = DEFAULT_ENCODING) -> str | None:
    """Decode a run, returning ``None`` when it is not plausible text."""

    try:
        text = raw.decode(encoding)
    except UnicodeDecodeError:
        return None
    if len(text) < MIN_DECODED_CHARS:
        return None
    return text


def encode_text(text: str, *, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encode a translation for writing back into the game data."""

    try:
        return text.encode(encoding)
    except UnicodeEncodeError as exc:
        bad = text[exc.start:exc.end]
        raise TranslationEncodingError(
            f"Character {bad!r} at position {exc.start} cannot be encoded as {encoding}."
        ) from exc
