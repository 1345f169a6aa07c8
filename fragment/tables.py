"""Compiled-in filter data: code point range tables and manual exclusions.

Everything the filters treat as data lives here so false positives can be
fixed by editing tables rather than logic.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Iterable, List, Sequence, Tuple, Union

from .structures import ManualExclusionRange

RangeSpec = Union[int, Tuple[int, int]]


class RangeTable:
    """Sorted, merged set of inclusive code point ranges."""

    def __init__(self, ranges: Iterable[RangeSpec]) -> None:
        spans: List[Tuple[int, int]] = []
        for item in ranges:
            if isinstance(item, int):
                spans.append((item, item))
            else:
                spans.append((item[0], item[1]))
        spans.sort()

        merged: List[Tuple[int, int]] = []
        for low, high in spans:
            if merged and low <= merged[-1][1] + 1:
                merged[-1] = (merged[-1][0], max(merged[-1][1], high))
            else:
                merged.append((low, high))

        self.spans: Tuple[Tuple[int, int], ...] = tuple(merged)
        self._starts = [low for low, _ in merged]

    def __contains__(self, code_point: int) -> bool:
        index = bisect_right(self._starts, code_point) - 1
        return index >= 0 and code_point <= self.spans[index][1]

    def __or__(self, other: "RangeTable") -> "RangeTable":
        return RangeTable(self.spans + other.spans)

    def matches_all(self, text: str) -> bool:
        """True when every character of a non-empty string is in the table."""

        return bool(text) and all(ord(char) in self for char in text)

    def matches_any(self, text: str) -> bool:
        return any(ord(char) in self for char in text)


HAN: Sequence[RangeSpec] = (
    (0x2E80, 0x2E99),
    (0x2E9B, 0x2EF3),
    (0x2F00, 0x2FD5),
    0x3005,
    0x3007,
    (0x3021, 0x3029),
    (0x3038, 0x303B),
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFA6D),
    (0xFA70, 0xFAD9),
    (0x20000, 0x2FA1F),
    (0x30000, 0x323AF),
)

HIRAGANA: Sequence[RangeSpec] = (
    (0x3041, 0x3096),
    (0x309D, 0x309F),
    (0x1B001, 0x1B11F),
    0x1F200,
)

KATAKANA: Sequence[RangeSpec] = (
    (0x30A1, 0x30FA),
    (0x30FD, 0x30FF),
    (0x31F0, 0x31FF),
    (0x32D0, 0x32FE),
    (0x3300, 0x3357),
    (0xFF66, 0xFF6F),
    (0xFF71, 0xFF9D),
    0x1B000,
)

# Symbols that show up in the game's menus and dialogue.
EXTRA_SYMBOLS = "・ー“ΔΘ…○×ΣΛΩ※―”↑★△㎏￥∑↓"

ALLOWED_EXTRA: Sequence[RangeSpec] = (
    0x0A,
    (0x20, 0x7E),
    (0x2E80, 0x2FD5),  # CJK radicals
    (0x3000, 0x303F),  # CJK punctuation
    (0x31F0, 0x31FF),  # katakana phonetic extensions
    (0x3220, 0x3243),  # parenthesized ideographs
    (0x3280, 0x337F),  # circled ideographs and square units
    (0xFF01, 0xFF5E),  # full width alphanumerics
    (0xFF5F, 0xFF9F),  # half width kana and punctuation
    *(ord(char) for char in EXTRA_SYMBOLS),
)

JAPANESE_CHARS = RangeTable((*HAN, *HIRAGANA, *KATAKANA))
ALLOWED_CHARS = JAPANESE_CHARS | RangeTable(ALLOWED_EXTRA)


MANUAL_EXCLUSIONS: Tuple[ManualExclusionRange, ...] = (
    ManualExclusionRange("DEMOT.PRG", 3793, 30630),
    ManualExclusionRange("MATCHING.PRG", 1114, 1561520),
    ManualExclusionRange("GCMNO.PRG", 253, 1062160),
    ManualExclusionRange("DESKTOPF.PRG", 537, 175726),
    ManualExclusionRange("GCMNF.PRG", 810, 1582672),
    ManualExclusionRange("GCMNF.PRG", 1717132, 1722056),
    ManualExclusionRange("GCMNF.PRG", 1593760, 1616784),
    ManualExclusionRange("GCMNF.PRG", 1624192, 1624376),
    ManualExclusionRange("GCMNO.PRG", 1109024, 1129996),
    ManualExclusionRange("DEMOT.PRG", 1114, 3414),
    ManualExclusionRange("GCMNF.PRG", 1821456, 1863840),
    ManualExclusionRange("GCMNF.PRG", 1864432, 1865841),
    ManualExclusionRange("DEMOT.PRG", 33520, 34136),
    ManualExclusionRange("TOPPAGEF.PRG", 9, 204612),
    ManualExclusionRange("TOPPAGEF.PRG", 240888, 242268),
    ManualExclusionRange("MATCHING.PRG", 1633836, 1639760),
)
