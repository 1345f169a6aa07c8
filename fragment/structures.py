"""Core data structures for the fragment extractor and patcher."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TextFragment:
    """A maximal run of non-zero bytes found by the scanner."""

    file: str
    offset: int
    length: int
    raw: bytes


@dataclass
class ExtractedLine:
    """A fragment that decoded cleanly and passed every filter.

    ``offset`` is the index of the first byte of the run and ``length``
    counts every source byte the line covers, including the null separators
    swallowed by continuation merging.
    """

    file: str
    offset: int
    length: int
    original_text: str
    translated_text: str = ""
    status: str = ""
    tl_length: int = 0
    notes: str = ""
    text_key: str = ""


@dataclass
class TranslationUnit:
    """One row per distinct original text."""

    text_key: str
    original_text: str
    length: int
    translated_text: str = ""
    tl_length: int = 0
    notes: str = ""
    status: str = ""
    tl_credit: str = ""
    orig_lines: int = 0
    tl_lines: int = 0
    line_status: str = ""


@dataclass(frozen=True)
class ManualExclusionRange:
    """Inclusive byte span of a file known to hold no text."""

    file: str
    start_offset: int
    end_offset: int

    def covers(self, file: str, offset: int) -> bool:
        return file == self.file and self.start_offset <= offset <= self.end_offset


@dataclass(frozen=True)
class Extent:
    """Byte range of one logical file inside its container."""

    start: int
    length: int


@dataclass
class PatchInstruction:
    """An encoded translation bound to its slot in a target file."""

    target_file: str
    offset: int
    length: int
    translated_bytes: bytes
