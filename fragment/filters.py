"""Predicates deciding whether a decoded run is translatable game text."""

from __future__ import annotations

from functools import partial
from typing import Callable, Sequence, Tuple

from .structures import ExtractedLine, ManualExclusionRange
from .tables import ALLOWED_CHARS, JAPANESE_CHARS, MANUAL_EXCLUSIONS

MIN_SOURCE_BYTES = 4

LineFilter = Callable[[ExtractedLine], bool]


def long_enough(line: ExtractedLine) -> bool:
    return line.length >= MIN_SOURCE_BYTES


def has_non_ascii(line: ExtractedLine) -> bool:
    """Pure ASCII runs are structural data, not dialogue."""

    return any(ord(char) > 0x7F for char in line.original_text)


def only_allowed_chars(line: ExtractedLine) -> bool:
    """Every character must come from the allow-list; one stray rejects all."""

    return ALLOWED_CHARS.matches_all(line.original_text)


def has_japanese(line: ExtractedLine) -> bool:
    return JAPANESE_CHARS.matches_any(line.original_text)


def not_manually_excluded(
    line: ExtractedLine,
    exclusions: Sequence[ManualExclusionRange] = MANUAL_EXCLUSIONS,
) -> bool:
    return not any(span.covers(line.file, line.offset) for span in exclusions)


def filter_chain(
    exclusions: Sequence[ManualExclusionRange] = MANUAL_EXCLUSIONS,
) -> Tuple[Tuple[str, LineFilter], ...]:
    """Named filters in evaluation order, ending with the manual exclusion list."""

    return (
        ("length", long_enough),
        ("ascii", has_non_ascii),
        ("charset", only_allowed_chars),
        ("japanese", has_japanese),
        ("manual", partial(not_manually_excluded, exclusions=exclusions)),
    )


FILTER_CHAIN = filter_chain()


def first_rejection(
    line: ExtractedLine,
    *,
    exclusions: Sequence[ManualExclusionRange] = MANUAL_EXCLUSIONS,
) -> str | None:
    """Return the name of the first filter rejecting ``line``, or ``None``."""

    chain = FILTER_CHAIN if exclusions is MANUAL_EXCLUSIONS else filter_chain(exclusions)
    for name, predicate in chain:
        if not predicate(line):
            return name
    return None


def is_translatable(
    line: ExtractedLine,
    *,
    exclusions: Sequence[ManualExclusionRange] = MANUAL_EXCLUSIONS,
) -> bool:
    return first_rejection(line, exclusions=exclusions) is None
