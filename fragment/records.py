"""Continuation merging, content keys and translation unit deduplication."""

from __future__ import annotations

import hashlib
from dataclasses import replace
from typing import Dict, Iterable, List, Sequence

from .structures import ExtractedLine, TranslationUnit


def merge_continuations(lines: Sequence[ExtractedLine]) -> List[ExtractedLine]:
    """Fold runs that continue the previous one into a single line.

    ``lines`` must be in ascending offset order within each file. A line
    starting exactly one byte (the separating null) after the end of the
    current line is absorbed; since the current line grows with each
    absorption, chains of any length collapse into their first run.
    """

    merged: List[ExtractedLine] = []
    index = 0
    total = len(lines)
    while index < total:
        head = replace(lines[index])
        index += 1
        while index < total:
            candidate = lines[index]
            if candidate.file != head.file:
                break
            if candidate.offset != head.offset + head.length + 1:
                break
            head.original_text += "\n" + candidate.original_text
            head.length += candidate.length + 1
            index += 1
        merged.append(head)
    return merged


def content_key(text: str) -> str:
    """Deterministic fingerprint of a line's original text."""

    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def assign_content_keys(lines: Iterable[ExtractedLine]) -> None:
    for line in lines:
        line.text_key = content_key(line.original_text)


def count_lines(text: str) -> int:
    return text.count("\n") + 1 if text else 0


def unique_translation_units(lines: Iterable[ExtractedLine]) -> List[TranslationUnit]:
    """One unit per distinct original text, in order of first occurrence."""

    units: List[TranslationUnit] = []
    seen: set[str] = set()
    for line in lines:
        if line.original_text in seen:
            continue
        seen.add(line.original_text)
        units.append(
            TranslationUnit(
                text_key=line.text_key or content_key(line.original_text),
                original_text=line.original_text,
                length=line.length,
                orig_lines=count_lines(line.original_text),
            )
        )
    return units


def apply_unit_translations(
    lines: Iterable[ExtractedLine],
    units: Iterable[TranslationUnit],
) -> int:
    """Copy unit translations onto untranslated occurrences sharing a key.

    Returns the number of occurrences that received a translation. A
    translation already present on an occurrence is kept.
    """

    by_key: Dict[str, TranslationUnit] = {
        unit.text_key: unit for unit in units if unit.translated_text
    }
    filled = 0
    for line in lines:
        if line.translated_text:
            continue
        unit = by_key.get(line.text_key)
        if unit is None:
            continue
        line.translated_text = unit.translated_text
        if not line.status:
            line.status = unit.status
        filled += 1
    return filled
