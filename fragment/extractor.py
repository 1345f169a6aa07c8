"""High-level orchestration for extracting translatable lines."""

from __future__ import annotations

import logging
import pathlib
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .csvio import write_lines, write_units
from .errors import FragmentError, InputReadError
from .filters import first_rejection
from .records import assign_content_keys, merge_continuations, unique_translation_units
from .scanner import DEFAULT_ENCODING, decode_text, scan_fragments
from .structures import ExtractedLine, ManualExclusionRange
from .tables import MANUAL_EXCLUSIONS

log = logging.getLogger(__name__)

LINES_FILENAME = "gamelines.csv"
UNITS_FILENAME = "tllines.csv"


@dataclass
class ExtractionSummary:
    """Report returned after an extraction run."""

    input_files: int
    fragments: int
    undecodable: int
    extracted_lines: int
    translation_units: int
    lines_path: pathlib.Path
    units_path: pathlib.Path
    elapsed_seconds: float
    rejections: Dict[str, int] = field(default_factory=dict)


def extract_lines(
    data: bytes,
    file: str,
    *,
    encoding: str = DEFAULT_ENCODING,
    exclusions: Sequence[ManualExclusionRange] = MANUAL_EXCLUSIONS,
    stats: Counter | None = None,
) -> List[ExtractedLine]:
    """Scan, decode and filter one buffer, returning unmerged lines."""

    lines: List[ExtractedLine] = []
    for fragment in scan_fragments(data, file):
        if stats is not None:
            stats["fragments"] += 1
        text = decode_text(fragment.raw, encoding=encoding)
        if text is None:
            if stats is not None:
                stats["undecodable"] += 1
            continue
        line = ExtractedLine(
            file=fragment.file,
            offset=fragment.offset,
            length=fragment.length,
            original_text=text,
        )
        rejected_by = first_rejection(line, exclusions=exclusions)
        if rejected_by is not None:
            log.debug("%s@%d rejected by %s filter: %r", file, fragment.offset, rejected_by, text)
            if stats is not None:
                stats[f"rejected:{rejected_by}"] += 1
            continue
        lines.append(line)
    return lines


class ExtractionRunner:
    """Builds the occurrence and translation unit tables for a set of files."""

    def __init__(
        self,
        *,
        input_paths: Sequence[pathlib.Path],
        output_folder: pathlib.Path,
        encoding: str = DEFAULT_ENCODING,
        exclusions: Sequence[ManualExclusionRange] = MANUAL_EXCLUSIONS,
    ) -> None:
        self.input_paths = list(input_paths)
        self.output_folder = output_folder
        self.encoding = encoding
        self.exclusions = exclusions

    def run(self) -> ExtractionSummary:
        start_time = time.time()
        stats: Counter = Counter()

        if not self.output_folder.is_dir():
            raise FragmentError(f"Output folder {self.output_folder} does not exist.")

        seen: Dict[str, pathlib.Path] = {}
        for path in self.input_paths:
            if path.name in seen:
                raise FragmentError(
                    f"Input files {seen[path.name]} and {path} share the name {path.name!r}; "
                    "table rows are keyed by file name and could not be told apart."
                )
            seen[path.name] = path

        lines: List[ExtractedLine] = []
        for path in self.input_paths:
            try:
                data = path.read_bytes()
            except OSError as exc:
                raise InputReadError(f"Could not read {path}: {exc}") from exc
            found = extract_lines(
                data,
                path.name,
                encoding=self.encoding,
                exclusions=self.exclusions,
                stats=stats,
            )
            log.info("%s: %d candidate lines", path.name, len(found))
            lines.extend(found)

        lines = merge_continuations(lines)
        assign_content_keys(lines)
        units = unique_translation_units(lines)

        lines_path = self.output_folder / LINES_FILENAME
        units_path = self.output_folder / UNITS_FILENAME
        write_lines(lines_path, lines)
        write_units(units_path, units)

        return ExtractionSummary(
            input_files=len(self.input_paths),
            fragments=stats["fragments"],
            undecodable=stats["undecodable"],
            extracted_lines=len(lines),
            translation_units=len(units),
            lines_path=lines_path,
            units_path=units_path,
            elapsed_seconds=time.time() - start_time,
            rejections={
                key.split(":", 1)[1]: count
                for key, count in stats.items()
                if key.startswith("rejected:")
            },
        )
