"""Write translated text back into the exact byte slots it was extracted from."""

from __future__ import annotations

import logging
import pathlib
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .containers import Buffer, open_container
from .csvio import parse_lines, parse_units
from .errors import (
    ErrorCategory,
    OversizeTranslationError,
    TranslationEncodingError,
)
from .policy import ErrorPolicy
from .records import apply_unit_translations
from .scanner import DEFAULT_ENCODING, encode_text
from .sources import DEFAULT_TIMEOUT, build_table_source
from .structures import ExtractedLine, PatchInstruction

log = logging.getLogger(__name__)

PADDING_BYTES = {"null": 0x00, "space": 0x20}


@dataclass
class PatchSummary:
    """Report returned after a patch run."""

    table: str
    input_path: pathlib.Path
    output_path: pathlib.Path
    container_kind: str
    total_lines: int
    untranslated_lines: int
    patched_lines: int
    skipped_lines: int
    files_patched: int
    elapsed_seconds: float
    skipped_by_category: Dict[str, int] = field(default_factory=dict)
    error_messages: List[str] = field(default_factory=list)


def write_slot(
    buffer: Buffer,
    offset: int,
    length: int,
    encoded: bytes,
    *,
    padding_byte: int = 0x00,
) -> None:
    """Overwrite the slot ``[offset, offset + length]`` with ``encoded``.

    Newlines become null separators, unused slot bytes take
    ``padding_byte`` and the byte at ``offset + length`` becomes the
    terminating null when it lies inside the buffer. Nothing outside the
    slot is touched.
    """

    if len(encoded) > length:
        raise OversizeTranslationError(
            f"{len(encoded)} encoded bytes do not fit a {length} byte slot."
        )
    if offset < 0 or offset + length > len(buffer):
        raise IndexError(f"Slot {offset}+{length} lies outside a {len(buffer)} byte buffer.")

    body = encoded.replace(b"\n", b"\x00") + bytes([padding_byte]) * (length - len(encoded))
    buffer[offset:offset + length] = body
    if offset + length < len(buffer):
        buffer[offset + length] = 0x00


def build_instructions(
    lines: Iterable[ExtractedLine],
    *,
    policy: ErrorPolicy,
    prefix: str = "",
    encoding: str = DEFAULT_ENCODING,
) -> Dict[str, List[PatchInstruction]]:
    """Encode translated lines and group them by target file.

    Untranslated lines are left out. Lines that cannot be encoded or do not
    fit their slot are reported to ``policy`` and left out too.
    """

    groups: Dict[str, List[PatchInstruction]] = {}
    for line in lines:
        location = f"{line.file} at offset {line.offset}"
        if not line.translated_text:
            log.debug("No translation for %s", location)
            continue
        try:
            encoded = encode_text(line.translated_text, encoding=encoding)
        except TranslationEncodingError as exc:
            policy.handle_error(
                ErrorCategory.ENCODING,
                f"Skipping {location}: {exc}",
            )
            continue
        line.tl_length = len(encoded)
        if len(encoded) > line.length:
            policy.handle_error(
                ErrorCategory.OVERSIZE,
                f"Skipping {location}: translation is {len(encoded)} bytes "
                f"but the slot holds {line.length}.",
                details=line.translated_text,
            )
            continue
        target = prefix + line.file
        groups.setdefault(target, []).append(
            PatchInstruction(
                target_file=target,
                offset=line.offset,
                length=line.length,
                translated_bytes=encoded,
            )
        )
    return groups


class PatchRunner:
    """Coordinates table loading, instruction building and in-place writes."""

    def __init__(
        self,
        *,
        table: str,
        input_path: pathlib.Path,
        output_path: pathlib.Path,
        units_table: str | None = None,
        prefix: str = "",
        padding: str = "null",
        encoding: str = DEFAULT_ENCODING,
        halt_on_error: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if padding not in PADDING_BYTES:
            raise ValueError(f"Unknown padding policy {padding!r}.")
        self.table = table
        self.input_path = input_path
        self.output_path = output_path
        self.units_table = units_table
        self.prefix = prefix
        self.padding_byte = PADDING_BYTES[padding]
        self.encoding = encoding
        self.timeout = timeout
        self.error_policy = ErrorPolicy(halt_on_error=halt_on_error)

    def load_lines(self) -> List[ExtractedLine]:
        source = build_table_source(self.table, timeout=self.timeout)
        lines = parse_lines(source.fetch(), label=source.label)
        log.info("Loaded %d game lines from %s", len(lines), source.label)

        if self.units_table:
            unit_source = build_table_source(self.units_table, timeout=self.timeout)
            units = parse_units(unit_source.fetch(), label=unit_source.label)
            filled = apply_unit_translations(lines, units)
            log.info(
                "Applied %d unit translations from %s to %d lines",
                sum(1 for unit in units if unit.translated_text),
                unit_source.label,
                filled,
            )
        return lines

    def run(self) -> PatchSummary:
        start_time = time.time()

        lines = self.load_lines()
        untranslated = sum(1 for line in lines if not line.translated_text)

        container_kind, container = open_container(self.input_path, self.output_path)
        groups = build_instructions(
            lines,
            policy=self.error_policy,
            prefix=self.prefix,
            encoding=self.encoding,
        )

        # Every group must resolve before anything is written.
        for name in groups:
            container.resolve(name)

        patched = 0
        for name, instructions in groups.items():
            log.info("Patching %d lines in %s", len(instructions), name)
            with container.checkout(name) as buffer:
                for instruction in instructions:
                    if (
                        instruction.offset < 0
                        or instruction.length < 0
                        or instruction.offset + instruction.length > len(buffer)
                    ):
                        self.error_policy.handle_error(
                            ErrorCategory.BOUNDS,
                            f"Skipping {name} at offset {instruction.offset}: slot of "
                            f"{instruction.length} bytes lies outside the file "
                            f"({len(buffer)} bytes).",
                        )
                        continue
                    write_slot(
                        buffer,
                        instruction.offset,
                        instruction.length,
                        instruction.translated_bytes,
                        padding_byte=self.padding_byte,
                    )
                    patched += 1

        container.finalize()

        return PatchSummary(
            table=self.table,
            input_path=self.input_path,
            output_path=self.output_path,
            container_kind=container_kind,
            total_lines=len(lines),
            untranslated_lines=untranslated,
            patched_lines=patched,
            skipped_lines=self.error_policy.total,
            files_patched=len(groups),
            elapsed_seconds=time.time() - start_time,
            skipped_by_category={
                category.name.lower(): count
                for category, count in self.error_policy.counts().items()
            },
            error_messages=self.error_policy.messages(),
        )
