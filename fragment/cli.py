"""Command line interface for the fragment extractor and patcher."""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from typing import Iterable, Optional, Sequence

from .configuration import FragmentConfig, get_settings
from .errors import ConfigurationError, FragmentError, OverwriteRefusedError
from .extractor import ExtractionRunner, ExtractionSummary
from .patcher import PADDING_BYTES, PatchRunner, PatchSummary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fragment",
        description=(
            "Extract Shift-JIS text from game data files and patch translations "
            "back into the same byte slots."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information, including filter rejections.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    extract = commands.add_parser(
        "extract",
        help="Write gamelines.csv and tllines.csv for a set of game files.",
    )
    extract.add_argument("output_folder", help="Folder receiving the two tables.")
    extract.add_argument("input_files", nargs="+", help="Game data files to scan.")

    patch = commands.add_parser(
        "patch",
        help="Write translations from a table into a file tree or disc image.",
    )
    patch.add_argument(
        "locations",
        nargs="+",
        metavar="PATH",
        help=(
            "[TABLE] INPUT OUTPUT. TABLE is a local gamelines CSV or an http(s) URL "
            "and defaults to FRAGMENT_TABLE_URL. INPUT is a folder of game files or "
            "a disc image."
        ),
    )
    patch.add_argument(
        "-u",
        "--units",
        help="Translated tllines table (path or URL) applied to every matching line.",
    )
    patch.add_argument(
        "--prefix",
        help="Prefix joining table file names to container paths (e.g. DATA/).",
    )
    patch.add_argument(
        "--pad",
        choices=sorted(PADDING_BYTES),
        help="Byte used for unused slot space after a shorter translation.",
    )
    patch.add_argument(
        "--halt-on-oversize",
        action="store_true",
        help="Stop at the first translation that cannot be written instead of skipping it.",
    )
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def execute_extract(
    *,
    output_folder: str,
    input_files: Sequence[str],
    settings: FragmentConfig,
) -> tuple[int, ExtractionSummary | None, str | None]:
    """Run an extraction and return the exit code, summary, and message."""

    runner = ExtractionRunner(
        input_paths=[pathlib.Path(name).expanduser() for name in input_files],
        output_folder=pathlib.Path(output_folder).expanduser(),
        encoding=settings.FRAGMENT_ENCODING,
    )
    try:
        summary = runner.run()
    except FragmentError as exc:
        return 1, None, str(exc)
    except KeyboardInterrupt:
        return 2, None, "Extraction interrupted by user."
    return 0, summary, None


def validate_patch_paths(input_path: pathlib.Path, output_path: pathlib.Path) -> None:
    """Refuse to run when the output would overwrite the input."""

    if not input_path.exists():
        raise FragmentError(f"Patch input {input_path} does not exist.")
    if input_path.resolve() == output_path.resolve():
        raise OverwriteRefusedError(
            "The output path matches the input. Refusing to overwrite the original data."
        )


def execute_patch(
    *,
    locations: Sequence[str],
    units: str | None,
    prefix: str | None,
    pad: str | None,
    halt_on_oversize: bool,
    settings: FragmentConfig,
) -> tuple[int, PatchSummary | None, str | None]:
    """Run a patch and return the exit code, summary, and message."""

    if len(locations) == 3:
        table, input_name, output_name = locations
    elif len(locations) == 2:
        if not settings.FRAGMENT_TABLE_URL:
            return 1, None, (
                "No translation table given and FRAGMENT_TABLE_URL is not configured."
            )
        table = settings.FRAGMENT_TABLE_URL
        input_name, output_name = locations
    else:
        return 1, None, "patch expects [TABLE] INPUT OUTPUT."

    input_path = pathlib.Path(input_name).expanduser()
    output_path = pathlib.Path(output_name).expanduser()
    try:
        validate_patch_paths(input_path, output_path)
    except FragmentError as exc:
        return 1, None, str(exc)

    output_path.parent.mkdir(parents=True, exist_ok=True)

    runner = PatchRunner(
        table=table,
        input_path=input_path,
        output_path=output_path,
        units_table=units,
        prefix=prefix if prefix is not None else settings.FRAGMENT_PATH_PREFIX,
        padding=pad or settings.FRAGMENT_PADDING,
        encoding=settings.FRAGMENT_ENCODING,
        halt_on_error=halt_on_oversize or settings.FRAGMENT_HALT_ON_OVERSIZE,
        timeout=settings.FRAGMENT_HTTP_TIMEOUT,
    )
    try:
        summary = runner.run()
    except FragmentError as exc:
        return 1, None, str(exc)
    except KeyboardInterrupt:
        return 2, None, "Patching interrupted by user."
    return 0, summary, None


def print_extract_summary(summary: ExtractionSummary) -> None:
    print("\nExtraction complete.")
    print(f"  Input files:     {summary.input_files}")
    print(f"  Fragments:       {summary.fragments} ({summary.undecodable} undecodable)")
    if summary.rejections:
        rejected = ", ".join(
            f"{name} {count}" for name, count in sorted(summary.rejections.items())
        )
        print(f"  Filtered out:    {rejected}")
    print(f"  Game lines:      {summary.extracted_lines} -> {summary.lines_path}")
    print(f"  Unique texts:    {summary.translation_units} -> {summary.units_path}")
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")


def print_patch_summary(summary: PatchSummary) -> None:
    """Output a friendly report once patching completes."""

    print("\nPatching complete.")
    print(f"  Table:           {summary.table}")
    print(f"  Input:           {summary.input_path} ({summary.container_kind})")
    print(f"  Output:          {summary.output_path}")
    print(
        "  Lines:           "
        f"{summary.patched_lines} patched / {summary.total_lines} total "
        f"({summary.untranslated_lines} untranslated, {summary.skipped_lines} skipped)"
    )
    print(f"  Files patched:   {summary.files_patched}")
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")
    if summary.skipped_lines:
        by_category = ", ".join(
            f"{name} {count}" for name, count in sorted(summary.skipped_by_category.items())
        )
        print(f"  Skipped lines:   {by_category}")
        for message in summary.error_messages:
            print(f"    - {message}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.verbose)

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(exc)
        return 1

    if args.command == "extract":
        exit_code, extract_summary, message = execute_extract(
            output_folder=args.output_folder,
            input_files=args.input_files,
            settings=settings,
        )
        if message:
            print(message)
        if extract_summary:
            print_extract_summary(extract_summary)
        return exit_code

    exit_code, patch_summary, message = execute_patch(
        locations=args.locations,
        units=args.units,
        prefix=args.prefix,
        pad=args.pad,
        halt_on_oversize=args.halt_on_oversize,
        settings=settings,
    )
    if message:
        print(message)
    if patch_summary:
        print_patch_summary(patch_summary)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
