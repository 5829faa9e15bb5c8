"""CLI interface for mediasweep."""

import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from colorama import Fore, Style, init

try:
    from shtab import DIRECTORY, FILE
except ImportError:
    # shtab not installed - tab completion won't work but that's okay
    DIRECTORY = FILE = None  # type: ignore

from . import __version__
from .aggregate import format_file_size
from .config import OUTPUT_FORMATS, load_settings
from .engine import ScanEngine, new_operation_id
from .errors import (
    MediaSweepError,
    MetadataError,
    PartialDeleteFailure,
    ScannerArtifactMissingError,
)
from .launcher import DUPLICATE_MODE, SIMILAR_MODE
from .metadata import scan_missing_dates, write_exif_date_if_missing
from .models import DedupResult, SimilarResult

# Initialize colorama for cross-platform color support
init(autoreset=True)

ScanResult = Union[DedupResult, SimilarResult]


def get_similarity_color(similarity: float) -> str:
    """
    Get color for similarity percentage based on value.

    Args:
        similarity: Similarity percentage (0-100)

    Returns:
        Colorama color code
    """
    if similarity >= 99.0:
        color: str = Fore.GREEN
    elif similarity >= 95.0:
        color = Fore.YELLOW
    else:
        color = Fore.LIGHTRED_EX
    return color


def print_progress(message: str, percentage: int) -> None:
    """Progress callback: the scanner only reports that it is running."""
    suffix = f" ({percentage}%)" if percentage >= 0 else ""
    print(f"{Style.DIM}{message}{suffix}{Style.RESET_ALL}", file=sys.stderr)


def _modified_suffix(modified: Optional[str]) -> str:
    return f" {Style.DIM}[{modified}]{Style.RESET_ALL}" if modified else ""


def format_dedup_text(result: DedupResult) -> None:
    """Print duplicate groups; the first file of each group is the one kept."""
    if not result.duplicates:
        print("No duplicates found.")
        return

    print(
        f"{Fore.CYAN}{Style.BRIGHT}Found {result.total_groups} group(s) "
        f"of duplicate files:{Style.RESET_ALL}\n"
    )

    for idx, group in enumerate(result.duplicates, 1):
        print(
            f"{Fore.CYAN}{Style.BRIGHT}Group {idx}{Style.RESET_ALL} "
            f"{Style.DIM}({group.file_count} files, "
            f"{format_file_size(group.size_bytes)} each){Style.RESET_ALL}"
        )
        keep, *redundant = group.files
        print(
            f"  {Fore.LIGHTGREEN_EX}{Style.BRIGHT}[Keep]{Style.RESET_ALL} "
            f"{keep.path}{_modified_suffix(keep.modified)}"
        )

        for i, file in enumerate(redundant):
            tree_char = "└─" if i == len(redundant) - 1 else "├─"
            print(f"    {tree_char} {file.path}{_modified_suffix(file.modified)}")
        print()

    print(
        f"{Style.BRIGHT}Wasted space: "
        f"{format_file_size(result.total_wasted_space)}{Style.RESET_ALL}"
    )


def format_similar_text(result: SimilarResult) -> None:
    """Print similar-image groups with their similarity percentage."""
    if not result.similar_groups:
        print("No similar images found.")
        return

    print(
        f"{Fore.CYAN}{Style.BRIGHT}Found {result.total_groups} group(s) "
        f"of similar images:{Style.RESET_ALL}\n"
    )

    for idx, group in enumerate(result.similar_groups, 1):
        sim_color = get_similarity_color(group.similarity)
        print(
            f"{Fore.CYAN}{Style.BRIGHT}Group {idx}{Style.RESET_ALL} "
            f"{sim_color}[{group.similarity:.1f}% match]{Style.RESET_ALL}"
        )
        for i, file in enumerate(group.files):
            tree_char = "└─" if i == len(group.files) - 1 else "├─"
            dimensions = (
                f"{file.width}x{file.height}, " if file.width and file.height else ""
            )
            print(
                f"  {tree_char} {file.path} {Style.DIM}({dimensions}"
                f"{format_file_size(file.size)}){Style.RESET_ALL}"
            )
        print()


def format_output_json(results: Dict[str, ScanResult]) -> None:
    """Print results as JSON; a single scan is printed unwrapped."""
    if len(results) == 1:
        (result,) = results.values()
        output: Any = result.to_dict()
    else:
        output = {
            ("duplicates" if mode == DUPLICATE_MODE else "similar"): result.to_dict()
            for mode, result in results.items()
        }
    print(json.dumps(output, indent=2))


def get_parser() -> argparse.ArgumentParser:
    """
    Get the argument parser for mediasweep.

    This function is used by tab completion tools (e.g., shtab) to generate
    completion scripts.

    Returns:
        ArgumentParser configured with all mediasweep options
    """
    parser = argparse.ArgumentParser(
        prog="mediasweep",
        description="Find duplicate and similar media files using czkawka_cli.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ~/Pictures
  %(prog)s ~/Pictures --similar
  %(prog)s ~/Pictures --all --output json
  %(prog)s ~/Pictures --delete-duplicates --yes
  %(prog)s --check
  %(prog)s --missing-dates ~/Pictures/WhatsApp --write-dates
        """,
    )

    path_arg = parser.add_argument(
        "path",
        nargs="?",
        help="Directory to scan",
    )
    if DIRECTORY is not None:
        path_arg.complete = DIRECTORY  # type: ignore

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--similar",
        action="store_true",
        help="Find visually similar images instead of exact duplicates",
    )
    mode.add_argument(
        "--all",
        action="store_true",
        help="Run the duplicate and similar-image scans concurrently",
    )

    scanner_arg = parser.add_argument(
        "--scanner",
        metavar="BIN",
        help="Path to czkawka_cli (default: from settings, then PATH)",
    )
    if FILE is not None:
        scanner_arg.complete = FILE  # type: ignore

    parser.add_argument(
        "-o",
        "--output",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: from settings, normally text)",
    )

    parser.add_argument(
        "--delete-duplicates",
        action="store_true",
        help="Move every duplicate except the first of each group to the trash",
    )

    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation before deleting",
    )

    parser.add_argument(
        "--check",
        action="store_true",
        help="Check that czkawka_cli can be run and exit",
    )

    missing_dates_arg = parser.add_argument(
        "--missing-dates",
        metavar="DIR",
        help="List media files in DIR without an EXIF capture date and exit",
    )
    if DIRECTORY is not None:
        missing_dates_arg.complete = DIRECTORY  # type: ignore

    parser.add_argument(
        "--write-dates",
        action="store_true",
        help="With --missing-dates, write dates inferred from filenames to EXIF",
    )

    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable progress output",
    )

    config_arg = parser.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="Settings file (default: ~/.config/mediasweep/mediasweep.toml)",
    )
    if FILE is not None:
        config_arg.complete = FILE  # type: ignore

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = get_parser()
    return parser.parse_args(argv)


def run_scans(
    engine: ScanEngine,
    path: str,
    modes: List[str],
    scanner: Optional[str],
    show_progress: bool,
) -> Dict[str, ScanResult]:
    """
    Run one scan per mode, each on its own worker thread.

    Ctrl+C cancels every scan through the engine's registry before the
    interrupt propagates.
    """
    scan_functions = {
        DUPLICATE_MODE: engine.find_duplicates,
        SIMILAR_MODE: engine.find_similar,
    }
    operation_ids = {mode: new_operation_id() for mode in modes}
    progress = print_progress if show_progress else None
    results: Dict[str, ScanResult] = {}

    with ThreadPoolExecutor(max_workers=len(modes)) as executor:
        futures = {
            executor.submit(
                scan_functions[mode], path, scanner, operation_ids[mode], progress
            ): mode
            for mode in modes
        }
        try:
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        except KeyboardInterrupt:
            for operation_id in operation_ids.values():
                engine.cancel(operation_id)
            raise
        except MediaSweepError:
            # One failed scan makes the whole run fail; stop the others
            for operation_id in operation_ids.values():
                engine.cancel(operation_id)
            raise

    # Report in a stable order regardless of completion order
    return {mode: results[mode] for mode in modes}


def delete_duplicates(engine: ScanEngine, result: DedupResult, assume_yes: bool) -> int:
    """Trash every file after the first of each duplicate group."""
    paths = [f.path for group in result.duplicates for f in group.files[1:]]
    if not paths:
        print("No duplicates to delete.")
        return 0

    print(
        f"{Fore.YELLOW}{len(paths)} file(s) will be moved to the trash, "
        f"freeing {format_file_size(result.total_wasted_space)}.{Style.RESET_ALL}"
    )
    if not assume_yes:
        answer = input("Continue? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("Deletion cancelled.")
            return 0

    try:
        print(engine.delete_to_trash(paths, show_progress=True))
    except PartialDeleteFailure as e:
        print(f"{Fore.RED}Error: {e}{Style.RESET_ALL}", file=sys.stderr)
        return 1
    return 0


def report_missing_dates(directory: str, write: bool) -> int:
    """
    List media files lacking a capture date, optionally fixing them.

    Args:
        directory: Directory to inspect (not recursive)
        write: Write dates inferred from filenames to the files' EXIF

    Returns:
        Exit code: 0 if nothing is missing or every write succeeded,
        2 if dates are missing, 1 if any write failed
    """
    infos = scan_missing_dates(directory)
    missing = [info for info in infos if not info.has_date]
    if not missing:
        print(f"All {len(infos)} media file(s) have a capture date.")
        return 0

    print(
        f"{Fore.CYAN}{Style.BRIGHT}{len(missing)} of {len(infos)} media file(s) "
        f"have no capture date:{Style.RESET_ALL}\n"
    )
    for info in missing:
        extracted = info.extracted_date
        if extracted:
            when = f"{extracted.date} {extracted.time or ''}".rstrip()
            hint = f"{Fore.GREEN}{when} ({extracted.source}){Style.RESET_ALL}"
        else:
            hint = f"{Style.DIM}no date in filename{Style.RESET_ALL}"
        camera = f" {Style.DIM}[{info.camera_model}]{Style.RESET_ALL}"
        print(f"  {info.file_path} -> {hint}{camera if info.camera_model else ''}")

    if not write:
        return 2

    failed = 0
    for info in missing:
        if not info.extracted_date:
            continue
        try:
            message = write_exif_date_if_missing(
                info.file_path, info.extracted_date.date, info.extracted_date.time
            )
            print(f"{info.file_path}: {message}")
        except MetadataError as e:
            failed += 1
            print(f"{Fore.RED}{info.file_path}: {e}{Style.RESET_ALL}", file=sys.stderr)

    return 1 if failed else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.config)
    except MediaSweepError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    engine = ScanEngine(settings=settings)

    if args.check:
        try:
            print(engine.check_scanner_available(args.scanner))
            return 0
        except MediaSweepError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    if args.write_dates and not args.missing_dates:
        print("Error: --write-dates requires --missing-dates", file=sys.stderr)
        return 1

    if args.missing_dates:
        try:
            return report_missing_dates(args.missing_dates, args.write_dates)
        except MetadataError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    if not args.path:
        print("Error: the following arguments are required: path", file=sys.stderr)
        return 1

    # Deleting prints nothing else, so other scans' results would be lost
    if args.delete_duplicates and (args.similar or args.all):
        print(
            "Error: --delete-duplicates cannot be used with --similar or --all",
            file=sys.stderr,
        )
        return 1

    if args.all:
        modes = [DUPLICATE_MODE, SIMILAR_MODE]
    elif args.similar:
        modes = [SIMILAR_MODE]
    else:
        modes = [DUPLICATE_MODE]

    output_format = args.output or settings.output_format

    try:
        results = run_scans(
            engine, args.path, modes, args.scanner, not args.no_progress
        )
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 130
    except ScannerArtifactMissingError as e:
        if e.cancelled:
            print("Scan cancelled.", file=sys.stderr)
            return 130
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except MediaSweepError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    dedup = results.get(DUPLICATE_MODE)
    if args.delete_duplicates and isinstance(dedup, DedupResult):
        try:
            return delete_duplicates(engine, dedup, args.yes)
        except KeyboardInterrupt:
            print("\nDeletion cancelled by user.", file=sys.stderr)
            return 130

    if output_format == "json":
        format_output_json(results)
    else:
        for result in results.values():
            if isinstance(result, DedupResult):
                format_dedup_text(result)
            else:
                format_similar_text(result)

    # Exit with non-zero if anything was found (for scripting)
    found = any(result.total_groups for result in results.values())
    return 2 if found else 0


if __name__ == "__main__":
    sys.exit(main())
