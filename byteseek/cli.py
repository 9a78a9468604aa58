"""
byteseek.cli
Command-line front end.

Files and the pattern can be given as arguments.  When no files are given
the tool runs interactively: paths are dragged into the console, the pattern
is typed in and re-prompted until it parses, and the window stays open until
Enter is pressed.
"""
from __future__ import annotations
import argparse
import logging
import os
from pathlib import Path
from typing import Callable, Sequence
from byteseek import __version__
from byteseek.export import EXPORT_FORMATS, export_matches
from byteseek.matcher import STRATEGY_NAMES
from byteseek.pattern import PatternError, parse_pattern
from byteseek.scanner import CollectingSink, FileReport, Match, ScanConfig, scan_files

logger = logging.getLogger(__name__)

_PATTERN_PROMPT = (
    "Enter the binary pattern to search for "
    "(e.g., 'deadbeef' or '0xDE 0xAD 0xBE 0xEF'): "
)
_FILES_PROMPT = "Please drag and drop files into this console, then press Enter to proceed:"

InputFn = Callable[[str], str]


# ---------------------------------------------------------------------------
# Console output
# ---------------------------------------------------------------------------
class ConsoleSink(CollectingSink):
    """Prints scan events as they happen and keeps the matches for export."""

    def on_start(self, path: str) -> None:
        print(f"\nSearching for pattern in file: '{path}'")

    def on_match(self, match: Match) -> None:
        super().on_match(match)
        print(f"Pattern found in {match.path} at offset {match.offset}")

    def on_complete(self, path: str, count: int) -> None:
        print(f"Pattern search completed for file: {os.path.basename(path)}")

    def on_error(self, path: str, exc: OSError) -> None:
        super().on_error(path, exc)
        print(f"Error reading file {path}: {exc}")


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------
def _prompt(message: str, input_fn: InputFn) -> str | None:
    """Read one line; ``None`` means stdin was closed."""
    try:
        return input_fn(message)
    except EOFError:
        return None


def split_paths(line: str) -> list[str]:
    """Split a dropped-files line on the OS path separator and trim quotes."""
    parts = (p.strip().strip("'\"") for p in line.strip().split(os.pathsep))
    return [p for p in parts if p]


def prompt_files(input_fn: InputFn = input) -> list[str]:
    print(_FILES_PROMPT)
    line = _prompt("", input_fn)
    return split_paths(line) if line else []


def prompt_pattern(input_fn: InputFn = input) -> bytes | None:
    """Ask for a pattern until one parses.  Returns ``None`` on end of input."""
    while True:
        text = _prompt(_PATTERN_PROMPT, input_fn)
        if text is None:
            return None
        try:
            return parse_pattern(text)
        except PatternError as exc:
            logger.debug("Rejected pattern: %s", exc)
            print("Invalid pattern format. Please try again.")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------
def _pattern_arg(text: str) -> bytes:
    try:
        return parse_pattern(text)
    except PatternError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _chunk_size_arg(text: str) -> int:
    value = int(text, 0)
    if value <= 0:
        raise argparse.ArgumentTypeError("chunk size must be positive")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="byteseek",
        description="Find every offset of a byte pattern in one or more files.",
    )
    parser.add_argument("files", nargs="*", help="files to scan (prompted for when omitted)")
    parser.add_argument("-p", "--pattern", type=_pattern_arg,
                        help="hex string ('deadbeef') or byte tokens ('0xDE 0xAD')")
    parser.add_argument("--chunk-size", type=_chunk_size_arg, default=4096,
                        help="bytes read per chunk (default: 4096)")
    parser.add_argument("--strategy", choices=STRATEGY_NAMES, default="brute",
                        help="in-chunk search algorithm (default: brute)")
    parser.add_argument("--no-bridge", dest="bridge", action="store_false",
                        help="search chunks in isolation; misses matches across chunk boundaries")
    parser.add_argument("--export", type=Path, metavar="PATH",
                        help="also write all matches to PATH")
    parser.add_argument("--format", choices=EXPORT_FORMATS,
                        help="export format (default: from PATH suffix)")
    parser.add_argument("--pause", action="store_true",
                        help="wait for Enter before exiting")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main(argv: Sequence[str] | None = None, input_fn: InputFn = input) -> int:
    """Run the scanner and return a process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.format is not None and args.export is None:
        parser.error("--format requires --export")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )

    interactive = not args.files
    pause = args.pause or interactive
    try:
        return _run(args, interactive, input_fn)
    finally:
        if pause:
            print("\nSearch complete. Press Enter to exit.")
            _prompt("", input_fn)


def _run(args: argparse.Namespace, interactive: bool, input_fn: InputFn) -> int:
    files = prompt_files(input_fn) if interactive else list(args.files)
    if not files:
        print("Error: No files provided. Please drag and drop at least one file.")
        return 1

    pattern = args.pattern
    if pattern is None:
        pattern = prompt_pattern(input_fn)
        if pattern is None:
            print("Error: No pattern provided.")
            return 1

    config = ScanConfig(
        chunk_size    = args.chunk_size,
        strategy      = args.strategy,
        bridge_chunks = args.bridge,
    )
    sink    = ConsoleSink()
    reports: list[FileReport] = []
    missing: list[str]        = []
    for path in files:
        if not os.path.exists(path):
            sink.on_start(path)
            print(f"Error: File {path} does not exist. Skipping.")
            missing.append(path)
            continue
        reports.extend(scan_files([path], pattern, config, sink))

    if args.export is not None:
        try:
            export_matches(sink.matches, args.export, pattern, args.format)
        except OSError as exc:
            logger.error("Export failed: %s", exc)
            print(f"Error writing export file {args.export}: {exc}")
            return 1
        print(f"Exported {len(sink.matches)} matches to {args.export}")

    return 0 if not missing and all(r.ok for r in reports) else 1
