"""
byteseek.scanner
================
Chunked byte-pattern scanner.

A file is never loaded whole.  It is read ``chunk_size`` bytes at a time and
each chunk is searched for the pattern; every hit is reported as an absolute
file offset the moment it is found.

With ``bridge_chunks`` enabled (the default) the last ``len(pattern) - 1``
bytes of each window are carried into the next one, so an occurrence that
straddles a chunk boundary is still found, exactly once.  Disabling it
searches every chunk in isolation, which misses such occurrences.

Public API
----------
ScanConfig                               — chunk size, matcher, bridging
ScanSession                              — per-file state (offset + carry)
iter_offsets(pattern, stream, config)    → Iterator[int]
scan_file(path, pattern, config)         → Iterator[Match]
scan_files(paths, pattern, config, sink) → list[FileReport]
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, Iterator

from byteseek.matcher import Matcher, Strategy, get_matcher
from byteseek.pattern import format_pattern

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Match:
    """One occurrence of the pattern: file path and absolute offset."""
    path:   str
    offset: int

    def __str__(self) -> str:
        return f"@0x{self.offset:08X}  {self.path}"


@dataclass(slots=True)
class FileReport:
    """Outcome of scanning one file in a batch."""
    path:        str
    match_count: int            = 0
    error:       OSError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ScanConfig:
    """Configuration shared by every file of a scan run."""
    chunk_size:    int      = DEFAULT_CHUNK_SIZE
    strategy:      Strategy = Strategy.BRUTE_FORCE
    bridge_chunks: bool     = True

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if isinstance(self.strategy, str):
            self.strategy = Strategy(self.strategy)

    def new_session(self, pattern: bytes) -> ScanSession:
        return ScanSession(
            pattern       = pattern,
            matcher       = get_matcher(self.strategy),
            bridge_chunks = self.bridge_chunks,
        )


# ---------------------------------------------------------------------------
# Scan session
# ---------------------------------------------------------------------------

@dataclass
class ScanSession:
    """
    State for scanning one stream.

    ``consumed`` counts the bytes fed so far; ``carry`` holds the tail of the
    previous window that has not yet been tried as a match start.
    """
    pattern:       bytes
    matcher:       Matcher = field(default_factory=lambda: get_matcher(Strategy.BRUTE_FORCE))
    bridge_chunks: bool    = True
    consumed:      int     = 0
    carry:         bytes   = b""

    def __post_init__(self) -> None:
        if not self.pattern:
            raise ValueError("pattern must not be empty")

    def feed(self, block: bytes) -> list[int]:
        """Search *block* and return the absolute offsets of all hits in it."""
        window = self.carry + block if self.carry else block
        base   = self.consumed - len(self.carry)
        hits   = [base + i for i in self.matcher.find_all(window, self.pattern)]

        self.consumed += len(block)
        if self.bridge_chunks:
            keep = min(len(self.pattern) - 1, len(window))
            self.carry = bytes(window[len(window) - keep:]) if keep else b""
        return hits


def iter_offsets(
    pattern: bytes,
    stream:  BinaryIO,
    config:  ScanConfig | None = None,
) -> Iterator[int]:
    """
    Yield every absolute offset of *pattern* in *stream*, in file order.

    Reads until the stream returns no data.  An ``OSError`` from ``read`` is
    not handled here; it ends the iteration and reaches the caller.
    """
    config  = config or ScanConfig()
    session = config.new_session(pattern)
    while True:
        block = stream.read(config.chunk_size)
        if not block:
            break
        yield from session.feed(block)


# ---------------------------------------------------------------------------
# File level
# ---------------------------------------------------------------------------

def scan_file(
    path:    str | os.PathLike[str],
    pattern: bytes,
    config:  ScanConfig | None = None,
) -> Iterator[Match]:
    """
    Yield a :class:`Match` for every occurrence of *pattern* in *path*.

    The file is opened read-only and closed however the iteration ends:
    exhaustion, an error, or the caller dropping the generator.
    """
    name = os.fspath(path)
    with open(name, "rb") as fh:
        for offset in iter_offsets(pattern, fh, config):
            yield Match(name, offset)


class ScanSink:
    """
    Receives scan events from :func:`scan_files`.

    The default implementation ignores everything; subclasses override the
    hooks they care about.
    """

    def on_start(self, path: str) -> None:
        pass

    def on_match(self, match: Match) -> None:
        pass

    def on_complete(self, path: str, count: int) -> None:
        pass

    def on_error(self, path: str, exc: OSError) -> None:
        pass


class CollectingSink(ScanSink):
    """Keeps every match and every failure in memory."""

    def __init__(self) -> None:
        self.matches: list[Match]                 = []
        self.errors:  list[tuple[str, OSError]]   = []

    def on_match(self, match: Match) -> None:
        self.matches.append(match)

    def on_error(self, path: str, exc: OSError) -> None:
        self.errors.append((path, exc))


def scan_files(
    paths:   Iterable[str | os.PathLike[str]],
    pattern: bytes,
    config:  ScanConfig | None = None,
    sink:    ScanSink | None = None,
) -> list[FileReport]:
    """
    Scan each of *paths* in order and report events to *sink*.

    A file that cannot be opened or read is reported through
    ``sink.on_error`` and recorded in its :class:`FileReport`; the remaining
    files are still scanned.  Matches found before the failure stay reported.
    Every file gets ``on_complete``, failed ones right after ``on_error``.
    """
    config  = config or ScanConfig()
    sink    = sink or ScanSink()
    reports: list[FileReport] = []

    logger.info(
        "Scanning for %s (chunk=%d, strategy=%s, bridge=%s)",
        format_pattern(pattern), config.chunk_size,
        config.strategy.value, config.bridge_chunks,
    )

    for path in paths:
        name  = os.fspath(path)
        count = 0
        sink.on_start(name)
        try:
            for match in scan_file(name, pattern, config):
                count += 1
                sink.on_match(match)
        except OSError as exc:
            logger.debug("Read failed for %s after %d matches: %s", name, count, exc)
            sink.on_error(name, exc)
            reports.append(FileReport(name, count, exc))
        else:
            logger.debug("Finished %s: %d matches", name, count)
            reports.append(FileReport(name, count))
        sink.on_complete(name, count)

    failed = sum(1 for r in reports if not r.ok)
    logger.info("Scan finished: %d files, %d failed", len(reports), failed)
    return reports
