"""
Tests for byteseek.scanner
==========================
Run with:  pytest tests/test_scanner.py -v
"""

from __future__ import annotations

import io
import random

import pytest

import byteseek.scanner as scanner_mod
from byteseek.matcher import Strategy
from byteseek.scanner import (
    CollectingSink,
    FileReport,
    Match,
    ScanConfig,
    ScanSession,
    ScanSink,
    iter_offsets,
    scan_file,
    scan_files,
)


def _naive(data: bytes, pattern: bytes) -> list[int]:
    m = len(pattern)
    return [i for i in range(len(data) - m + 1) if data[i:i + m] == pattern]


def _offsets(data: bytes, pattern: bytes, **kwargs) -> list[int]:
    return list(iter_offsets(pattern, io.BytesIO(data), ScanConfig(**kwargs)))


class TrickleStream(io.BytesIO):
    """Never returns more than ``limit`` bytes per read."""

    def __init__(self, data: bytes, limit: int) -> None:
        super().__init__(data)
        self.limit = limit

    def read(self, size=-1):
        return super().read(min(size, self.limit))


class FailingStream(io.BytesIO):
    """Serves ``good_reads`` reads, then raises ``OSError``."""

    def __init__(self, data: bytes, good_reads: int = 1) -> None:
        super().__init__(data)
        self.good_reads = good_reads

    def read(self, size=-1):
        if self.good_reads <= 0:
            raise OSError(5, "Input/output error")
        self.good_reads -= 1
        return super().read(size)


# ---------------------------------------------------------------------------
# ScanConfig
# ---------------------------------------------------------------------------

class TestScanConfig:
    def test_defaults(self):
        cfg = ScanConfig()
        assert cfg.chunk_size == 4096
        assert cfg.strategy is Strategy.BRUTE_FORCE
        assert cfg.bridge_chunks is True

    def test_rejects_non_positive_chunk(self):
        with pytest.raises(ValueError):
            ScanConfig(chunk_size=0)

    def test_strategy_from_string(self):
        assert ScanConfig(strategy="kmp").strategy is Strategy.KMP


# ---------------------------------------------------------------------------
# ScanSession
# ---------------------------------------------------------------------------

class TestScanSession:
    def test_rejects_empty_pattern(self):
        with pytest.raises(ValueError):
            ScanSession(pattern=b"")

    def test_offsets_are_absolute(self):
        s = ScanSession(pattern=b"\xff", bridge_chunks=False)
        assert s.feed(b"\x00\xff") == [1]
        assert s.feed(b"\xff\x00") == [2]
        assert s.consumed == 4

    def test_carry_holds_pattern_minus_one(self):
        s = ScanSession(pattern=b"abcd")
        s.feed(b"0123456789")
        assert s.carry == b"789"

    def test_straddling_match_found_once(self):
        s = ScanSession(pattern=b"abcd")
        assert s.feed(b"xxab") == []
        assert s.feed(b"cdxx") == [2]
        assert s.feed(b"xxxx") == []


# ---------------------------------------------------------------------------
# iter_offsets
# ---------------------------------------------------------------------------

class TestIterOffsets:
    def test_overlap(self):
        assert _offsets(b"AAAA", b"AA") == [0, 1, 2]

    def test_overlap_with_tiny_chunks(self):
        assert _offsets(b"AAAA", b"AA", chunk_size=1) == [0, 1, 2]

    def test_no_match(self):
        assert _offsets(bytes(range(255)) * 10, b"\xff") == []

    def test_empty_stream(self):
        assert _offsets(b"", b"\x00") == []

    def test_second_chunk_offset(self):
        chunk = 16
        j = 5
        data = b"\x00" * chunk + b"\x00" * j + b"\xde\xad\xbe\xef" + b"\x00" * 3
        assert _offsets(data, b"\xde\xad\xbe\xef", chunk_size=chunk) == [chunk + j]

    def test_short_final_chunk(self):
        data = b"\x00" * 10 + b"\x01\x02"
        assert _offsets(data, b"\x01\x02", chunk_size=8) == [10]

    def test_boundary_match_found_when_bridging(self):
        data = b"\x00" * 6 + b"\xde\xad\xbe\xef" + b"\x00" * 6
        assert _offsets(data, b"\xde\xad\xbe\xef", chunk_size=8) == [6]

    def test_boundary_match_missed_without_bridging(self):
        data = b"\x00" * 6 + b"\xde\xad\xbe\xef" + b"\x00" * 6
        assert _offsets(data, b"\xde\xad\xbe\xef", chunk_size=8, bridge_chunks=False) == []

    def test_unbridged_still_finds_in_chunk_matches(self):
        data = b"\xaa\xbb" + b"\x00" * 6 + b"\xaa\xbb"
        assert _offsets(data, b"\xaa\xbb", chunk_size=8, bridge_chunks=False) == [0, 8]

    def test_short_reads_keep_offsets(self):
        data = b"xxPATxxPATPAT"
        stream = TrickleStream(data, limit=3)
        assert list(iter_offsets(b"PAT", stream, ScanConfig(chunk_size=64))) == [2, 7, 10]

    @pytest.mark.parametrize("strategy", list(Strategy))
    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 7, 64, 4096])
    def test_exhaustive_against_naive(self, strategy, chunk_size):
        rng  = random.Random(1234)
        data = bytes(rng.choice(b"\x00\x01\x02") for _ in range(600))
        for pattern in (b"\x00", b"\x01\x02", b"\x00\x00\x01", b"\x02\x01\x00\x01"):
            got = _offsets(data, pattern, chunk_size=chunk_size, strategy=strategy)
            assert got == _naive(data, pattern)

    def test_read_error_propagates_after_earlier_hits(self):
        stream = FailingStream(b"\xff" * 4 + b"\x00" * 4, good_reads=1)
        it = iter_offsets(b"\xff", stream, ScanConfig(chunk_size=4))
        assert [next(it) for _ in range(4)] == [0, 1, 2, 3]
        with pytest.raises(OSError):
            next(it)


# ---------------------------------------------------------------------------
# scan_file
# ---------------------------------------------------------------------------

class TestScanFile:
    def test_yields_matches_with_path(self, tmp_path):
        f = tmp_path / "sample.bin"
        f.write_bytes(b"\x00\xde\xad\x00\xde\xad")
        matches = list(scan_file(f, b"\xde\xad"))
        assert matches == [Match(str(f), 1), Match(str(f), 4)]

    def test_does_not_modify_file(self, tmp_path):
        f = tmp_path / "sample.bin"
        f.write_bytes(b"abcabc")
        list(scan_file(f, b"bc"))
        assert f.read_bytes() == b"abcabc"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            list(scan_file(tmp_path / "nope.bin", b"\x00"))

    def test_handle_closed_when_generator_dropped(self, tmp_path, monkeypatch):
        opened: list[io.BytesIO] = []

        def fake_open(path, mode="r", *args, **kwargs):
            stream = io.BytesIO(b"\x01" * 100)
            opened.append(stream)
            return stream

        monkeypatch.setattr(scanner_mod, "open", fake_open, raising=False)
        gen = scan_file("whatever.bin", b"\x01")
        next(gen)
        gen.close()
        assert opened[0].closed

    def test_match_str(self):
        assert str(Match("a.bin", 0x1A0)) == "@0x000001A0  a.bin"


# ---------------------------------------------------------------------------
# scan_files
# ---------------------------------------------------------------------------

class RecordingSink(ScanSink):
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def on_start(self, path):
        self.events.append(("start", path))

    def on_match(self, match):
        self.events.append(("match", match.path, match.offset))

    def on_complete(self, path, count):
        self.events.append(("complete", path, count))

    def on_error(self, path, exc):
        self.events.append(("error", path))


class TestScanFiles:
    def test_event_order(self, tmp_path):
        a = tmp_path / "a.bin"
        b = tmp_path / "b.bin"
        a.write_bytes(b"\xff\x00\xff")
        b.write_bytes(b"\x00")
        sink = RecordingSink()
        reports = scan_files([a, b], b"\xff", sink=sink)
        assert sink.events == [
            ("start", str(a)),
            ("match", str(a), 0),
            ("match", str(a), 2),
            ("complete", str(a), 2),
            ("start", str(b)),
            ("complete", str(b), 0),
        ]
        assert reports == [FileReport(str(a), 2), FileReport(str(b), 0)]

    def test_read_error_isolated_to_one_file(self, tmp_path, monkeypatch):
        bad  = tmp_path / "bad.bin"
        good = tmp_path / "good.bin"
        bad.write_bytes(b"\xff" * 8)
        good.write_bytes(b"\x00\xff\x00\xff")
        real_open = open

        def fake_open(path, mode="r", *args, **kwargs):
            if str(path) == str(bad):
                return FailingStream(b"\xff" * 8, good_reads=1)
            return real_open(path, mode, *args, **kwargs)

        monkeypatch.setattr(scanner_mod, "open", fake_open, raising=False)
        sink = CollectingSink()
        reports = scan_files([bad, good], b"\xff", ScanConfig(chunk_size=4), sink)

        assert [r.ok for r in reports] == [False, True]
        assert reports[0].match_count == 4
        assert isinstance(reports[0].error, OSError)
        assert reports[1].match_count == 2
        assert [m.offset for m in sink.matches if m.path == str(good)] == [1, 3]
        assert [p for p, _ in sink.errors] == [str(bad)]

    def test_failed_file_still_gets_completion(self, tmp_path, monkeypatch):
        bad = tmp_path / "bad.bin"
        bad.write_bytes(b"\xff" * 8)
        monkeypatch.setattr(
            scanner_mod, "open",
            lambda path, mode="r", *a, **kw: FailingStream(b"\xff" * 8, good_reads=1),
            raising=False,
        )
        sink = RecordingSink()
        scan_files([bad], b"\xff", ScanConfig(chunk_size=4), sink)
        assert sink.events[-2:] == [("error", str(bad)), ("complete", str(bad), 4)]

    def test_unopenable_path_is_reported(self, tmp_path):
        good = tmp_path / "good.bin"
        good.write_bytes(b"\xaa")
        sink = CollectingSink()
        reports = scan_files([tmp_path, good], b"\xaa", sink=sink)
        assert not reports[0].ok
        assert reports[1].ok and reports[1].match_count == 1

    def test_no_files(self):
        assert scan_files([], b"\x00") == []
