"""
byteseek.matcher
================
In-memory substring search over a single window of bytes.

Every matcher reports *all* start positions, overlapping ones included,
in ascending order.  They differ only in speed.

Public API
----------
Strategy               — enum of available matchers
get_matcher(strategy)  → Matcher
Matcher.find_all(window, pattern) → Iterator[int]
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator

logger = logging.getLogger(__name__)


class Strategy(Enum):
    BRUTE_FORCE = "brute"
    FIND        = "find"
    KMP         = "kmp"


STRATEGY_NAMES = [s.value for s in Strategy]


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------

class Matcher:
    """Base class.  Subclasses implement :meth:`find_all`."""

    strategy: Strategy

    def find_all(self, window: bytes, pattern: bytes) -> Iterator[int]:
        raise NotImplementedError


class BruteForceMatcher(Matcher):
    """Compare the pattern against every candidate position, O(n·m)."""

    strategy = Strategy.BRUTE_FORCE

    def find_all(self, window: bytes, pattern: bytes) -> Iterator[int]:
        m = len(pattern)
        view = memoryview(window)
        for i in range(len(window) - m + 1):
            if view[i:i + m] == pattern:
                yield i


class FindMatcher(Matcher):
    """Step through the window with ``bytes.find``."""

    strategy = Strategy.FIND

    def find_all(self, window: bytes, pattern: bytes) -> Iterator[int]:
        i = window.find(pattern)
        while i != -1:
            yield i
            i = window.find(pattern, i + 1)


class KMPMatcher(Matcher):
    """
    Knuth–Morris–Pratt search, O(n + m).

    The failure table depends only on the pattern, so it is cached for the
    most recent pattern; a scan session reuses one pattern for every chunk.
    """

    strategy = Strategy.KMP

    def __init__(self) -> None:
        self._pattern: bytes | None = None
        self._table:   list[int]    = []

    @staticmethod
    def failure_table(pattern: bytes) -> list[int]:
        """``table[i]`` is the length of the longest proper border of ``pattern[:i+1]``."""
        table = [0] * len(pattern)
        k = 0
        for i in range(1, len(pattern)):
            while k and pattern[i] != pattern[k]:
                k = table[k - 1]
            if pattern[i] == pattern[k]:
                k += 1
            table[i] = k
        return table

    def _table_for(self, pattern: bytes) -> list[int]:
        if pattern != self._pattern:
            self._pattern = bytes(pattern)
            self._table   = self.failure_table(pattern)
        return self._table

    def find_all(self, window: bytes, pattern: bytes) -> Iterator[int]:
        m = len(pattern)
        if m == 0 or m > len(window):
            return
        table = self._table_for(pattern)
        k = 0
        for i, b in enumerate(window):
            while k and b != pattern[k]:
                k = table[k - 1]
            if b == pattern[k]:
                k += 1
            if k == m:
                yield i - m + 1
                k = table[k - 1]


_MATCHERS: dict[Strategy, type[Matcher]] = {
    Strategy.BRUTE_FORCE: BruteForceMatcher,
    Strategy.FIND:        FindMatcher,
    Strategy.KMP:         KMPMatcher,
}


def get_matcher(strategy: Strategy | str = Strategy.BRUTE_FORCE) -> Matcher:
    """Return a fresh matcher for *strategy* (an enum member or its value)."""
    if isinstance(strategy, str):
        strategy = Strategy(strategy)
    return _MATCHERS[strategy]()
