"""
byteseek.pattern
================
Turns one line of user text into the byte sequence to search for.

Two notations are understood, tried in this order:

1.  **Hex string** — the whole input is a run of hex digits with no
    separators, e.g. ``deadbeef``.

2.  **Byte tokens** — whitespace separated bytes, each exactly two hex
    digits with an optional ``0x`` prefix, e.g. ``0xDE 0xAD 0xBE 0xEF``
    or ``DE AD BE EF``.

Anything else raises :class:`PatternError`.
"""

from __future__ import annotations

import binascii
import logging
import re

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class PatternError(ValueError):
    """Raised when text is neither a hex string nor a list of byte tokens."""

    def __init__(self, text: str, token: str | None = None) -> None:
        self.text  = text
        self.token = token
        if token is not None:
            msg = f"invalid byte format: {token!r} in pattern {text!r}"
        else:
            msg = f"invalid pattern: {text!r}"
        super().__init__(msg)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_RE_BYTE_TOKEN = re.compile(r"[0-9A-Fa-f]{2}")


def _decode_hex_string(text: str) -> bytes | None:
    try:
        return binascii.unhexlify(text)
    except ValueError:
        # binascii.Error (odd length, bad digit) and non-ASCII input
        return None


def _decode_byte_tokens(text: str) -> bytes:
    out = bytearray()
    for token in text.split():
        digits = token[2:] if token[:2] in ("0x", "0X") else token
        if not _RE_BYTE_TOKEN.fullmatch(digits):
            raise PatternError(text, token)
        out.append(int(digits, 16))
    return bytes(out)


def parse_pattern(text: str) -> bytes:
    """
    Parse *text* into a non-empty byte pattern.

    Leading and trailing whitespace is ignored.  An empty pattern would match
    at every offset, so blank input is rejected like any other bad input.
    """
    text = text.strip()
    if not text:
        raise PatternError(text)

    pattern = _decode_hex_string(text)
    if pattern is None:
        pattern = _decode_byte_tokens(text)

    logger.debug("Parsed pattern %r → %s", text, format_pattern(pattern))
    return pattern


def format_pattern(pattern: bytes) -> str:
    """Render *pattern* as space separated upper-case hex, e.g. ``DE AD``."""
    return " ".join(f"{b:02X}" for b in pattern)
