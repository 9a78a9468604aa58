"""
byteseek.export
===============
Export helpers for saving scan matches in multiple formats.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path

from byteseek.pattern import format_pattern
from byteseek.scanner import Match

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("txt", "json", "csv")


def export_txt(matches: list[Match], path: Path) -> None:
    """Write matches as plain text, one ``path<TAB>offset`` per line."""
    path.write_text("".join(f"{m.path}\t{m.offset}\n" for m in matches), encoding="utf-8")
    logger.info("Exported %d matches → %s (txt)", len(matches), path)


def export_json(matches: list[Match], path: Path, pattern: bytes) -> None:
    """Write matches as structured JSON."""
    payload = {
        "pattern": format_pattern(pattern),
        "count": len(matches),
        "matches": [
            {"path": m.path, "offset": m.offset, "hex_offset": f"0x{m.offset:08X}"}
            for m in matches
        ],
    }
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Exported %d matches → %s (json)", len(matches), path)


def export_csv(matches: list[Match], path: Path, pattern: bytes) -> None:
    """Write matches as CSV with path / offset / hex_offset / pattern columns."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["path", "offset", "hex_offset", "pattern"])
    label = format_pattern(pattern)
    for m in matches:
        writer.writerow([m.path, m.offset, f"0x{m.offset:08X}", label])
    path.write_text(buf.getvalue(), encoding="utf-8")
    logger.info("Exported %d matches → %s (csv)", len(matches), path)


def guess_format(path: Path) -> str:
    """Pick an export format from the file suffix, defaulting to txt."""
    suffix = path.suffix.lower().lstrip(".")
    return suffix if suffix in EXPORT_FORMATS else "txt"


def export_matches(matches: list[Match], path: Path, pattern: bytes, fmt: str | None = None) -> None:
    """Dispatch to the writer for *fmt* (guessed from *path* when omitted)."""
    fmt = fmt or guess_format(path)
    if fmt == "json":
        export_json(matches, path, pattern)
    elif fmt == "csv":
        export_csv(matches, path, pattern)
    elif fmt == "txt":
        export_txt(matches, path)
    else:
        raise ValueError(f"Unknown export format: {fmt}")
