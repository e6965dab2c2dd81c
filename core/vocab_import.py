"""
LinguaSRS – Vocabulary list import
===================================
Reads a lesson's word list from a plain-text or CSV file and turns it into
``VocabEntry`` objects for ``ReviewScheduler.add_cards_from_lesson``.

Accepted line format (separator auto-detected)::

    source <sep> target [<sep> pronunciation [<sep> example]]

    hola ; hello ; OH-lah ; ¡Hola, amigo!
    gracias | thank you
    adiós	goodbye                  ← tab-separated

Lines starting with ``#`` are comments.  A CSV file may carry a header row
naming the ``source`` / ``target`` / ``pronunciation`` / ``example`` columns.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import List

from core.models import VocabEntry

log = logging.getLogger(__name__)

# Separators we recognise, in priority order
_SEPARATORS = ["\t", ";", "|"]
_FIELDS = ("source", "target", "pronunciation", "example")


# ──────────────────────────────────────────────────────────────────────
# Raw text reader
# ──────────────────────────────────────────────────────────────────────

def read_text(filepath: str | Path) -> str:
    """Read a text file, trying a few common encodings."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Vocabulary file not found: {filepath}")

    for encoding in ("utf-8", "utf-8-sig", "cp1252", "latin-1"):
        try:
            text = filepath.read_text(encoding=encoding)
            log.info("Read %d chars from %s (encoding=%s)", len(text), filepath.name, encoding)
            return text
        except (UnicodeDecodeError, ValueError):
            continue

    raise UnicodeDecodeError(
        "all", b"", 0, 1, f"Could not decode {filepath.name} with any supported encoding"
    )


# ──────────────────────────────────────────────────────────────────────
# Parsing
# ──────────────────────────────────────────────────────────────────────

def detect_separator(text: str) -> str:
    """Pick the most frequently occurring separator (``;`` if none occur)."""
    best_sep = ";"
    best_count = 0
    for sep in _SEPARATORS:
        count = text.count(sep)
        if count > best_count:
            best_count = count
            best_sep = sep
    return best_sep


def _entry_from_fields(fields: List[str]) -> VocabEntry | None:
    fields = [f.strip() for f in fields]
    if len(fields) < 2 or not fields[0] or not fields[1]:
        return None
    extras = fields[2:4] + [""] * (4 - len(fields[:4]))
    return VocabEntry(
        source=fields[0],
        target=fields[1],
        pronunciation=extras[0] or None,
        example=extras[1] or None,
    )


def parse_vocab_list(text: str) -> List[VocabEntry]:
    """Parse separator-delimited lines into entries; malformed lines are skipped."""
    sep = detect_separator(text)
    entries: List[VocabEntry] = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or sep not in line:
            continue
        entry = _entry_from_fields(line.split(sep))
        if entry is not None:
            entries.append(entry)

    log.info("Parsed %d vocabulary entries (sep=%r)", len(entries), sep)
    return entries


def parse_vocab_csv(text: str) -> List[VocabEntry]:
    """Parse CSV rows, honouring a header row when it names the columns."""
    rows = [r for r in csv.reader(io.StringIO(text)) if any(c.strip() for c in r)]
    if not rows:
        return []

    header = [c.strip().lower() for c in rows[0]]
    entries: List[VocabEntry] = []
    if "source" in header and "target" in header:
        for row in rows[1:]:
            values = dict(zip(header, row))
            entry = _entry_from_fields([values.get(name, "") for name in _FIELDS])
            if entry is not None:
                entries.append(entry)
    else:
        for row in rows:
            entry = _entry_from_fields(row)
            if entry is not None:
                entries.append(entry)

    log.info("Parsed %d vocabulary entries from CSV", len(entries))
    return entries


def load_vocab_file(filepath: str | Path) -> List[VocabEntry]:
    """Dispatch to the right parser based on file extension."""
    filepath = Path(filepath)
    ext = filepath.suffix.lower()
    if ext == ".csv":
        return parse_vocab_csv(read_text(filepath))
    if ext in (".txt", ".text", ".tsv"):
        return parse_vocab_list(read_text(filepath))
    raise ValueError(f"Unsupported file type: {ext}")
