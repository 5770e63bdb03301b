"""Rebuild the confusable entry table from Unicode confusables.txt."""

import logging
import unicodedata
from pathlib import Path

from spoofguard.models import ConfusableEntry

logger = logging.getLogger("spoofguard.tablegen")

# Visually identical to Latin letters but absent from confusables.txt.
SUPPLEMENTAL_ENTRIES = (
    ConfusableEntry("ᴀ", "a", "LATIN LETTER SMALL CAPITAL A"),
    ConfusableEntry("ᴅ", "d", "LATIN LETTER SMALL CAPITAL D"),
    ConfusableEntry("ᴇ", "e", "LATIN LETTER SMALL CAPITAL E"),
    ConfusableEntry("ᴊ", "j", "LATIN LETTER SMALL CAPITAL J"),
    ConfusableEntry("ᴋ", "k", "LATIN LETTER SMALL CAPITAL K"),
    ConfusableEntry("ᴍ", "m", "LATIN LETTER SMALL CAPITAL M"),
    ConfusableEntry("ᴘ", "p", "LATIN LETTER SMALL CAPITAL P"),
    ConfusableEntry("ᴛ", "t", "LATIN LETTER SMALL CAPITAL T"),
)


def _latin_target(ch: str):
    if "a" <= ch <= "z" or "0" <= ch <= "9":
        return ch
    if "A" <= ch <= "Z":
        return ch.lower()
    return None


def parse_confusables(text: str) -> list[ConfusableEntry]:
    """
    Extract single-character mappings onto [a-z0-9] from confusables.txt.

    Lines look like ``SOURCE ; TARGET... ; TYPE # comment``. Basic Latin
    sources and multi-character targets are skipped; the first mapping for
    a source wins.
    """
    entries: list[ConfusableEntry] = []
    seen: set[str] = set()

    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        parts = [p.strip() for p in line.split(";")]
        if len(parts) < 2:
            continue

        try:
            source_cp = int(parts[0], 16)
            target_cps = [int(h, 16) for h in parts[1].split()]
        except ValueError:
            logger.debug(f"Skipping unparseable line: {raw!r}")
            continue

        if source_cp <= 0x7F or len(target_cps) != 1:
            continue
        target = _latin_target(chr(target_cps[0]))
        if target is None:
            continue

        source = chr(source_cp)
        if source in seen:
            continue
        seen.add(source)
        entries.append(ConfusableEntry(source, target, unicodedata.name(source, "")))

    return entries


def build_entries(text: str) -> list[ConfusableEntry]:
    """Parsed entries plus supplemental mappings, sorted by code point."""
    entries = parse_confusables(text)
    seen = {e.source for e in entries}
    entries.extend(e for e in SUPPLEMENTAL_ENTRIES if e.source not in seen)
    entries.sort(key=lambda e: ord(e.source))
    logger.info(f"Built {len(entries)} confusable entries")
    return entries


def render_entries(entries: list[ConfusableEntry]) -> str:
    """Render entries as the CONFUSABLE_ENTRIES literal used by confusables_data."""
    lines = ["CONFUSABLE_ENTRIES: tuple[tuple[int, str, str], ...] = ("]
    for entry in entries:
        lines.append(f'    (0x{ord(entry.source):04X}, "{entry.target}", "{entry.comment}"),')
    lines.append(")")
    return "\n".join(lines) + "\n"


def generate_table(source_path: str) -> str:
    """Read a local confusables.txt and render the entry table."""
    path = Path(source_path)
    if not path.exists():
        raise FileNotFoundError(f"Confusables file not found: {source_path}")
    return render_entries(build_entries(path.read_text(encoding="utf-8")))
