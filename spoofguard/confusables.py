"""Confusable mapping tables and skeleton computation."""

import re
import unicodedata
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional

from spoofguard.confusables_data import (
    ASCII_PROTOTYPES,
    COMPATIBILITY_RANGES,
    CONFUSABLE_ENTRIES,
    IGNORABLE_CHARACTERS,
    IGNORABLE_RANGES,
)
from spoofguard.models import ConfusableEntry, DivergenceVector, MapVariant

DIVERGENCE_SUITE = "nfkc-tr39-divergence-v1"

_SINGLE_ALNUM_RE = re.compile(r"^[a-z0-9]$")
_SLUG_FRAGMENT_RE = re.compile(r"^[a-z0-9-]+$")

# Script names matched against words of unicodedata.name().
_SCRIPT_TAGS = frozenset(
    {
        "LATIN",
        "GREEK",
        "CYRILLIC",
        "ARMENIAN",
        "CHEROKEE",
        "GEORGIAN",
        "HEBREW",
        "ARABIC",
        "DEVANAGARI",
        "BENGALI",
        "THAI",
        "LAO",
        "MYANMAR",
        "ETHIOPIC",
        "GOTHIC",
        "COPTIC",
        "HANGUL",
        "HIRAGANA",
        "KATAKANA",
        "CJK",
        "LISU",
        "VAI",
        "TIFINAGH",
        "RUNIC",
        "OGHAM",
        "CANADIAN",
    }
)


def is_ignorable(ch: str) -> bool:
    """Return True if the character is dropped before visual comparison."""
    if ch in IGNORABLE_CHARACTERS:
        return True
    cp = ord(ch)
    return any(start <= cp <= end for start, end in IGNORABLE_RANGES)


def strip_ignorables(text: str) -> str:
    """Remove ignorable characters from text."""
    return "".join(ch for ch in text if not is_ignorable(ch))


def nfkc_fold(ch: str) -> str:
    """NFKC-normalize and lowercase a character."""
    return unicodedata.normalize("NFKC", ch).lower()


def char_script(ch: str) -> Optional[str]:
    """
    Return the script of a character, derived from its Unicode name.

    Characters without a script word in their name (digits, punctuation,
    mathematical symbols) are treated as common and return None.
    """
    name = unicodedata.name(ch, "")
    for word in name.split():
        if word in _SCRIPT_TAGS:
            return word
    return None


def scripts_in(text: str) -> set[str]:
    """Return the set of scripts present in text."""
    scripts: set[str] = set()
    for ch in text:
        script = char_script(ch)
        if script:
            scripts.add(script)
    return scripts


def _compatibility_entries() -> list[ConfusableEntry]:
    entries = []
    for start, end in COMPATIBILITY_RANGES:
        for cp in range(start, end + 1):
            ch = chr(cp)
            folded = unicodedata.normalize("NFKC", ch)
            if len(folded) != 1 or not (folded.isascii() and folded.isalnum()):
                continue
            target = ASCII_PROTOTYPES.get(folded, folded.lower())
            entries.append(ConfusableEntry(ch, target, unicodedata.name(ch, "")))
    return entries


def full_entries() -> list[ConfusableEntry]:
    """All single-character confusable entries, first mapping wins."""
    seen: set[str] = set()
    entries: list[ConfusableEntry] = []
    explicit = [ConfusableEntry(chr(cp), target, name) for cp, target, name in CONFUSABLE_ENTRIES]
    for entry in explicit + _compatibility_entries():
        if entry.source in seen:
            continue
        seen.add(entry.source)
        entries.append(entry)
    return entries


def keep_in_filtered(entry: ConfusableEntry) -> bool:
    """
    Decide whether an entry belongs in the NFKC-filtered table.

    Entries are dropped when NFKC already yields the target, when NFKC yields
    a different Latin letter or digit (NFKC takes precedence), or when NFKC
    yields a valid slug fragment.
    """
    folded = nfkc_fold(entry.source)
    if folded == entry.target:
        return False
    if _SINGLE_ALNUM_RE.match(folded):
        return False
    if folded and _SLUG_FRAGMENT_RE.match(folded):
        return False
    return True


@lru_cache(maxsize=None)
def get_table(variant: MapVariant = MapVariant.FULL) -> Mapping[str, str]:
    """
    Return the read-only confusable table for a variant.

    Tables are built once per process and never mutated.
    """
    entries = full_entries()
    if variant == MapVariant.FILTERED:
        entries = [e for e in entries if keep_in_filtered(e)]
    return MappingProxyType({e.source: e.target for e in entries})


def full_table() -> Mapping[str, str]:
    """The unfiltered confusable table."""
    return get_table(MapVariant.FULL)


def filtered_table() -> Mapping[str, str]:
    """The NFKC-filtered confusable table."""
    return get_table(MapVariant.FILTERED)


def divergence_vectors(table: Optional[Mapping[str, str]] = None) -> tuple[DivergenceVector, ...]:
    """
    Derive the code points of a table where NFKC disagrees with its target.

    Only NFKC results that are a single Latin letter or digit count as a
    disagreement. The filtered table yields no vectors by construction.
    """
    table = full_table() if table is None else table
    vectors = []
    for ch, target in table.items():
        folded = nfkc_fold(ch)
        if _SINGLE_ALNUM_RE.match(folded) and folded != target:
            vectors.append(
                DivergenceVector(char=ch, code_point=f"U+{ord(ch):04X}", tr39=target, nfkc=folded)
            )
    vectors.sort(key=lambda v: ord(v.char))
    return tuple(vectors)


@lru_cache(maxsize=1)
def builtin_divergence_vectors() -> tuple[DivergenceVector, ...]:
    """The built-in divergence corpus derived from the full table."""
    return divergence_vectors(full_table())


@lru_cache(maxsize=1)
def _divergent_chars() -> frozenset[str]:
    return frozenset(v.char for v in builtin_divergence_vectors())


def is_divergent(ch: str) -> bool:
    """Return True if NFKC and the confusables data disagree on ch."""
    return ch in _divergent_chars()


def canonical_char(ch: str, table: Mapping[str, str]) -> str:
    """Map a single character onto its skeleton form."""
    return table.get(ch, ch).lower()


def skeleton(text: str, table: Optional[Mapping[str, str]] = None) -> str:
    """
    Reduce text to its canonical visual representative.

    Steps: NFD decomposition, removal of ignorable characters, per-character
    confusable substitution, lowercasing. Strings with equal skeletons are
    visually indistinguishable.

    Args:
        text: Input string
        table: Confusable table (defaults to the full table)

    Returns:
        Skeleton string
    """
    table = full_table() if table is None else table
    out = []
    for ch in unicodedata.normalize("NFD", text):
        if is_ignorable(ch):
            continue
        out.append(table.get(ch, ch))
    return "".join(out).lower()


def are_confusable(a: str, b: str, table: Optional[Mapping[str, str]] = None) -> bool:
    """Return True if two strings share a skeleton."""
    return skeleton(a, table) == skeleton(b, table)
