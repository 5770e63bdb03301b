"""Adversarial candidate generation for red-teaming the risk policy."""

import logging
import re
from typing import Iterable, Mapping, Optional

from spoofguard.confusables import get_table
from spoofguard.confusables_data import INVISIBLE_INSERTIONS
from spoofguard.models import (
    ACTION_SEVERITY,
    AttackCandidate,
    AttackMode,
    AttackReport,
    AttackSeed,
    MapVariant,
    RiskAction,
    SeedKind,
)
from spoofguard.risk import (
    DEFAULT_BLOCK_THRESHOLD,
    DEFAULT_MAX_MATCHES,
    DEFAULT_WARN_THRESHOLD,
    check_risk,
    normalize,
    validate_format,
)

logger = logging.getLogger("spoofguard.attack")

DEFAULT_MAX_CANDIDATES = 25
DEFAULT_MAX_EDITS = 2
DEFAULT_MAX_PER_CHAR = 8
MIN_GENERATION_CAP = 200
MAX_PREVIEW = 50

ASCII_LOOKALIKE_REPLACEMENTS: dict[str, tuple[str, ...]] = {
    "a": ("4",),
    "b": ("8",),
    "e": ("3",),
    "g": ("9",),
    "i": ("1",),
    "l": ("1",),
    "o": ("0",),
    "s": ("5",),
    "t": ("7",),
    "z": ("2",),
    "0": ("o",),
    "1": ("l", "i"),
    "2": ("z",),
    "3": ("e",),
    "4": ("a",),
    "5": ("s",),
    "7": ("t",),
    "8": ("b",),
    "9": ("g",),
}

_PROTOTYPE_RE = re.compile(r"^[a-z0-9]$")


def default_map_variant(mode: AttackMode) -> MapVariant:
    """Evasion searches the full table, impersonation the filtered one."""
    return MapVariant.FULL if mode == AttackMode.EVASION else MapVariant.FILTERED


def build_prototype_buckets(table: Mapping[str, str], max_per_char: int) -> dict[str, list[str]]:
    """
    Group table entries by prototype character.

    Each bucket is ordered ASCII first, then by code point, then lexically,
    and capped at max_per_char replacements.
    """
    buckets: dict[str, list[str]] = {}
    for char, prototype in table.items():
        if not _PROTOTYPE_RE.match(prototype) or char == prototype:
            continue
        bucket = buckets.setdefault(prototype, [])
        if char not in bucket:
            bucket.append(char)

    for prototype, chars in buckets.items():
        chars.sort(key=lambda c: (not c.isascii(), ord(c[0]), c))
        buckets[prototype] = chars[:max_per_char]
    return buckets


def _operation(source: str, replacement: str, index: int, kind: SeedKind) -> str:
    suffix = " (ascii lookalike)" if kind == SeedKind.ASCII_LOOKALIKE else ""
    return f"replace {source} with {replacement} at {index}{suffix}"


def generate_attack_seeds(
    target: str,
    table: Mapping[str, str],
    mode: AttackMode = AttackMode.EVASION,
    max_edits: int = DEFAULT_MAX_EDITS,
    max_per_char: int = DEFAULT_MAX_PER_CHAR,
    include_ignorables: bool = True,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> list[AttackSeed]:
    """
    Enumerate adversarial variants of a target.

    Generation order is single substitutions, zero-width insertions between
    characters, then two-position substitutions when max_edits is 2. It
    stops once max(200, 20 * max_candidates) distinct seeds exist. The
    unmodified target is never returned.

    Args:
        target: Normalized target identifier
        table: Confusable table supplying replacement buckets
        mode: Evasion adds ASCII lookalike digits
        max_edits: 1 or 2
        max_per_char: Replacement cap per source character
        include_ignorables: Generate zero-width insertions
        max_candidates: Preview size, used to derive the generation cap

    Returns:
        Seeds in generation order
    """
    if max_edits not in (1, 2):
        raise ValueError(f"Invalid max edits: {max_edits}. Must be 1 or 2")
    if max_per_char < 1:
        raise ValueError(f"Invalid max per char: {max_per_char}. Must be at least 1")
    if max_candidates < 1:
        raise ValueError(f"Invalid max candidates: {max_candidates}. Must be at least 1")

    chars = list(target)
    buckets = build_prototype_buckets(table, max_per_char)
    cap = max(MIN_GENERATION_CAP, max_candidates * 20)
    seeds: dict[str, AttackSeed] = {}

    def options(char: str) -> list[tuple[str, SeedKind]]:
        out: list[tuple[str, SeedKind]] = []
        seen: set[str] = set()
        if mode == AttackMode.EVASION:
            for replacement in ASCII_LOOKALIKE_REPLACEMENTS.get(char, ()):
                if replacement not in seen:
                    seen.add(replacement)
                    out.append((replacement, SeedKind.ASCII_LOOKALIKE))
        for replacement in buckets.get(char, []):
            if replacement not in seen:
                seen.add(replacement)
                out.append((replacement, SeedKind.SUBSTITUTION))
        return out[:max_per_char]

    def add(seed: AttackSeed) -> bool:
        """Record a seed; return True once the cap is reached."""
        if seed.identifier != target and seed.identifier not in seeds:
            seeds[seed.identifier] = seed
        return len(seeds) >= cap

    per_char = [options(c) for c in chars]

    for i, source in enumerate(chars):
        for replacement, kind in per_char[i]:
            variant = chars[:i] + [replacement] + chars[i + 1 :]
            seed = AttackSeed("".join(variant), 1, kind, (_operation(source, replacement, i, kind),))
            if add(seed):
                return list(seeds.values())

    if include_ignorables and len(chars) > 1:
        for i in range(1, len(chars)):
            for invisible in INVISIBLE_INSERTIONS:
                variant = chars[:i] + [invisible] + chars[i:]
                seed = AttackSeed(
                    "".join(variant),
                    1,
                    SeedKind.IGNORABLE_INSERT,
                    (f"insert U+{ord(invisible):04X} at {i}",),
                )
                if add(seed):
                    return list(seeds.values())

    if max_edits >= 2:
        for i in range(len(chars)):
            for j in range(i + 1, len(chars)):
                for replacement_a, kind_a in per_char[i]:
                    for replacement_b, kind_b in per_char[j]:
                        variant = list(chars)
                        variant[i] = replacement_a
                        variant[j] = replacement_b
                        kind = (
                            SeedKind.ASCII_LOOKALIKE
                            if SeedKind.ASCII_LOOKALIKE in (kind_a, kind_b)
                            else SeedKind.SUBSTITUTION
                        )
                        seed = AttackSeed(
                            "".join(variant),
                            2,
                            kind,
                            (
                                _operation(chars[i], replacement_a, i, kind_a),
                                _operation(chars[j], replacement_b, j, kind_b),
                            ),
                        )
                        if add(seed):
                            return list(seeds.values())

    return list(seeds.values())


def _rank_key(candidate: AttackCandidate):
    return (
        -candidate.score,
        -ACTION_SEVERITY[candidate.action],
        candidate.edits,
        candidate.identifier,
    )


def run_attack_generation(
    target: str,
    protect: Optional[Iterable[str]] = None,
    *,
    mode: AttackMode = AttackMode.EVASION,
    map_variant: Optional[MapVariant] = None,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
    max_edits: int = DEFAULT_MAX_EDITS,
    max_per_char: int = DEFAULT_MAX_PER_CHAR,
    include_ignorables: bool = True,
    include_reserved: bool = True,
    reserved: Optional[Iterable[str]] = None,
    warn_threshold: float = DEFAULT_WARN_THRESHOLD,
    block_threshold: float = DEFAULT_BLOCK_THRESHOLD,
    max_matches: int = DEFAULT_MAX_MATCHES,
) -> AttackReport:
    """
    Generate attack seeds for a target and evaluate each against the policy.

    A bypass is a seed the policy does not block that still passes format
    validation.
    """
    normalized_target = normalize(target)
    if not normalized_target:
        raise ValueError("Target normalizes to an empty identifier.")

    variant = map_variant or default_map_variant(mode)
    table = get_table(variant)
    protect_targets = tuple(dict.fromkeys(t.strip() for t in (protect or []) if t.strip()))
    if not protect_targets:
        protect_targets = (normalized_target,)

    seeds = generate_attack_seeds(
        normalized_target,
        table,
        mode=mode,
        max_edits=max_edits,
        max_per_char=max_per_char,
        include_ignorables=include_ignorables,
        max_candidates=max_candidates,
    )

    evaluated: list[AttackCandidate] = []
    for seed in seeds:
        risk = check_risk(
            seed.identifier,
            protect_targets,
            include_reserved=include_reserved,
            reserved=reserved,
            warn_threshold=warn_threshold,
            block_threshold=block_threshold,
            max_matches=max_matches,
            table=table,
        )
        format_message = validate_format(seed.identifier)
        top = risk.matches[0] if risk.matches else None
        evaluated.append(
            AttackCandidate(
                identifier=seed.identifier,
                edits=seed.edits,
                kind=seed.kind,
                operations=seed.operations,
                normalized=risk.normalized,
                score=risk.score,
                action=risk.action,
                level=risk.level,
                format_valid=format_message is None,
                reasons=tuple(r.code for r in risk.reasons),
                format_message=format_message,
                top_target=top.target if top else None,
                top_score=top.score if top else None,
                top_distance=top.distance if top else None,
                top_chain_depth=top.chain_depth if top else None,
            )
        )

    evaluated.sort(key=_rank_key)
    preview = min(MAX_PREVIEW, max_candidates)
    bypass = [c for c in evaluated if c.action != RiskAction.BLOCK and c.format_valid]
    blocked = [c for c in evaluated if c.action == RiskAction.BLOCK]

    logger.debug(
        f"Generated {len(seeds)} seeds for '{normalized_target}'; {len(bypass)} bypass the policy"
    )

    return AttackReport(
        target=target,
        normalized_target=normalized_target,
        protect=protect_targets,
        mode=mode,
        map=variant,
        settings={
            "maxCandidates": max_candidates,
            "maxEdits": max_edits,
            "maxPerChar": max_per_char,
            "includeIgnorables": include_ignorables,
            "warnThreshold": warn_threshold,
            "blockThreshold": block_threshold,
        },
        generated={
            "total": len(evaluated),
            "substitution": sum(1 for s in seeds if s.kind == SeedKind.SUBSTITUTION),
            "asciiLookalike": sum(1 for s in seeds if s.kind == SeedKind.ASCII_LOOKALIKE),
            "ignorableInsert": sum(1 for s in seeds if s.kind == SeedKind.IGNORABLE_INSERT),
        },
        outcomes={
            action.value: sum(1 for c in evaluated if c.action == action)
            for action in (RiskAction.ALLOW, RiskAction.WARN, RiskAction.BLOCK)
        },
        bypass_count=len(bypass),
        bypass=tuple(bypass[:preview]),
        top_risk=tuple(evaluated[:preview]),
        blocked=tuple(blocked[:preview]),
    )
