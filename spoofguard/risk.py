"""Risk scoring policy for identifiers against protected targets."""

import logging
import unicodedata
from typing import Iterable, Mapping, Optional

import validators

from spoofguard.confusables import scripts_in
from spoofguard.distance import confusable_distance
from spoofguard.models import (
    RiskAssessment,
    RiskMatch,
    RiskReason,
    StepKind,
    classify_score,
    get_risk_level,
)
from spoofguard.weights import VisualWeights

logger = logging.getLogger("spoofguard.risk")

DEFAULT_WARN_THRESHOLD = 45
DEFAULT_BLOCK_THRESHOLD = 80
DEFAULT_MAX_MATCHES = 3

# Distance at which the score reaches zero.
ZERO_SCORE_DISTANCE = 2.2

MIN_LENGTH = 2
MAX_LENGTH = 30
INVALID_FORMAT_MESSAGE = "Use 2-30 lowercase letters, numbers, or hyphens."

DEFAULT_RESERVED = (
    "admin",
    "administrator",
    "root",
    "support",
    "help",
    "security",
    "api",
    "www",
    "mail",
    "system",
    "staff",
    "moderator",
    "official",
    "billing",
    "settings",
    "login",
)

_CONFUSABLE_KINDS = (StepKind.CONFUSABLE, StepKind.VISUAL_WEIGHT, StepKind.DIVERGENCE, StepKind.DIACRITIC)


def normalize(raw: str, unicode: bool = True) -> str:
    """
    Normalize a raw identifier for comparison.

    Trims whitespace, applies NFKC (optional), lowercases and strips
    leading ``@`` characters.
    """
    value = raw.strip()
    if unicode:
        value = unicodedata.normalize("NFKC", value)
    return value.lower().lstrip("@")


def score_from_distance(distance: float) -> float:
    """Map a confusable distance onto a 0-100 risk score."""
    ratio = distance / ZERO_SCORE_DISTANCE
    return round(max(0.0, 100.0 * (1.0 - ratio * ratio)), 2)


def validate_thresholds(warn_threshold: float, block_threshold: float) -> None:
    """Raise ValueError unless 0 <= warn <= block <= 100."""
    for name, value in (("warn", warn_threshold), ("block", block_threshold)):
        if not 0 <= value <= 100:
            raise ValueError(f"Invalid {name} threshold: {value}. Must be between 0 and 100")
    if warn_threshold > block_threshold:
        raise ValueError(
            f"Warn threshold ({warn_threshold}) must not exceed block threshold ({block_threshold})"
        )


def validate_format(identifier: str) -> Optional[str]:
    """
    Check that an identifier is a valid slug.

    Returns:
        An error message if the normalized identifier is invalid, else None
    """
    normalized = normalize(identifier)
    if not MIN_LENGTH <= len(normalized) <= MAX_LENGTH:
        return INVALID_FORMAT_MESSAGE
    if not validators.slug(normalized):
        return INVALID_FORMAT_MESSAGE
    return None


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            out.append(value)
    return out


def resolve_targets(
    protect: Optional[Iterable[str]],
    include_reserved: bool = True,
    reserved: Optional[Iterable[str]] = None,
    normalize_unicode: bool = True,
) -> list[str]:
    """Normalize and deduplicate protected targets, optionally adding reserved names."""
    targets = [normalize(t, normalize_unicode) for t in (protect or [])]
    if include_reserved:
        reserved_names = DEFAULT_RESERVED if reserved is None else reserved
        targets.extend(normalize(t, normalize_unicode) for t in reserved_names)
    return _dedupe(targets)


def _match_reasons(identifier: str, target: str, result) -> list[RiskReason]:
    reasons = []
    if result.skeleton_equal or any(s.kind in _CONFUSABLE_KINDS for s in result.steps):
        reasons.append(
            RiskReason("confusable-target", f"Visually confusable with protected target '{target}'.")
        )
    if result.ignorable_count:
        reasons.append(
            RiskReason(
                "invisible-character",
                f"Contains {result.ignorable_count} invisible or format character(s).",
            )
        )
    if len(scripts_in(identifier)) > 1:
        reasons.append(RiskReason("mixed-script", "Mixes characters from different scripts."))
    if result.divergence_count:
        reasons.append(
            RiskReason(
                "nfkc-divergent",
                "Uses characters where NFKC normalization and confusable data disagree.",
            )
        )
    return reasons


def _union(groups: Iterable[Iterable[RiskReason]]) -> tuple[RiskReason, ...]:
    seen: set[str] = set()
    out = []
    for group in groups:
        for reason in group:
            if reason.code not in seen:
                seen.add(reason.code)
                out.append(reason)
    return tuple(out)


def check_risk(
    identifier: str,
    protect: Optional[Iterable[str]] = None,
    *,
    include_reserved: bool = True,
    reserved: Optional[Iterable[str]] = None,
    warn_threshold: float = DEFAULT_WARN_THRESHOLD,
    block_threshold: float = DEFAULT_BLOCK_THRESHOLD,
    max_matches: int = DEFAULT_MAX_MATCHES,
    table: Optional[Mapping[str, str]] = None,
    weights: Optional[VisualWeights] = None,
    context: Optional[str] = None,
    normalize_unicode: bool = True,
) -> RiskAssessment:
    """
    Assess how likely an identifier is to impersonate a protected target.

    Args:
        identifier: Candidate identifier
        protect: Explicitly protected targets
        include_reserved: Also compare against reserved names
        reserved: Reserved names (defaults to DEFAULT_RESERVED)
        warn_threshold: Minimum score for a warn action
        block_threshold: Minimum score for a block action
        max_matches: Maximum number of matches to report
        table: Confusable table (defaults to the full table)
        weights: Optional visual-weight overlay
        context: Weight eligibility context
        normalize_unicode: Apply NFKC during normalization

    Returns:
        RiskAssessment with the aggregate score, action and ranked matches
    """
    validate_thresholds(warn_threshold, block_threshold)
    if max_matches < 1:
        raise ValueError(f"Invalid max matches: {max_matches}. Must be at least 1")

    normalized = normalize(identifier, normalize_unicode)
    targets = resolve_targets(protect, include_reserved, reserved, normalize_unicode)

    matches: list[RiskMatch] = []
    for target in targets:
        if normalized == target:
            matches.append(
                RiskMatch(
                    target=target,
                    score=100.0,
                    distance=0.0,
                    chain_depth=0,
                    skeleton_equal=True,
                    reasons=(
                        RiskReason(
                            "exact-target-match",
                            f"Exactly matches protected target '{target}'.",
                        ),
                    ),
                )
            )
            continue

        result = confusable_distance(normalized, target, table=table, weights=weights, context=context)
        score = score_from_distance(result.distance)
        if score <= 0:
            continue
        matches.append(
            RiskMatch(
                target=target,
                score=score,
                distance=result.distance,
                chain_depth=result.chain_depth,
                skeleton_equal=result.skeleton_equal,
                reasons=tuple(_match_reasons(normalized, target, result)),
            )
        )

    matches.sort(key=lambda m: (-m.score, m.chain_depth, m.target))
    score = min(100.0, max((m.score for m in matches), default=0.0))
    action = classify_score(score, warn_threshold, block_threshold)
    shown = tuple(matches[:max_matches])

    reason_groups = [m.reasons for m in shown]
    if len(scripts_in(normalized)) > 1:
        reason_groups.append([RiskReason("mixed-script", "Mixes characters from different scripts.")])

    logger.debug(
        f"Risk for '{identifier}': score={score} action={action.value} "
        f"({len(matches)} matches over {len(targets)} targets)"
    )

    return RiskAssessment(
        identifier=identifier,
        normalized=normalized,
        score=score,
        action=action,
        level=get_risk_level(action),
        warn_threshold=warn_threshold,
        block_threshold=block_threshold,
        matches=shown,
        reasons=_union(reason_groups),
    )
