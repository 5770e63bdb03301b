"""Weighted confusable distance between two strings."""

import unicodedata
from typing import Mapping, Optional

from spoofguard.confusables import (
    canonical_char,
    char_script,
    full_table,
    is_divergent,
    is_ignorable,
    skeleton,
)
from spoofguard.models import DistanceResult, DistanceStep, StepKind
from spoofguard.weights import VALID_CONTEXTS, VisualWeights, lookup_weight

# Relative ordering must hold: substitution < cross-script substitution < mismatch.
SUBSTITUTION_COST = 0.25
CROSS_SCRIPT_PREMIUM = 0.15
DIVERGENCE_COST = 0.3
IGNORABLE_COST = 0.04
DIACRITIC_COST = 0.2
MISMATCH_COST = 1.0


def _cross_script(a: str, b: str) -> bool:
    script_a = char_script(a)
    script_b = char_script(b)
    return bool(script_a and script_b and script_a != script_b)


def _substitution_step(
    a: str,
    b: str,
    table: Mapping[str, str],
    weights: Optional[VisualWeights],
    context: Optional[str],
) -> DistanceStep:
    if a == b or a.lower() == b.lower():
        return DistanceStep(StepKind.EXACT, 0.0, a, b)

    if is_ignorable(a) or is_ignorable(b):
        return DistanceStep(StepKind.MISMATCH, MISMATCH_COST, a, b)

    cross = _cross_script(a, b)
    premium = CROSS_SCRIPT_PREMIUM if cross else 0.0
    weight = lookup_weight(weights, a, b, context)

    if canonical_char(a, table) == canonical_char(b, table):
        if is_divergent(a) or is_divergent(b):
            return DistanceStep(StepKind.DIVERGENCE, DIVERGENCE_COST, a, b, cross)
        if weight is not None:
            cost = min(MISMATCH_COST, weight.cost + premium)
            return DistanceStep(StepKind.VISUAL_WEIGHT, cost, a, b, cross)
        return DistanceStep(StepKind.CONFUSABLE, SUBSTITUTION_COST + premium, a, b, cross)

    if weight is not None:
        cost = min(MISMATCH_COST, weight.cost + premium)
        return DistanceStep(StepKind.VISUAL_WEIGHT, cost, a, b, cross)
    return DistanceStep(StepKind.MISMATCH, MISMATCH_COST, a, b)


def _clusters(text: str) -> list[str]:
    """Split text into NFD clusters, one per base character with its combining marks."""
    clusters: list[str] = []
    for ch in text:
        decomposed = unicodedata.normalize("NFD", ch)
        if clusters and unicodedata.combining(decomposed[0]) and not is_ignorable(decomposed[0]):
            clusters[-1] = unicodedata.normalize("NFD", clusters[-1] + decomposed)
        else:
            clusters.append(decomposed)
    return clusters


def _cluster_step(
    a: str,
    b: str,
    table: Mapping[str, str],
    weights: Optional[VisualWeights],
    context: Optional[str],
) -> DistanceStep:
    if a == b or a.lower() == b.lower():
        return DistanceStep(StepKind.EXACT, 0.0, a, b)

    base = _substitution_step(a[0], b[0], table, weights, context)
    if a[1:] == b[1:]:
        return DistanceStep(base.kind, base.cost, a, b, base.cross_script)

    # Differing marks on one position still cost at most a mismatch.
    kind = StepKind.DIACRITIC if base.kind == StepKind.EXACT else base.kind
    cost = min(MISMATCH_COST, base.cost + DIACRITIC_COST)
    return DistanceStep(kind, cost, a, b, base.cross_script)


def _indel_step(cluster: str, left: bool) -> DistanceStep:
    kind, cost = (
        (StepKind.IGNORABLE, IGNORABLE_COST)
        if len(cluster) == 1 and is_ignorable(cluster)
        else (StepKind.MISMATCH, MISMATCH_COST)
    )
    if left:
        return DistanceStep(kind, cost, left=cluster)
    return DistanceStep(kind, cost, right=cluster)


def confusable_distance(
    a: str,
    b: str,
    table: Optional[Mapping[str, str]] = None,
    weights: Optional[VisualWeights] = None,
    context: Optional[str] = None,
) -> DistanceResult:
    """
    Compute the confusable distance between two strings.

    Both inputs are NFD-decomposed into clusters of a base character and its
    combining marks, then aligned with a weighted edit distance
    (substitution, insertion and deletion; no transpositions). Each aligned
    pair costs nothing when equal up to case, a confusable-substitution cost
    when both bases share a canonical character, a small cost for inserting
    an ignorable character, and the mismatch ceiling otherwise. Differing
    marks add a diacritic cost, capped at the mismatch ceiling. Measured
    visual weights override the base cost for eligible pairs.

    Args:
        a: First string
        b: Second string
        table: Confusable table (defaults to the full table)
        weights: Optional visual-weight overlay
        context: Usage context for weight eligibility ("identifier" or "domain")

    Returns:
        DistanceResult with the alignment steps and aggregate counts
    """
    if context is not None and context not in VALID_CONTEXTS:
        raise ValueError(f"Invalid weights context: '{context}'. Must be one of {VALID_CONTEXTS}")

    table = full_table() if table is None else table
    left = _clusters(a)
    right = _clusters(b)
    n, m = len(left), len(right)

    # cost[i][j]: cheapest alignment of left[:i] and right[:j]
    cost = [[0.0] * (m + 1) for _ in range(n + 1)]
    back: list[list[Optional[tuple[int, int, DistanceStep]]]] = [
        [None] * (m + 1) for _ in range(n + 1)
    ]

    for i in range(1, n + 1):
        step = _indel_step(left[i - 1], left=True)
        cost[i][0] = cost[i - 1][0] + step.cost
        back[i][0] = (i - 1, 0, step)
    for j in range(1, m + 1):
        step = _indel_step(right[j - 1], left=False)
        cost[0][j] = cost[0][j - 1] + step.cost
        back[0][j] = (0, j - 1, step)

    for i in range(1, n + 1):
        for j in range(1, m + 1):
            sub = _cluster_step(left[i - 1], right[j - 1], table, weights, context)
            best = (cost[i - 1][j - 1] + sub.cost, (i - 1, j - 1, sub))

            delete = _indel_step(left[i - 1], left=True)
            if cost[i - 1][j] + delete.cost < best[0]:
                best = (cost[i - 1][j] + delete.cost, (i - 1, j, delete))

            insert = _indel_step(right[j - 1], left=False)
            if cost[i][j - 1] + insert.cost < best[0]:
                best = (cost[i][j - 1] + insert.cost, (i, j - 1, insert))

            cost[i][j], back[i][j] = best

    steps: list[DistanceStep] = []
    i, j = n, m
    while back[i][j] is not None:
        i, j, step = back[i][j]
        steps.append(step)
    steps.reverse()

    distance = round(cost[n][m], 4)
    return DistanceResult(
        distance=distance,
        similarity=round(1 / (1 + distance), 4),
        chain_depth=sum(1 for s in steps if s.kind != StepKind.EXACT),
        skeleton_equal=skeleton(a, table) == skeleton(b, table),
        cross_script_count=sum(1 for s in steps if s.cross_script),
        ignorable_count=sum(1 for s in steps if s.kind == StepKind.IGNORABLE),
        divergence_count=sum(1 for s in steps if s.kind == StepKind.DIVERGENCE),
        steps=tuple(steps),
    )
