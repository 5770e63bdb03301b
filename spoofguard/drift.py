"""Drift analysis between the filtered and full confusable tables."""

import logging
from typing import Iterable, Mapping, Optional

from spoofguard.confusables import builtin_divergence_vectors, filtered_table as default_filtered
from spoofguard.confusables import full_table as default_full
from spoofguard.models import ACTION_SEVERITY, DriftComparison, DriftInputRow, DriftReport
from spoofguard.risk import (
    DEFAULT_BLOCK_THRESHOLD,
    DEFAULT_MAX_MATCHES,
    DEFAULT_WARN_THRESHOLD,
    check_risk,
)

logger = logging.getLogger("spoofguard.drift")

BUILTIN_DATASET_LABEL = "builtin:nfkc-tr39-divergence-v1"
DEFAULT_LIMIT = 10


def builtin_drift_rows() -> list[DriftInputRow]:
    """The divergence corpus as drift rows, each protecting its confusable target."""
    return [DriftInputRow(identifier=v.char, protect=(v.tr39,)) for v in builtin_divergence_vectors()]


def _changed(row: DriftComparison) -> bool:
    return row.flipped or row.delta != 0 or row.top_full != row.top_filtered


def analyze_drift(
    rows: Iterable[DriftInputRow],
    *,
    protect: Optional[Iterable[str]] = None,
    include_reserved: bool = True,
    reserved: Optional[Iterable[str]] = None,
    warn_threshold: float = DEFAULT_WARN_THRESHOLD,
    block_threshold: float = DEFAULT_BLOCK_THRESHOLD,
    max_matches: int = DEFAULT_MAX_MATCHES,
    limit: int = DEFAULT_LIMIT,
    dataset_label: str = BUILTIN_DATASET_LABEL,
    filtered_table: Optional[Mapping[str, str]] = None,
    full_table: Optional[Mapping[str, str]] = None,
) -> DriftReport:
    """
    Score each row under both tables and summarize where they disagree.

    Identifiers are compared on raw input (no NFKC) so that compatibility
    characters reach the confusable tables unchanged.

    Args:
        rows: Identifiers with optional per-row targets
        protect: Targets for rows without their own
        limit: Maximum number of changed rows to preview
        dataset_label: Label reported for the dataset
        filtered_table: Left-hand table (defaults to the filtered table)
        full_table: Right-hand table (defaults to the full table)

    Returns:
        DriftReport with flip counts, score deltas and a ranked preview
    """
    if limit < 1:
        raise ValueError(f"Invalid limit: {limit}. Must be at least 1")

    left = default_filtered() if filtered_table is None else filtered_table
    right = default_full() if full_table is None else full_table
    shared = list(protect or [])

    comparisons: list[DriftComparison] = []
    for row in rows:
        targets = list(row.protect) or shared
        options = dict(
            include_reserved=include_reserved,
            reserved=reserved,
            warn_threshold=warn_threshold,
            block_threshold=block_threshold,
            max_matches=max_matches,
            normalize_unicode=False,
        )
        filtered = check_risk(row.identifier, targets, table=left, **options)
        full = check_risk(row.identifier, targets, table=right, **options)

        comparisons.append(
            DriftComparison(
                identifier=row.identifier,
                protect=tuple(targets),
                score_filtered=filtered.score,
                score_full=full.score,
                action_filtered=filtered.action,
                action_full=full.action,
                delta=round(full.score - filtered.score, 3),
                top_filtered=filtered.matches[0].target if filtered.matches else None,
                top_full=full.matches[0].target if full.matches else None,
            )
        )

    total = len(comparisons)
    changed = [c for c in comparisons if _changed(c)]
    changed.sort(key=lambda c: (-abs(c.delta), not c.flipped, c.identifier))

    report = DriftReport(
        dataset=dataset_label,
        total=total,
        action_flips=sum(1 for c in comparisons if c.flipped),
        stricter_under_full=sum(
            1 for c in comparisons if ACTION_SEVERITY[c.action_full] > ACTION_SEVERITY[c.action_filtered]
        ),
        stricter_under_filtered=sum(
            1 for c in comparisons if ACTION_SEVERITY[c.action_filtered] > ACTION_SEVERITY[c.action_full]
        ),
        average_score_delta=round(sum(c.delta for c in comparisons) / total, 3) if total else 0.0,
        max_abs_score_delta=round(max((abs(c.delta) for c in comparisons), default=0.0), 3),
        changed_count=len(changed),
        changed_preview=tuple(changed[:limit]),
    )
    logger.debug(
        f"Drift over {total} rows: {report.action_flips} flips, {report.changed_count} changed"
    )
    return report


def evaluate_drift_gate(
    report: DriftReport,
    max_action_flips: Optional[int] = None,
    max_average_score_delta: Optional[float] = None,
    max_abs_score_delta: Optional[float] = None,
) -> list[str]:
    """
    Check a drift report against CI budgets.

    Returns:
        Human-readable budget violations (empty when the gate passes)

    Raises:
        ValueError: If no budget is given or a budget is negative
    """
    budgets = {
        "max-action-flips": max_action_flips,
        "max-average-score-delta": max_average_score_delta,
        "max-abs-score-delta": max_abs_score_delta,
    }
    if all(v is None for v in budgets.values()):
        raise ValueError(
            "No drift budgets provided. Set at least one of --max-action-flips, "
            "--max-average-score-delta, or --max-abs-score-delta."
        )
    for name, value in budgets.items():
        if value is not None and value < 0:
            raise ValueError(f"Invalid --{name}: {value} (must be >= 0)")

    failures = []
    if max_action_flips is not None and report.action_flips > max_action_flips:
        failures.append(f"actionFlips {report.action_flips} > max-action-flips {max_action_flips}")

    abs_average = abs(report.average_score_delta)
    if max_average_score_delta is not None and abs_average > max_average_score_delta:
        failures.append(
            f"|averageScoreDelta| {abs_average} > max-average-score-delta {max_average_score_delta}"
        )

    if max_abs_score_delta is not None and report.max_abs_score_delta > max_abs_score_delta:
        failures.append(
            f"maxAbsScoreDelta {report.max_abs_score_delta} > max-abs-score-delta {max_abs_score_delta}"
        )
    return failures
