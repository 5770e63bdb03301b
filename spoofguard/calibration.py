"""Threshold calibration by minimum expected misclassification cost."""

import logging
import math
from dataclasses import replace
from typing import Iterable, Mapping, Optional

from spoofguard.models import (
    CalibrationResult,
    CalibrationRow,
    CostModel,
    CostSummary,
    PriorAdjustment,
    RiskAction,
    ScoredRow,
    ThresholdMetrics,
    classify_score,
)
from spoofguard.risk import check_risk
from spoofguard.weights import VisualWeights

logger = logging.getLogger("spoofguard.calibration")

DEFAULT_TARGET_RECALL = 0.9
THRESHOLDS = range(0, 101)


class PriorWeightingError(ValueError):
    """Raised when a malicious prior cannot be applied to a dataset."""


def _round(value: float, digits: int = 3) -> float:
    return round(value, digits)


def _safe_divide(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def score_rows(
    rows: Iterable[CalibrationRow],
    protect: Optional[Iterable[str]] = None,
    include_reserved: bool = True,
    reserved: Optional[Iterable[str]] = None,
    table: Optional[Mapping[str, str]] = None,
    weights: Optional[VisualWeights] = None,
    context: Optional[str] = None,
) -> list[ScoredRow]:
    """
    Score labeled rows with the risk policy.

    A row's own protected targets take precedence over the shared list.
    """
    shared = list(protect or [])
    scored = []
    for row in rows:
        targets = list(row.protect) or shared
        assessment = check_risk(
            row.identifier,
            targets,
            include_reserved=include_reserved,
            reserved=reserved,
            table=table,
            weights=weights,
            context=context,
        )
        scored.append(ScoredRow(row.identifier, assessment.score, row.malicious, row.weight))
    return scored


def compute_threshold_metrics(rows: list[ScoredRow], threshold: int) -> ThresholdMetrics:
    """Unweighted confusion-matrix metrics treating score >= threshold as malicious."""
    tp = fp = tn = fn = 0
    for row in rows:
        predicted = row.score >= threshold
        if predicted and row.malicious:
            tp += 1
        elif predicted:
            fp += 1
        elif row.malicious:
            fn += 1
        else:
            tn += 1

    precision = _safe_divide(tp, tp + fp)
    recall = _safe_divide(tp, tp + fn)
    f1 = _safe_divide(2 * precision * recall, precision + recall)
    accuracy = _safe_divide(tp + tn, len(rows))

    return ThresholdMetrics(
        threshold=threshold,
        tp=tp,
        fp=fp,
        tn=tn,
        fn=fn,
        precision=_round(precision),
        recall=_round(recall),
        f1=_round(f1),
        accuracy=_round(accuracy),
    )


def apply_malicious_prior(
    rows: list[ScoredRow], prior: float
) -> tuple[list[ScoredRow], PriorAdjustment]:
    """
    Re-weight rows so the malicious class carries the requested prior.

    Returns new rows; the input rows are left untouched.

    Raises:
        ValueError: If prior is outside [0, 1]
        PriorWeightingError: If the dataset lacks a class the prior needs
    """
    if not 0 <= prior <= 1:
        raise ValueError(f"Invalid malicious prior: {prior}. Must be between 0 and 1")

    malicious_count = sum(1 for r in rows if r.malicious)
    benign_count = len(rows) - malicious_count

    if prior > 0 and malicious_count == 0:
        raise PriorWeightingError(
            "Cannot apply malicious prior > 0 because the dataset has no malicious rows."
        )
    if prior < 1 and benign_count == 0:
        raise PriorWeightingError(
            "Cannot apply malicious prior < 1 because the dataset has no benign rows."
        )

    malicious_rate = _safe_divide(malicious_count, len(rows))
    benign_rate = 1 - malicious_rate
    malicious_multiplier = prior / malicious_rate if malicious_rate > 0 else 0.0
    benign_multiplier = (1 - prior) / benign_rate if benign_rate > 0 else 0.0

    adjusted = [
        replace(r, weight=r.weight * (malicious_multiplier if r.malicious else benign_multiplier))
        for r in rows
    ]
    return adjusted, PriorAdjustment(
        malicious_prior=_round(prior),
        malicious_weight_multiplier=_round(malicious_multiplier),
        benign_weight_multiplier=_round(benign_multiplier),
    )


def compute_policy_cost(
    rows: list[ScoredRow], warn_threshold: int, block_threshold: int, cost_model: CostModel
) -> CostSummary:
    """Weighted expected cost of a (warn, block) threshold policy."""
    total_weight = total_cost = 0.0
    fp_blocks = fp_warns = fn_allows = fn_warns = 0.0

    for row in rows:
        action = classify_score(row.score, warn_threshold, block_threshold)
        w = row.weight
        total_weight += w
        if row.malicious:
            if action == RiskAction.ALLOW:
                total_cost += cost_model.allow_malicious * w
                fn_allows += w
            elif action == RiskAction.WARN:
                total_cost += cost_model.warn_malicious * w
                fn_warns += w
        elif action == RiskAction.BLOCK:
            total_cost += cost_model.block_benign * w
            fp_blocks += w
        elif action == RiskAction.WARN:
            total_cost += cost_model.warn_benign * w
            fp_warns += w

    return CostSummary(
        warn_threshold=warn_threshold,
        block_threshold=block_threshold,
        total_cost=_round(total_cost),
        average_cost=_round(_safe_divide(total_cost, total_weight)),
        total_weight=_round(total_weight),
        weighted_false_positive_blocks=_round(fp_blocks),
        weighted_false_positive_warns=_round(fp_warns),
        weighted_false_negative_allows=_round(fn_allows),
        weighted_false_negative_warns=_round(fn_warns),
    )


def _cumulative_weights(rows: list[ScoredRow]) -> tuple[list[float], list[float]]:
    """Per integer threshold t, the malicious and benign weight with score >= t."""
    malicious = [0.0] * 102
    benign = [0.0] * 102
    for row in rows:
        bucket = min(100, max(0, math.floor(row.score)))
        if row.malicious:
            malicious[bucket] += row.weight
        else:
            benign[bucket] += row.weight
    for t in range(100, -1, -1):
        malicious[t] += malicious[t + 1]
        benign[t] += benign[t + 1]
    return malicious, benign


def _find_best_policy(
    rows: list[ScoredRow], cost_model: CostModel, eligible_warn: Optional[set[int]]
) -> tuple[int, int]:
    malicious_ge, benign_ge = _cumulative_weights(rows)
    malicious_total, benign_total = malicious_ge[0], benign_ge[0]
    total_weight = malicious_total + benign_total

    best_key = None
    best = (0, 0)
    for block in THRESHOLDS:
        for warn in range(0, block + 1):
            if eligible_warn is not None and warn not in eligible_warn:
                continue
            cost = (
                cost_model.block_benign * benign_ge[block]
                + cost_model.warn_benign * (benign_ge[warn] - benign_ge[block])
                + cost_model.allow_malicious * (malicious_total - malicious_ge[warn])
                + cost_model.warn_malicious * (malicious_ge[warn] - malicious_ge[block])
            )
            key = (_round(cost), _round(_safe_divide(cost, total_weight)), -block, -warn)
            if best_key is None or key < best_key:
                best_key = key
                best = (warn, block)
    return best


def calibrate(
    rows: list[ScoredRow],
    cost_model: Optional[CostModel] = None,
    target_recall: float = DEFAULT_TARGET_RECALL,
    malicious_prior: Optional[float] = None,
) -> CalibrationResult:
    """
    Recommend warn/block thresholds minimizing expected cost.

    Every pair 0 <= warn <= block <= 100 is evaluated. When some thresholds
    reach the target recall, warn is restricted to those; otherwise the
    constraint is dropped for this run. Ties are broken by lower average
    cost, then higher block threshold, then higher warn threshold.

    Args:
        rows: Scored labeled rows
        cost_model: Misclassification costs (defaults to CostModel())
        target_recall: Minimum recall required of the warn threshold
        malicious_prior: Optional malicious base rate to re-weight classes to

    Returns:
        CalibrationResult with the recommended thresholds and metrics
    """
    if not rows:
        raise ValueError("Cannot calibrate on an empty dataset")
    if not 0 <= target_recall <= 1:
        raise ValueError(f"Invalid target recall: {target_recall}. Must be between 0 and 1")

    cost_model = cost_model or CostModel()
    metrics = [compute_threshold_metrics(rows, t) for t in THRESHOLDS]
    eligible = {m.threshold for m in metrics if m.recall >= target_recall}
    constraint_applied = bool(eligible)
    if not constraint_applied:
        logger.info(f"No threshold reaches recall {target_recall}; dropping the recall constraint")

    weighted_rows = rows
    prior_adjustment = None
    if malicious_prior is not None:
        weighted_rows, prior_adjustment = apply_malicious_prior(rows, malicious_prior)

    warn, block = _find_best_policy(weighted_rows, cost_model, eligible if constraint_applied else None)

    malicious_weight = _round(sum(r.weight for r in weighted_rows if r.malicious))
    benign_weight = _round(sum(r.weight for r in weighted_rows if not r.malicious))
    malicious_count = sum(1 for r in rows if r.malicious)

    logger.debug(f"Calibrated thresholds warn={warn} block={block} over {len(rows)} rows")

    return CalibrationResult(
        total=len(rows),
        malicious=malicious_count,
        benign=len(rows) - malicious_count,
        weighted={
            "malicious": malicious_weight,
            "benign": benign_weight,
            "total": _round(malicious_weight + benign_weight),
        },
        warn_threshold=warn,
        block_threshold=block,
        warn_metrics=metrics[warn],
        block_metrics=metrics[block],
        expected_cost=compute_policy_cost(weighted_rows, warn, block, cost_model),
        cost_model=cost_model,
        target_recall=target_recall,
        recall_constraint_applied=constraint_applied,
        prior_adjustment=prior_adjustment,
    )
