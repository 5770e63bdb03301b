"""Measured visual-weight overlay for the confusable distance metric."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger("spoofguard.weights")

VALID_CONTEXTS = ("identifier", "domain")


class WeightsFileError(ValueError):
    """Raised when a visual-weights file cannot be parsed."""


@dataclass(frozen=True)
class VisualWeight:
    """Measured visual similarity between a source and a target character."""

    source: str
    target: str
    cost: float
    danger: float = 0.0
    stable_danger: float = 0.0
    glyph_reuse: bool = False
    xid_continue: bool = False
    idna_pvalid: bool = False
    tr39_allowed: bool = False

    def eligible(self, context: Optional[str]) -> bool:
        """Return True if the pair is valid in the given usage context."""
        if context == "identifier":
            return self.xid_continue
        if context == "domain":
            return self.idna_pvalid
        return True


# source char -> target char -> weight
VisualWeights = dict[str, dict[str, VisualWeight]]


def _number(value: Any, name: str, default: Optional[float] = None) -> float:
    if value is None and default is not None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise WeightsFileError(f"Invalid '{name}' value: {value!r} (expected a number)")
    return float(value)


def _char(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise WeightsFileError(f"Invalid '{name}' value: {value!r} (expected a non-empty string)")
    return value


def _add(weights: VisualWeights, weight: VisualWeight) -> None:
    if weight.cost < 0:
        raise WeightsFileError(
            f"Negative cost {weight.cost} for pair {weight.source!r} -> {weight.target!r}"
        )
    weights.setdefault(weight.source, {})[weight.target] = weight


def _parse_edges(edges: Any) -> VisualWeights:
    if not isinstance(edges, list):
        raise WeightsFileError("'edges' must be an array")

    weights: VisualWeights = {}
    for index, edge in enumerate(edges, start=1):
        if not isinstance(edge, dict):
            raise WeightsFileError(f"Edge {index} must be an object")
        _add(
            weights,
            VisualWeight(
                source=_char(edge.get("source"), "source"),
                target=_char(edge.get("target"), "target"),
                cost=_number(edge.get("cost"), "cost"),
                danger=_number(edge.get("danger"), "danger", 0.0),
                stable_danger=_number(edge.get("stableDanger"), "stableDanger", 0.0),
                glyph_reuse=bool(edge.get("glyphReuse")),
                xid_continue=bool(edge.get("xidContinue")),
                idna_pvalid=bool(edge.get("idnaPvalid")),
                tr39_allowed=bool(edge.get("tr39Allowed")),
            ),
        )
    return weights


def _parse_compact(data: dict) -> VisualWeights:
    weights: VisualWeights = {}
    for source, targets in data.items():
        if not isinstance(targets, dict):
            raise WeightsFileError(f"Targets of {source!r} must be an object")
        for target, compact in targets.items():
            if not isinstance(compact, dict):
                raise WeightsFileError(f"Weight {source!r} -> {target!r} must be an object")
            _add(
                weights,
                VisualWeight(
                    source=_char(source, "source"),
                    target=_char(target, "target"),
                    cost=_number(compact.get("c"), "c"),
                    danger=_number(compact.get("d"), "d", 0.0),
                    stable_danger=_number(compact.get("s"), "s", 0.0),
                    glyph_reuse=bool(compact.get("g")),
                    xid_continue=bool(compact.get("x")),
                    idna_pvalid=bool(compact.get("i")),
                    tr39_allowed=bool(compact.get("t")),
                ),
            )
    return weights


def parse_visual_weights(data: Any) -> VisualWeights:
    """
    Build a visual-weight overlay from decoded JSON.

    Accepts either an export object with an ``edges`` array or the compact
    nested map (``{source: {target: {c, d, s, g, x, i, t}}}``).

    Raises:
        WeightsFileError: If the structure or any value is malformed
    """
    if not isinstance(data, dict):
        raise WeightsFileError("Visual weights must be a JSON object")
    if "edges" in data:
        return _parse_edges(data["edges"])
    return _parse_compact(data)


def load_visual_weights(path: str) -> VisualWeights:
    """
    Load a visual-weights JSON file.

    Args:
        path: Path to the weights file

    Returns:
        Nested mapping of source char to target char to weight
    """
    file_path = Path(path)
    if not file_path.exists():
        raise WeightsFileError(f"Visual weights file not found: {path}")

    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise WeightsFileError(f"Invalid JSON in visual weights file {path}: {e}") from e

    weights = parse_visual_weights(data)
    pair_count = sum(len(targets) for targets in weights.values())
    logger.debug(f"Loaded {pair_count} visual-weight pairs from {path}")
    return weights


def lookup_weight(
    weights: Optional[VisualWeights],
    a: str,
    b: str,
    context: Optional[str] = None,
) -> Optional[VisualWeight]:
    """
    Find the measured weight for a character pair, in either direction.

    Only context-eligible weights are returned. When both directions are
    present the cheaper one wins, which keeps the metric symmetric.
    """
    if not weights:
        return None

    candidates = []
    for source, target in ((a, b), (b, a)):
        weight = weights.get(source, {}).get(target)
        if weight is not None and weight.eligible(context):
            candidates.append(weight)

    if not candidates:
        return None
    return min(candidates, key=lambda w: w.cost)
