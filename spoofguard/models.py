"""Data models for identifier risk analysis."""

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Optional


class MapVariant(Enum):
    """Confusable mapping table variants."""

    FILTERED = "filtered"
    FULL = "full"


class StepKind(Enum):
    """Alignment operation tags produced by the distance metric."""

    EXACT = "exact"
    CONFUSABLE = "confusable-substitution"
    IGNORABLE = "ignorable"
    DIVERGENCE = "divergence"
    DIACRITIC = "diacritic"
    VISUAL_WEIGHT = "visual-weight"
    MISMATCH = "mismatch"


class RiskAction(Enum):
    """Policy decision for an identifier."""

    ALLOW = "allow"
    WARN = "warn"
    BLOCK = "block"


class RiskLevel(Enum):
    """Risk level categories."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AttackMode(Enum):
    """Attack generation modes."""

    IMPERSONATION = "impersonation"
    EVASION = "evasion"


class SeedKind(Enum):
    """How an attack seed was derived from its target."""

    SUBSTITUTION = "substitution"
    ASCII_LOOKALIKE = "ascii-lookalike"
    IGNORABLE_INSERT = "ignorable-insert"


ACTION_SEVERITY = {RiskAction.ALLOW: 0, RiskAction.WARN: 1, RiskAction.BLOCK: 2}


def get_risk_level(action: RiskAction) -> RiskLevel:
    """Map a policy action to its risk level."""
    if action == RiskAction.BLOCK:
        return RiskLevel.HIGH
    if action == RiskAction.WARN:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def classify_score(score: float, warn_threshold: float, block_threshold: float) -> RiskAction:
    """Classify a score into allow/warn/block."""
    if score >= block_threshold:
        return RiskAction.BLOCK
    if score >= warn_threshold:
        return RiskAction.WARN
    return RiskAction.ALLOW


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_json_dict(value: Any) -> Any:
    """
    Convert a model (or nested structure of models) into JSON-ready data.

    Dataclass field names become camelCase keys, enums become their values,
    tuples become lists. Fields holding None are omitted so optional
    fields only appear when they carry a value.
    """
    if is_dataclass(value) and not isinstance(value, type):
        out: dict[str, Any] = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if item is None:
                continue
            out[_camel(f.name)] = to_json_dict(item)
        return out
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_json_dict(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_dict(v) for v in value]
    return value


@dataclass(frozen=True)
class ConfusableEntry:
    """A single code point mapped onto a lowercase Latin letter or digit."""

    source: str
    target: str
    comment: str = ""

    @property
    def code_point(self) -> str:
        return f"U+{ord(self.source):04X}"


@dataclass(frozen=True)
class DivergenceVector:
    """A code point where NFKC and the confusables data disagree."""

    char: str
    code_point: str
    tr39: str
    nfkc: str


@dataclass(frozen=True)
class DistanceStep:
    """One alignment operation between two strings."""

    kind: StepKind
    cost: float
    left: Optional[str] = None
    right: Optional[str] = None
    cross_script: bool = False


@dataclass(frozen=True)
class DistanceResult:
    """Outcome of the confusable distance metric for one pair."""

    distance: float
    similarity: float
    chain_depth: int
    skeleton_equal: bool
    cross_script_count: int
    ignorable_count: int
    divergence_count: int
    steps: tuple[DistanceStep, ...] = ()


@dataclass(frozen=True)
class RiskReason:
    """Explanation attached to a risk match or assessment."""

    code: str
    message: str


@dataclass(frozen=True)
class RiskMatch:
    """Risk of an identifier against a single protected target."""

    target: str
    score: float
    distance: float
    chain_depth: int
    skeleton_equal: bool
    reasons: tuple[RiskReason, ...] = ()


@dataclass(frozen=True)
class RiskAssessment:
    """Risk decision for one identifier."""

    identifier: str
    normalized: str
    score: float
    action: RiskAction
    level: RiskLevel
    warn_threshold: float
    block_threshold: float
    matches: tuple[RiskMatch, ...] = ()
    reasons: tuple[RiskReason, ...] = ()


@dataclass(frozen=True)
class CalibrationRow:
    """A labeled identifier for threshold calibration."""

    identifier: str
    malicious: bool
    weight: float = 1.0
    protect: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoredRow:
    """A calibration row with its precomputed risk score."""

    identifier: str
    score: float
    malicious: bool
    weight: float = 1.0


@dataclass(frozen=True)
class CostModel:
    """Cost of each misclassification outcome."""

    block_benign: float = 8.0
    warn_benign: float = 1.0
    allow_malicious: float = 12.0
    warn_malicious: float = 3.0


@dataclass(frozen=True)
class ThresholdMetrics:
    """Confusion-matrix metrics at one score threshold."""

    threshold: int
    tp: int
    fp: int
    tn: int
    fn: int
    precision: float
    recall: float
    f1: float
    accuracy: float


@dataclass(frozen=True)
class CostSummary:
    """Weighted cost of a (warn, block) threshold policy."""

    warn_threshold: int
    block_threshold: int
    total_cost: float
    average_cost: float
    total_weight: float
    weighted_false_positive_blocks: float
    weighted_false_positive_warns: float
    weighted_false_negative_allows: float
    weighted_false_negative_warns: float


@dataclass(frozen=True)
class PriorAdjustment:
    """Class re-weighting applied to reach a malicious prior."""

    malicious_prior: float
    malicious_weight_multiplier: float
    benign_weight_multiplier: float


@dataclass(frozen=True)
class CalibrationResult:
    """Recommended thresholds and the metrics behind them."""

    total: int
    malicious: int
    benign: int
    weighted: dict
    warn_threshold: int
    block_threshold: int
    warn_metrics: ThresholdMetrics
    block_metrics: ThresholdMetrics
    expected_cost: CostSummary
    cost_model: CostModel
    target_recall: float
    recall_constraint_applied: bool
    prior_adjustment: Optional[PriorAdjustment] = None


@dataclass(frozen=True)
class DriftInputRow:
    """An identifier to compare across mapping variants."""

    identifier: str
    protect: tuple[str, ...] = ()


@dataclass(frozen=True)
class DriftComparison:
    """Scores of one identifier under both mapping variants."""

    identifier: str
    protect: tuple[str, ...]
    score_filtered: float
    score_full: float
    action_filtered: RiskAction
    action_full: RiskAction
    delta: float
    top_filtered: Optional[str] = None
    top_full: Optional[str] = None

    @property
    def flipped(self) -> bool:
        return self.action_filtered != self.action_full


@dataclass(frozen=True)
class DriftReport:
    """Aggregated drift between the filtered and full mapping variants."""

    dataset: str
    total: int
    action_flips: int
    stricter_under_full: int
    stricter_under_filtered: int
    average_score_delta: float
    max_abs_score_delta: float
    changed_count: int
    changed_preview: tuple[DriftComparison, ...] = ()
    maps_compared: dict = field(
        default_factory=lambda: {"filtered": MapVariant.FILTERED.value, "full": MapVariant.FULL.value}
    )


@dataclass(frozen=True)
class AttackSeed:
    """A generated adversarial variant of a target."""

    identifier: str
    edits: int
    kind: SeedKind
    operations: tuple[str, ...] = ()


@dataclass(frozen=True)
class AttackCandidate:
    """An attack seed evaluated against the risk policy."""

    identifier: str
    edits: int
    kind: SeedKind
    operations: tuple[str, ...]
    normalized: str
    score: float
    action: RiskAction
    level: RiskLevel
    format_valid: bool
    reasons: tuple[str, ...] = ()
    format_message: Optional[str] = None
    top_target: Optional[str] = None
    top_score: Optional[float] = None
    top_distance: Optional[float] = None
    top_chain_depth: Optional[int] = None


@dataclass(frozen=True)
class AttackReport:
    """Summary of an attack generation run."""

    target: str
    normalized_target: str
    protect: tuple[str, ...]
    mode: AttackMode
    map: MapVariant
    settings: dict
    generated: dict
    outcomes: dict
    bypass_count: int
    bypass: tuple[AttackCandidate, ...] = ()
    top_risk: tuple[AttackCandidate, ...] = ()
    blocked: tuple[AttackCandidate, ...] = ()


@dataclass(frozen=True)
class CanonicalAuditRow:
    """An exported identifier row participating in a canonical audit."""

    index: int
    raw: str
    normalized: str
    id: Optional[str] = None
    source: Optional[str] = None
    stored_canonical: Optional[str] = None


@dataclass(frozen=True)
class CollisionGroup:
    """Rows sharing one normalized identifier."""

    canonical: str
    count: int
    rows: tuple[CanonicalAuditRow, ...] = ()


@dataclass(frozen=True)
class CanonicalAuditReport:
    """Result of auditing exported identifiers for canonical collisions."""

    dataset: str
    total: int
    processed: int
    skipped: int
    collisions: int
    conflicting_rows: int
    canonical_mismatches: int
    collisions_preview: tuple[CollisionGroup, ...] = ()
