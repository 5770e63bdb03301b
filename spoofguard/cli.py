"""CLI entrypoint for the spoofguard risk engine."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from spoofguard.attack import run_attack_generation
from spoofguard.audit import audit_canonical
from spoofguard.calibration import PriorWeightingError, calibrate, score_rows
from spoofguard.config import EngineConfig, load_config
from spoofguard.confusables import get_table
from spoofguard.dataset import DatasetError, load_json_rows, parse_calibration_rows, parse_drift_rows
from spoofguard.drift import (
    BUILTIN_DATASET_LABEL,
    DEFAULT_LIMIT,
    analyze_drift,
    builtin_drift_rows,
    evaluate_drift_gate,
)
from spoofguard.logging_setup import setup_logging
from spoofguard.models import (
    AttackMode,
    AttackReport,
    CalibrationResult,
    CanonicalAuditReport,
    CostModel,
    DriftReport,
    MapVariant,
    RiskAction,
    RiskAssessment,
    to_json_dict,
)
from spoofguard.risk import check_risk
from spoofguard.tablegen import generate_table
from spoofguard.weights import VALID_CONTEXTS, WeightsFileError, load_visual_weights

logger = setup_logging()

COMMANDS_REQUIRING_SUBJECT = (
    "risk",
    "attack-gen",
    "calibrate",
    "recommend",
    "audit-canonical",
    "generate-table",
)


def _load_config() -> EngineConfig:
    config = load_config()
    if config.debug:
        setup_logging(debug=True)
    return config


def _emit_json(data: Any) -> None:
    print(json.dumps(to_json_dict(data), indent=2, ensure_ascii=False))


def _resolve_settings(args: argparse.Namespace, config: EngineConfig) -> dict:
    """Merge CLI flags over environment configuration."""
    warn = args.warn_threshold if args.warn_threshold is not None else config.warn_threshold
    block = args.block_threshold if args.block_threshold is not None else config.block_threshold
    max_matches = args.max_matches if args.max_matches is not None else config.max_matches
    protect = args.protect if args.protect is not None else config.protect
    return {
        "protect": protect,
        "include_reserved": not args.no_reserved,
        "reserved": config.reserved,
        "warn_threshold": warn,
        "block_threshold": block,
        "max_matches": max_matches,
    }


def _load_weights(args: argparse.Namespace, config: EngineConfig):
    path = args.weights or config.weights_file
    context = args.weights_context or config.weights_context
    if not path:
        return None, context
    return load_visual_weights(path), context


def _map_table(args: argparse.Namespace):
    return get_table(MapVariant(args.map)) if args.map else None


# ---------------------------------------------------------------------------
# risk
# ---------------------------------------------------------------------------

def print_risk(assessment: RiskAssessment) -> None:
    """Print a risk assessment as text."""
    print(
        f"Risk for {json.dumps(assessment.identifier, ensure_ascii=False)} "
        f"(normalized: {json.dumps(assessment.normalized, ensure_ascii=False)})"
    )
    print(
        f"Score: {assessment.score} -> {assessment.action.value} ({assessment.level.value}); "
        f"thresholds warn {assessment.warn_threshold}, block {assessment.block_threshold}"
    )
    if assessment.reasons:
        print(f"Signals: {', '.join(r.code for r in assessment.reasons)}")
    for match in assessment.matches:
        print(
            f"  vs {match.target}: score {match.score}, distance {match.distance}, "
            f"chain depth {match.chain_depth}, skeleton equal {str(match.skeleton_equal).lower()}"
        )


def risk_command(args: argparse.Namespace) -> int:
    """
    Execute the risk command.

    Returns:
        Exit code (0 = below the fail-on action, 1 = at or above it).
    """
    config = _load_config()
    settings = _resolve_settings(args, config)
    weights, context = _load_weights(args, config)

    assessment = check_risk(
        args.subject,
        settings.pop("protect"),
        table=_map_table(args),
        weights=weights,
        context=context,
        **settings,
    )

    if args.json:
        _emit_json(assessment)
    else:
        print_risk(assessment)

    if args.fail_on == "warn":
        return 0 if assessment.action == RiskAction.ALLOW else 1
    return 1 if assessment.action == RiskAction.BLOCK else 0


# ---------------------------------------------------------------------------
# attack-gen
# ---------------------------------------------------------------------------

def attack_report_json(report: AttackReport) -> dict:
    """JSON shape of an attack report with previews grouped together."""
    data = to_json_dict(report)
    data["previews"] = {
        "bypass": data.pop("bypass", []),
        "topRisk": data.pop("topRisk", []),
        "blocked": data.pop("blocked", []),
    }
    return data


def print_attack_report(report: AttackReport) -> None:
    """Print an attack generation report as text."""
    generated = report.generated
    outcomes = report.outcomes
    print(
        f"Attack generation results for {json.dumps(report.target, ensure_ascii=False)} "
        f"(normalized: {json.dumps(report.normalized_target, ensure_ascii=False)})"
    )
    print(
        f"Mode: {report.mode.value}, map: {report.map.value}, protect: [{', '.join(report.protect)}], "
        f"generated: {generated['total']} (confusable {generated['substitution']}, "
        f"ascii-lookalike {generated['asciiLookalike']}, ignorable {generated['ignorableInsert']})"
    )
    print(f"Outcomes: allow {outcomes['allow']}, warn {outcomes['warn']}, block {outcomes['block']}")
    print(f"Bypasses (non-blocking + format-valid): {report.bypass_count}")

    for title, rows in (("Top allow/bypass candidates:", report.bypass), ("Top risk candidates:", report.top_risk)):
        if not rows:
            continue
        print(title)
        for row in rows:
            versus = f" vs {row.top_target}" if row.top_target else ""
            print(
                f"  {json.dumps(row.identifier, ensure_ascii=False)} score {row.score} "
                f"({row.action.value}) edits {row.edits}{versus}"
            )


def attack_gen_command(args: argparse.Namespace) -> int:
    """
    Execute the attack-gen command.

    Returns:
        Exit code (always 0 once the report is produced).
    """
    config = _load_config()
    settings = _resolve_settings(args, config)

    report = run_attack_generation(
        args.subject,
        settings.pop("protect"),
        mode=AttackMode(args.mode),
        map_variant=MapVariant(args.map) if args.map else None,
        max_candidates=args.max_candidates,
        max_edits=args.max_edits,
        max_per_char=args.max_per_char,
        include_ignorables=not args.no_ignorables,
        **settings,
    )

    if args.json:
        print(json.dumps(attack_report_json(report), indent=2, ensure_ascii=False))
    else:
        print_attack_report(report)
    return 0


# ---------------------------------------------------------------------------
# calibrate / recommend
# ---------------------------------------------------------------------------

def calibration_json(result: CalibrationResult, dataset: str) -> dict:
    """JSON shape of a calibration run."""
    data = {
        "dataset": dataset,
        "total": result.total,
        "malicious": result.malicious,
        "benign": result.benign,
        "weighted": result.weighted,
        "recommendations": {
            "warnThreshold": result.warn_threshold,
            "blockThreshold": result.block_threshold,
        },
        "metrics": {
            "warn": to_json_dict(result.warn_metrics),
            "block": to_json_dict(result.block_metrics),
        },
        "expectedCost": to_json_dict(result.expected_cost),
        "costModel": to_json_dict(result.cost_model),
        "targetRecall": result.target_recall,
        "recallConstraintApplied": result.recall_constraint_applied,
    }
    if result.prior_adjustment is not None:
        data["priorAdjustment"] = to_json_dict(result.prior_adjustment)
    return data


def _run_calibration(args: argparse.Namespace, config: EngineConfig, raw_rows: list) -> CalibrationResult:
    settings = _resolve_settings(args, config)
    weights, context = _load_weights(args, config)
    rows = parse_calibration_rows(raw_rows)
    defaults = CostModel()
    cost_model = CostModel(
        block_benign=args.cost_block_benign if args.cost_block_benign is not None else defaults.block_benign,
        warn_benign=args.cost_warn_benign if args.cost_warn_benign is not None else defaults.warn_benign,
        allow_malicious=(
            args.cost_allow_malicious if args.cost_allow_malicious is not None else defaults.allow_malicious
        ),
        warn_malicious=(
            args.cost_warn_malicious if args.cost_warn_malicious is not None else defaults.warn_malicious
        ),
    )
    scored = score_rows(
        rows,
        protect=settings["protect"],
        include_reserved=settings["include_reserved"],
        reserved=settings["reserved"],
        table=_map_table(args),
        weights=weights,
        context=context,
    )
    return calibrate(
        scored,
        cost_model=cost_model,
        target_recall=args.target_recall,
        malicious_prior=args.malicious_prior,
    )


def print_calibration(result: CalibrationResult) -> None:
    """Print calibration results as text."""
    warn, block, cost = result.warn_metrics, result.block_metrics, result.expected_cost
    print(
        f"Calibration results ({result.total} rows: {result.malicious} malicious, {result.benign} benign)"
    )
    print(f"Recommended warn threshold: {warn.threshold} (precision {warn.precision}, recall {warn.recall})")
    print(
        f"Recommended block threshold: {block.threshold} "
        f"(precision {block.precision}, recall {block.recall}, f1 {block.f1})"
    )
    print(f"Expected policy cost: {cost.total_cost} (avg {cost.average_cost} per weighted row)")
    if not result.recall_constraint_applied:
        print(f"No threshold reached recall {result.target_recall}; recall constraint dropped")
    prior = result.prior_adjustment
    if prior is not None:
        print(
            f"Prior weighting applied (malicious prior {prior.malicious_prior}; "
            f"multipliers m={prior.malicious_weight_multiplier}, b={prior.benign_weight_multiplier})"
        )


def calibrate_command(args: argparse.Namespace) -> int:
    """
    Execute the calibrate command.

    Returns:
        Exit code (0 = success, 1 = invalid dataset or options).
    """
    config = _load_config()
    raw_rows = load_json_rows(args.subject, kind="Calibration")
    logger.info(f"Calibrating thresholds on {len(raw_rows)} rows from {args.subject}")
    result = _run_calibration(args, config, raw_rows)

    if args.json:
        print(json.dumps(calibration_json(result, args.subject), indent=2, ensure_ascii=False))
    else:
        print_calibration(result)
    return 0


def drift_gate_budgets(baseline: DriftReport) -> dict:
    """CI drift budgets derived from a baseline drift report."""
    return {
        "maxActionFlips": baseline.action_flips,
        "maxAverageScoreDelta": round(abs(baseline.average_score_delta), 3),
        "maxAbsScoreDelta": baseline.max_abs_score_delta,
    }


def drift_gate_command_line(budgets: dict) -> str:
    """Shell command enforcing the given drift budgets."""
    return (
        "spoofguard drift-gate"
        f" --max-action-flips {budgets['maxActionFlips']}"
        f" --max-average-score-delta {budgets['maxAverageScoreDelta']}"
        f" --max-abs-score-delta {budgets['maxAbsScoreDelta']}"
    )


def _drift_options(args: argparse.Namespace, config: EngineConfig) -> dict:
    settings = _resolve_settings(args, config)
    limit = args.limit if args.limit is not None else DEFAULT_LIMIT
    return dict(settings, limit=limit)


def recommend_command(args: argparse.Namespace) -> int:
    """
    Execute the recommend command.

    Combines calibration, drift over the dataset and drift over the built-in
    corpus into a suggested risk config and CI gate.

    Returns:
        Exit code (0 = success, 1 = invalid dataset or options).
    """
    config = _load_config()
    raw_rows = load_json_rows(args.subject, kind="Calibration")
    result = _run_calibration(args, config, raw_rows)

    options = _drift_options(args, config)
    drift = analyze_drift(parse_drift_rows(raw_rows), dataset_label=args.subject, **options)
    baseline = analyze_drift(builtin_drift_rows(), dataset_label=BUILTIN_DATASET_LABEL, **options)

    risk_config: dict[str, Any] = {
        "warnThreshold": result.warn_threshold,
        "blockThreshold": result.block_threshold,
    }
    if options["protect"]:
        risk_config["protect"] = list(options["protect"])
    budgets = drift_gate_budgets(baseline)
    gate_command = drift_gate_command_line(budgets)

    if args.json:
        output = {
            "dataset": args.subject,
            "recommendedConfig": {"risk": risk_config},
            "calibrate": calibration_json(result, args.subject),
            "drift": to_json_dict(drift),
            "driftBaseline": to_json_dict(baseline),
            "ciGate": {"budgets": budgets, "command": gate_command},
        }
        print(json.dumps(output, indent=2, ensure_ascii=False))
        return 0

    cost = result.expected_cost
    print(f"Recommendation ({args.subject})")
    print(f"Risk thresholds: warn {result.warn_threshold}, block {result.block_threshold}")
    print(f"Expected policy cost: {cost.total_cost} (avg {cost.average_cost} per weighted row)")
    print(f"Drift snapshot: {drift.action_flips} action flip(s), max |delta| {drift.max_abs_score_delta}")
    print(
        f"Baseline drift (builtin corpus): {baseline.action_flips} action flip(s), "
        f"max |delta| {baseline.max_abs_score_delta}"
    )
    print("Suggested risk config:")
    print(json.dumps({"risk": risk_config}, indent=2))
    print("Suggested CI drift gate command:")
    print(gate_command)
    return 0


# ---------------------------------------------------------------------------
# drift / drift-gate
# ---------------------------------------------------------------------------

def print_drift(report: DriftReport) -> None:
    """Print a drift report as text."""
    print(f"Drift analysis ({report.dataset}): {report.total} rows")
    print(
        f"Action flips: {report.action_flips} "
        f"(stricter under full {report.stricter_under_full}, "
        f"stricter under filtered {report.stricter_under_filtered})"
    )
    print(
        f"Average score delta: {report.average_score_delta}, "
        f"max |delta|: {report.max_abs_score_delta}, changed rows: {report.changed_count}"
    )
    for row in report.changed_preview:
        print(
            f"  {json.dumps(row.identifier, ensure_ascii=False)}: "
            f"filtered {row.score_filtered} ({row.action_filtered.value}) -> "
            f"full {row.score_full} ({row.action_full.value}), delta {row.delta}"
        )


def _drift_report(args: argparse.Namespace, config: EngineConfig) -> DriftReport:
    options = _drift_options(args, config)
    if args.subject:
        rows = parse_drift_rows(load_json_rows(args.subject, kind="Drift"))
        label = str(Path(args.subject).resolve())
    else:
        rows = builtin_drift_rows()
        label = BUILTIN_DATASET_LABEL
    return analyze_drift(rows, dataset_label=label, **options)


def drift_command(args: argparse.Namespace) -> int:
    """
    Execute the drift command.

    Returns:
        Exit code (0 once the report is produced).
    """
    config = _load_config()
    report = _drift_report(args, config)
    if args.json:
        _emit_json(report)
    else:
        print_drift(report)
    return 0


def drift_gate_command(args: argparse.Namespace) -> int:
    """
    Execute the drift-gate command.

    Returns:
        Exit code (0 = within budgets, 1 = a budget was exceeded).
    """
    config = _load_config()
    if args.max_action_flips is None and args.max_average_score_delta is None and args.max_abs_score_delta is None:
        logger.error(
            "No drift budgets provided. Set at least one of --max-action-flips, "
            "--max-average-score-delta, or --max-abs-score-delta."
        )
        return 1

    report = _drift_report(args, config)
    failures = evaluate_drift_gate(
        report,
        max_action_flips=args.max_action_flips,
        max_average_score_delta=args.max_average_score_delta,
        max_abs_score_delta=args.max_abs_score_delta,
    )

    if args.json:
        _emit_json(report)
    else:
        print_drift(report)

    if failures:
        for failure in failures:
            logger.error(f"Drift budget exceeded: {failure}")
        return 1

    logger.info("Drift gate passed")
    return 0


# ---------------------------------------------------------------------------
# audit-canonical
# ---------------------------------------------------------------------------

def print_audit(report: CanonicalAuditReport) -> None:
    """Print a canonical audit report as text."""
    print(
        f"Canonical audit ({report.dataset}): {report.processed}/{report.total} processed, "
        f"{report.collisions} collision group(s)"
    )
    print(
        f"Conflicting rows: {report.conflicting_rows}, "
        f"stored-canonical mismatches: {report.canonical_mismatches}, skipped rows: {report.skipped}"
    )
    for group in report.collisions_preview:
        print(f'canonical "{group.canonical}" -> {group.count} row(s)')
        for row in group.rows:
            labels = [f"row {row.index}:"]
            if row.id:
                labels.append(f"id={json.dumps(row.id)}")
            if row.source:
                labels.append(f"source={json.dumps(row.source)}")
            labels.append(f"raw={json.dumps(row.raw, ensure_ascii=False)}")
            if row.stored_canonical is not None:
                labels.append(f"storedCanonical={json.dumps(row.stored_canonical, ensure_ascii=False)}")
            print("  " + " ".join(labels))


def audit_canonical_command(args: argparse.Namespace) -> int:
    """
    Execute the audit-canonical command.

    Returns:
        Exit code (0 = clean, 1 = collisions or stored-canonical mismatches).
    """
    raw_rows = load_json_rows(args.subject, kind="Canonical audit")
    limit = args.limit if args.limit is not None else DEFAULT_LIMIT
    report = audit_canonical(raw_rows, limit=limit, dataset_label=args.subject)

    if args.json:
        _emit_json(report)
    else:
        print_audit(report)

    if report.collisions or report.canonical_mismatches:
        logger.warning(
            f"{report.collisions} collision group(s), {report.canonical_mismatches} mismatch(es)"
        )
        return 1
    return 0


# ---------------------------------------------------------------------------
# generate-table
# ---------------------------------------------------------------------------

def generate_table_command(args: argparse.Namespace) -> int:
    """
    Execute the generate-table command.

    Returns:
        Exit code (0 = success).
    """
    rendered = generate_table(args.subject)
    if args.output:
        Path(args.output).write_text(rendered, encoding="utf-8")
        logger.info(f"Confusable table written to {args.output}")
    else:
        sys.stdout.write(rendered)
    return 0


COMMAND_HANDLERS = {
    "risk": risk_command,
    "attack-gen": attack_gen_command,
    "calibrate": calibrate_command,
    "recommend": recommend_command,
    "drift": drift_command,
    "drift-gate": drift_gate_command,
    "audit-canonical": audit_canonical_command,
    "generate-table": generate_table_command,
}


def _csv_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser shared by all commands."""
    parser = argparse.ArgumentParser(description="Identifier impersonation risk engine")
    parser.add_argument("command", choices=list(COMMAND_HANDLERS), help="Command to run")
    parser.add_argument(
        "subject",
        nargs="?",
        default=None,
        help="Identifier (risk), target (attack-gen), dataset path or confusables.txt path",
    )

    policy = parser.add_argument_group("risk policy")
    policy.add_argument("--protect", type=_csv_list, default=None, help="Comma-separated protected targets")
    policy.add_argument("--no-reserved", action="store_true", help="Do not compare against reserved names")
    policy.add_argument("--warn-threshold", type=float, default=None, help="Warn threshold (0-100)")
    policy.add_argument("--block-threshold", type=float, default=None, help="Block threshold (0-100)")
    policy.add_argument("--max-matches", type=int, default=None, help="Maximum matches to report")
    policy.add_argument("--map", choices=[v.value for v in MapVariant], default=None, help="Confusable table")
    policy.add_argument("--weights", default=None, help="Visual-weights JSON file")
    policy.add_argument("--weights-context", choices=VALID_CONTEXTS, default=None, help="Weight eligibility context")
    policy.add_argument(
        "--fail-on", choices=["block", "warn"], default="block", help="Action that fails the risk command"
    )

    attack = parser.add_argument_group("attack-gen")
    attack.add_argument("--mode", choices=[m.value for m in AttackMode], default=AttackMode.EVASION.value)
    attack.add_argument("--max-candidates", type=int, default=25, help="Preview size")
    attack.add_argument("--max-edits", type=int, choices=[1, 2], default=2, help="Edits per seed")
    attack.add_argument("--max-per-char", type=int, default=8, help="Replacements per character")
    attack.add_argument("--no-ignorables", action="store_true", help="Skip zero-width insertions")

    calib = parser.add_argument_group("calibrate / recommend")
    calib.add_argument("--target-recall", type=float, default=0.9, help="Minimum recall for warn")
    calib.add_argument("--malicious-prior", type=float, default=None, help="Malicious base rate (0-1)")
    calib.add_argument("--cost-block-benign", type=float, default=None)
    calib.add_argument("--cost-warn-benign", type=float, default=None)
    calib.add_argument("--cost-allow-malicious", type=float, default=None)
    calib.add_argument("--cost-warn-malicious", type=float, default=None)

    drift = parser.add_argument_group("drift / drift-gate / audit-canonical")
    drift.add_argument("--limit", type=int, default=None, help="Preview size (default 10)")
    drift.add_argument("--max-action-flips", type=int, default=None)
    drift.add_argument("--max-average-score-delta", type=float, default=None)
    drift.add_argument("--max-abs-score-delta", type=float, default=None)

    parser.add_argument("--output", default=None, help="Output path (generate-table)")
    parser.add_argument("--json", action="store_true", help="Emit JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def run(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, dispatch the command and return its exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Treat empty string as None (CI actions pass "" for unset inputs)
    if args.subject == "":
        args.subject = None

    if args.command in COMMANDS_REQUIRING_SUBJECT and not args.subject:
        parser.error(f"subject is required for the '{args.command}' command")

    if args.debug:
        setup_logging(debug=True)

    try:
        return COMMAND_HANDLERS[args.command](args)
    except PriorWeightingError as e:
        logger.error(f"Cannot apply malicious prior: {e}")
    except (DatasetError, WeightsFileError) as e:
        logger.error(str(e))
    except FileNotFoundError as e:
        logger.error(str(e))
    except ValueError as e:
        logger.error(f"Invalid option: {e}")
    return 1


def main() -> None:
    """Main CLI entrypoint."""
    sys.exit(run())


if __name__ == "__main__":
    main()
