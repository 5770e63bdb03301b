"""Canonical collision audit over exported identifier rows."""

import logging
from typing import Any, Optional

from spoofguard.models import CanonicalAuditReport, CanonicalAuditRow, CollisionGroup
from spoofguard.risk import normalize

logger = logging.getLogger("spoofguard.audit")

IDENTIFIER_KEYS = ("identifier", "raw", "handle", "slug", "username", "value")
ID_KEYS = ("id", "_id", "uuid")
SOURCE_KEYS = ("source", "table", "model")
CANONICAL_KEYS = (
    "canonical",
    "normalized",
    "handleCanonical",
    "slugCanonical",
    "handle_canonical",
    "slug_canonical",
)


def _pick(row: dict, keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = row.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_audit_row(row: Any, index: int) -> Optional[CanonicalAuditRow]:
    """Extract an audit row, or None when the row has no identifier."""
    if not isinstance(row, dict):
        return None
    raw = _pick(row, IDENTIFIER_KEYS)
    if raw is None:
        return None
    return CanonicalAuditRow(
        index=index,
        raw=raw,
        normalized=normalize(raw),
        id=_pick(row, ID_KEYS),
        source=_pick(row, SOURCE_KEYS),
        stored_canonical=_pick(row, CANONICAL_KEYS),
    )


def audit_canonical(rows: list[Any], limit: int = 10, dataset_label: str = "") -> CanonicalAuditReport:
    """
    Group exported identifiers by normalized form and report collisions.

    Rows without a usable identifier are skipped. A stored canonical value
    that differs from the computed normalized form counts as a mismatch.
    """
    if limit < 1:
        raise ValueError(f"Invalid limit: {limit}. Must be at least 1")

    parsed: list[CanonicalAuditRow] = []
    skipped = 0
    mismatches = 0
    for index, raw_row in enumerate(rows, start=1):
        row = parse_audit_row(raw_row, index)
        if row is None:
            skipped += 1
            continue
        if row.stored_canonical is not None and row.stored_canonical != row.normalized:
            mismatches += 1
        parsed.append(row)

    groups: dict[str, list[CanonicalAuditRow]] = {}
    for row in parsed:
        groups.setdefault(row.normalized, []).append(row)

    collisions = [
        CollisionGroup(canonical=canonical, count=len(group), rows=tuple(sorted(group, key=lambda r: r.raw)))
        for canonical, group in groups.items()
        if len(group) > 1
    ]
    collisions.sort(key=lambda g: (-g.count, g.canonical))

    logger.debug(f"Audited {len(parsed)} rows: {len(collisions)} collision groups, {mismatches} mismatches")

    return CanonicalAuditReport(
        dataset=dataset_label,
        total=len(rows),
        processed=len(parsed),
        skipped=skipped,
        collisions=len(collisions),
        conflicting_rows=sum(g.count for g in collisions),
        canonical_mismatches=mismatches,
        collisions_preview=tuple(collisions[:limit]),
    )
