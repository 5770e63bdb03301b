"""JSON dataset loading and row validation."""

import json
import logging
import math
from pathlib import Path
from typing import Any, Optional

from spoofguard.models import CalibrationRow, DriftInputRow

logger = logging.getLogger("spoofguard.dataset")

TRUE_LABELS = ("1", "true", "attack", "malicious", "spoof", "positive")
FALSE_LABELS = ("0", "false", "benign", "safe", "negative")
LABEL_FIELDS = ("label", "malicious", "attack")


class DatasetError(ValueError):
    """Raised when a dataset file or one of its rows is invalid."""

    def __init__(self, message: str, row: Optional[int] = None, field: Optional[str] = None):
        super().__init__(message)
        self.row = row
        self.field = field


def load_json_rows(path: str, kind: str = "Dataset") -> list[Any]:
    """
    Read a dataset file containing a non-empty JSON array.

    Args:
        path: Path to the JSON file
        kind: Dataset name used in error messages

    Returns:
        The decoded array

    Raises:
        DatasetError: If the file is missing, malformed, not an array or empty
    """
    file_path = Path(path)
    if not file_path.exists():
        raise DatasetError(f"Dataset file not found: {path}")

    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DatasetError(f"Failed to parse dataset file: {path} ({e})") from e

    if not isinstance(data, list):
        raise DatasetError(f"{kind} dataset must be a JSON array.")
    if not data:
        raise DatasetError(f"{kind} dataset is empty.")

    logger.debug(f"Loaded {len(data)} rows from {path}")
    return data


def parse_label(value: Any) -> Optional[bool]:
    """Interpret a label value as malicious (True) or benign (False); None if unrecognized."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        v = value.strip().lower()
        if v in TRUE_LABELS:
            return True
        if v in FALSE_LABELS:
            return False
    return None


def parse_protect_list(value: Any) -> list[str]:
    """Parse a list of targets or a comma-separated string of targets."""
    if isinstance(value, list):
        return [v.strip() for v in value if isinstance(v, str) and v.strip()]
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return []


def parse_weight(value: Any) -> Optional[float]:
    """Return a positive row weight (default 1), or None if invalid."""
    if value is None:
        return 1.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return float(value)


def _row_object(row: Any, index: int) -> dict:
    if not isinstance(row, dict):
        raise DatasetError(f"Row {index} must be a JSON object.", row=index)
    return row


def _identifier(row: dict, index: int) -> str:
    identifier = row.get("identifier")
    if not isinstance(identifier, str) or not identifier.strip():
        raise DatasetError(
            f'Row {index} is missing a valid "identifier" string.', row=index, field="identifier"
        )
    return identifier


def _row_protect(row: dict) -> tuple[str, ...]:
    return tuple(parse_protect_list(row.get("protect")) + parse_protect_list(row.get("target")))


def parse_calibration_rows(rows: list[Any]) -> list[CalibrationRow]:
    """
    Validate labeled calibration rows.

    Each row needs an ``identifier`` and a label in ``label``, ``malicious``
    or ``attack``; ``weight`` defaults to 1; ``protect``/``target`` are
    optional per-row targets.
    """
    parsed: list[CalibrationRow] = []
    for index, raw in enumerate(rows, start=1):
        row = _row_object(raw, index)
        identifier = _identifier(row, index)

        label = None
        for name in LABEL_FIELDS:
            label = parse_label(row.get(name))
            if label is not None:
                break
        if label is None:
            raise DatasetError(
                f"Row {index} is missing a valid label. "
                "Use label/malicious/attack as true|false, 1|0, malicious|benign.",
                row=index,
                field="label",
            )

        weight = parse_weight(row.get("weight"))
        if weight is None:
            raise DatasetError(
                f'Row {index} has an invalid "weight" value. Use a positive number.',
                row=index,
                field="weight",
            )

        parsed.append(
            CalibrationRow(identifier=identifier, malicious=label, weight=weight, protect=_row_protect(row))
        )
    return parsed


def parse_drift_rows(rows: list[Any]) -> list[DriftInputRow]:
    """Validate drift rows (``identifier`` plus optional ``protect``/``target``)."""
    parsed: list[DriftInputRow] = []
    for index, raw in enumerate(rows, start=1):
        row = _row_object(raw, index)
        parsed.append(DriftInputRow(identifier=_identifier(row, index), protect=_row_protect(row)))
    return parsed
