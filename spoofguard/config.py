"""Configuration loader for the risk engine."""

import os
from dataclasses import dataclass, field
from typing import Optional

from spoofguard.risk import (
    DEFAULT_BLOCK_THRESHOLD,
    DEFAULT_MAX_MATCHES,
    DEFAULT_RESERVED,
    DEFAULT_WARN_THRESHOLD,
    validate_thresholds,
)
from spoofguard.weights import VALID_CONTEXTS


def _int_or_none(value: Optional[str]) -> Optional[int]:
    """Convert string to int or return None."""
    return int(value) if value else None


def _float_or_default(value: Optional[str], default: float) -> float:
    """Convert string to float, falling back to a default when unset."""
    return float(value) if value else default


def _bool_from_str(value: str, default: bool = False) -> bool:
    """Convert string to boolean."""
    return value.lower() in ("true", "1", "yes") if value else default


def _parse_csv_list(value: Optional[str], default: list[str]) -> list[str]:
    """Parse a comma-separated string into a list, stripping whitespace."""
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class EngineConfig:
    """Risk engine configuration from environment variables."""

    warn_threshold: float = DEFAULT_WARN_THRESHOLD
    block_threshold: float = DEFAULT_BLOCK_THRESHOLD
    max_matches: int = DEFAULT_MAX_MATCHES

    # Reserved names compared when include_reserved is on
    reserved: list[str] = field(default_factory=lambda: list(DEFAULT_RESERVED))
    # Targets protected on every run
    protect: list[str] = field(default_factory=list)

    # Optional measured visual-weight overlay
    weights_file: Optional[str] = None
    weights_context: Optional[str] = None

    debug: bool = False


def load_config() -> EngineConfig:
    """Load configuration from environment variables."""
    warn_threshold = _float_or_default(
        os.environ.get("SPOOFGUARD_WARN_THRESHOLD"), DEFAULT_WARN_THRESHOLD
    )
    block_threshold = _float_or_default(
        os.environ.get("SPOOFGUARD_BLOCK_THRESHOLD"), DEFAULT_BLOCK_THRESHOLD
    )
    validate_thresholds(warn_threshold, block_threshold)

    max_matches = _int_or_none(os.environ.get("SPOOFGUARD_MAX_MATCHES"))
    if max_matches is None:
        max_matches = DEFAULT_MAX_MATCHES
    if max_matches < 1:
        raise ValueError(f"Invalid SPOOFGUARD_MAX_MATCHES: {max_matches}. Must be at least 1")

    weights_context = os.environ.get("SPOOFGUARD_WEIGHTS_CONTEXT") or None
    if weights_context is not None and weights_context not in VALID_CONTEXTS:
        raise ValueError(
            f"Invalid SPOOFGUARD_WEIGHTS_CONTEXT: '{weights_context}'. Must be one of {VALID_CONTEXTS}"
        )

    return EngineConfig(
        warn_threshold=warn_threshold,
        block_threshold=block_threshold,
        max_matches=max_matches,
        reserved=_parse_csv_list(os.environ.get("SPOOFGUARD_RESERVED"), list(DEFAULT_RESERVED)),
        protect=_parse_csv_list(os.environ.get("SPOOFGUARD_PROTECT"), []),
        weights_file=os.environ.get("SPOOFGUARD_WEIGHTS_FILE") or None,
        weights_context=weights_context,
        debug=_bool_from_str(os.environ.get("SPOOFGUARD_DEBUG", "")),
    )
