"""Pytest configuration and shared fixtures."""

import json

import pytest

from spoofguard.models import ScoredRow


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove spoofguard environment configuration for every test."""
    for name in (
        "SPOOFGUARD_WARN_THRESHOLD",
        "SPOOFGUARD_BLOCK_THRESHOLD",
        "SPOOFGUARD_MAX_MATCHES",
        "SPOOFGUARD_RESERVED",
        "SPOOFGUARD_PROTECT",
        "SPOOFGUARD_WEIGHTS_FILE",
        "SPOOFGUARD_WEIGHTS_CONTEXT",
        "SPOOFGUARD_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def write_json(tmp_path):
    """Return a helper that writes data to a JSON file and returns its path."""

    def _write(name, data):
        f = tmp_path / name
        f.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return str(f)

    return _write


@pytest.fixture
def calibration_dataset(write_json):
    """Create a small labeled calibration dataset."""
    return write_json(
        "calibration.json",
        [
            {"identifier": "paypal", "label": "malicious"},
            {"identifier": "teamspace", "label": "benign"},
        ],
    )


@pytest.fixture
def labeled_dataset(write_json):
    """Create a labeled dataset with per-row targets."""
    return write_json(
        "labeled.json",
        [
            {"identifier": "аdmin", "malicious": True, "target": "admin"},
            {"identifier": "pаypаl", "attack": 1, "protect": ["paypal"]},
            {"identifier": "sarah", "label": "benign", "protect": "paypal"},
            {"identifier": "gardener", "label": 0, "weight": 2},
        ],
    )


@pytest.fixture
def audit_dataset(write_json):
    """Create an exported identifier list with one collision and one mismatch."""
    return write_json(
        "export.json",
        [
            {"id": "1", "handle": "Sarah", "source": "users"},
            {"id": "2", "username": "@sarah", "source": "orgs"},
            {"id": "3", "slug": "bob", "canonical": "Bob"},
            {"foo": "no identifier here"},
        ],
    )


@pytest.fixture
def separable_rows():
    """Scored rows where malicious and benign scores do not overlap."""
    return [
        ScoredRow("m1", 95.0, True),
        ScoredRow("m2", 90.0, True),
        ScoredRow("b1", 10.0, False),
        ScoredRow("b2", 20.0, False),
    ]
