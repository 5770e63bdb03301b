"""Tests for dataset loading and row validation."""

import pytest

from spoofguard.dataset import (
    DatasetError,
    load_json_rows,
    parse_calibration_rows,
    parse_drift_rows,
    parse_label,
    parse_protect_list,
    parse_weight,
)
from spoofguard.models import CalibrationRow, DriftInputRow


class TestLoadJsonRows:
    """Tests for load_json_rows."""

    def test_load_array(self, write_json):
        """Test loading a JSON array."""
        path = write_json("rows.json", [{"identifier": "a"}])
        assert load_json_rows(path) == [{"identifier": "a"}]

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises DatasetError."""
        with pytest.raises(DatasetError, match="not found"):
            load_json_rows(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        """Test that malformed JSON raises DatasetError."""
        f = tmp_path / "bad.json"
        f.write_text("[1, 2")
        with pytest.raises(DatasetError, match="Failed to parse"):
            load_json_rows(str(f))

    def test_not_an_array(self, write_json):
        """Test that a JSON object is rejected."""
        path = write_json("obj.json", {"identifier": "a"})
        with pytest.raises(DatasetError, match="Calibration dataset must be a JSON array"):
            load_json_rows(path, "Calibration")

    def test_empty_array(self, write_json):
        """Test that an empty array is rejected."""
        with pytest.raises(DatasetError, match="empty"):
            load_json_rows(write_json("empty.json", []))


class TestParseLabel:
    """Tests for parse_label."""

    @pytest.mark.parametrize("value", [True, 1, "1", "true", "Attack", " malicious ", "spoof", "positive"])
    def test_true_labels(self, value):
        """Test values read as malicious."""
        assert parse_label(value) is True

    @pytest.mark.parametrize("value", [False, 0, "0", "false", "benign", "SAFE", "negative"])
    def test_false_labels(self, value):
        """Test values read as benign."""
        assert parse_label(value) is False

    @pytest.mark.parametrize("value", [None, 2, "maybe", [], {}])
    def test_unrecognized(self, value):
        """Test values with no label meaning."""
        assert parse_label(value) is None


class TestParseHelpers:
    """Tests for protect list and weight parsing."""

    def test_protect_list(self):
        """Test list and comma-separated forms."""
        assert parse_protect_list(["a", " b ", "", 3]) == ["a", "b"]
        assert parse_protect_list("a, b,,c") == ["a", "b", "c"]
        assert parse_protect_list(None) == []

    @pytest.mark.parametrize("value, expected", [(None, 1.0), (2, 2.0), (0.5, 0.5)])
    def test_valid_weight(self, value, expected):
        """Test accepted row weights."""
        assert parse_weight(value) == expected

    @pytest.mark.parametrize("value", [0, -1, float("inf"), float("nan"), "2", True])
    def test_invalid_weight(self, value):
        """Test rejected row weights."""
        assert parse_weight(value) is None


class TestParseCalibrationRows:
    """Tests for parse_calibration_rows."""

    def test_label_fields_and_targets(self, labeled_dataset):
        """Test each label field, per-row targets and weights."""
        rows = parse_calibration_rows(load_json_rows(labeled_dataset))
        assert rows == [
            CalibrationRow("аdmin", True, 1.0, ("admin",)),
            CalibrationRow("pаypаl", True, 1.0, ("paypal",)),
            CalibrationRow("sarah", False, 1.0, ("paypal",)),
            CalibrationRow("gardener", False, 2.0, ()),
        ]

    def test_missing_identifier(self):
        """Test that a row without an identifier is rejected with its row number."""
        with pytest.raises(DatasetError) as exc_info:
            parse_calibration_rows([{"identifier": "ok", "label": 1}, {"label": 1}])
        assert exc_info.value.row == 2
        assert exc_info.value.field == "identifier"

    def test_missing_label(self):
        """Test that a row without a usable label is rejected."""
        with pytest.raises(DatasetError, match="missing a valid label") as exc_info:
            parse_calibration_rows([{"identifier": "x", "label": "unknown"}])
        assert exc_info.value.field == "label"

    def test_invalid_weight(self):
        """Test that a non-positive weight is rejected."""
        with pytest.raises(DatasetError, match="weight"):
            parse_calibration_rows([{"identifier": "x", "label": 1, "weight": 0}])

    def test_non_object_row(self):
        """Test that non-object rows are rejected."""
        with pytest.raises(DatasetError, match="Row 1 must be a JSON object"):
            parse_calibration_rows(["x"])


class TestParseDriftRows:
    """Tests for parse_drift_rows."""

    def test_rows(self):
        """Test identifiers with optional targets."""
        rows = parse_drift_rows([{"identifier": "ſ", "target": "f"}, {"identifier": "x", "protect": "a,b"}])
        assert rows == [DriftInputRow("ſ", ("f",)), DriftInputRow("x", ("a", "b"))]

    def test_blank_identifier(self):
        """Test that blank identifiers are rejected."""
        with pytest.raises(DatasetError, match="identifier"):
            parse_drift_rows([{"identifier": "   "}])
