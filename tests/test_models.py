"""Tests for data models."""

import pytest

from spoofguard.models import (
    CostModel,
    DriftComparison,
    PriorAdjustment,
    RiskAction,
    RiskAssessment,
    RiskLevel,
    RiskMatch,
    RiskReason,
    classify_score,
    get_risk_level,
    to_json_dict,
)


class TestClassifyScore:
    """Tests for classify_score."""

    @pytest.mark.parametrize(
        "score, expected",
        [(0, RiskAction.ALLOW), (44.99, RiskAction.ALLOW), (45, RiskAction.WARN), (79.99, RiskAction.WARN),
         (80, RiskAction.BLOCK), (100, RiskAction.BLOCK)],
    )
    def test_default_bands(self, score, expected):
        """Test that thresholds are inclusive lower bounds."""
        assert classify_score(score, 45, 80) == expected

    def test_equal_thresholds(self):
        """Test that equal thresholds leave no warn band."""
        assert classify_score(50, 50, 50) == RiskAction.BLOCK
        assert classify_score(49, 50, 50) == RiskAction.ALLOW


class TestRiskLevel:
    """Tests for get_risk_level."""

    def test_levels(self):
        """Test the action to level mapping."""
        assert get_risk_level(RiskAction.ALLOW) == RiskLevel.LOW
        assert get_risk_level(RiskAction.WARN) == RiskLevel.MEDIUM
        assert get_risk_level(RiskAction.BLOCK) == RiskLevel.HIGH


class TestDriftComparison:
    """Tests for DriftComparison."""

    def test_flipped(self):
        """Test that differing actions count as a flip."""
        row = DriftComparison("x", ("f",), 79.34, 98.14, RiskAction.WARN, RiskAction.BLOCK, 18.8)
        assert row.flipped is True
        same = DriftComparison("x", ("f",), 10.0, 12.0, RiskAction.ALLOW, RiskAction.ALLOW, 2.0)
        assert same.flipped is False


class TestToJsonDict:
    """Tests for to_json_dict."""

    def test_camel_case_and_enums(self):
        """Test key conversion, enum values and nested models."""
        assessment = RiskAssessment(
            identifier="аdmin",
            normalized="аdmin",
            score=96.69,
            action=RiskAction.BLOCK,
            level=RiskLevel.HIGH,
            warn_threshold=45,
            block_threshold=80,
            matches=(RiskMatch("admin", 96.69, 0.4, 1, True, (RiskReason("confusable-target", "msg"),)),),
        )
        data = to_json_dict(assessment)
        assert data["action"] == "block"
        assert data["level"] == "high"
        assert data["warnThreshold"] == 45
        assert data["matches"][0]["chainDepth"] == 1
        assert data["matches"][0]["skeletonEqual"] is True
        assert data["matches"][0]["reasons"] == [{"code": "confusable-target", "message": "msg"}]
        assert data["reasons"] == []

    def test_none_fields_omitted(self):
        """Test that optional fields without a value are dropped."""
        row = DriftComparison("x", (), 0.0, 0.0, RiskAction.ALLOW, RiskAction.ALLOW, 0.0)
        data = to_json_dict(row)
        assert "topFiltered" not in data
        assert data["protect"] == []

    def test_plain_values(self):
        """Test dicts and flat dataclasses."""
        assert to_json_dict({"a": (1, 2)}) == {"a": [1, 2]}
        assert to_json_dict(CostModel()) == {
            "blockBenign": 8.0,
            "warnBenign": 1.0,
            "allowMalicious": 12.0,
            "warnMalicious": 3.0,
        }
        assert to_json_dict(PriorAdjustment(0.5, 2.0, 0.667))["maliciousWeightMultiplier"] == 2.0
