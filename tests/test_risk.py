"""Tests for the risk scoring policy."""

import pytest

from spoofguard.models import RiskAction, RiskLevel
from spoofguard.risk import (
    DEFAULT_RESERVED,
    INVALID_FORMAT_MESSAGE,
    check_risk,
    normalize,
    resolve_targets,
    score_from_distance,
    validate_format,
    validate_thresholds,
)


class TestNormalize:
    """Tests for identifier normalization."""

    def test_trims_lowercases_and_strips_at(self):
        """Test whitespace, case and leading @ handling."""
        assert normalize("  @PayPal ") == "paypal"
        assert normalize("@@admin") == "admin"

    def test_nfkc(self):
        """Test that compatibility characters are folded when requested."""
        assert normalize("ｐａｙｐａｌ") == "paypal"
        assert normalize("ｐａｙｐａｌ", unicode=False) == "ｐａｙｐａｌ"

    def test_cross_script_letters_survive(self):
        """Test that NFKC leaves Cyrillic homoglyphs in place."""
        assert normalize("аdmin") == "аdmin"


class TestScoreFromDistance:
    """Tests for the distance to score curve."""

    @pytest.mark.parametrize(
        "distance, score",
        [(0.0, 100.0), (0.04, 99.97), (0.4, 96.69), (0.8, 86.78), (1.0, 79.34), (2.0, 17.36), (2.2, 0.0), (5.0, 0.0)],
    )
    def test_curve(self, distance, score):
        """Test known points on the score curve."""
        assert score_from_distance(distance) == score

    def test_monotonic(self):
        """Test that the score never increases with distance."""
        scores = [score_from_distance(d / 10) for d in range(0, 30)]
        assert scores == sorted(scores, reverse=True)


class TestValidation:
    """Tests for threshold and format validation."""

    def test_valid_thresholds(self):
        """Test that ordered thresholds in range pass."""
        validate_thresholds(0, 0)
        validate_thresholds(45, 80)
        validate_thresholds(100, 100)

    @pytest.mark.parametrize("warn, block", [(-1, 80), (45, 101), (90, 80)])
    def test_invalid_thresholds(self, warn, block):
        """Test that out-of-range or inverted thresholds raise ValueError."""
        with pytest.raises(ValueError):
            validate_thresholds(warn, block)

    @pytest.mark.parametrize("identifier", ["admin", "my-team", "a1", "@Sarah"])
    def test_valid_format(self, identifier):
        """Test accepted identifier formats."""
        assert validate_format(identifier) is None

    @pytest.mark.parametrize("identifier", ["a", "x" * 31, "under_score", "-lead", "аdmin", "pay\u200bpal"])
    def test_invalid_format(self, identifier):
        """Test rejected identifier formats."""
        assert validate_format(identifier) == INVALID_FORMAT_MESSAGE


class TestResolveTargets:
    """Tests for protected target resolution."""

    def test_reserved_included_by_default(self):
        """Test that reserved names are appended after explicit targets."""
        targets = resolve_targets(["PayPal"])
        assert targets[0] == "paypal"
        assert set(DEFAULT_RESERVED) <= set(targets)

    def test_no_reserved(self):
        """Test that reserved names can be excluded."""
        assert resolve_targets(["paypal"], include_reserved=False) == ["paypal"]

    def test_deduplicates(self):
        """Test that duplicate targets are removed, keeping order."""
        assert resolve_targets(["@Acme", "acme", "beta"], include_reserved=False) == ["acme", "beta"]

    def test_custom_reserved(self):
        """Test that a custom reserved list replaces the default."""
        assert resolve_targets(None, reserved=["Owner"]) == ["owner"]


class TestCheckRisk:
    """Tests for check_risk."""

    def test_cyrillic_admin_blocked(self):
        """Test that a Cyrillic lookalike of a reserved name is blocked."""
        result = check_risk("аdmin")
        assert result.action == RiskAction.BLOCK
        assert result.level == RiskLevel.HIGH
        assert result.score == 96.69
        top = result.matches[0]
        assert top.target == "admin"
        assert top.skeleton_equal is True
        codes = {r.code for r in result.reasons}
        assert "confusable-target" in codes
        assert "mixed-script" in codes

    def test_two_substitutions_blocked(self):
        """Test a lookalike with two cross-script substitutions."""
        result = check_risk("раypal", ["paypal"], include_reserved=False)
        assert result.score == 86.78
        assert result.action == RiskAction.BLOCK

    def test_digit_lookalike_warns(self):
        """Test that an ASCII digit lookalike lands in the warn band."""
        result = check_risk("paypa1", ["paypal"], include_reserved=False)
        assert result.score == 79.34
        assert result.action == RiskAction.WARN
        assert result.level == RiskLevel.MEDIUM

    def test_thresholds_change_action(self):
        """Test that the same score maps to different actions under different thresholds."""
        kwargs = {"include_reserved": False}
        assert check_risk("paypa1", ["paypal"], warn_threshold=90, block_threshold=95, **kwargs).action == (
            RiskAction.ALLOW
        )
        assert check_risk("paypa1", ["paypal"], warn_threshold=70, block_threshold=95, **kwargs).action == (
            RiskAction.WARN
        )

    def test_invisible_character(self):
        """Test that an inserted zero-width space is flagged."""
        result = check_risk("pay\u200bpal", ["paypal"], include_reserved=False)
        assert result.score == 99.97
        assert result.action == RiskAction.BLOCK
        assert "invisible-character" in {r.code for r in result.reasons}

    def test_accented_reserved_name_blocked(self):
        """Test that an accent on a reserved name keeps the score near the top."""
        result = check_risk("àdmin")
        assert result.score == 99.17
        assert result.action == RiskAction.BLOCK
        assert result.matches[0].target == "admin"
        assert "confusable-target" in {r.code for r in result.matches[0].reasons}

    def test_single_script_not_mixed(self):
        """Test that an identifier written in one non-Latin script is not flagged as mixed-script."""
        result = check_risk("жидкий")
        codes = {r.code for r in result.reasons}
        for match in result.matches:
            codes.update(r.code for r in match.reasons)
        assert "mixed-script" not in codes

    def test_exact_match(self):
        """Test that an exact protected name scores 100."""
        result = check_risk("@Admin")
        assert result.normalized == "admin"
        assert result.score == 100.0
        assert result.matches[0].reasons[0].code == "exact-target-match"

    def test_unrelated_identifier_allowed(self):
        """Test that a dissimilar identifier is allowed."""
        result = check_risk("hello")
        assert result.action == RiskAction.ALLOW
        assert result.level == RiskLevel.LOW
        assert result.score == 17.36

    def test_no_targets(self):
        """Test that an empty target list scores zero with no matches."""
        result = check_risk("anything", include_reserved=False)
        assert result.score == 0.0
        assert result.matches == ()
        assert result.action == RiskAction.ALLOW

    def test_matches_sorted_and_capped(self):
        """Test that matches are ordered by score and limited by max_matches."""
        protect = ["paypals", "paypal"]
        result = check_risk("pаypal", protect, include_reserved=False)
        assert [m.target for m in result.matches] == ["paypal", "paypals"]
        assert result.matches[0].score > result.matches[1].score

        capped = check_risk("pаypal", protect, include_reserved=False, max_matches=1)
        assert len(capped.matches) == 1
        assert capped.score == result.score

    def test_score_in_range(self):
        """Test that scores stay within 0-100."""
        for identifier in ("admin", "аdmin", "zzzzzzzz", "x"):
            assert 0 <= check_risk(identifier).score <= 100

    def test_thresholds_echoed(self):
        """Test that the thresholds in use are reported."""
        result = check_risk("hello", warn_threshold=10, block_threshold=20)
        assert result.warn_threshold == 10
        assert result.block_threshold == 20

    def test_invalid_max_matches(self):
        """Test that max_matches below 1 raises ValueError."""
        with pytest.raises(ValueError, match="max matches"):
            check_risk("admin", max_matches=0)

    def test_invalid_thresholds(self):
        """Test that inverted thresholds raise ValueError."""
        with pytest.raises(ValueError):
            check_risk("admin", warn_threshold=90, block_threshold=10)
