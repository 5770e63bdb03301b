"""Tests for the confusable distance metric."""

import pytest

from spoofguard.confusables import filtered_table
from spoofguard.distance import (
    CROSS_SCRIPT_PREMIUM,
    DIACRITIC_COST,
    IGNORABLE_COST,
    MISMATCH_COST,
    SUBSTITUTION_COST,
    confusable_distance,
)
from spoofguard.models import StepKind
from spoofguard.weights import VisualWeight


def _weights(*weights):
    out = {}
    for w in weights:
        out.setdefault(w.source, {})[w.target] = w
    return out


class TestCostOrdering:
    """Tests for the relative ordering of step costs."""

    def test_ordering(self):
        """Test substitution < cross-script substitution < mismatch."""
        assert SUBSTITUTION_COST < SUBSTITUTION_COST + CROSS_SCRIPT_PREMIUM < MISMATCH_COST
        assert IGNORABLE_COST < SUBSTITUTION_COST


class TestConfusableDistance:
    """Tests for confusable_distance."""

    def test_identical(self):
        """Test that identical strings have zero distance."""
        result = confusable_distance("admin", "admin")
        assert result.distance == 0
        assert result.similarity == 1.0
        assert result.chain_depth == 0
        assert result.skeleton_equal is True

    def test_case_only_difference(self):
        """Test that case differences are exact steps."""
        assert confusable_distance("Admin", "admin").distance == 0

    def test_cross_script_substitution(self):
        """Test a Cyrillic a against Latin a."""
        result = confusable_distance("аdmin", "admin")
        assert result.distance == pytest.approx(0.4)
        assert result.chain_depth == 1
        assert result.cross_script_count == 1
        assert result.skeleton_equal is True
        assert [s.kind for s in result.steps if s.kind != StepKind.EXACT] == [StepKind.CONFUSABLE]

    def test_zero_width_insertion(self):
        """Test that one inserted zero-width space is cheap."""
        result = confusable_distance("paypal", "pay\u200bpal")
        assert result.distance < 0.2
        assert result.similarity > 0.95
        assert result.ignorable_count == 1
        assert result.skeleton_equal is True

    def test_mismatch(self):
        """Test that a digit lookalike outside the table costs a full mismatch."""
        result = confusable_distance("paypa1", "paypal")
        assert result.distance == MISMATCH_COST
        assert result.skeleton_equal is False
        assert result.steps[-1].kind == StepKind.MISMATCH

    def test_divergence_under_full_table(self):
        """Test that long s against f is a divergence step under the full table."""
        result = confusable_distance("ſ", "f")
        assert result.distance == pytest.approx(0.3)
        assert result.divergence_count == 1

    def test_divergence_is_mismatch_under_filtered_table(self):
        """Test that the filtered table does not relate long s and f."""
        result = confusable_distance("ſ", "f", table=filtered_table())
        assert result.distance == MISMATCH_COST
        assert result.divergence_count == 0

    def test_insertion_and_deletion(self):
        """Test that extra characters cost a mismatch each."""
        assert confusable_distance("admins", "admin").distance == MISMATCH_COST
        assert confusable_distance("", "abc").distance == 3.0

    def test_diacritic_on_matching_base(self):
        """Test that an accent on an otherwise equal letter costs only the diacritic step."""
        result = confusable_distance("àdmin", "admin")
        assert result.distance == pytest.approx(DIACRITIC_COST)
        assert result.chain_depth == 1
        assert [s.kind for s in result.steps if s.kind != StepKind.EXACT] == [StepKind.DIACRITIC]

    def test_diacritic_capped_at_mismatch(self):
        """Test that an accented letter against a different letter costs one mismatch."""
        assert confusable_distance("é", "x").distance == MISMATCH_COST

    def test_precomposed_equals_decomposed(self):
        """Test that precomposed and combining-mark spellings are identical."""
        assert confusable_distance("caf\u00e9", "cafe\u0301").distance == 0

    def test_mismatch_not_cross_script(self):
        """Test that unrelated letters from another script are not counted as cross-script."""
        result = confusable_distance("жд", "xy")
        assert result.distance == 2 * MISMATCH_COST
        assert result.cross_script_count == 0

    @pytest.mark.parametrize(
        "a, b",
        [
            ("аdmin", "admin"),
            ("paypal", "pay\u200bpal"),
            ("hello", "help"),
            ("ſupport", "support"),
            ("abc", "xyz"),
        ],
    )
    def test_symmetric(self, a, b):
        """Test that distance is symmetric."""
        assert confusable_distance(a, b).distance == confusable_distance(b, a).distance

    @pytest.mark.parametrize(
        "a, b",
        [
            ("abc", "xyz"),
            ("admin", "root"),
            ("a", "abcd"),
            ("l\u00e9aa", ""),
            ("\u00e9", "x"),
            ("\u00e9\u00e9\u00e9", "xy"),
            ("\u0301a", "a"),
        ],
    )
    def test_bounded_by_length(self, a, b):
        """Test that distance never exceeds the longer length."""
        assert confusable_distance(a, b).distance <= max(len(a), len(b))

    def test_invalid_context(self):
        """Test that an unknown weight context raises ValueError."""
        with pytest.raises(ValueError, match="Invalid weights context"):
            confusable_distance("a", "b", context="email")


class TestVisualWeights:
    """Tests for measured visual-weight overrides."""

    def test_weight_overrides_base_cost(self):
        """Test that a measured cost replaces the base substitution cost."""
        weights = _weights(VisualWeight("а", "a", cost=0.0, xid_continue=True))
        result = confusable_distance("аdmin", "admin", weights=weights)
        assert result.distance == pytest.approx(CROSS_SCRIPT_PREMIUM)
        assert StepKind.VISUAL_WEIGHT in [s.kind for s in result.steps]

    def test_weight_for_unmapped_pair(self):
        """Test that a weight can relate characters the table does not."""
        gothic = chr(0x10330)
        weights = _weights(VisualWeight(gothic, "x", cost=0.12))
        result = confusable_distance(gothic, "x", weights=weights)
        assert result.distance == pytest.approx(0.27)
        assert result.cross_script_count == 1

    def test_reverse_direction_lookup(self):
        """Test that weights are found in either direction."""
        gothic = chr(0x10330)
        weights = _weights(VisualWeight(gothic, "x", cost=0.12))
        assert confusable_distance("x", gothic, weights=weights).distance == pytest.approx(0.27)

    def test_context_eligibility(self):
        """Test that identifier/domain contexts filter weights by validity flags."""
        weights = _weights(VisualWeight("ɡ", "g", cost=0.2, xid_continue=True, idna_pvalid=False))
        assert confusable_distance("ɡ", "g", weights=weights, context="identifier").distance == pytest.approx(0.2)
        assert confusable_distance("ɡ", "g", weights=weights, context="domain").distance == pytest.approx(
            SUBSTITUTION_COST
        )

    def test_weight_capped_at_mismatch(self):
        """Test that a weighted step never exceeds the mismatch cost."""
        gothic = chr(0x10330)
        weights = _weights(VisualWeight(gothic, "x", cost=0.95))
        assert confusable_distance(gothic, "x", weights=weights).distance == MISMATCH_COST
