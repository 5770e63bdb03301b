"""Tests for the canonical collision audit."""

import pytest

from spoofguard.audit import audit_canonical, parse_audit_row
from spoofguard.dataset import load_json_rows


class TestParseAuditRow:
    """Tests for parse_audit_row."""

    def test_identifier_key_precedence(self):
        """Test that identifier keys are tried in order."""
        row = parse_audit_row({"handle": "Sarah", "username": "other", "id": "7", "table": "users"}, 3)
        assert row.raw == "Sarah"
        assert row.normalized == "sarah"
        assert row.id == "7"
        assert row.source == "users"
        assert row.index == 3

    def test_stored_canonical(self):
        """Test that stored canonical values are picked up."""
        row = parse_audit_row({"slug": "team", "slug_canonical": "team"}, 1)
        assert row.stored_canonical == "team"

    @pytest.mark.parametrize("raw", [{"foo": "bar"}, {"identifier": "  "}, "plain", None])
    def test_unusable_rows(self, raw):
        """Test that rows without an identifier yield None."""
        assert parse_audit_row(raw, 1) is None


class TestAuditCanonical:
    """Tests for audit_canonical."""

    def test_collision_and_mismatch(self, audit_dataset):
        """Test counts for a dataset with one collision and one mismatch."""
        report = audit_canonical(load_json_rows(audit_dataset), dataset_label="export.json")
        assert report.dataset == "export.json"
        assert report.total == 4
        assert report.processed == 3
        assert report.skipped == 1
        assert report.collisions == 1
        assert report.conflicting_rows == 2
        assert report.canonical_mismatches == 1

        group = report.collisions_preview[0]
        assert group.canonical == "sarah"
        assert group.count == 2
        assert [r.raw for r in group.rows] == ["@sarah", "Sarah"]

    def test_compatibility_forms_collide(self):
        """Test that fullwidth and plain spellings share a canonical form."""
        report = audit_canonical([{"identifier": "ａｃｍｅ"}, {"identifier": "acme"}])
        assert report.collisions == 1
        assert report.collisions_preview[0].canonical == "acme"

    def test_collisions_sorted(self):
        """Test that larger groups come first, then by canonical form."""
        rows = [
            {"identifier": "b"},
            {"identifier": "B"},
            {"identifier": "a"},
            {"identifier": "A"},
            {"identifier": "@a"},
        ]
        report = audit_canonical(rows)
        assert [g.canonical for g in report.collisions_preview] == ["a", "b"]
        assert [g.count for g in report.collisions_preview] == [3, 2]

    def test_limit(self):
        """Test that the preview is truncated but counts are not."""
        rows = [{"identifier": "a"}, {"identifier": "A"}, {"identifier": "b"}, {"identifier": "B"}]
        report = audit_canonical(rows, limit=1)
        assert report.collisions == 2
        assert len(report.collisions_preview) == 1

    def test_clean_export(self):
        """Test an export with nothing to report."""
        report = audit_canonical([{"identifier": "a"}, {"identifier": "b", "canonical": "b"}])
        assert report.collisions == 0
        assert report.canonical_mismatches == 0
        assert report.collisions_preview == ()

    def test_invalid_limit(self):
        """Test that a limit below one raises ValueError."""
        with pytest.raises(ValueError):
            audit_canonical([], limit=0)
