"""Tests for FieldTracker status rules, reports and highlighting."""
from __future__ import annotations

from legalmd.core.tracking import FieldStatus, FieldTracker


class TestTrackField:
    def test_status_rules(self, tracker: FieldTracker) -> None:
        assert tracker.track_field("client", "Acme").status is FieldStatus.FILLED
        assert tracker.track_field("missing", None).status is FieldStatus.EMPTY
        assert tracker.track_field("blank", "").status is FieldStatus.EMPTY
        assert tracker.track_field("calc", "x", has_logic=True).status is FieldStatus.LOGIC
        assert tracker.track_field("item", "y", mixin_used="loop").status is FieldStatus.LOGIC
        assert tracker.track_field("plain", 0, mixin_used="variable").status is FieldStatus.FILLED

    def test_latest_record_wins_and_counts_occurrences(self, tracker: FieldTracker) -> None:
        tracker.track_field("client", None)
        record = tracker.track_field("client", "Acme")
        assert record.status is FieldStatus.FILLED
        assert record.occurrences == 2
        assert len(tracker) == 1
        assert tracker.total_occurrences == 2

    def test_queries(self, tracker: FieldTracker) -> None:
        tracker.track_field("a", "1")
        tracker.track_field("b", None)
        assert tracker.get_field("a").value == "1"
        assert tracker.get_field("zzz") is None
        assert [f.name for f in tracker.get_fields_by_status(FieldStatus.EMPTY)] == ["b"]
        assert set(tracker.get_fields()) == {"a", "b"}

    def test_clear(self, tracker: FieldTracker) -> None:
        tracker.track_field("a", "1")
        tracker.clear()
        assert len(tracker) == 0
        assert tracker.total_occurrences == 0


def test_generate_report(tracker: FieldTracker) -> None:
    tracker.track_field("name", "Acme")
    tracker.track_field("date", None)
    tracker.track_field("total", 10, has_logic=True, mixin_used="helper")

    report = tracker.generate_report()

    assert (report["total"], report["filled"], report["empty"], report["logic"]) == (3, 1, 1, 1)
    by_name = {f["name"]: f for f in report["fields"]}
    assert by_name["total"]["status"] == "logic"
    assert by_name["total"]["mixin_used"] == "helper"


# ============================================================================
# Highlighting
# ============================================================================


class TestApplyFieldTracking:
    def test_wraps_remaining_mustaches_with_value(self, tracker: FieldTracker) -> None:
        tracker.track_field("client_name", "Acme")
        result = tracker.apply_field_tracking("Party: {{client_name}}")
        assert result == (
            'Party: <span class="legal-field imported-value" data-field="client_name">Acme</span>'
        )

    def test_missing_value_keeps_the_mustache(self, tracker: FieldTracker) -> None:
        tracker.track_field("signer", None)
        result = tracker.apply_field_tracking("By: {{ signer }}")
        assert result == 'By: <span class="legal-field missing-value" data-field="signer">{{ signer }}</span>'

    def test_skips_mustaches_inside_open_spans(self, tracker: FieldTracker) -> None:
        tracker.track_field("x", None)
        content = '<span class="missing-value" data-field="x">{{x}}</span>'
        assert tracker.apply_field_tracking(content) == content

    def test_highlights_logic_values_in_text_only(self, tracker: FieldTracker) -> None:
        tracker.track_field("crossref.term", "Section 2.", has_logic=True)
        result = tracker.apply_field_tracking("See Section 2. for details.")
        assert result == (
            'See <span class="legal-field highlight" data-field="crossref.term">Section 2.</span>'
            " for details."
        )

    def test_untracked_content_is_unchanged(self, tracker: FieldTracker) -> None:
        assert tracker.apply_field_tracking("Nothing {{here}}") == "Nothing {{here}}"
