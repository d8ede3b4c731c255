"""Tests for template syntax detection and migration suggestions."""
from __future__ import annotations

import pytest

from legalmd.core.processing.loops import (
    HANDLEBARS,
    LEGACY,
    MIXED,
    NONE,
    MigrationSuggestion,
    SyntaxDetector,
    collect_migration_suggestions,
    format_migration_warning,
    suggest_handlebars,
)
from legalmd.core.processing.loops.detection import classify_legacy


@pytest.mark.parametrize(
    ("interior", "expected"),
    [
        ('formatDate(@today, "long")', "helper-call"),
        ("price * quantity", "arithmetic"),
        ("subtotal + tax", "arithmetic"),
        ('"$" + price', "concatenation"),
        ("client.name", None),
        ("#each items", None),
        ("/each", None),
        ('"a * b"', None),
    ],
)
def test_classify_legacy(interior: str, expected) -> None:
    assert classify_legacy(interior) == expected


class TestSyntaxDetector:
    def test_plain_variables_are_neither(self) -> None:
        assert SyntaxDetector().detect("Hello {{client.name}}").syntax == NONE

    def test_legacy_markers(self) -> None:
        report = SyntaxDetector().detect("Line one\nTotal: {{price * qty}}")
        assert report.syntax == LEGACY
        assert report.legacy[0].line == 2
        assert report.legacy[0].kind == "arithmetic"

    def test_handlebars_blocks(self) -> None:
        report = SyntaxDetector().detect("{{#each items}}{{name}}{{/each}}")
        assert report.syntax == HANDLEBARS
        assert [o.text for o in report.handlebars] == ["{{#each items}}", "{{/each}}"]

    def test_spaced_call_needs_known_helper(self) -> None:
        content = '{{formatDate date "long"}}'
        assert SyntaxDetector().detect(content).syntax == NONE
        assert SyntaxDetector(["formatDate"]).detect(content).syntax == HANDLEBARS

    def test_mixed(self) -> None:
        report = SyntaxDetector().detect("{{#if a}}x{{/if}}\n{{upper(name)}}")
        assert report.syntax == MIXED
        assert report.is_mixed

    def test_legacy_section_blocks_are_not_handlebars(self) -> None:
        assert SyntaxDetector().detect("{{#items}}{{name}}{{/items}}").syntax == NONE


# ============================================================================
# Migration suggestions
# ============================================================================


@pytest.mark.parametrize(
    ("legacy", "suggested"),
    [
        ('formatDate(@today, "long")', 'formatDate @today "long"'),
        ("price * quantity", "multiply price quantity"),
        ("subtotal + tax", "add subtotal tax"),
        ('"Ref: " + code', 'concat "Ref: " code'),
        ("upper(formatDate(date, 'iso'))", "upper (formatDate date 'iso')"),
        ("client.name", None),
    ],
)
def test_suggest_handlebars(legacy: str, suggested) -> None:
    assert suggest_handlebars(legacy) == suggested


def test_collect_migration_suggestions_records_lines() -> None:
    content = "Intro {{name}}\nDue: {{formatDate(due, \"long\")}}\nTotal {{price * qty}}"
    suggestions = collect_migration_suggestions(content)
    assert suggestions == [
        MigrationSuggestion(2, '{{formatDate(due, "long")}}', '{{formatDate due "long"}}'),
        MigrationSuggestion(3, "{{price * qty}}", "{{multiply price qty}}"),
    ]


def test_format_migration_warning() -> None:
    warning = format_migration_warning([MigrationSuggestion(4, "{{a * b}}", "{{multiply a b}}")])
    assert warning == (
        "Legacy template syntax detected (1 occurrence(s)):\n"
        "  line 4: {{a * b}} -> {{multiply a b}}"
    )
