"""Tests for header numbering."""
from __future__ import annotations

import pytest

from legalmd.core.processing.headers import (
    HeaderCounters,
    HeaderProcessor,
    format_header_number,
    get_level_format,
    iter_headers,
    parse_header_line,
    process_headers,
    to_alpha,
    to_roman,
)


@pytest.fixture
def processor() -> HeaderProcessor:
    return HeaderProcessor()


# ============================================================================
# Parsing and formatting primitives
# ============================================================================


class TestParseHeaderLine:
    @pytest.mark.parametrize(
        ("line", "level", "text"),
        [
            ("l. Scope", 1, "Scope"),
            ("lll. Details", 3, "Details"),
            ("l4. Deep", 4, "Deep"),
            ("  ll. Indented", 2, "Indented"),
        ],
    )
    def test_marker_styles(self, line: str, level: int, text: str) -> None:
        header = parse_header_line(line)
        assert header is not None
        assert (header.level, header.text) == (level, text)

    def test_trailing_key(self) -> None:
        header = parse_header_line("l. Definitions |defs|")
        assert header.text == "Definitions"
        assert header.key == "defs"

    @pytest.mark.parametrize("line", ["l.Missing space", "All. caps", "llllllllll. Too deep", "Plain text"])
    def test_non_headers(self, line: str) -> None:
        assert parse_header_line(line) is None

    def test_iter_headers_records_line_index(self) -> None:
        headers = list(iter_headers("Intro\nl. One\ntext\nll. Two"))
        assert [(h.line_index, h.level) for h in headers] == [(1, 1), (3, 2)]


class TestCounters:
    def test_deeper_levels_reset(self) -> None:
        counters = HeaderCounters()
        counters.increment(1)
        counters.increment(2)
        counters.increment(2)
        counters.increment(1)
        assert counters.increment(2) == 1

    def test_without_reset(self) -> None:
        counters = HeaderCounters(reset=False)
        counters.increment(1)
        counters.increment(2)
        counters.increment(1)
        assert counters.increment(2) == 2

    def test_skipped_levels_start_at_one(self) -> None:
        counters = HeaderCounters()
        counters.increment(1)
        counters.increment(3)
        assert counters.snapshot()[:3] == [1, 1, 1]

    def test_level_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            HeaderCounters().increment(10)


def test_to_alpha_and_roman() -> None:
    assert [to_alpha(n) for n in (1, 26, 27, 28)] == ["a", "z", "aa", "ab"]
    assert to_alpha(3, upper=True) == "C"
    assert to_roman(14) == "XIV"
    assert to_roman(4, upper=False) == "iv"


def test_format_placeholders() -> None:
    counters = HeaderCounters()
    counters.increment(1)
    counters.increment(1)
    counters.increment(2)
    counters.increment(2)
    counters.increment(2)
    assert format_header_number("%l1.%l2", 2, counters) == "2.3"
    assert format_header_number("%02n", 2, counters) == "03"
    assert format_header_number("(%a) (%R)", 2, counters) == "(c) (III)"


def test_level_format_lookup_order() -> None:
    assert get_level_format({"level-one": "Part %n", "level-1": "ignored"}, 1) == "Part %n"
    assert get_level_format({"level-2": "§%n"}, 2) == "§%n"
    assert get_level_format({}, 5) == "(%A)"


# ============================================================================
# HeaderProcessor
# ============================================================================


class TestHeaderProcessor:
    def test_default_formats(self, processor, options) -> None:
        content = "l. Scope\nll. Terms\nll. Payment\nl. Law"
        assert processor.process(content, {}, options) == (
            "Article 1. Scope\nSection 1. Terms\nSection 2. Payment\nArticle 2. Law"
        )

    def test_custom_formats(self, processor, options) -> None:
        metadata = {"level-one": "%n.", "level-two": "%l1.%l2", "level-three": "%l1.%l2.%l3"}
        content = "l. A\nll. B\nl. C\nlll. D"
        assert processor.process(content, metadata, options) == "1. A\n1.1 B\n2. C\n2.1.1 D"

    def test_reference_key_is_removed(self, processor, options) -> None:
        assert processor.process("l. Definitions |defs|", {}, options) == "Article 1. Definitions"

    def test_level_indent(self, processor, options) -> None:
        result = processor.process("l. A\nll. B\nlll. C", {"level-indent": 1}, options)
        assert result == "Article 1. A\n  Section 1. B\n    1. C"

    def test_no_indent_option_and_metadata(self, processor, options) -> None:
        content = "l. A\nll. B"
        assert processor.process(content, {"level-indent": 1, "no-indent": True}, options) == (
            "Article 1. A\nSection 1. B"
        )
        options.no_indent = True
        assert processor.process(content, {"level-indent": 1}, options) == "Article 1. A\nSection 1. B"

    def test_no_reset(self, processor, options) -> None:
        content = "l. A\nll. B\nl. C\nll. D"
        assert processor.process(content, {"no-reset": True}, options).splitlines()[-1] == "Section 2. D"

    def test_invalid_level_indent_is_ignored(self, processor, options) -> None:
        assert processor.process("l. A\nll. B", {"level-indent": "wide"}, options) == "Article 1. A\nSection 1. B"

    def test_other_lines_untouched(self, processor, options) -> None:
        content = "Preamble\n\nl. Scope\nBody text with l. inside"
        assert processor.process(content, {}, options) == (
            "Preamble\n\nArticle 1. Scope\nBody text with l. inside"
        )

    def test_disabled_by_no_headers(self, processor, options) -> None:
        options.no_headers = True
        assert not processor.is_enabled(options)


def test_process_headers_without_options() -> None:
    assert process_headers("l2. Sub", {}) == "Section 1. Sub"
