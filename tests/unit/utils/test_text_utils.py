"""Tests for text utilities: front matter parsing, escaping and templates."""
from __future__ import annotations

import jinja2
import pytest

from legalmd.core.utils.text import (
    escape_html,
    escape_html_attribute,
    parse_frontmatter,
    render_template_text,
)


class TestParseFrontmatter:
    def test_mapping(self) -> None:
        doc = parse_frontmatter("---\nclient: Acme\n---\nBody")
        assert doc.frontmatter == {"client": "Acme"}
        assert doc.content == "Body"
        assert doc.raw_frontmatter == "client: Acme"

    def test_no_front_matter(self) -> None:
        doc = parse_frontmatter("l. Title\n---\n")
        assert doc.frontmatter == {}
        assert doc.content == "l. Title\n---\n"

    def test_empty_block(self) -> None:
        assert parse_frontmatter("---\n---\nBody").frontmatter == {}

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("---\nkey: [unclosed\n---\n", "Invalid YAML front matter"),
            ("---\n- a\n- b\n---\n", "must be a mapping, got list"),
        ],
    )
    def test_invalid(self, text: str, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            parse_frontmatter(text)


def test_escape_html_matches_handlebars_set() -> None:
    assert escape_html("<a href='x'>&`=\"") == "&lt;a href&#x3D;&#x27;x&#x27;&gt;&amp;&#x60;&#x3D;&quot;"


def test_escape_html_attribute() -> None:
    assert escape_html_attribute('a"b<c>&\'') == "a&quot;b&lt;c&gt;&amp;&#39;"
    assert escape_html_attribute(12) == "12"


class TestRenderTemplateText:
    def test_blocks_trimmed_and_newline_kept(self) -> None:
        text = "{% for x in items %}\n- {{ x }}\n{% endfor %}\n"
        assert render_template_text(text, {"items": [1, 2]}) == "- 1\n- 2\n"

    def test_undefined_is_an_error(self) -> None:
        with pytest.raises(jinja2.UndefinedError):
            render_template_text("{{ missing }}", {})
