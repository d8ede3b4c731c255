"""Tests for the Handlebars dialect (Jinja2 sandbox translation)."""
from __future__ import annotations

import pytest

from legalmd.core.exceptions import ProcessorError
from legalmd.core.processing.loops import HandlebarsDialect, RenderContext, compile_template
from legalmd.core.tracking import FieldStatus


@pytest.fixture
def context(helpers, tracker, today) -> RenderContext:
    return RenderContext(helpers=helpers, tracker=tracker, today=today)


def render(template: str, data, context: RenderContext) -> str:
    return HandlebarsDialect().render(template, data, context)


ITEMS = {"title": "T", "items": [{"name": "A"}, {"name": "B"}]}


class TestOutput:
    def test_variables_are_escaped(self, context) -> None:
        assert render("{{note}}", {"note": "<b>Tom's</b>"}, context) == "&lt;b&gt;Tom&#x27;s&lt;/b&gt;"

    def test_triple_stash_is_raw(self, context) -> None:
        assert render("{{{note}}}", {"note": "<b>x</b>"}, context) == "<b>x</b>"
        assert render("{{& note}}", {"note": "<b>x</b>"}, context) == "<b>x</b>"

    def test_missing_values_render_empty(self, context) -> None:
        assert render("[{{missing}}]", {}, context) == "[]"

    def test_helper_calls(self, context) -> None:
        data = {"total": 1234.5, "first": "ann", "last": "lee"}
        assert render('{{formatCurrency total "USD"}}', data, context) == "$1,234.50"
        assert render('{{upper (concat first " " last)}}', data, context) == "ANN LEE"

    def test_hash_arguments(self, context, helpers) -> None:
        helpers.add("greet", lambda name, greeting="Hello": f"{greeting} {name}")
        assert render('{{greet who greeting="Hi"}}', {"who": "Ann"}, context) == "Hi Ann"

    def test_today(self, context) -> None:
        assert render('{{formatDate @today "iso"}}', {}, context) == "2024-03-15"

    def test_length(self, context) -> None:
        assert render("{{items.length}}", ITEMS, context) == "2"

    def test_comments_are_dropped(self, context) -> None:
        assert render("a{{! note }}b", {}, context) == "ab"
        assert render("a{{!-- {{x}} --}}b", {}, context) == "ab"

    def test_whitespace_control(self, context) -> None:
        assert render("A  {{~name~}}  B", {"name": "x"}, context) == "AxB"

    def test_unparseable_mustache_left_verbatim(self, context) -> None:
        assert render("x {{price +}}", {"price": 1}, context) == "x {{price +}}"

    def test_values_are_tracked(self, context, tracker) -> None:
        render("{{name}} {{upper name}}", {"name": "a"}, context)
        assert tracker.get_field("name").mixin_used == "variable"
        assert tracker.get_field("upper").status is FieldStatus.LOGIC


# ============================================================================
# Blocks
# ============================================================================


class TestBlocks:
    def test_each_with_standalone_lines(self, context) -> None:
        template = "Parties:\n{{#each items}}\n- {{name}}\n{{/each}}\nEnd"
        assert render(template, ITEMS, context) == "Parties:\n- A\n- B\nEnd"

    def test_each_frame_variables_and_parent_scope(self, context) -> None:
        template = "{{#each items}}{{@index}}:{{name}}/{{../title}};{{/each}}"
        assert render(template, ITEMS, context) == "0:A/T;1:B/T;"

    def test_first_and_last(self, context) -> None:
        template = "{{#each nums}}{{#if @first}}[{{/if}}{{this}}{{#if @last}}]{{/if}}{{/each}}"
        assert render(template, {"nums": [1, 2, 3]}, context) == "[123]"

    def test_each_over_mapping_exposes_key(self, context) -> None:
        template = "{{#each prices}}{{@key}}={{this}};{{/each}}"
        assert render(template, {"prices": {"a": 1, "b": 2}}, context) == "a=1;b=2;"

    def test_each_else_for_empty_list(self, context) -> None:
        assert render("{{#each items}}x{{else}}none{{/each}}", {"items": []}, context) == "none"

    def test_if_else_if_chain(self, context) -> None:
        template = "{{#if a}}A{{else if b}}B{{else}}C{{/if}}"
        assert render(template, {"a": False, "b": True}, context) == "B"
        assert render(template, {}, context) == "C"

    def test_unless(self, context) -> None:
        assert render("{{#unless signed}}Unsigned{{/unless}}", {"signed": False}, context) == "Unsigned"

    def test_with(self, context) -> None:
        assert render("{{#with client}}{{name}}{{/with}}", {"client": {"name": "Acme"}}, context) == "Acme"

    def test_sections(self, context) -> None:
        assert render("{{#client}}{{name}}{{/client}}", {"client": {"name": "Acme"}}, context) == "Acme"
        assert render("{{^items}}none{{/items}}", {"items": []}, context) == "none"

    def test_track_field_block_helper(self, context) -> None:
        result = render('{{#trackField "client"}}Acme{{/trackField}}', {}, context)
        assert result == '<span class="legal-md-field" data-field="client">Acme</span>'

    def test_partials_are_left_as_text(self, context) -> None:
        assert render("{{> header}}", {}, context) == "{{> header}}"


@pytest.mark.parametrize(
    ("template", "message"),
    [
        ("{{#each items}}x", "Unclosed block 'each'"),
        ("x{{/if}}", "Unexpected closing tag 'if'"),
        ("{{#if a}}x{{/each}}", "'if' closed by 'each'"),
        ("{{else}}", "outside of a block"),
        ("{{#each}}{{/each}}", "#each requires an argument"),
    ],
)
def test_malformed_structure_raises(template: str, message: str) -> None:
    with pytest.raises(ProcessorError, match=message):
        compile_template(template)
