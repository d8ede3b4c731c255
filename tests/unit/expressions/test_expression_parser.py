"""Tests for the expression tokenizer and parser."""
from __future__ import annotations

import pytest

from legalmd.core.exceptions import ExpressionSyntaxError, LegalMarkdownError
from legalmd.core.expressions import (
    Binary,
    Call,
    Literal,
    Path,
    Ternary,
    Unary,
    parse_expression,
    parse_mustache,
    tokenize,
    try_parse,
)


# ============================================================================
# Tokenizer
# ============================================================================


def test_tokenize_paths_strings_and_numbers() -> None:
    tokens = tokenize('parties[0].name == "Acme \\"Corp\\"" && count >= 2.5')
    kinds = [(t.kind, t.value) for t in tokens]
    assert kinds == [
        ("PATH", "parties[0].name"),
        ("OP", "=="),
        ("STRING", 'Acme "Corp"'),
        ("OP", "&&"),
        ("PATH", "count"),
        ("OP", ">="),
        ("NUMBER", "2.5"),
        ("EOF", ""),
    ]


def test_tokenize_special_paths() -> None:
    values = [t.value for t in tokenize("@today ../client.name this .") if t.kind == "PATH"]
    assert values == ["@today", "../client.name", "this", "."]


def test_tokenize_single_quoted_string() -> None:
    tokens = tokenize("'it\\'s'")
    assert tokens[0].kind == "STRING"
    assert tokens[0].value == "it's"


def test_unterminated_string_raises() -> None:
    with pytest.raises(ExpressionSyntaxError):
        tokenize('"open')


# ============================================================================
# Parser
# ============================================================================


class TestParseExpression:
    def test_variable_path(self) -> None:
        assert parse_expression("client.name") == Path("client.name")

    def test_helper_call_with_nested_call(self) -> None:
        node = parse_expression('formatDate(addYears(start, 1), "legal")')
        assert node == Call(
            "formatDate",
            (Call("addYears", (Path("start"), Literal(1))), Literal("legal")),
        )

    def test_ternary(self) -> None:
        node = parse_expression('premium ? "Premium" : "Standard"')
        assert node == Ternary(Path("premium"), Literal("Premium"), Literal("Standard"))

    def test_or_binds_looser_than_and(self) -> None:
        node = parse_expression("a || b && c")
        assert node == Binary("||", Path("a"), Binary("&&", Path("b"), Path("c")))

    def test_multiplication_binds_tighter_than_addition(self) -> None:
        node = parse_expression("a + b * 2")
        assert node == Binary("+", Path("a"), Binary("*", Path("b"), Literal(2)))

    def test_equality_aliases(self) -> None:
        assert parse_expression("a = 1") == Binary("==", Path("a"), Literal(1))
        assert parse_expression("a === 1") == Binary("==", Path("a"), Literal(1))
        assert parse_expression("a !== 1") == Binary("!=", Path("a"), Literal(1))

    def test_keyword_literals(self) -> None:
        assert parse_expression("true") == Literal(True)
        assert parse_expression("null") == Literal(None)
        assert parse_expression("undefined") == Literal(None)

    def test_negative_number_folds_into_literal(self) -> None:
        assert parse_expression("-5") == Literal(-5)
        assert parse_expression("-amount") == Unary("-", Path("amount"))

    def test_word_operators_only_when_enabled(self) -> None:
        node = parse_expression("a AND NOT b", word_operators=True)
        assert node == Binary("&&", Path("a"), Unary("!", Path("b")))
        with pytest.raises(ExpressionSyntaxError):
            parse_expression("a AND b")

    @pytest.mark.parametrize("source", ["", "a +", "(a", "a b", "fn(1,", "? x"])
    def test_malformed_expressions_raise(self, source: str) -> None:
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            parse_expression(source)
        assert isinstance(exc_info.value, LegalMarkdownError)

    def test_try_parse_returns_none_on_error(self) -> None:
        assert try_parse("a +") is None
        assert try_parse("a") == Path("a")


class TestParseMustache:
    def test_space_separated_helper_call(self) -> None:
        node = parse_mustache('formatDate date "long"')
        assert node == Call("formatDate", (Path("date"), Literal("long")))

    def test_subexpression_and_hash_arguments(self) -> None:
        node = parse_mustache("formatCurrency (multiply price qty) currency=code")
        assert node == Call(
            "formatCurrency",
            (Call("multiply", (Path("price"), Path("qty"))),),
            (("currency", Path("code")),),
        )

    def test_single_param_is_returned_as_is(self) -> None:
        assert parse_mustache("client.name") == Path("client.name")

    def test_falls_back_to_expression_grammar(self) -> None:
        assert parse_mustache("count > 0") == Binary(">", Path("count"), Literal(0))
