"""Recursive-descent parser for template expressions.

Grammar (lowest to highest precedence)::

    expression     := ternary EOF
    ternary        := or ( "?" ternary ":" ternary )?
    or             := and ( "||" and )*
    and            := equality ( "&&" equality )*
    equality       := comparison ( ("==" | "!=" | "=") comparison )*
    comparison     := additive ( ("<" | ">" | "<=" | ">=") additive )*
    additive       := multiplicative ( ("+" | "-") multiplicative )*
    multiplicative := unary ( ("*" | "/" | "%") unary )*
    unary          := ("!" | "-") unary | primary
    primary        := NUMBER | STRING | PATH [ "(" args ")" ] | "(" ternary ")"

``||`` binds looser than ``&&``, so ``a || b && c`` is ``a || (b && c)``.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional, Tuple

from legalmd.core.exceptions import ExpressionSyntaxError

from .nodes import Binary, Call, Literal, Node, Path, Ternary, Unary
from .tokenizer import EOF, NUMBER, OP, PATH, PUNCT, STRING, Token, tokenize

KEYWORD_LITERALS = {"true": True, "false": False, "null": None, "undefined": None}

# Word operators accepted in clause conditions: [text]{a AND b}
WORD_OPERATORS = {"AND": "&&", "OR": "||", "NOT": "!"}

_EQUALITY_ALIASES = {"===": "==", "!==": "!=", "=": "=="}


def _number(text: str) -> float | int:
    return float(text) if "." in text else int(text)


class ExpressionParser:
    """Parse one expression string into a :class:`Node` tree."""

    def __init__(self, source: str, *, word_operators: bool = False) -> None:
        self.source = source
        tokens = tokenize(source)
        if word_operators:
            tokens = [
                Token(OP, WORD_OPERATORS[t.value], t.pos)
                if t.kind == PATH and t.value in WORD_OPERATORS
                else t
                for t in tokens
            ]
        self.tokens: List[Token] = tokens
        self.pos = 0

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != EOF:
            self.pos += 1
        return token

    def _error(self, message: str) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(
            f"{message} at position {self.current.pos} in {self.source!r}",
            context={"source": self.source, "position": self.current.pos},
        )

    def _expect_punct(self, char: str) -> None:
        if not self.current.is_punct(char):
            raise self._error(f"Expected {char!r}")
        self._advance()

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def parse(self) -> Node:
        if self.current.kind == EOF:
            raise self._error("Empty expression")
        node = self._ternary()
        if self.current.kind != EOF:
            raise self._error(f"Unexpected token {self.current.value!r}")
        return node

    def _ternary(self) -> Node:
        condition = self._or()
        if self.current.is_punct("?"):
            self._advance()
            when_true = self._ternary()
            self._expect_punct(":")
            when_false = self._ternary()
            return Ternary(condition, when_true, when_false)
        return condition

    def _or(self) -> Node:
        node = self._and()
        while self.current.is_op("||"):
            self._advance()
            node = Binary("||", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._equality()
        while self.current.is_op("&&"):
            self._advance()
            node = Binary("&&", node, self._equality())
        return node

    def _equality(self) -> Node:
        node = self._comparison()
        while self.current.is_op("==", "!=", "===", "!==", "="):
            op = self._advance().value
            node = Binary(_EQUALITY_ALIASES.get(op, op), node, self._comparison())
        return node

    def _comparison(self) -> Node:
        node = self._additive()
        while self.current.is_op("<", ">", "<=", ">="):
            op = self._advance().value
            node = Binary(op, node, self._additive())
        return node

    def _additive(self) -> Node:
        node = self._multiplicative()
        while self.current.is_op("+", "-"):
            op = self._advance().value
            node = Binary(op, node, self._multiplicative())
        return node

    def _multiplicative(self) -> Node:
        node = self._unary()
        while self.current.is_op("*", "/", "%"):
            op = self._advance().value
            node = Binary(op, node, self._unary())
        return node

    def _unary(self) -> Node:
        if self.current.is_op("!", "-"):
            op = self._advance().value
            operand = self._unary()
            if op == "-" and isinstance(operand, Literal) and isinstance(operand.value, (int, float)):
                return Literal(-operand.value)
            return Unary(op, operand)
        return self._primary()

    def _primary(self) -> Node:
        token = self.current
        if token.kind == NUMBER:
            self._advance()
            return Literal(_number(token.value))
        if token.kind == STRING:
            self._advance()
            return Literal(token.value)
        if token.kind == PATH:
            self._advance()
            if token.value in KEYWORD_LITERALS:
                return Literal(KEYWORD_LITERALS[token.value])
            if self.current.is_punct("("):
                return self._call(token.value)
            return Path(token.value)
        if token.is_punct("("):
            self._advance()
            node = self._ternary()
            self._expect_punct(")")
            return node
        raise self._error(f"Unexpected token {token.value!r}" if token.kind != EOF else "Unexpected end")

    def _call(self, name: str) -> Node:
        if not name.replace("_", "a").isalnum():
            raise self._error(f"Invalid helper name {name!r}")
        self._expect_punct("(")
        args: List[Node] = []
        if not self.current.is_punct(")"):
            args.append(self._ternary())
            while self.current.is_punct(","):
                self._advance()
                args.append(self._ternary())
        self._expect_punct(")")
        return Call(name, tuple(args))


class MustacheParser:
    """Parse a Handlebars-style mustache body into a :class:`Node`.

    Grammar::

        mustache := param+ hash*
        param    := NUMBER | STRING | PATH | "(" mustache ")"
        hash     := PATH "=" param

    A single param is returned as-is; otherwise the head must be a path and
    the result is a :class:`Call` (``formatDate date "long"``).
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens: List[Token] = tokenize(source)
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def _peek(self) -> Token:
        return self.tokens[min(self.pos + 1, len(self.tokens) - 1)]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != EOF:
            self.pos += 1
        return token

    def _error(self, message: str) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(
            f"{message} at position {self.current.pos} in {self.source!r}",
            context={"source": self.source, "position": self.current.pos},
        )

    def parse(self) -> Node:
        node = self._sexpr(closing=None)
        if self.current.kind != EOF:
            raise self._error(f"Unexpected token {self.current.value!r}")
        return node

    def _at_end(self, closing: Optional[str]) -> bool:
        if closing is None:
            return self.current.kind == EOF
        return self.current.is_punct(closing) or self.current.kind == EOF

    def _sexpr(self, closing: Optional[str]) -> Node:
        params: List[Node] = []
        hash_args: List[Tuple[str, Node]] = []
        while not self._at_end(closing):
            token = self.current
            if token.kind == PATH and self._peek().is_op("="):
                self._advance()
                self._advance()
                hash_args.append((token.value, self._param()))
            elif hash_args:
                raise self._error("Positional argument after hash argument")
            else:
                params.append(self._param())
        if not params:
            raise self._error("Empty expression")
        head = params[0]
        if len(params) == 1 and not hash_args:
            return head
        if not isinstance(head, Path):
            raise self._error("Helper name expected")
        return Call(head.path, tuple(params[1:]), tuple(hash_args))

    def _param(self) -> Node:
        token = self.current
        if token.kind == NUMBER:
            self._advance()
            return Literal(_number(token.value))
        if token.is_op("-") and self._peek().kind == NUMBER:
            self._advance()
            return Literal(-_number(self._advance().value))
        if token.kind == STRING:
            self._advance()
            return Literal(token.value)
        if token.kind == PATH:
            self._advance()
            if token.value in KEYWORD_LITERALS:
                return Literal(KEYWORD_LITERALS[token.value])
            return Path(token.value)
        if token.is_punct("("):
            self._advance()
            node = self._sexpr(closing=")")
            if not self.current.is_punct(")"):
                raise self._error("Expected ')'")
            self._advance()
            if isinstance(node, Path):
                return Call(node.path)
            return node
        raise self._error(f"Unexpected token {token.value!r}" if token.kind != EOF else "Unexpected end")


@lru_cache(maxsize=512)
def parse_expression(source: str, *, word_operators: bool = False) -> Node:
    """Parse ``source`` into an expression tree (cached; trees are immutable).

    Raises:
        ExpressionSyntaxError: If the expression is malformed
    """
    return ExpressionParser(source.strip(), word_operators=word_operators).parse()


def try_parse(source: str) -> Optional[Node]:
    """Parse ``source`` or return ``None`` when it is malformed."""
    try:
        return parse_expression(source)
    except ExpressionSyntaxError:
        return None


@lru_cache(maxsize=512)
def parse_mustache(source: str) -> Node:
    """Parse a Handlebars mustache body, falling back to the expression grammar.

    ``formatDate date "long"`` parses as a call; ``count > 0`` (not valid
    mustache syntax) is parsed with :func:`parse_expression`.

    Raises:
        ExpressionSyntaxError: If neither grammar accepts ``source``
    """
    text = source.strip()
    try:
        return MustacheParser(text).parse()
    except ExpressionSyntaxError:
        return parse_expression(text)


__all__ = [
    "ExpressionParser",
    "MustacheParser",
    "parse_expression",
    "parse_mustache",
    "try_parse",
    "KEYWORD_LITERALS",
]
