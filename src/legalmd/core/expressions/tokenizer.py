"""Tokenizer for template expressions.

Produces a flat token list for the recursive-descent parser. Handles:
- Quoted strings with either quote style and backslash escapes
- Integer and decimal numbers
- Paths: ``client.name``, ``parties[0].name``, ``@today``, ``../x``, ``.``
- Operators: ``== != === !== >= <= > < && || ! + - * / % =``
- Punctuation: ``( ) , ? :``
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from legalmd.core.exceptions import ExpressionSyntaxError

STRING = "STRING"
NUMBER = "NUMBER"
PATH = "PATH"
OP = "OP"
PUNCT = "PUNCT"
EOF = "EOF"

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?(?![\w$])")
_PATH_RE = re.compile(
    r"""
    (?:\.\./)*                                   # parent scopes (Handlebars)
    (?:@[A-Za-z_][\w-]*|[A-Za-z_$][\w$-]*|\.(?![\w.\[]))  # head segment
    (?:\.[A-Za-z_$@][\w$-]*|\.\d+|\[\d+\]|\.\[[^\]]*\])*  # tail segments
    """,
    re.VERBOSE,
)
_OPERATORS = ("===", "!==", "==", "!=", ">=", "<=", "&&", "||", ">", "<", "!", "+", "-", "*", "/", "%", "=")
_PUNCTUATION = "(),?:"


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    pos: int

    def is_op(self, *ops: str) -> bool:
        return self.kind == OP and self.value in ops

    def is_punct(self, char: str) -> bool:
        return self.kind == PUNCT and self.value == char


def _read_string(source: str, start: int) -> tuple[str, int]:
    quote = source[start]
    chars: List[str] = []
    i = start + 1
    while i < len(source):
        ch = source[i]
        if ch == "\\" and i + 1 < len(source):
            chars.append(source[i + 1])
            i += 2
            continue
        if ch == quote:
            return "".join(chars), i + 1
        chars.append(ch)
        i += 1
    raise ExpressionSyntaxError(
        f"Unterminated string starting at {start}", context={"source": source}
    )


def tokenize(source: str) -> List[Token]:
    """Split an expression into tokens.

    Args:
        source: Expression text without the surrounding braces

    Returns:
        Token list terminated by an EOF token

    Raises:
        ExpressionSyntaxError: On unterminated strings or unknown characters
    """
    tokens: List[Token] = []
    i = 0
    length = len(source)
    while i < length:
        ch = source[i]
        if ch.isspace():
            i += 1
            continue
        if ch in "\"'":
            value, end = _read_string(source, i)
            tokens.append(Token(STRING, value, i))
            i = end
            continue
        number = _NUMBER_RE.match(source, i)
        if number:
            tokens.append(Token(NUMBER, number.group(0), i))
            i = number.end()
            continue
        path = _PATH_RE.match(source, i)
        if path and path.group(0):
            tokens.append(Token(PATH, path.group(0), i))
            i = path.end()
            continue
        for op in _OPERATORS:
            if source.startswith(op, i):
                tokens.append(Token(OP, op, i))
                i += len(op)
                break
        else:
            if ch in _PUNCTUATION:
                tokens.append(Token(PUNCT, ch, i))
                i += 1
                continue
            raise ExpressionSyntaxError(
                f"Unexpected character {ch!r} at {i}", context={"source": source}
            )
    tokens.append(Token(EOF, "", length))
    return tokens


__all__ = ["Token", "tokenize", "STRING", "NUMBER", "PATH", "OP", "PUNCT", "EOF"]
