"""Template expression language.

Resolves the interior of ``{{...}}`` mixins and block conditions:

- variable paths: ``client.name``, ``parties[0].name``
- helper calls: ``formatDate(@today, "legal")``, nested calls allowed
- ternaries: ``premium ? "Premium" : "Standard"``
- Handlebars mustaches: ``formatDate date "long"`` (``parse_mustache``)
- comparisons and boolean logic: ``count > 0 && status == "active"``

The pipeline is ``tokenize`` -> ``parse_expression`` (typed AST) ->
``ExpressionEvaluator``.
"""
from __future__ import annotations

from .evaluator import (
    ExpressionEvaluator,
    format_value,
    is_truthy,
    loose_equals,
    resolve_path,
    to_number,
)
from .nodes import Binary, Call, Literal, Node, Path, Ternary, Unary
from .parser import parse_expression, parse_mustache, try_parse
from .tokenizer import Token, tokenize

__all__ = [
    "ExpressionEvaluator",
    "format_value",
    "is_truthy",
    "loose_equals",
    "resolve_path",
    "to_number",
    "Binary",
    "Call",
    "Literal",
    "Node",
    "Path",
    "Ternary",
    "Unary",
    "parse_expression",
    "parse_mustache",
    "try_parse",
    "Token",
    "tokenize",
]
