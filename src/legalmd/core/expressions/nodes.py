"""Typed expression AST produced by the parser."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple


class Node:
    """Base class for expression nodes."""

    __slots__ = ()


@dataclass(frozen=True)
class Literal(Node):
    value: Any


@dataclass(frozen=True)
class Path(Node):
    path: str


@dataclass(frozen=True)
class Call(Node):
    name: str
    args: Tuple[Node, ...] = ()
    # Handlebars hash arguments (``key=value``); empty for legacy calls
    hash_args: Tuple[Tuple[str, Node], ...] = ()


@dataclass(frozen=True)
class Ternary(Node):
    condition: Node
    when_true: Node
    when_false: Node


@dataclass(frozen=True)
class Binary(Node):
    op: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Unary(Node):
    op: str
    operand: Node


__all__ = ["Node", "Literal", "Path", "Call", "Ternary", "Binary", "Unary"]
