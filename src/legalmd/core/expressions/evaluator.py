"""Expression evaluation against document metadata.

Resolution never raises: malformed expressions, unknown helpers and helper
failures all degrade to ``None`` (or ``False`` for conditions) and are
logged at debug level.
"""
from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Mapping, Optional

from legalmd.core.exceptions import ExpressionSyntaxError

from .nodes import Binary, Call, Literal, Node, Path, Ternary, Unary
from .parser import parse_expression

logger = logging.getLogger(__name__)

_SEGMENT_INDEX = re.compile(r"^([^\[\]]+)((?:\[\d+\])+)$")
_NUMERIC = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?\s*$")

TODAY_KEY = "@today"


def _split_path(path: str) -> list[str]:
    parts: list[str] = []
    for raw in path.split("."):
        match = _SEGMENT_INDEX.match(raw)
        if match:
            parts.append(match.group(1))
            parts.extend(re.findall(r"\[(\d+)\]", match.group(2)))
        elif raw.startswith("[") and raw.endswith("]"):
            parts.append(raw[1:-1])
        else:
            parts.append(raw)
    return parts


def resolve_path(data: Any, path: str) -> Any:
    """Resolve a dotted path (with ``name[0]`` segments) inside ``data``.

    ``.`` and ``this`` refer to the current loop item stored under ``"."``.
    Missing keys, out-of-range indexes and non-container intermediates all
    yield ``None``.

    Example:
        >>> resolve_path({"parties": [{"name": "Acme"}]}, "parties[0].name")
        'Acme'
    """
    if path == ".":
        return data.get(".") if isinstance(data, Mapping) else None
    if isinstance(data, Mapping) and path in data:
        return data[path]
    if path == "this" or path.startswith("this."):
        if isinstance(data, Mapping) and "." in data:
            data = data["."]
        path = path[5:]
        if not path:
            return data
    current = data
    for part in _split_path(path):
        if part == "":
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, (list, tuple)) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def is_truthy(value: Any) -> bool:
    """Template truthiness.

    ``None`` is false, numbers are true when nonzero (NaN is false), strings
    when non-empty, and collections when non-empty. ``0`` is false while the
    string ``"0"`` is true.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) > 0
    return True


def to_number(value: Any) -> Optional[float]:
    """Coerce numbers and numeric strings; anything else returns ``None``."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and _NUMERIC.match(value):
        return float(value)
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """Equality used by ``==`` / ``!=``.

    - ``None`` equals only ``None``
    - booleans equal booleans (and ``"true"``/``"false"`` strings)
    - when both sides coerce to numbers the comparison is numeric
    - otherwise the string forms are compared
    """
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool) or isinstance(right, bool):
        if isinstance(left, bool) and isinstance(right, bool):
            return left == right
        other, flag = (right, left) if isinstance(left, bool) else (left, right)
        return isinstance(other, str) and other.strip().lower() == str(flag).lower()
    left_num, right_num = to_number(left), to_number(right)
    if left_num is not None and right_num is not None:
        return left_num == right_num
    return format_value(left) == format_value(right)


def format_value(value: Any) -> str:
    """String form of a resolved value as it appears in documents."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(v) for v in value)
    return str(value)


def _parse_today(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


class ExpressionEvaluator:
    """Evaluate expressions against metadata.

    Args:
        helpers: Helper registry (anything with ``get(name)``); ``None``
            disables helper calls
        today: Fixed date for ``@today`` (defaults to ``date.today()``)
    """

    def __init__(self, helpers: Any = None, today: Optional[date] = None) -> None:
        self.helpers = helpers
        self.today = today

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, expression: str, metadata: Mapping[str, Any]) -> Any:
        """Resolve a variable path, helper call or ternary expression.

        Returns:
            The resolved value, or ``None`` when it cannot be resolved
        """
        try:
            node = parse_expression(expression)
        except ExpressionSyntaxError as e:
            logger.debug("Unparseable expression %r: %s", expression, e)
            return None
        return self.evaluate(node, metadata)

    def evaluate(self, node: Node, metadata: Mapping[str, Any]) -> Any:
        """Evaluate an already parsed node; failures return ``None``."""
        try:
            return self._eval(node, metadata)
        except Exception as e:  # helper code is arbitrary
            logger.debug("Expression evaluation failed for %r: %s", node, e)
            return None

    def evaluate_condition(
        self,
        expression: str,
        metadata: Mapping[str, Any],
        *,
        word_operators: bool = False,
    ) -> bool:
        """Evaluate ``expression`` as a boolean condition (``False`` on failure)."""
        try:
            node = parse_expression(expression, word_operators=word_operators)
        except ExpressionSyntaxError as e:
            logger.debug("Unparseable condition %r: %s", expression, e)
            return False
        return is_truthy(self.evaluate(node, metadata))

    def current_date(self, metadata: Mapping[str, Any]) -> date:
        override = _parse_today(metadata.get(TODAY_KEY)) if isinstance(metadata, Mapping) else None
        return override or self.today or date.today()

    # ------------------------------------------------------------------
    # Node evaluation
    # ------------------------------------------------------------------

    def _eval(self, node: Node, metadata: Mapping[str, Any]) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Path):
            if node.path == TODAY_KEY:
                return self.current_date(metadata)
            return resolve_path(metadata, node.path)
        if isinstance(node, Call):
            return self._call(node, metadata)
        if isinstance(node, Ternary):
            branch = node.when_true if is_truthy(self._eval(node.condition, metadata)) else node.when_false
            return self._eval(branch, metadata)
        if isinstance(node, Unary):
            operand = self._eval(node.operand, metadata)
            if node.op == "!":
                return not is_truthy(operand)
            number = to_number(operand)
            return None if number is None else -number
        if isinstance(node, Binary):
            return self._binary(node, metadata)
        raise TypeError(f"Unknown node type {type(node).__name__}")

    def _call(self, node: Call, metadata: Mapping[str, Any]) -> Any:
        helper = self.helpers.get(node.name) if self.helpers is not None else None
        if helper is None:
            logger.debug("Unknown helper %r", node.name)
            return None
        args = [self._eval(arg, metadata) for arg in node.args]
        kwargs = {key: self._eval(value, metadata) for key, value in node.hash_args}
        return helper(*args, **kwargs)

    def _binary(self, node: Binary, metadata: Mapping[str, Any]) -> Any:
        op = node.op
        left = self._eval(node.left, metadata)
        if op == "&&":
            return self._eval(node.right, metadata) if is_truthy(left) else left
        if op == "||":
            return left if is_truthy(left) else self._eval(node.right, metadata)
        right = self._eval(node.right, metadata)
        if op == "==":
            return loose_equals(left, right)
        if op == "!=":
            return not loose_equals(left, right)
        if op == "+":
            if isinstance(left, str) or isinstance(right, str):
                return format_value(left) + format_value(right)
        left_num, right_num = to_number(left), to_number(right)
        if op in ("<", ">", "<=", ">="):
            if left_num is None or right_num is None:
                return False
            return {
                "<": left_num < right_num,
                ">": left_num > right_num,
                "<=": left_num <= right_num,
                ">=": left_num >= right_num,
            }[op]
        if left_num is None or right_num is None:
            return None
        if op == "+":
            return _tidy(left_num + right_num)
        if op == "-":
            return _tidy(left_num - right_num)
        if op == "*":
            return _tidy(left_num * right_num)
        if op == "/":
            return None if right_num == 0 else _tidy(left_num / right_num)
        if op == "%":
            return None if right_num == 0 else _tidy(math.fmod(left_num, right_num))
        raise ValueError(f"Unsupported operator {op!r}")


def _tidy(value: float) -> float | int:
    return int(value) if value.is_integer() else value


__all__ = [
    "ExpressionEvaluator",
    "resolve_path",
    "is_truthy",
    "loose_equals",
    "to_number",
    "format_value",
]
