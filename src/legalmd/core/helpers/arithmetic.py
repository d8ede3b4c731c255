"""Arithmetic helpers.

Operands are coerced with :func:`legalmd.core.expressions.to_number`;
non-numeric operands and division by zero produce ``NaN``.
"""
from __future__ import annotations

import math
from typing import Any

from legalmd.core.expressions import format_value, to_number


def _operands(a: Any, b: Any) -> tuple[float, float] | None:
    left, right = to_number(a), to_number(b)
    if left is None or right is None:
        return None
    return left, right


def _tidy(value: float) -> float | int:
    if math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def multiply(a: Any, b: Any) -> float | int:
    ops = _operands(a, b)
    return math.nan if ops is None else _tidy(ops[0] * ops[1])


def divide(a: Any, b: Any) -> float | int:
    ops = _operands(a, b)
    if ops is None or ops[1] == 0:
        return math.nan
    return _tidy(ops[0] / ops[1])


def add(a: Any, b: Any) -> float | int:
    ops = _operands(a, b)
    return math.nan if ops is None else _tidy(ops[0] + ops[1])


def subtract(a: Any, b: Any) -> float | int:
    ops = _operands(a, b)
    return math.nan if ops is None else _tidy(ops[0] - ops[1])


def modulo(a: Any, b: Any) -> float | int:
    ops = _operands(a, b)
    if ops is None or ops[1] == 0:
        return math.nan
    return _tidy(math.fmod(ops[0], ops[1]))


def power(base: Any, exponent: Any) -> float | int:
    ops = _operands(base, exponent)
    if ops is None:
        return math.nan
    try:
        return _tidy(math.pow(ops[0], ops[1]))
    except (OverflowError, ValueError):
        return math.nan


def concat(*values: Any) -> str:
    """Join the string forms of all arguments."""
    return "".join(format_value(v) for v in values)


MATH_HELPERS = {
    "multiply": multiply,
    "divide": divide,
    "add": add,
    "subtract": subtract,
    "modulo": modulo,
    "power": power,
    "concat": concat,
}

__all__ = ["multiply", "divide", "add", "subtract", "modulo", "power", "concat", "MATH_HELPERS"]
