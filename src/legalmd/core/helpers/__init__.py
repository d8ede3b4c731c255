"""Template helper library.

``create_default_registry()`` returns a fresh :class:`HelperRegistry` with
every built-in helper (dates, numbers, strings, arithmetic). Callers that
add their own helpers should start from a fresh or copied registry so the
defaults stay untouched.
"""
from __future__ import annotations

from .arithmetic import MATH_HELPERS
from .dates import DATE_FORMATS, DATE_HELPERS
from .numbers import NUMBER_HELPERS
from .registry import HelperFunction, HelperRegistry
from .strings import STRING_HELPERS


def create_default_registry() -> HelperRegistry:
    """Build a registry holding all built-in helpers."""
    registry = HelperRegistry()
    for group in (DATE_HELPERS, NUMBER_HELPERS, STRING_HELPERS, MATH_HELPERS):
        for name, func in group.items():
            registry.add(name, func)
    return registry


__all__ = [
    "HelperRegistry",
    "HelperFunction",
    "create_default_registry",
    "DATE_FORMATS",
]
