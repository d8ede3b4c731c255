"""Dictionary merging for layered configuration and imported front matter.

``deep_merge`` lets a later layer (user file, env overrides) win over an
earlier one. Lists follow marker rules:

- a leading ``"+"`` appends the remaining items to the base list
- a leading ``"="`` or no marker replaces the base list

``merge_missing`` is the opposite rule: the document's own keys always win
and imported values only fill gaps.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries without mutating inputs.

    Args:
        base: Base dictionary (lower priority)
        override: Override dictionary (higher priority)

    Returns:
        New merged dictionary

    Example:
        >>> deep_merge({"pipeline": {"a": 1}}, {"pipeline": {"b": 2}})
        {'pipeline': {'a': 1, 'b': 2}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = merge_arrays(current, value)
        else:
            result[key] = value
    return result


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """Merge arrays with override semantics.

    A leading "+" element appends the rest of ``override`` to ``base``;
    a leading "=" (or no marker) replaces ``base``.

    Example:
        >>> merge_arrays([1, 2], ["+", 3])
        [1, 2, 3]
    """
    if not override:
        return base
    first = override[0]
    if isinstance(first, str):
        if first == "+":
            return [*base, *override[1:]]
        if first == "=":
            return list(override[1:])
    return list(override)


def merge_missing(target: Dict[str, Any], incoming: Dict[str, Any]) -> List[str]:
    """Fill keys missing from ``target`` with values from ``incoming`` (in place).

    Existing keys are never overwritten; nested dictionaries are merged
    recursively with the same rule. Incoming values are deep-copied.

    Args:
        target: Dictionary that is mutated
        incoming: Lower-priority values

    Returns:
        Dotted paths of the keys that were added
    """
    added: List[str] = []

    def _merge(dst: Dict[str, Any], src: Dict[str, Any], prefix: str) -> None:
        for key, value in src.items():
            path = f"{prefix}{key}"
            if key not in dst:
                dst[key] = copy.deepcopy(value)
                added.append(path)
            elif isinstance(dst[key], dict) and isinstance(value, dict):
                _merge(dst[key], value, f"{path}.")

    _merge(target, incoming or {}, "")
    return added


__all__ = ["deep_merge", "merge_arrays", "merge_missing"]
