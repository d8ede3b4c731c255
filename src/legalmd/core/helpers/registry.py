"""Helper registry for template expressions.

Helpers are plain functions taking positional values and returning a value:

    registry = HelperRegistry()

    @registry.register("shout")
    def shout(text: str) -> str:
        return f"{text}!"

Registration is validated: names must be identifiers, helpers must be
callable, and an existing name is only replaced with ``replace=True``.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterator, List, Optional

from legalmd.core.exceptions import HelperRegistrationError

HelperFunction = Callable[..., Any]

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class HelperRegistry:
    """Named set of helper functions used by every template dialect."""

    def __init__(self) -> None:
        self._helpers: Dict[str, HelperFunction] = {}

    def register(
        self, name: str, *, replace: bool = False
    ) -> Callable[[HelperFunction], HelperFunction]:
        """Decorator to register a helper.

        Args:
            name: Name used in templates
            replace: Allow replacing an existing helper

        Returns:
            Decorator that registers the function and returns it unchanged
        """
        def decorator(func: HelperFunction) -> HelperFunction:
            self.add(name, func, replace=replace)
            return func
        return decorator

    def add(self, name: str, func: HelperFunction, *, replace: bool = False) -> None:
        """Add a helper to the registry.

        Raises:
            HelperRegistrationError: On an invalid name, a non-callable, or a
                duplicate name without ``replace``
        """
        if not isinstance(name, str) or not _NAME_RE.match(name):
            raise HelperRegistrationError(
                f"Invalid helper name: {name!r}", context={"name": name}
            )
        if not callable(func):
            raise HelperRegistrationError(
                f"Helper '{name}' is not callable", context={"name": name}
            )
        if name in self._helpers and not replace:
            raise HelperRegistrationError(
                f"Helper '{name}' is already registered", context={"name": name}
            )
        self._helpers[name] = func

    def remove(self, name: str) -> None:
        self._helpers.pop(name, None)

    def get(self, name: str) -> Optional[HelperFunction]:
        """Get a helper by name (``None`` if unknown)."""
        return self._helpers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._helpers

    def __iter__(self) -> Iterator[str]:
        return iter(self._helpers)

    def __len__(self) -> int:
        return len(self._helpers)

    def names(self) -> List[str]:
        """List all registered helper names."""
        return sorted(self._helpers)

    def copy(self) -> "HelperRegistry":
        """Return an independent registry with the same helpers."""
        clone = HelperRegistry()
        clone._helpers = dict(self._helpers)
        return clone


__all__ = ["HelperRegistry", "HelperFunction"]
