"""Typed accessors over one top-level section of the legalmd configuration.

Each accessor reads either a pre-loaded config dict or the cached layered
configuration from ``cache.py``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from .cache import get_cached_config


class BaseDomainConfig(ABC):
    """One configuration section with cached, typed properties.

    Usage:
        class ExportSettings(BaseDomainConfig):
            def _config_section(self) -> str:
                return "export"

            @cached_property
            def default_format(self) -> str:
                return self.section.get("defaultFormat", "yaml")
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        config_path: Optional[Path] = None,
    ) -> None:
        """Initialize domain config.

        Args:
            config: Pre-loaded configuration (skips loading when given)
            config_path: Optional user config file
        """
        self._config = config if config is not None else get_cached_config(config_path)

    @abstractmethod
    def _config_section(self) -> str:
        """Return the top-level config key for this domain."""
        ...

    @cached_property
    def section(self) -> Dict[str, Any]:
        """Get this domain's configuration section (empty dict if absent)."""
        value = self._config.get(self._config_section(), {})
        return value if isinstance(value, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value from this section by dot-separated key."""
        current: Any = self.section
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current


__all__ = ["BaseDomainConfig"]
