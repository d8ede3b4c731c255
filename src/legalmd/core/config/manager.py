"""
legalmd configuration management (YAML defaults + user file + env overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import jsonschema
import yaml

from legalmd.core.exceptions import ConfigError
from legalmd.core.utils.merge import deep_merge as _deep_merge
from legalmd.data import get_data_path, read_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "LEGALMD_"
CONFIG_PATH_ENV = "LEGALMD_CONFIG"


class ConfigManager:
    """Load, merge, and validate legalmd configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: LEGALMD_* (``__`` separates nested keys)
    2. User config file: ``config_path`` argument or ``$LEGALMD_CONFIG``
    3. Bundled defaults: legalmd.data/config/*.yaml (alphabetical order)

    The merged result is validated against ``data/schemas/config.schema.yaml``.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        env_path = os.environ.get(CONFIG_PATH_ENV)
        self.config_path = config_path or (Path(env_path) if env_path else None)
        self.core_config_dir = get_data_path("config")
        self.schemas_dir = get_data_path("schemas")

    def deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge dictionaries. Delegates to shared implementation."""
        return _deep_merge(base, override)

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConfigError(f"Config file not found: {path}", context={"path": str(path)}) from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping", context={"path": str(path)})
        return data

    def validate_schema(self, config: Dict[str, Any], schema_name: str = "config.schema.yaml") -> None:
        schema = read_yaml("schemas", schema_name)
        validator = jsonschema.Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(config), key=lambda e: list(e.path))
        if errors:
            first = errors[0]
            location = ".".join(str(p) for p in first.path) or "<root>"
            raise ConfigError(
                f"Invalid configuration at {location}: {first.message}",
                context={"errors": [e.message for e in errors]},
            )

    # ========== Environment overrides ==========

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str, *, strict: bool) -> List[str]:
        segs = raw.split("__")
        if any(seg == "" for seg in segs):
            if strict:
                raise ConfigError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
            return []
        return [seg.lower() for seg in segs]

    def _iter_env_overrides(self, *, strict: bool) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX) or key == CONFIG_PATH_ENV:
                continue
            raw = key[len(ENV_PREFIX):]
            if not raw:
                if strict:
                    raise ConfigError(f"Malformed {ENV_PREFIX}* key")
                continue
            path = self._parse_env_key(raw, strict=strict)
            if path:
                yield path, self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur: Union[Dict[str, Any], Any] = root
        for part in path[:-1]:
            if not isinstance(cur, dict):
                raise ConfigError("Path traverses non-dict container", context={"path": path})
            # Case-insensitive match so env vars can address camelCase keys.
            key_candidates = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            key_to_use = key_candidates.get(part, part)
            if key_to_use not in cur:
                cur[key_to_use] = {}
            cur = cur[key_to_use]
        if not isinstance(cur, dict):
            raise ConfigError("Key assignment requires dict", context={"path": path})
        leaf = path[-1]
        lower_map = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
        cur[lower_map.get(leaf, leaf)] = value

    def apply_env_overrides(self, cfg: Dict[str, Any], *, strict: bool = True) -> None:
        for path, typed_value in self._iter_env_overrides(strict=strict):
            self._set_nested(cfg, path, typed_value)

    # ========== Loading ==========

    def _load_defaults(self) -> Dict[str, Any]:
        cfg: Dict[str, Any] = {}
        for path in sorted(self.core_config_dir.glob("*.yaml")):
            cfg = self.deep_merge(cfg, self.load_yaml(path))
        return cfg

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load the merged configuration.

        Args:
            validate: Validate the result against the bundled JSON schema

        Returns:
            Merged configuration dictionary

        Raises:
            ConfigError: If a config source is malformed or validation fails
        """
        cfg = self._load_defaults()
        if self.config_path is not None:
            logger.debug("Loading user config from %s", self.config_path)
            cfg = self.deep_merge(cfg, self.load_yaml(Path(self.config_path)))
        self.apply_env_overrides(cfg, strict=True)
        if validate:
            self.validate_schema(cfg)
        return cfg

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-separated key."""
        current: Any = self.load_config()
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current


__all__ = ["ConfigManager", "ENV_PREFIX", "CONFIG_PATH_ENV"]
