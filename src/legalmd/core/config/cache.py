"""Centralized configuration caching.

Loaded configuration is cached per (config file, LEGALMD_* environment)
fingerprint so tests and long-running processes that change env vars
never observe stale values.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .manager import CONFIG_PATH_ENV, ENV_PREFIX, ConfigManager

_config_cache: Dict[str, Dict[str, Any]] = {}


def _cache_key(config_path: Optional[Path]) -> str:
    env_items = sorted(
        (k, os.environ.get(k, ""))
        for k in os.environ.keys()
        if k.startswith(ENV_PREFIX)
    )
    env_fp = hashlib.sha256(repr(env_items).encode("utf-8")).hexdigest()[:12]
    path = config_path or os.environ.get(CONFIG_PATH_ENV)
    file_fp = ""
    if path:
        p = Path(path)
        try:
            st = p.stat()
            file_fp = f"{p.resolve()}:{st.st_mtime_ns}:{st.st_size}"
        except OSError:
            file_fp = str(p)
    return f"{file_fp}|{env_fp}"


def get_cached_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Return the merged configuration, loading it on first use."""
    key = _cache_key(config_path)
    if key not in _config_cache:
        _config_cache[key] = ConfigManager(config_path).load_config()
    return _config_cache[key]


def clear_all_caches() -> None:
    """Drop every cached configuration."""
    _config_cache.clear()


def is_cached(config_path: Optional[Path] = None) -> bool:
    return _cache_key(config_path) in _config_cache


__all__ = ["get_cached_config", "clear_all_caches", "is_cached"]
