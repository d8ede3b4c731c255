"""legalmd configuration system.

Usage:
    from legalmd.core.config import ConfigManager, PipelineSettings

    config = ConfigManager().load_config()
    settings = PipelineSettings(config)
    settings.step_timeouts
"""
from __future__ import annotations

from .manager import ConfigManager
from .cache import get_cached_config, clear_all_caches, is_cached
from .base import BaseDomainConfig
from .domains import LoggingConfig, PipelineSettings, ProcessingSettings

__all__ = [
    "ConfigManager",
    "get_cached_config",
    "clear_all_caches",
    "is_cached",
    "BaseDomainConfig",
    "LoggingConfig",
    "PipelineSettings",
    "ProcessingSettings",
]
