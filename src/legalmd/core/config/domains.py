"""Domain configuration accessors for the pipeline and processors."""
from __future__ import annotations

from functools import cached_property
from typing import Dict

from .base import BaseDomainConfig


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level(self) -> str:
        return str(self.section.get("level", "WARNING"))


class PipelineSettings(BaseDomainConfig):
    """Orchestrator defaults (``pipeline`` section)."""

    def _config_section(self) -> str:
        return "pipeline"

    @cached_property
    def continue_on_error(self) -> bool:
        return bool(self.section.get("continueOnError", False))

    @cached_property
    def enable_metrics(self) -> bool:
        return bool(self.section.get("enableMetrics", False))

    @cached_property
    def log_level(self) -> str:
        return str(self.section.get("logLevel", "warn"))

    @cached_property
    def step_timeouts(self) -> Dict[str, float]:
        raw = self.section.get("stepTimeouts") or {}
        return {str(k): float(v) for k, v in raw.items()}

    @cached_property
    def field_tracking_mode(self) -> str:
        return str(self.get("fieldTracking.mode", "distributed"))


class ProcessingSettings(BaseDomainConfig):
    """Processor defaults (``processing`` section)."""

    def _config_section(self) -> str:
        return "processing"

    @cached_property
    def parse_cache_max_entries(self) -> int:
        return int(self.get("parseCache.maxEntries", 100))

    @cached_property
    def parse_cache_ttl(self) -> float:
        return float(self.get("parseCache.ttlSeconds", 300))

    @cached_property
    def import_max_depth(self) -> int:
        return int(self.get("imports.maxDepth", 10))

    @cached_property
    def default_currency(self) -> str:
        return str(self.get("currency.default", "USD"))


__all__ = ["LoggingConfig", "PipelineSettings", "ProcessingSettings"]
