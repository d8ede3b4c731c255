"""Pipeline event logging and execution metrics.

:class:`PipelineLogger` is itself a pipeline listener: it logs each event
through the ``legalmd.pipeline`` logger and keeps :class:`PipelineMetrics`
for a summary and a plain-text report.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from legalmd.core.utils.text import render_template_text

from .types import PipelineResult, ProcessingError, StepResult

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_LEVELS: Dict[str, int] = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

REPORT_TEMPLATE = """\
{{ rule }}
PIPELINE EXECUTION REPORT
{{ rule }}
Total Steps: {{ m.total_steps }}
Successful: {{ m.successful_steps }}
Failed: {{ m.failed_steps }}
Skipped: {{ m.skipped_steps }}
Total Fields Tracked: {{ m.total_fields_tracked }}
Total Processing Time: {{ "%.1f"|format(m.total_processing_time * 1000) }}ms
{% if summary %}
Success Rate: {{ "%.1f"|format(summary.success_rate * 100) }}%
Average Step Time: {{ "%.1f"|format(summary.average_step_time * 1000) }}ms
Fields Per Second: {{ "%.1f"|format(summary.fields_per_second) }}
{% endif %}
{{ rule }}
"""


@dataclass
class PipelineMetrics:
    total_steps: int = 0
    successful_steps: int = 0
    failed_steps: int = 0
    skipped_steps: int = 0
    total_fields_tracked: int = 0
    total_processing_time: float = 0.0


class PipelineLogger:
    """Log pipeline events and collect metrics.

    Args:
        level: ``error``, ``warn``, ``info``, ``debug`` or ``trace``
        enable_metrics: Include the derived summary in reports and log it
            when the pipeline completes
    """

    def __init__(self, level: str = "warn", enable_metrics: bool = False) -> None:
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown pipeline log level: {level}")
        self.level = level
        self.enable_metrics = enable_metrics
        self.metrics = PipelineMetrics()
        self._logger = logging.getLogger("legalmd.pipeline")

    def _log(self, level: str, message: str, *args: Any) -> None:
        numeric = LOG_LEVELS[level]
        if numeric >= LOG_LEVELS[self.level]:
            self._logger.log(numeric, message, *args)

    # ------------------------------------------------------------------
    # Listener interface
    # ------------------------------------------------------------------

    def on_pipeline_start(self, steps: list[str]) -> None:
        self.metrics = PipelineMetrics()
        self._log("info", "Pipeline starting with %d step(s)", len(steps))
        self._log("debug", "Execution order: %s", ", ".join(steps))

    def on_step_start(self, step_name: str, input_size: int) -> None:
        self.metrics.total_steps += 1
        self._log("debug", "Step '%s' starting (%d chars)", step_name, input_size)

    def on_step_complete(self, step_name: str, result: StepResult) -> None:
        self.metrics.successful_steps += 1
        self.metrics.total_fields_tracked += result.fields_tracked
        self.metrics.total_processing_time += result.duration
        self._log(
            "warn" if result.warnings else "info",
            "Step '%s' completed in %.1fms (%+d chars, %d warning(s))",
            step_name,
            result.duration * 1000,
            result.output_size - result.input_size,
            len(result.warnings),
        )
        for warning in result.warnings:
            self._log("debug", "Step warning in '%s': %s", step_name, warning)

    def on_step_skip(self, step_name: str, reason: str) -> None:
        self.metrics.skipped_steps += 1
        self._log("debug", "Step '%s' skipped: %s", step_name, reason)

    def on_step_error(self, step_name: str, error: ProcessingError) -> None:
        self.metrics.failed_steps += 1
        self._log("error", "Step '%s' failed [%s]: %s", step_name, error.code, error.message)

    def on_pipeline_complete(self, result: PipelineResult) -> None:
        self._log(
            "info" if result.success else "error",
            "Pipeline completed: success=%s, %d step(s), %d error(s), %.1fms",
            result.success,
            len(result.step_results),
            len(result.errors),
            result.total_duration * 1000,
        )
        if self.enable_metrics:
            self._log("info", "Pipeline metrics: %s", self.get_summary())

    def on_pipeline_error(self, error: ProcessingError) -> None:
        self._log("error", "Pipeline failed [%s]: %s", error.code, error.message)

    def log_field_tracking(self, field_name: str, action: str) -> None:
        self._log("trace", "Field tracking: %s for '%s'", action, field_name)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_summary(self) -> Dict[str, Any]:
        """Metrics plus success rate, average step time and fields per second."""
        m = self.metrics
        executed = m.successful_steps + m.failed_steps
        summary: Dict[str, Any] = asdict(m)
        summary["success_rate"] = m.successful_steps / executed if executed else 0.0
        summary["average_step_time"] = m.total_processing_time / executed if executed else 0.0
        summary["fields_per_second"] = (
            m.total_fields_tracked / m.total_processing_time if m.total_processing_time > 0 else 0.0
        )
        return summary

    def generate_report(self) -> str:
        return render_template_text(
            REPORT_TEMPLATE,
            {
                "rule": "=" * 60,
                "m": self.metrics,
                "summary": self.get_summary() if self.enable_metrics else None,
            },
        )


class NullPipelineLogger(PipelineLogger):
    """Logger that emits nothing (metrics are still counted)."""

    def __init__(self) -> None:
        super().__init__(level="error", enable_metrics=False)

    def _log(self, level: str, message: str, *args: Any) -> None:
        return None


__all__ = ["TRACE", "LOG_LEVELS", "PipelineMetrics", "PipelineLogger", "NullPipelineLogger"]
