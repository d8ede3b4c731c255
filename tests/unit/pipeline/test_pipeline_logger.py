"""Tests for PipelineLogger events, metrics and reports."""
from __future__ import annotations

import logging

import pytest

from legalmd.core.pipeline import NullPipelineLogger, PipelineLogger, PipelineManager, PipelineStep
from legalmd.core.pipeline.logger import TRACE
from pipeline_helpers import AppendProcessor, FailingProcessor


def run(pipeline_logger: PipelineLogger, *steps: PipelineStep):
    manager = PipelineManager(pipeline_logger)
    for step in steps:
        manager.register_step(step)
    return manager.execute("doc", options=None)


def test_unknown_level() -> None:
    with pytest.raises(ValueError, match="Unknown pipeline log level"):
        PipelineLogger(level="verbose")


def test_trace_level_is_registered() -> None:
    assert logging.getLevelName(TRACE) == "TRACE"


class TestMetrics:
    def test_counts(self) -> None:
        pipeline_logger = PipelineLogger()
        run(
            pipeline_logger,
            PipelineStep("a", AppendProcessor("a"), order=1),
            PipelineStep("fail", FailingProcessor(), order=2),
        )
        m = pipeline_logger.metrics
        assert (m.total_steps, m.successful_steps, m.failed_steps, m.skipped_steps) == (2, 1, 1, 0)

    def test_summary(self) -> None:
        pipeline_logger = PipelineLogger(enable_metrics=True)
        run(pipeline_logger, PipelineStep("a", AppendProcessor("a")))
        summary = pipeline_logger.get_summary()
        assert summary["success_rate"] == 1.0
        assert summary["total_steps"] == 1
        assert summary["average_step_time"] >= 0.0

    def test_summary_without_steps(self) -> None:
        summary = PipelineLogger().get_summary()
        assert summary["success_rate"] == 0.0
        assert summary["fields_per_second"] == 0.0

    def test_metrics_reset_per_run(self) -> None:
        pipeline_logger = PipelineLogger()
        manager = PipelineManager(pipeline_logger)
        manager.register_step(PipelineStep("a", AppendProcessor("a")))
        manager.execute("x")
        manager.execute("x")
        assert pipeline_logger.metrics.total_steps == 1


class TestReport:
    def test_plain_report(self) -> None:
        pipeline_logger = PipelineLogger()
        run(pipeline_logger, PipelineStep("a", AppendProcessor("a")))
        report = pipeline_logger.generate_report()
        lines = report.splitlines()
        assert lines[0] == "=" * 60
        assert lines[1] == "PIPELINE EXECUTION REPORT"
        assert "Total Steps: 1" in lines
        assert "Successful: 1" in lines
        assert not any(line.startswith("Success Rate") for line in lines)
        assert report.endswith("=" * 60 + "\n")

    def test_report_with_metrics(self) -> None:
        pipeline_logger = PipelineLogger(enable_metrics=True)
        run(pipeline_logger, PipelineStep("a", AppendProcessor("a")))
        assert "Success Rate: 100.0%" in pipeline_logger.generate_report().splitlines()


class TestLogging:
    def test_level_filters_events(self, caplog) -> None:
        caplog.set_level(TRACE, logger="legalmd.pipeline")
        run(PipelineLogger(level="info"), PipelineStep("a", AppendProcessor("a")))
        messages = [r.getMessage() for r in caplog.records if r.name == "legalmd.pipeline"]
        assert "Pipeline starting with 1 step(s)" in messages
        assert not any(m.startswith("Execution order") for m in messages)

    def test_failures_logged_as_errors(self, caplog) -> None:
        caplog.set_level(logging.WARNING, logger="legalmd.pipeline")
        run(PipelineLogger(), PipelineStep("fail", FailingProcessor()))
        errors = [r for r in caplog.records if r.name == "legalmd.pipeline" and r.levelno == logging.ERROR]
        assert errors[0].getMessage() == "Step 'fail' failed [STEP_EXECUTION_ERROR]: Step 'fail' failed: boom"

    def test_null_logger_is_silent(self, caplog) -> None:
        caplog.set_level(TRACE, logger="legalmd.pipeline")
        run(NullPipelineLogger(), PipelineStep("fail", FailingProcessor()))
        assert not [r for r in caplog.records if r.name == "legalmd.pipeline"]
