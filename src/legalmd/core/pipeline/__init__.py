"""Dependency-ordered step pipeline.

Usage:
    from legalmd.core.pipeline import create_default_pipeline

    result = create_default_pipeline().execute(content)
    result.content, result.metadata, result.errors
"""
from __future__ import annotations

from .factory import (
    DEFAULT_STEPS,
    create_default_pipeline,
    create_html_pipeline,
    create_minimal_pipeline,
    create_pdf_pipeline,
    get_processor_by_name,
    validate_pipeline_config,
)
from .graph import StepGraph
from .logger import NullPipelineLogger, PipelineLogger, PipelineMetrics
from .manager import PipelineManager
from .types import (
    DEPENDENCY_ERROR,
    PIPELINE_ABORTED,
    PIPELINE_CRITICAL_ERROR,
    STEP_EXECUTION_ERROR,
    STEP_TIMEOUT,
    PipelineResult,
    PipelineState,
    PipelineStep,
    ProcessingError,
    StepResult,
    ValidationReport,
)

__all__ = [
    "DEFAULT_STEPS",
    "create_default_pipeline",
    "create_html_pipeline",
    "create_minimal_pipeline",
    "create_pdf_pipeline",
    "get_processor_by_name",
    "validate_pipeline_config",
    "StepGraph",
    "NullPipelineLogger",
    "PipelineLogger",
    "PipelineMetrics",
    "PipelineManager",
    "DEPENDENCY_ERROR",
    "PIPELINE_ABORTED",
    "PIPELINE_CRITICAL_ERROR",
    "STEP_EXECUTION_ERROR",
    "STEP_TIMEOUT",
    "PipelineResult",
    "PipelineState",
    "PipelineStep",
    "ProcessingError",
    "StepResult",
    "ValidationReport",
]
