"""Data types for the step pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from legalmd.core.processing.base import BaseProcessor

Severity = Literal["low", "medium", "high", "critical"]
PipelineStatus = Literal["idle", "running", "completed", "aborted"]

# Error codes
STEP_EXECUTION_ERROR = "STEP_EXECUTION_ERROR"
DEPENDENCY_ERROR = "DEPENDENCY_ERROR"
STEP_TIMEOUT = "STEP_TIMEOUT"
PIPELINE_ABORTED = "PIPELINE_ABORTED"
PIPELINE_CRITICAL_ERROR = "PIPELINE_CRITICAL_ERROR"


@dataclass
class PipelineStep:
    """One named processor in the pipeline.

    ``order`` only breaks ties between steps the dependency graph leaves
    unordered. ``timeout`` is in seconds (``None`` = no limit).
    """

    name: str
    processor: BaseProcessor
    order: int = 0
    enabled: bool = True
    dependencies: List[str] = field(default_factory=list)
    timeout: Optional[float] = None
    description: str = ""


@dataclass
class ProcessingError:
    code: str
    message: str
    step_name: Optional[str] = None
    severity: Severity = "medium"
    recoverable: bool = True
    original_error: Optional[BaseException] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "step_name": self.step_name,
            "severity": self.severity,
            "recoverable": self.recoverable,
        }


@dataclass
class StepResult:
    step_name: str
    success: bool
    skipped: bool = False
    input_size: int = 0
    output_size: int = 0
    fields_tracked: int = 0
    duration: float = 0.0
    errors: List[ProcessingError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PipelineResult:
    content: str
    metadata: Dict[str, Any]
    success: bool
    step_results: List[StepResult] = field(default_factory=list)
    field_report: Optional[Dict[str, Any]] = None
    exported_files: List[str] = field(default_factory=list)
    total_duration: float = 0.0
    errors: List[ProcessingError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def get_step(self, name: str) -> Optional[StepResult]:
        for result in self.step_results:
            if result.step_name == name:
                return result
        return None


@dataclass
class PipelineState:
    current_step: Optional[str] = None
    completed_steps: List[str] = field(default_factory=list)
    remaining_steps: List[str] = field(default_factory=list)
    start_time: Optional[float] = None
    content_history: List[str] = field(default_factory=list)
    aborted: bool = False
    abort_reason: Optional[str] = None
    status: PipelineStatus = "idle"


@dataclass
class ValidationReport:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


__all__ = [
    "Severity",
    "PipelineStatus",
    "STEP_EXECUTION_ERROR",
    "DEPENDENCY_ERROR",
    "STEP_TIMEOUT",
    "PIPELINE_ABORTED",
    "PIPELINE_CRITICAL_ERROR",
    "PipelineStep",
    "ProcessingError",
    "StepResult",
    "PipelineResult",
    "PipelineState",
    "ValidationReport",
]
