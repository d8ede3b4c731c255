"""Step pipeline orchestrator.

A :class:`PipelineManager` holds named, ordered, dependency-aware steps and
runs them sequentially over one document:

    manager = PipelineManager()
    manager.register_step(PipelineStep("yaml-parsing", YamlParsingProcessor(), order=1))
    manager.register_step(
        PipelineStep("mixins", MixinProcessor(), order=2, dependencies=["yaml-parsing"])
    )
    result = manager.execute(content)

All steps of a run share one metadata dict and one :class:`FieldTracker`.
A failing step is recorded as a :class:`ProcessingError`; the run stops
unless ``options.continue_on_error`` is set. Configuration problems such as
unknown dependencies or cycles raise :class:`PipelineConfigurationError`
before any step runs.
"""
from __future__ import annotations

import concurrent.futures
import copy
import dataclasses
import logging
import threading
import time
from typing import Any, Dict, List, Optional, Set

from legalmd.core.exceptions import PipelineConfigurationError, ProcessorError, StepTimeoutError
from legalmd.core.processing.base import WARNINGS_KEY, ProcessingOptions
from legalmd.core.processing.export import EXPORTED_FILES_KEY
from legalmd.core.processing.markers import finalize_content
from legalmd.core.tracking import FieldTracker

from .graph import StepGraph
from .logger import NullPipelineLogger, PipelineLogger
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
    Severity,
    StepResult,
    ValidationReport,
)

logger = logging.getLogger(__name__)

LISTENER_EVENTS = (
    "on_pipeline_start",
    "on_step_start",
    "on_step_complete",
    "on_step_skip",
    "on_step_error",
    "on_pipeline_complete",
    "on_pipeline_error",
)


def create_processing_error(
    code: str,
    message: str,
    step_name: Optional[str] = None,
    severity: Severity = "medium",
    recoverable: bool = True,
    original_error: Optional[BaseException] = None,
) -> ProcessingError:
    return ProcessingError(
        code=code,
        message=message,
        step_name=step_name,
        severity=severity,
        recoverable=recoverable,
        original_error=original_error,
    )


class PipelineManager:
    """Registry and executor of pipeline steps.

    Args:
        pipeline_logger: Event logger and metrics collector. It is registered
            as the first listener. Defaults to a :class:`NullPipelineLogger`.
        option_overrides: :class:`ProcessingOptions` fields forced on every run
    """

    def __init__(
        self,
        pipeline_logger: Optional[PipelineLogger] = None,
        option_overrides: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.logger = pipeline_logger or NullPipelineLogger()
        self.option_overrides: Dict[str, Any] = dict(option_overrides or {})
        self._steps: Dict[str, PipelineStep] = {}
        self._listeners: List[Any] = [self.logger]
        self._state = PipelineState()
        self._state_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Step registry
    # ------------------------------------------------------------------

    def register_step(self, step: PipelineStep) -> None:
        """Add ``step``.

        Raises:
            PipelineConfigurationError: On a duplicate name, a processor
                without a callable ``process`` or a dependency cycle
        """
        if step.name in self._steps:
            raise PipelineConfigurationError(
                f"Step '{step.name}' is already registered", context={"step": step.name}
            )
        if not callable(getattr(step.processor, "process", None)):
            raise PipelineConfigurationError(
                f"Step '{step.name}' has no callable process()", context={"step": step.name}
            )

        self._steps[step.name] = step
        cycle = StepGraph(list(self._steps.values())).find_cycle()
        if cycle:
            del self._steps[step.name]
            raise PipelineConfigurationError(
                f"Circular dependency: {' -> '.join(cycle)}", context={"cycle": cycle}
            )
        logger.debug("Registered pipeline step %s (order %d)", step.name, step.order)

    def unregister_step(self, name: str) -> bool:
        return self._steps.pop(name, None) is not None

    def get_step(self, name: str) -> Optional[PipelineStep]:
        return self._steps.get(name)

    def list_steps(self) -> List[PipelineStep]:
        """Registered steps sorted by ``order``."""
        return sorted(self._steps.values(), key=lambda s: (s.order, s.name))

    def set_step_enabled(self, name: str, enabled: bool) -> None:
        step = self._steps.get(name)
        if step is None:
            raise PipelineConfigurationError(f"Unknown step: {name}", context={"step": name})
        step.enabled = enabled

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Any) -> None:
        """Add an event listener.

        Listeners implement any subset of :data:`LISTENER_EVENTS`.
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Any) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners):
            handler = getattr(listener, event, None)
            if not callable(handler):
                continue
            try:
                handler(*args)
            except Exception as e:
                logger.warning("Pipeline listener %r failed on %s: %s", listener, event, e)

    # ------------------------------------------------------------------
    # Validation and ordering
    # ------------------------------------------------------------------

    def validate_configuration(self) -> ValidationReport:
        graph = StepGraph(list(self._steps.values()))
        errors: List[str] = []
        warnings: List[str] = []

        for step_name, dep in graph.missing_dependencies():
            errors.append(f"Step '{step_name}' depends on unknown step '{dep}'")
        cycle = graph.find_cycle()
        if cycle:
            errors.append(f"Circular dependency: {' -> '.join(cycle)}")

        if not self._steps:
            warnings.append("Pipeline has no steps")
        elif not any(s.enabled for s in self._steps.values()):
            warnings.append("All pipeline steps are disabled")

        by_order: Dict[int, List[str]] = {}
        for step in self._steps.values():
            by_order.setdefault(step.order, []).append(step.name)
        for order, names in sorted(by_order.items()):
            if len(names) > 1:
                warnings.append(f"Steps share order {order}: {', '.join(sorted(names))}")

        return ValidationReport(valid=not errors, errors=errors, warnings=warnings)

    def get_execution_order(self, options: Optional[ProcessingOptions] = None) -> List[PipelineStep]:
        """Steps in dependency order, filtered by ``only_steps``/``skip_steps``.

        Raises:
            PipelineConfigurationError: On unknown step names in the filters
                or a dependency cycle
        """
        options = options or ProcessingOptions()
        requested = list(options.only_steps or []) + list(options.skip_steps or [])
        unknown = sorted({name for name in requested if name not in self._steps})
        if unknown:
            raise PipelineConfigurationError(
                f"Unknown step name(s): {', '.join(unknown)}", context={"unknown": unknown}
            )

        try:
            ordered = StepGraph(list(self._steps.values())).topological_order()
        except ValueError as e:
            raise PipelineConfigurationError(str(e)) from e

        if options.only_steps:
            only = set(options.only_steps)
            ordered = [s for s in ordered if s.name in only]
        if options.skip_steps:
            skip = set(options.skip_steps)
            ordered = [s for s in ordered if s.name not in skip]
        return ordered

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def abort(self, reason: str = "aborted") -> None:
        """Stop the current run before its next step.

        Safe to call from another thread or a listener. An abort requested
        while no run is active is discarded when the next run starts.
        """
        with self._state_lock:
            self._state.aborted = True
            self._state.abort_reason = reason
        logger.info("Pipeline abort requested: %s", reason)

    def get_state(self) -> PipelineState:
        return self._state

    def execute(
        self,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        options: Optional[ProcessingOptions] = None,
    ) -> PipelineResult:
        """Run all steps over ``content``.

        Args:
            content: Document content
            metadata: Shared metadata dict, mutated in place (a new dict when
                omitted)
            options: Run options; a copy carrying a fresh field tracker is
                passed to the steps

        Returns:
            The run's :class:`PipelineResult`

        Raises:
            PipelineConfigurationError: On an invalid configuration
        """
        metadata = metadata if metadata is not None else {}
        options = dataclasses.replace(
            options or ProcessingOptions(),
            **self.option_overrides,
            field_tracker=FieldTracker(),
            defer_finalize=True,
        )

        report = self.validate_configuration()
        if report.errors:
            raise PipelineConfigurationError("; ".join(report.errors), context={"errors": report.errors})
        ordered = self.get_execution_order(options)

        started = time.perf_counter()
        with self._state_lock:
            self._state = PipelineState(
                remaining_steps=[s.name for s in ordered],
                start_time=time.time(),
                status="running",
            )
        step_results: List[StepResult] = []
        errors: List[ProcessingError] = []
        warnings: List[str] = []
        for warning in report.warnings:
            logger.debug("Pipeline configuration: %s", warning)
        self._emit("on_pipeline_start", [s.name for s in ordered])

        try:
            output = self._run_steps(ordered, content, metadata, options, step_results, errors, warnings)
        except Exception as e:
            logger.exception("Pipeline failed unexpectedly")
            error = create_processing_error(
                PIPELINE_CRITICAL_ERROR,
                f"Pipeline execution failed: {e}",
                step_name=self._state.current_step,
                severity="critical",
                recoverable=False,
                original_error=e,
            )
            self._state.status = "aborted"
            self._emit("on_pipeline_error", error)
            return PipelineResult(
                content=content,
                metadata=metadata,
                success=False,
                step_results=step_results,
                total_duration=time.perf_counter() - started,
                errors=errors + [error],
                warnings=warnings,
            )

        self._state.current_step = None
        self._state.status = "aborted" if self._state.aborted else "completed"
        result = PipelineResult(
            content=finalize_content(output),
            metadata=metadata,
            success=not errors and not self._state.aborted,
            step_results=step_results,
            field_report=(
                options.get_tracker().generate_report() if options.enable_field_tracking else None
            ),
            exported_files=list(metadata.get(EXPORTED_FILES_KEY) or []),
            total_duration=time.perf_counter() - started,
            errors=errors,
            warnings=warnings,
        )
        self._emit("on_pipeline_complete", result)
        return result

    def _run_steps(
        self,
        ordered: List[PipelineStep],
        content: str,
        metadata: Dict[str, Any],
        options: ProcessingOptions,
        step_results: List[StepResult],
        errors: List[ProcessingError],
        warnings: List[str],
    ) -> str:
        state = self._state
        satisfied: Set[str] = {name for name in self._steps if name not in state.remaining_steps}

        for step in ordered:
            if state.aborted:
                break

            state.current_step = step.name
            state.remaining_steps.remove(step.name)

            if not step.enabled or not step.processor.is_enabled(options):
                reason = "disabled" if not step.enabled else "not enabled for these options"
                step_results.append(
                    StepResult(step.name, success=True, skipped=True,
                               input_size=len(content), output_size=len(content))
                )
                satisfied.add(step.name)
                self._emit("on_step_skip", step.name, reason)
                continue

            unmet = [d for d in step.dependencies if d not in satisfied]
            if unmet:
                error = create_processing_error(
                    DEPENDENCY_ERROR,
                    f"Step '{step.name}' dependency not satisfied: {', '.join(unmet)}",
                    step_name=step.name,
                    severity="high",
                    recoverable=False,
                )
                step_results.append(StepResult(step.name, success=False, errors=[error]))
                errors.append(error)
                self._emit("on_step_error", step.name, error)
                if not options.continue_on_error:
                    break
                continue

            self._emit("on_step_start", step.name, len(content))
            result, content = self._execute_step(step, content, metadata, options)
            step_results.append(result)
            warnings.extend(f"{step.name}: {w}" for w in result.warnings)

            if result.success:
                satisfied.add(step.name)
                state.completed_steps.append(step.name)
                state.content_history.append(content)
                self._emit("on_step_complete", step.name, result)
            else:
                errors.extend(result.errors)
                self._emit("on_step_error", step.name, result.errors[0])
                if not options.continue_on_error:
                    break
        if state.aborted:
            errors.append(
                create_processing_error(
                    PIPELINE_ABORTED,
                    f"Pipeline aborted: {state.abort_reason}",
                    step_name=state.current_step,
                    recoverable=False,
                )
            )
        return content

    def _execute_step(
        self,
        step: PipelineStep,
        content: str,
        metadata: Dict[str, Any],
        options: ProcessingOptions,
    ) -> tuple[StepResult, str]:
        """Run one step; returns its result and the content after it."""
        tracker = options.get_tracker()
        fields_before = len(tracker)
        warnings_before = len(metadata.get(WARNINGS_KEY) or [])
        started = time.perf_counter()

        if options.dry_run:
            result = StepResult(
                step.name, success=True, input_size=len(content),
                output_size=len(content), metadata={"dry_run": True},
            )
            return result, content

        try:
            output = self._call_processor(step, content, metadata, options)
        except StepTimeoutError as e:
            error = create_processing_error(
                STEP_TIMEOUT, str(e), step_name=step.name, severity="high", original_error=e
            )
        except Exception as e:
            error = create_processing_error(
                STEP_EXECUTION_ERROR,
                f"Step '{step.name}' failed: {e}",
                step_name=step.name,
                severity="high",
                original_error=e,
            )
        else:
            result = StepResult(
                step.name,
                success=True,
                input_size=len(content),
                output_size=len(output),
                fields_tracked=len(tracker) - fields_before,
                duration=time.perf_counter() - started,
                warnings=list((metadata.get(WARNINGS_KEY) or [])[warnings_before:]),
            )
            return result, output

        logger.debug("Step %s failed", step.name, exc_info=error.original_error)
        result = StepResult(
            step.name,
            success=False,
            input_size=len(content),
            output_size=len(content),
            duration=time.perf_counter() - started,
            errors=[error],
        )
        return result, content

    def _call_processor(
        self,
        step: PipelineStep,
        content: str,
        metadata: Dict[str, Any],
        options: ProcessingOptions,
    ) -> str:
        timeout = options.step_timeouts.get(step.name, step.timeout)
        if not timeout:
            output = step.processor.process(content, metadata, options)
        else:
            executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=1, thread_name_prefix=f"legalmd-{step.name}"
            )
            # The worker gets copies, merged back only when it finishes in time.
            tracker = options.get_tracker()
            worker_metadata = copy.deepcopy(metadata)
            worker_tracker = tracker.copy()
            worker_options = dataclasses.replace(options, field_tracker=worker_tracker)
            future = executor.submit(step.processor.process, content, worker_metadata, worker_options)
            try:
                output = future.result(timeout=timeout)
            except concurrent.futures.TimeoutError as e:
                raise StepTimeoutError(step.name, timeout) from e
            finally:
                executor.shutdown(wait=False)
            metadata.clear()
            metadata.update(worker_metadata)
            tracker.restore(worker_tracker)

        if not isinstance(output, str):
            raise ProcessorError(
                f"processor returned {type(output).__name__}, expected str", processor=step.name
            )
        return output


__all__ = ["LISTENER_EVENTS", "PipelineManager", "create_processing_error"]
