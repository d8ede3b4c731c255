"""Base class and shared options for document processors.

Every pipeline step wraps a processor. Processors receive the content, the
run's shared metadata dict (mutated in place) and :class:`ProcessingOptions`.

Processing order of the default pipeline:
1. RST / LATEX      - convert foreign markup to markdown
2. YAML             - front matter into metadata
3. IMPORTS          - @import path
4. CLAUSES          - [text]{condition}
5. REFERENCES       - |key| cross references
6. TEMPLATE LOOPS   - {{#each}}, {{#name}}, {{#if}}
7. MIXINS           - {{expression}}
8. HEADERS          - l. / ll. / l3. numbering
9. EXPORT           - meta-yaml-output / meta-json-output
10. FIELD TRACKING  - legal-field highlight spans
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from legalmd.core.expressions import ExpressionEvaluator
from legalmd.core.helpers import HelperRegistry, create_default_registry
from legalmd.core.tracking import FieldTracker

# Metadata key where processors leave non-fatal warnings for the pipeline.
WARNINGS_KEY = "_warnings"


def add_warning(metadata: Dict[str, Any], message: str) -> None:
    """Record a non-fatal warning for the current step."""
    metadata.setdefault(WARNINGS_KEY, []).append(message)


@dataclass
class ProcessingOptions:
    """Options for one processing run.

    Contains:
    - Feature switches (``no_*``) for individual processors
    - Field tracking modes
    - Export settings
    - Pipeline run controls (step selection, timeouts, dry run)
    - Run-scoped services: helper registry and field tracker
    """

    # Paths
    base_path: Optional[Path] = None

    # Feature switches
    no_imports: bool = False
    no_clauses: bool = False
    no_references: bool = False
    no_mixins: bool = False
    no_headers: bool = False
    no_reset: bool = False
    no_indent: bool = False
    throw_on_yaml_error: bool = False
    import_max_depth: int = 10

    # Field tracking: distributed spans from each processor, or one final pass
    enable_field_tracking: bool = False
    enable_field_tracking_in_markdown: bool = False

    # Export
    export_metadata: bool = False
    export_format: Optional[str] = None
    output_path: Optional[Path] = None

    # Pipeline controls
    continue_on_error: bool = False
    dry_run: bool = False
    only_steps: Optional[List[str]] = None
    skip_steps: List[str] = field(default_factory=list)
    step_timeouts: Dict[str, float] = field(default_factory=dict)
    # Set by the pipeline; markers are finalized once the run ends
    defer_finalize: bool = False

    # Run-scoped services
    helpers: Optional[HelperRegistry] = None
    today: Optional[date] = None
    default_currency: str = "USD"
    field_tracker: Optional[FieldTracker] = None

    def get_helpers(self) -> HelperRegistry:
        """Return the configured registry, creating the defaults on first use."""
        if self.helpers is None:
            self.helpers = create_default_registry()
        return self.helpers

    def get_tracker(self) -> FieldTracker:
        """Return the run's tracker, creating one when used outside a pipeline."""
        if self.field_tracker is None:
            self.field_tracker = FieldTracker()
        return self.field_tracker

    def evaluator(self) -> ExpressionEvaluator:
        return ExpressionEvaluator(self.get_helpers(), today=self.today)

    @property
    def tracking_in_markdown(self) -> bool:
        """Processors emit highlight spans themselves (no final tracking pass)."""
        return self.enable_field_tracking_in_markdown

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "ProcessingOptions":
        """Build options from keyword-style values, ignoring unknown keys."""
        known = cls.__dataclass_fields__
        kwargs = {k: v for k, v in values.items() if k in known}
        for key in ("base_path", "output_path"):
            if kwargs.get(key) is not None:
                kwargs[key] = Path(kwargs[key])
        return cls(**kwargs)


class BaseProcessor(ABC):
    """Abstract base class for document processors.

    Processors hold no per-run state; everything run-specific travels in the
    metadata dict and :class:`ProcessingOptions`.

    Example:
        class UpperProcessor(BaseProcessor):
            name = "upper"

            def process(self, content, metadata, options):
                return content.upper()
    """

    name: str = "processor"
    description: str = ""

    @abstractmethod
    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: ProcessingOptions,
    ) -> str:
        """Transform ``content``.

        Args:
            content: Input content
            metadata: Shared document metadata (may be mutated)
            options: Run options

        Returns:
            Transformed content
        """
        ...

    def is_enabled(self, options: ProcessingOptions) -> bool:
        """Whether the processor should run for ``options``."""
        return True

    def get_name(self) -> str:
        """Get processor name for logging/debugging."""
        return self.name or self.__class__.__name__


__all__ = ["ProcessingOptions", "BaseProcessor", "WARNINGS_KEY", "add_warning"]
