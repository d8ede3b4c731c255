"""Template-loop processor: dispatch between the legacy and Handlebars dialects."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from legalmd.core.exceptions import ExpressionSyntaxError, ProcessorError

from ..base import BaseProcessor, ProcessingOptions, add_warning
from ..markers import finish_step
from .context import LoopContext, RenderContext, TemplateDialect
from .detection import (
    HANDLEBARS,
    MIXED,
    SyntaxDetector,
    SyntaxReport,
    collect_migration_suggestions,
    format_migration_warning,
)
from .handlebars import HandlebarsDialect
from .legacy import LegacyDialect

logger = logging.getLogger(__name__)


class TemplateLoopProcessor(BaseProcessor):
    """Expand ``{{#each}}``, ``{{#if}}`` and ``{{#name}}`` blocks.

    Content written entirely in Handlebars syntax is rendered by
    :class:`HandlebarsDialect`. Legacy and mixed content goes through
    :class:`LegacyDialect`; mixed content also produces a warning. Legacy
    mustaches produce one batched migration warning per run.
    """

    name = "template-loops"
    description = "Expand template loops and conditional blocks"

    def __init__(
        self,
        handlebars: Optional[TemplateDialect] = None,
        legacy: Optional[TemplateDialect] = None,
    ) -> None:
        self.handlebars = handlebars or HandlebarsDialect()
        self.legacy = legacy or LegacyDialect()

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
        *,
        loop_context: Optional[LoopContext] = None,
        enable_field_tracking: Optional[bool] = None,
    ) -> str:
        """Render template blocks in ``content``.

        Args:
            content: Document content
            metadata: Shared document metadata
            options: Run options (helpers, tracker, ``@today`` override)
            loop_context: Enclosing loop, when rendering a nested body
            enable_field_tracking: Emit tracking spans; defaults to
                ``options.enable_field_tracking_in_markdown``

        Returns:
            Rendered content. When Handlebars rendering fails the content is
            rendered by the legacy dialect instead.
        """
        options = options or ProcessingOptions()
        if "{{" not in content:
            return content
        if enable_field_tracking is None:
            enable_field_tracking = options.tracking_in_markdown

        context = RenderContext(
            helpers=options.get_helpers(),
            tracker=options.get_tracker(),
            today=options.today,
            loop_context=loop_context,
            enable_field_tracking=enable_field_tracking,
        )
        report = SyntaxDetector(context.helpers.names()).detect(content)
        self._warn_about_legacy(content, metadata, report)

        dialect = self._select(report)
        try:
            result = dialect.render(content, metadata, context)
        except (ProcessorError, ExpressionSyntaxError) as e:
            if dialect is self.legacy:
                raise
            message = f"Handlebars rendering failed, using legacy processing: {e}"
            logger.warning(message)
            add_warning(metadata, message)
            result = self.legacy.render(content, metadata, context)

        for warning in context.warnings:
            add_warning(metadata, warning)
        return finish_step(result, options)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _select(self, report: SyntaxReport) -> TemplateDialect:
        if report.syntax == HANDLEBARS:
            logger.debug("Rendering template blocks with the Handlebars dialect")
            return self.handlebars
        logger.debug("Rendering template blocks with the legacy dialect (%s)", report.syntax)
        return self.legacy

    def _warn_about_legacy(self, content: str, metadata: Dict[str, Any], report: SyntaxReport) -> None:
        if report.syntax == MIXED:
            lines = sorted({o.line for o in report.legacy})
            message = (
                "Mixed legacy and Handlebars template syntax detected "
                f"(legacy on line(s) {', '.join(str(n) for n in lines)}); using legacy processing"
            )
            logger.warning(message)
            add_warning(metadata, message)
        if not report.legacy:
            return
        suggestions = collect_migration_suggestions(content)
        if suggestions:
            message = format_migration_warning(suggestions)
            logger.warning(message)
            add_warning(metadata, message)


def process_template_loops(
    content: str,
    metadata: Dict[str, Any],
    options: Optional[ProcessingOptions] = None,
    *,
    loop_context: Optional[LoopContext] = None,
    enable_field_tracking: Optional[bool] = None,
) -> str:
    """Functional wrapper around :class:`TemplateLoopProcessor`."""
    return TemplateLoopProcessor().process(
        content,
        metadata,
        options,
        loop_context=loop_context,
        enable_field_tracking=enable_field_tracking,
    )


__all__: List[str] = [
    "TemplateLoopProcessor",
    "process_template_loops",
]
