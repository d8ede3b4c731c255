"""Template-loop engine.

Two dialects behind :class:`TemplateDialect`:

- :class:`LegacyDialect` expands ``{{#name}}...{{/name}}`` and
  ``{{#if cond}}...{{else}}...{{/if}}`` natively
- :class:`HandlebarsDialect` renders Handlebars templates through a
  sandboxed Jinja2 environment

:class:`TemplateLoopProcessor` picks one per document using
:class:`SyntaxDetector`.
"""
from __future__ import annotations

from .context import (
    LoopContext,
    RenderContext,
    TemplateDialect,
    create_enhanced_metadata,
    resolve_loop_variable,
)
from .detection import (
    HANDLEBARS,
    LEGACY,
    MIXED,
    NONE,
    MigrationSuggestion,
    SyntaxDetector,
    SyntaxOccurrence,
    SyntaxReport,
    collect_migration_suggestions,
    format_migration_warning,
    suggest_handlebars,
)
from .engine import TemplateLoopProcessor, process_template_loops
from .handlebars import BLOCK_HELPERS, HandlebarsDialect, Scope, compile_template, render_handlebars
from .legacy import LegacyDialect, markdown_list_to_html

__all__ = [
    "LoopContext",
    "RenderContext",
    "TemplateDialect",
    "create_enhanced_metadata",
    "resolve_loop_variable",
    "HANDLEBARS",
    "LEGACY",
    "MIXED",
    "NONE",
    "MigrationSuggestion",
    "SyntaxDetector",
    "SyntaxOccurrence",
    "SyntaxReport",
    "collect_migration_suggestions",
    "format_migration_warning",
    "suggest_handlebars",
    "TemplateLoopProcessor",
    "process_template_loops",
    "BLOCK_HELPERS",
    "HandlebarsDialect",
    "Scope",
    "compile_template",
    "render_handlebars",
    "LegacyDialect",
    "markdown_list_to_html",
]
