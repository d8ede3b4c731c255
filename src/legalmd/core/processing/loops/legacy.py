"""Legacy block expansion: ``{{#name}}...{{/name}}`` and ``{{#if cond}}``.

Handles:
- ``{{#items}}...{{/items}}``     iterate an array (or render once if truthy)
- ``{{#each items}}``             same as ``{{#items}}``
- ``{{#if cond}}...{{else}}...{{/if}}`` and ``{{#unless cond}}``
- ``{{.}}``, ``{{this.name}}``, ``{{@index}}``, ``{{@first}}`` inside loops

Blocks are expanded back to front. Each iteration body is expanded for
nested blocks first, then its remaining mixins are resolved against the
iteration's enhanced metadata.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from legalmd.core.expressions import ExpressionEvaluator, format_value, is_truthy
from legalmd.core.utils.text import escape_html_attribute

from ..blocks import BlockRange, find_blocks, split_else
from ..markers import protect_braces
from .context import (
    LoopContext,
    RenderContext,
    TemplateDialect,
    create_enhanced_metadata,
    resolve_loop_variable,
)

logger = logging.getLogger(__name__)

_ITEM_MIXIN = re.compile(r"\{\{([^}]+)\}\}")

CONDITION_BLOCKS = ("if", "unless")


class LegacyDialect(TemplateDialect):
    """Engine-native expansion of legacy template blocks."""

    name = "legacy"

    def detect(self, content: str) -> bool:
        return bool(find_blocks(content))

    def render(self, content: str, metadata: Dict[str, Any], context: RenderContext) -> str:
        return self.expand(content, metadata, context, context.loop_context)

    def expand(
        self,
        content: str,
        metadata: Mapping[str, Any],
        context: RenderContext,
        loop_context: Optional[LoopContext] = None,
    ) -> str:
        """Expand every top-level block of ``content``, last block first."""
        blocks = find_blocks(content)
        if not blocks:
            return content
        evaluator = context.evaluator()
        result = content
        for block in reversed(blocks):
            expanded = self._expand_block(block, content, metadata, context, loop_context, evaluator)
            result = result[:block.start] + expanded + result[block.end:]
        return result

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _expand_block(
        self,
        block: BlockRange,
        content: str,
        metadata: Mapping[str, Any],
        context: RenderContext,
        loop_context: Optional[LoopContext],
        evaluator: ExpressionEvaluator,
    ) -> str:
        body = block.body(content)
        if block.name in CONDITION_BLOCKS:
            truthy, falsy = split_else(body)
            passed = evaluator.evaluate_condition(block.args, metadata) if block.args else False
            if block.name == "unless":
                passed = not passed
            chosen = truthy if passed else (falsy or "")
            return self.expand(chosen, metadata, context, loop_context)

        variable = block.args if block.name in ("each", "with") and block.args else block.name
        value = resolve_loop_variable(variable, metadata, loop_context)
        context.tracker.track_field(variable, value, has_logic=True, mixin_used="loop")

        if isinstance(value, (list, tuple)):
            return self._expand_array(variable, body, list(value), metadata, context, loop_context)
        if is_truthy(value):
            enhanced = dict(metadata)
            enhanced[variable] = value
            if block.name == "with" and isinstance(value, Mapping):
                enhanced.update(value)
                enhanced["."] = value
            expanded = self.expand(body, enhanced, context, loop_context)
            return self.resolve_item_mixins(expanded, enhanced, context, evaluator)
        return ""

    def _expand_array(
        self,
        variable: str,
        body: str,
        items: List[Any],
        metadata: Mapping[str, Any],
        context: RenderContext,
        parent: Optional[LoopContext],
    ) -> str:
        evaluator = context.evaluator()
        parts = []
        for index, item in enumerate(items):
            loop = LoopContext(variable, item, index, len(items), parent)
            enhanced = create_enhanced_metadata(metadata, item, loop)
            expanded = self.expand(body, enhanced, context, loop)
            expanded = self.resolve_item_mixins(expanded, enhanced, context, evaluator)
            if context.enable_field_tracking:
                expanded = markdown_list_to_html(expanded)
            parts.append(expanded)
        return "\n".join(parts)

    # ------------------------------------------------------------------
    # Mixins inside blocks
    # ------------------------------------------------------------------

    def resolve_item_mixins(
        self,
        content: str,
        metadata: Mapping[str, Any],
        context: RenderContext,
        evaluator: ExpressionEvaluator,
    ) -> str:
        """Single-pass substitution of ``{{...}}`` against iteration metadata."""
        tracking = context.enable_field_tracking

        def substitute(match: re.Match[str]) -> str:
            expression = match.group(1).strip()
            if not expression or expression[0] in "#/!" or expression == "else":
                return match.group(0)
            attr = escape_html_attribute(expression)

            value = evaluator.resolve(expression, metadata)
            if "?" in expression and ":" in expression:
                if value is None:
                    context.tracker.track_field(expression, None, mixin_used="conditional")
                    if tracking:
                        return f'<span class="missing-value" data-field="{attr}">[[{expression}]]</span>'
                    return match.group(0)
                text = format_value(value)
                context.tracker.track_field(expression, text, has_logic=True, mixin_used="conditional")
                text = protect_braces(text)
                if tracking:
                    return (
                        '<span class="highlight">'
                        f'<span class="imported-value" data-field="{attr}">{text}</span></span>'
                    )
                return text

            if "(" in expression and ")" in expression and value is not None:
                context.tracker.track_field(expression, value, has_logic=True, mixin_used="helper")
                text = protect_braces(format_value(value))
                if tracking:
                    return (
                        '<span class="highlight">'
                        f'<span class="imported-value" data-field="{attr}">{text}</span></span>'
                    )
                return text

            context.tracker.track_field(expression, value, mixin_used="loop")
            if value is None:
                if tracking:
                    return f'<span class="missing-value" data-field="{attr}">[[{expression}]]</span>'
                return "{{" + expression + "}}"
            text = protect_braces(format_value(value))
            if tracking:
                return f'<span class="imported-value" data-field="{attr}">{text}</span>'
            return text

        return _ITEM_MIXIN.sub(substitute, content)


def markdown_list_to_html(content: str) -> str:
    """``- item`` (the whole iteration output) becomes ``<li>item</li>``."""
    stripped = content.strip()
    if stripped.startswith("- "):
        return f"<li>{stripped[2:].strip()}</li>"
    return content


__all__ = ["LegacyDialect", "markdown_list_to_html", "CONDITION_BLOCKS"]
