"""Optional clauses: ``[text]{condition}``.

The text is kept when the condition holds and removed otherwise. Conditions
use the expression language with word operators enabled:

    [This clause applies.]{include_warranty}
    [Premium terms.]{plan = "premium" AND seats > 10}
    [Waiver.]{NOT jurisdiction == "CA" OR waiver}
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Optional

from legalmd.core.expressions import ExpressionEvaluator

from .base import BaseProcessor, ProcessingOptions

logger = logging.getLogger(__name__)

CLAUSE_PATTERN = re.compile(r"\[([^\[\]]*?)\]\{([^{}]*?)\}", re.DOTALL)


def evaluate_clause_condition(
    condition: str,
    metadata: Mapping[str, Any],
    evaluator: Optional[ExpressionEvaluator] = None,
) -> bool:
    """An empty condition always holds; a malformed one never does."""
    if not condition.strip():
        return True
    evaluator = evaluator or ExpressionEvaluator()
    return evaluator.evaluate_condition(condition, metadata, word_operators=True)


class ClauseProcessor(BaseProcessor):
    """Keep or drop ``[text]{condition}`` clauses."""

    name = "clauses"
    description = "Evaluate optional clauses"

    def is_enabled(self, options: ProcessingOptions) -> bool:
        return not options.no_clauses

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
    ) -> str:
        options = options or ProcessingOptions()
        evaluator = options.evaluator()
        tracker = options.get_tracker()

        def replace(match: re.Match[str]) -> str:
            text, condition = match.group(1), match.group(2)
            included = evaluate_clause_condition(condition, metadata, evaluator)
            if condition.strip():
                tracker.track_field(f"clause.{condition.strip()}", included, has_logic=True, mixin_used="conditional")
            return text if included else ""

        return CLAUSE_PATTERN.sub(replace, content)


def process_optional_clauses(
    content: str,
    metadata: Dict[str, Any],
    options: Optional[ProcessingOptions] = None,
) -> str:
    return ClauseProcessor().process(content, metadata, options)


__all__ = ["CLAUSE_PATTERN", "ClauseProcessor", "evaluate_clause_condition", "process_optional_clauses"]
