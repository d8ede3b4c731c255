"""Loop context chain, render context and the template dialect interface."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterator, List, Mapping, Optional

from legalmd.core.expressions import ExpressionEvaluator, resolve_path
from legalmd.core.helpers import HelperRegistry
from legalmd.core.tracking import FieldTracker


@dataclass
class LoopContext:
    """One level of loop nesting; ``parent`` links to the enclosing loop."""

    variable: str
    item: Any
    index: int
    total: int
    parent: Optional["LoopContext"] = None

    @property
    def first(self) -> bool:
        return self.index == 0

    @property
    def last(self) -> bool:
        return self.index == self.total - 1

    def chain(self) -> Iterator["LoopContext"]:
        """Yield this context and then each enclosing one."""
        current: Optional[LoopContext] = self
        while current is not None:
            yield current
            current = current.parent


def resolve_loop_variable(
    variable: str,
    metadata: Mapping[str, Any],
    context: Optional[LoopContext] = None,
) -> Any:
    """Resolve ``variable`` from metadata, then from enclosing loop items."""
    value = resolve_path(metadata, variable)
    if value is not None or context is None:
        return value
    for ctx in context.chain():
        if isinstance(ctx.item, Mapping):
            value = resolve_path(ctx.item, variable)
            if value is not None:
                return value
    return None


def create_enhanced_metadata(
    metadata: Mapping[str, Any],
    item: Any,
    context: LoopContext,
) -> Dict[str, Any]:
    """Metadata view for one iteration: item keys merged plus loop variables."""
    enhanced = dict(metadata)
    if isinstance(item, Mapping):
        enhanced.update(item)
    enhanced["."] = item
    enhanced["@index"] = context.index
    enhanced["@total"] = context.total
    enhanced["@first"] = context.first
    enhanced["@last"] = context.last
    return enhanced


@dataclass
class RenderContext:
    """Services and switches handed to a template dialect."""

    helpers: HelperRegistry
    tracker: FieldTracker
    today: Optional[date] = None
    loop_context: Optional[LoopContext] = None
    enable_field_tracking: bool = False
    warnings: List[str] = field(default_factory=list)

    def evaluator(self) -> ExpressionEvaluator:
        return ExpressionEvaluator(self.helpers, today=self.today)


class TemplateDialect(ABC):
    """A template syntax the loop processor can render."""

    name: str = "dialect"

    @abstractmethod
    def detect(self, content: str) -> bool:
        """Whether ``content`` contains anything this dialect would render."""
        ...

    @abstractmethod
    def render(self, content: str, metadata: Dict[str, Any], context: RenderContext) -> str:
        ...


__all__ = [
    "LoopContext",
    "RenderContext",
    "TemplateDialect",
    "resolve_loop_variable",
    "create_enhanced_metadata",
]
