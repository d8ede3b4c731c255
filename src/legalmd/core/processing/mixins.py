"""Mixin processing over a parsed node list.

Content is split into text and mixin nodes once, then each mixin is resolved
independently and the document is reassembled. A resolved value is never
rescanned, so metadata containing ``{{...}}`` text stays literal.

Mixin kinds:
- ``{{client.name}}``                        variable
- ``{{formatCurrency(amount, "EUR")}}``      helper
- ``{{premium ? "Premium" : "Standard"}}``   conditional

Mixins inside ``{{#x}}...{{/x}}`` blocks are left for the template-loop
engine.
"""
from __future__ import annotations

import copy
import logging
import re
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from legalmd.core.expressions import format_value
from legalmd.core.utils.text import escape_html_attribute

from .base import BaseProcessor, ProcessingOptions
from .blocks import find_blocks
from .markers import finish_step, mark_field, protect_braces

logger = logging.getLogger(__name__)

MIXIN_PATTERN = re.compile(r"\{\{([^}]+)\}\}")
BRACKET_VALUE = re.compile(r"^\[.*\]$", re.DOTALL)

DEFAULT_CACHE_SIZE = 100
DEFAULT_CACHE_TTL = 300.0


@dataclass
class MixinNode:
    """One parsed span of content.

    ``type`` is ``text``, ``variable``, ``helper`` or ``conditional``.
    """

    type: str
    content: str
    start: int
    end: int
    variable: Optional[str] = None
    resolved: Any = None
    has_error: bool = False
    error_message: Optional[str] = None


@dataclass
class ParseResult:
    nodes: List[MixinNode]
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def content_hash(content: str) -> str:
    """32-bit rolling hash (``h * 31 + c``) rendered in base 36."""
    h = 0
    for ch in content:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 1 << 32
    return _base36(h)


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return sign + "".join(reversed(out))


class ParseCache:
    """Bounded, TTL-limited cache of parsed node lists.

    Only structure is cached; callers always receive deep copies so
    ``resolved`` values never leak between runs.
    """

    def __init__(self, max_entries: int = DEFAULT_CACHE_SIZE, ttl: float = DEFAULT_CACHE_TTL) -> None:
        self.max_entries = max_entries
        self.ttl = ttl
        self._entries: Dict[str, Tuple[str, List[MixinNode], float]] = {}
        self._lock = threading.Lock()

    def get(self, content: str) -> Optional[List[MixinNode]]:
        key = content_hash(content)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            cached_content, nodes, stamp = entry
            if cached_content != content or time.monotonic() - stamp > self.ttl:
                return None
            return copy.deepcopy(nodes)

    def put(self, content: str, nodes: List[MixinNode]) -> None:
        key = content_hash(content)
        with self._lock:
            if len(self._entries) >= self.max_entries:
                self._evict()
            self._entries[key] = (content, copy.deepcopy(nodes), time.monotonic())

    def _evict(self) -> None:
        now = time.monotonic()
        for key in [k for k, (_, _, stamp) in self._entries.items() if now - stamp > self.ttl]:
            del self._entries[key]
        while len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k][2])
            del self._entries[oldest]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


_parse_cache = ParseCache()


def get_parse_cache() -> ParseCache:
    return _parse_cache


def configure_parse_cache(max_entries: int, ttl: float) -> ParseCache:
    """Resize the shared cache (entries over the new bound go on next insert)."""
    with _parse_cache._lock:
        _parse_cache.max_entries = max(1, int(max_entries))
        _parse_cache.ttl = float(ttl)
    return _parse_cache


def classify_mixin_type(expression: str) -> str:
    """Classify an expression as ``conditional``, ``helper`` or ``variable``."""
    text = expression.strip()
    if "?" in text and ":" in text:
        return "conditional"
    if "(" in text and ")" in text:
        return "helper"
    return "variable"


def _is_block_marker(expression: str) -> bool:
    text = expression.strip()
    return text.startswith(("#", "/")) or text in (".", "else")


def parse_content_to_ast(content: str, cache: Optional[ParseCache] = None) -> ParseResult:
    """Split ``content`` into text and mixin nodes.

    Args:
        content: Document content
        cache: Parse cache to consult (defaults to the shared one)

    Returns:
        :class:`ParseResult` with nodes in document order
    """
    cache = cache if cache is not None else _parse_cache
    cached = cache.get(content)
    if cached is not None:
        return ParseResult(cached, _collect_errors(cached))

    nodes: List[MixinNode] = []
    blocks = find_blocks(content)
    last = 0
    for match in MIXIN_PATTERN.finditer(content):
        start, end = match.start(), match.end()
        if any(b.contains(start, end) for b in blocks):
            continue
        if start > last:
            nodes.append(MixinNode("text", content[last:start], last, start))
        interior = match.group(1)
        if _is_block_marker(interior):
            nodes.append(MixinNode("text", match.group(0), start, end))
        elif not interior.strip():
            nodes.append(MixinNode(
                "variable", match.group(0), start, end,
                variable=interior, has_error=True, error_message="Empty or malformed mixin",
            ))
        else:
            nodes.append(MixinNode(
                classify_mixin_type(interior), match.group(0), start, end, variable=interior.strip(),
            ))
        last = end

    if last < len(content):
        nodes.extend(_tail_nodes(content, last))

    cache.put(content, nodes)
    return ParseResult(nodes, _collect_errors(nodes))


def _tail_nodes(content: str, offset: int) -> List[MixinNode]:
    tail = content[offset:]
    opening = tail.rfind("{{")
    if opening == -1 or "}}" in tail[opening:]:
        return [MixinNode("text", tail, offset, len(content))]
    # Unterminated trailing mixin.
    nodes = []
    if opening:
        nodes.append(MixinNode("text", tail[:opening], offset, offset + opening))
    nodes.append(MixinNode(
        "variable", tail[opening:], offset + opening, len(content),
        variable=tail[opening + 2:].strip(), has_error=True, error_message="Unterminated mixin",
    ))
    return nodes


def _collect_errors(nodes: List[MixinNode]) -> List[Dict[str, Any]]:
    return [
        {"node": n, "message": n.error_message, "position": (n.start, n.end)}
        for n in nodes
        if n.has_error
    ]


def detect_bracket_values(metadata: Mapping[str, Any], prefix: str = "") -> Set[str]:
    """Paths whose string value is a ``[PLACEHOLDER]``.

    Example:
        >>> sorted(detect_bracket_values({"client": {"name": "[NAME]"}, "n": 1}))
        ['client.name']
    """
    found: Set[str] = set()

    def walk(value: Any, path: str) -> None:
        if isinstance(value, str):
            if BRACKET_VALUE.match(value):
                found.add(path)
        elif isinstance(value, Mapping):
            for key, item in value.items():
                walk(item, f"{path}.{key}" if path else str(key))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                walk(item, f"{path}[{index}]")

    walk(metadata, prefix)
    return found


def missing_span(field_name: str) -> str:
    return (
        f'<span class="missing-value" data-field="{escape_html_attribute(field_name)}">'
        f"{{{{{field_name}}}}}</span>"
    )


class MixinProcessor(BaseProcessor):
    """Resolve ``{{...}}`` mixins against metadata."""

    name = "mixins"
    description = "Resolve variable, helper and conditional mixins"

    def __init__(self, cache: Optional[ParseCache] = None) -> None:
        self.cache = cache

    def is_enabled(self, options: ProcessingOptions) -> bool:
        return not options.no_mixins

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: ProcessingOptions,
    ) -> str:
        try:
            result = parse_content_to_ast(content, self.cache)
            if result.has_errors:
                logger.warning(
                    "Mixin parsing errors detected: %s",
                    ", ".join(repr(e["node"].content) for e in result.errors),
                )
            return finish_step(self.render(result.nodes, metadata, options), options)
        except Exception:
            logger.exception("Critical error in mixin processing, keeping original content")
            return content

    def render(
        self,
        nodes: List[MixinNode],
        metadata: Dict[str, Any],
        options: ProcessingOptions,
    ) -> str:
        """Resolve each node independently and join the output."""
        evaluator = options.evaluator()
        tracker = options.get_tracker()
        in_markdown = options.tracking_in_markdown
        centralized = options.enable_field_tracking and not in_markdown
        bracket_fields = detect_bracket_values(metadata)

        parts: List[str] = []
        for node in nodes:
            if node.type == "text":
                parts.append(node.content)
                continue

            if node.has_error or not node.variable:
                if in_markdown:
                    parts.append(
                        '<span class="highlight"><span class="missing-value" '
                        f'data-field="{escape_html_attribute(node.content)}">'
                        f"{{{{{node.variable or 'malformed'}}}}}</span></span>"
                    )
                else:
                    parts.append(node.content)
                continue

            value = evaluator.resolve(node.variable, metadata)
            has_logic = node.type in ("helper", "conditional")
            missing = (
                value is None
                or node.variable in bracket_fields
                or (node.type == "variable" and isinstance(value, str) and bool(BRACKET_VALUE.match(value)))
            )
            node.resolved = None if missing else value
            record = tracker.track_field(
                node.variable,
                node.resolved,
                has_logic=has_logic,
                mixin_used=node.type,
            )

            if missing:
                parts.append(missing_span(node.variable) if in_markdown else node.content)
                continue

            text = protect_braces(format_value(value))
            if in_markdown:
                css = "highlight" if has_logic else "imported-value"
                parts.append(
                    f'<span class="{css}" data-field="{escape_html_attribute(node.variable)}">{text}</span>'
                )
            elif centralized:
                parts.append(mark_field(node.variable, record.status, text))
            else:
                parts.append(text)
        return "".join(parts)


def process_mixins(
    content: str,
    metadata: Dict[str, Any],
    options: Optional[ProcessingOptions] = None,
) -> str:
    """Convenience wrapper around :class:`MixinProcessor`."""
    return MixinProcessor().process(content, metadata, options or ProcessingOptions())


__all__ = [
    "MixinNode",
    "ParseResult",
    "ParseCache",
    "content_hash",
    "get_parse_cache",
    "configure_parse_cache",
    "classify_mixin_type",
    "parse_content_to_ast",
    "detect_bracket_values",
    "missing_span",
    "MixinProcessor",
    "process_mixins",
]
