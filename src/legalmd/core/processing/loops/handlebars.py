"""Handlebars dialect rendered through a sandboxed Jinja2 environment.

The template is split into text and mustache tags, then translated to a
Jinja2 program in which:
- literal text is referenced as ``lm_text[i]`` (never parsed by Jinja)
- each mustache is parsed once into an expression node, ``lm_nodes[i]``
- the current context is a :class:`Scope` bound to ``lm_scope``

Supported:
- ``{{value}}`` (HTML escaped), ``{{{value}}}`` and ``{{& value}}`` (raw)
- ``{{helper arg key=value}}`` and subexpressions ``(helper arg)``
- ``{{#each}}``, ``{{#if}}``, ``{{#unless}}``, ``{{#with}}``, ``{{else}}``,
  ``{{else if cond}}``, sections ``{{#name}}`` and ``{{^name}}``
- ``this``, ``../``, ``@root``, ``@parent``, ``@index``, ``@key``,
  ``@first``, ``@last``, ``@total``
- ``{{! comments }}``, ``{{!-- comments --}}``, ``~`` whitespace control and
  standalone block lines
- block helpers (``{{#trackField "name"}}...{{/trackField}}``)
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from jinja2 import TemplateSyntaxError
from jinja2.sandbox import SandboxedEnvironment

from legalmd.core.exceptions import ExpressionSyntaxError, ProcessorError
from legalmd.core.expressions import (
    Call,
    ExpressionEvaluator,
    Node,
    Path,
    format_value,
    is_truthy,
    parse_mustache,
    resolve_path,
)
from legalmd.core.expressions.evaluator import TODAY_KEY
from legalmd.core.utils.text import escape_html, escape_html_attribute

from ..markers import protect_braces, restore_braces
from .context import RenderContext, TemplateDialect

logger = logging.getLogger(__name__)

_TAG = re.compile(
    r"\{\{(?P<lt1>~?)!--(?P<long>.*?)--(?P<rt1>~?)\}\}"
    r"|\{\{(?P<lt>~?)(?P<triple>\{)?(?P<body>.*?)\}?(?P<rt>~?)\}\}",
    re.DOTALL,
)
_LINE_END = re.compile(r"[ \t]*(?:\r?\n|$)")
_FRAME_VARS = ("@index", "@key", "@first", "@last", "@total")

BlockHelper = Callable[..., str]


def track_field_block(body: str, field_name: Any = "") -> str:
    """``{{#trackField "name"}}body{{/trackField}}``."""
    name = escape_html_attribute(format_value(field_name))
    return f'<span class="legal-md-field" data-field="{name}">{body}</span>'


BLOCK_HELPERS: Dict[str, BlockHelper] = {"trackField": track_field_block}


# ----------------------------------------------------------------------
# Runtime scope
# ----------------------------------------------------------------------


class Scope:
    """One Handlebars context level.

    ``each`` frames carry ``index``/``key``/``total``; ``with`` and section
    frames only change ``data``.
    """

    __slots__ = ("data", "parent", "root", "index", "key", "total")

    def __init__(
        self,
        data: Any,
        parent: Optional["Scope"] = None,
        *,
        index: Optional[int] = None,
        key: Any = None,
        total: Optional[int] = None,
    ) -> None:
        self.data = data
        self.parent = parent
        self.root = parent.root if parent is not None else data
        self.index = index
        self.key = key
        self.total = total

    def frame(self) -> Optional["Scope"]:
        scope: Optional[Scope] = self
        while scope is not None:
            if scope.index is not None:
                return scope
            scope = scope.parent
        return None

    def frame_value(self, name: str) -> Any:
        frame = self.frame()
        if frame is None:
            return None
        if name == "@index":
            return frame.index
        if name == "@key":
            return frame.key if frame.key is not None else frame.index
        if name == "@first":
            return frame.index == 0
        if name == "@last":
            return frame.index == (frame.total or 0) - 1
        if name == "@total":
            return frame.total
        return None


def _get(data: Any, path: str) -> Any:
    if not path:
        return data
    value = resolve_path(data, path)
    if value is None and (path == "length" or path.endswith(".length")):
        base = _get(data, path[:-7].rstrip(".")) if path != "length" else data
        if isinstance(base, (list, tuple, str)):
            return len(base)
    return value


def lookup(scope: Scope, path: str) -> Any:
    """Resolve a Handlebars path against ``scope``."""
    if path in _FRAME_VARS:
        return scope.frame_value(path)
    if path == "@root" or path.startswith("@root."):
        return _get(scope.root, path[6:])
    if path == "@parent" or path.startswith("@parent."):
        parent = scope.parent or scope
        return _get(parent.data, path[8:])
    while path.startswith("../"):
        scope = scope.parent or scope
        path = path[3:]
    if path in ("this", ".", ""):
        return scope.data
    if path.startswith("this."):
        path = path[5:]
    elif path.startswith("./"):
        path = path[2:]
    return _get(scope.data, path)


class ScopeEvaluator(ExpressionEvaluator):
    """Expression evaluator whose "metadata" is a :class:`Scope`."""

    def _eval(self, node: Node, metadata: Any) -> Any:
        if isinstance(node, Path) and isinstance(metadata, Scope):
            if node.path == TODAY_KEY:
                root = metadata.root if isinstance(metadata.root, Mapping) else {}
                return self.current_date(root)
            return lookup(metadata, node.path)
        return super()._eval(node, metadata)


# ----------------------------------------------------------------------
# Translation
# ----------------------------------------------------------------------


@dataclass
class _Token:
    kind: str  # "text" or "tag"
    text: str
    body: str = ""
    triple: bool = False
    strip_left: bool = False
    strip_right: bool = False
    comment: bool = False

    @property
    def standalone_candidate(self) -> bool:
        if self.kind != "tag":
            return False
        body = self.body.strip()
        return self.comment or body[:1] in ("#", "/", "^", "!") or body == "else" or body.startswith("else ")


@dataclass(frozen=True)
class CompiledTemplate:
    source: str
    texts: Tuple[str, ...]
    nodes: Tuple[Node, ...]
    blocks: Tuple[str, ...]


def _tokenize(template: str) -> List[_Token]:
    tokens: List[_Token] = []
    last = 0
    for match in _TAG.finditer(template):
        if match.start() > last:
            tokens.append(_Token("text", template[last:match.start()]))
        if match.group("long") is not None:
            tokens.append(_Token(
                "tag", match.group(0), body="!", comment=True,
                strip_left=bool(match.group("lt1")), strip_right=bool(match.group("rt1")),
            ))
        else:
            body = match.group("body")
            tokens.append(_Token(
                "tag", match.group(0), body=body, triple=bool(match.group("triple")),
                strip_left=bool(match.group("lt")), strip_right=bool(match.group("rt")),
                comment=body.strip().startswith("!"),
            ))
        last = match.end()
    if last < len(template):
        tokens.append(_Token("text", template[last:]))
    return tokens


def _apply_whitespace_control(tokens: List[_Token]) -> None:
    for i, token in enumerate(tokens):
        if token.kind != "tag":
            continue
        if token.strip_left and i > 0 and tokens[i - 1].kind == "text":
            tokens[i - 1].text = tokens[i - 1].text.rstrip()
        if token.strip_right and i + 1 < len(tokens) and tokens[i + 1].kind == "text":
            tokens[i + 1].text = tokens[i + 1].text.lstrip()

    # Decide on the unmodified text first; neighbouring standalone lines
    # share the text token between them.
    cuts: List[Tuple[int, int, int]] = []
    for i, token in enumerate(tokens):
        if not token.standalone_candidate:
            continue
        prev = tokens[i - 1] if i > 0 else None
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if (prev is not None and prev.kind != "text") or (nxt is not None and nxt.kind != "text"):
            continue
        prev_line = prev.text.rsplit("\n", 1) if prev is not None else [""]
        if prev_line[-1].strip(" \t") or (len(prev_line) == 1 and i > 1):
            continue
        next_match = _LINE_END.match(nxt.text) if nxt is not None else None
        if nxt is not None and next_match is None:
            continue
        cuts.append((i, len(prev_line[-1]), next_match.end() if next_match else 0))

    for i, trailing, leading in cuts:
        if trailing:
            prev = tokens[i - 1]
            prev.text = prev.text[: len(prev.text) - trailing]
        if leading:
            tokens[i + 1].text = tokens[i + 1].text[leading:]


class _Translator:
    def __init__(self, template: str, helper_names: FrozenSet[str], block_names: FrozenSet[str]) -> None:
        self.template = template
        self.helper_names = helper_names
        self.block_names = block_names
        self.out: List[str] = []
        self.texts: List[str] = []
        self.nodes: List[Node] = []
        self.blocks: List[str] = []
        self.stack: List[Tuple[str, str, int]] = []

    def _text(self, text: str) -> None:
        if text:
            self.texts.append(text)
            self.out.append("{{ lm_text[%d] }}" % (len(self.texts) - 1))

    def _node(self, source: str, *, output: bool = False) -> int:
        node = parse_mustache(source)
        if output and isinstance(node, Path) and node.path in self.helper_names:
            node = Call(node.path)
        self.nodes.append(node)
        return len(self.nodes) - 1

    def _error(self, message: str) -> ProcessorError:
        return ProcessorError(message, processor="handlebars")

    def translate(self) -> CompiledTemplate:
        tokens = _tokenize(self.template)
        _apply_whitespace_control(tokens)
        for token in tokens:
            if token.kind == "text":
                self._text(token.text)
            elif not token.comment:
                self._tag(token)
        if self.stack:
            raise self._error(f"Unclosed block '{self.stack[-1][1]}'")
        return CompiledTemplate("".join(self.out), tuple(self.texts), tuple(self.nodes), tuple(self.blocks))

    def _tag(self, token: _Token) -> None:
        body = token.body.strip()
        if token.triple or body.startswith("&"):
            self._output(token, body.lstrip("&"), escape=False)
        elif body.startswith("#"):
            self._open(body[1:].strip())
        elif body.startswith("^") and body != "^":
            name = body[1:].strip()
            index = self._node(name)
            self.stack.append(("inverse", name.split()[0], index))
            self.out.append("{% if not lm_truthy(lm_scope, lm_nodes[" + str(index) + "]) %}")
        elif body.startswith("/"):
            self._close(body[1:].strip())
        elif body == "else" or body == "^" or body.startswith("else "):
            self._else(body[4:].strip() if body.startswith("else") else "")
        elif body.startswith(">"):
            logger.warning("Partials are not supported: %s", token.text)
            self._text(token.text)
        else:
            self._output(token, body, escape=True)

    def _output(self, token: _Token, source: str, *, escape: bool) -> None:
        try:
            index = self._node(source, output=True)
        except ExpressionSyntaxError as e:
            logger.debug("Unparseable mustache %r left verbatim: %s", token.text, e)
            self._text(token.text)
            return
        flag = "true" if escape else "false"
        self.out.append("{{ lm_out(lm_scope, lm_nodes[%d], %s) }}" % (index, flag))

    def _open(self, body: str) -> None:
        name, _, args = body.partition(" ")
        name, args = name.strip(), args.strip()
        if name in ("if", "unless", "each", "with"):
            if not args:
                raise self._error(f"#{name} requires an argument")
            index = self._node(args)
            negate = "not " if name == "unless" else ""
            if name in ("if", "unless"):
                self.out.append("{% if " + negate + "lm_truthy(lm_scope, lm_nodes[" + str(index) + "]) %}")
            else:
                self.out.append("{% for lm_scope in lm_" + name + "(lm_scope, lm_nodes[" + str(index) + "]) %}")
            self.stack.append((name, name, index))
        elif name in self.block_names:
            index = self._node(body)
            self.blocks.append(name)
            self.out.append("{% set lm_body_" + str(index) + " %}")
            self.stack.append(("helper", name, index))
        else:
            index = self._node(name)
            self.out.append("{% for lm_scope in lm_section(lm_scope, lm_nodes[" + str(index) + "]) %}")
            self.stack.append(("section", name, index))

    def _close(self, name: str) -> None:
        if not self.stack:
            raise self._error(f"Unexpected closing tag '{name}'")
        kind, opened, index = self.stack.pop()
        if opened != name:
            raise self._error(f"'{opened}' closed by '{name}'")
        if kind in ("if", "unless", "inverse"):
            self.out.append("{% endif %}")
        elif kind == "helper":
            self.out.append(
                "{%% endset %%}{{ lm_block(lm_scope, lm_nodes[%d], lm_body_%d) }}" % (index, index)
            )
        else:
            self.out.append("{% endfor %}")

    def _else(self, condition: str) -> None:
        if not self.stack:
            raise self._error("{{else}} outside of a block")
        kind = self.stack[-1][0]
        if kind == "helper":
            raise self._error("{{else}} is not supported in block helpers")
        if not condition:
            self.out.append("{% else %}")
            return
        if kind not in ("if", "unless", "inverse"):
            raise self._error("{{else if}} is only supported in #if and #unless")
        keyword, _, expr = condition.partition(" ")
        if keyword not in ("if", "unless") or not expr.strip():
            raise self._error(f"Invalid else clause '{condition}'")
        index = self._node(expr)
        negate = "not " if keyword == "unless" else ""
        self.out.append("{% elif " + negate + "lm_truthy(lm_scope, lm_nodes[" + str(index) + "]) %}")


@lru_cache(maxsize=128)
def compile_template(
    template: str,
    helper_names: FrozenSet[str] = frozenset(),
    block_names: FrozenSet[str] = frozenset(BLOCK_HELPERS),
) -> CompiledTemplate:
    """Translate a Handlebars template to a Jinja2 program.

    Raises:
        ProcessorError: On unbalanced or unsupported block structure
        ExpressionSyntaxError: On an unparseable mustache
    """
    return _Translator(template, helper_names, block_names).translate()


_ENVIRONMENT: Optional[SandboxedEnvironment] = None


def _environment() -> SandboxedEnvironment:
    global _ENVIRONMENT
    if _ENVIRONMENT is None:
        _ENVIRONMENT = SandboxedEnvironment(autoescape=False, keep_trailing_newline=True)
    return _ENVIRONMENT


@lru_cache(maxsize=128)
def _jinja_template(source: str) -> Any:
    return _environment().from_string(source)


# ----------------------------------------------------------------------
# Dialect
# ----------------------------------------------------------------------


class HandlebarsDialect(TemplateDialect):
    """Render Handlebars templates with the run's helpers."""

    name = "handlebars"

    def __init__(self, block_helpers: Optional[Dict[str, BlockHelper]] = None) -> None:
        self.block_helpers = dict(BLOCK_HELPERS)
        if block_helpers:
            self.block_helpers.update(block_helpers)

    def detect(self, content: str) -> bool:
        return "{{" in content

    def render(self, content: str, metadata: Dict[str, Any], context: RenderContext) -> str:
        """Render ``content`` against ``metadata``.

        Raises:
            ProcessorError: On malformed block structure
            ExpressionSyntaxError: On an unparseable mustache
        """
        compiled = compile_template(
            content,
            frozenset(context.helpers.names()),
            frozenset(self.block_helpers),
        )
        evaluator = ScopeEvaluator(context.helpers, today=context.today)
        tracker = context.tracker

        def value_of(scope: Scope, node: Node) -> Any:
            return evaluator.evaluate(node, scope)

        def out(scope: Scope, node: Node, escape: bool) -> str:
            value = value_of(scope, node)
            if isinstance(node, Path):
                tracker.track_field(node.path, value, mixin_used="variable")
            elif isinstance(node, Call):
                tracker.track_field(node.name, value, has_logic=True, mixin_used="helper")
            text = format_value(value)
            return protect_braces(escape_html(text) if escape else text)

        def truthy(scope: Scope, node: Node) -> bool:
            return is_truthy(value_of(scope, node))

        def each(scope: Scope, node: Node) -> List[Scope]:
            value = value_of(scope, node)
            if isinstance(value, Mapping):
                total = len(value)
                return [Scope(v, scope, index=i, key=k, total=total) for i, (k, v) in enumerate(value.items())]
            if isinstance(value, (list, tuple)):
                total = len(value)
                return [Scope(v, scope, index=i, total=total) for i, v in enumerate(value)]
            return []

        def with_(scope: Scope, node: Node) -> List[Scope]:
            value = value_of(scope, node)
            return [Scope(value, scope)] if is_truthy(value) else []

        def section(scope: Scope, node: Node) -> List[Scope]:
            value = value_of(scope, node)
            if isinstance(value, (list, tuple)):
                return each(scope, node)
            if isinstance(value, Mapping) and value:
                return [Scope(value, scope)]
            return [scope] if is_truthy(value) else []

        def block(scope: Scope, node: Node, body: Any) -> str:
            name = node.name if isinstance(node, Call) else getattr(node, "path", "")
            helper = self.block_helpers[name]
            args = [value_of(scope, a) for a in node.args] if isinstance(node, Call) else []
            kwargs = {k: value_of(scope, v) for k, v in node.hash_args} if isinstance(node, Call) else {}
            return helper(str(body), *args, **kwargs)

        try:
            template = _jinja_template(compiled.source)
        except TemplateSyntaxError as e:
            raise ProcessorError(f"Invalid block structure: {e.message}", processor="handlebars") from e

        return template.render(
            lm_scope=Scope(metadata),
            lm_text=compiled.texts,
            lm_nodes=compiled.nodes,
            lm_out=out,
            lm_truthy=truthy,
            lm_each=each,
            lm_with=with_,
            lm_section=section,
            lm_block=block,
        )


def render_handlebars(template: str, data: Dict[str, Any], context: RenderContext) -> str:
    """Convenience wrapper around :class:`HandlebarsDialect`."""
    return restore_braces(HandlebarsDialect().render(template, data, context))


__all__ = [
    "HandlebarsDialect",
    "Scope",
    "ScopeEvaluator",
    "CompiledTemplate",
    "BLOCK_HELPERS",
    "compile_template",
    "lookup",
    "render_handlebars",
    "track_field_block",
]
