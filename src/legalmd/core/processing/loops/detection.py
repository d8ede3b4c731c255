"""Template syntax detection and legacy-to-Handlebars migration hints.

Two syntax families can appear in a document:

Legacy:
- ``{{formatDate(date, "long")}}``  helper call with parentheses
- ``{{price * quantity}}``          bare arithmetic
- ``{{"$" + price}}``               string concatenation

Handlebars:
- ``{{#each items}}`` / ``{{/each}}``, ``{{#if x}}`` / ``{{/if}}``,
  ``{{#unless x}}``, ``{{#with x}}``
- ``{{formatDate date "long"}}``    space separated helper call
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Collection, List, Optional

logger = logging.getLogger(__name__)

LEGACY = "legacy"
HANDLEBARS = "handlebars"
MIXED = "mixed"
NONE = "none"

_MUSTACHE = re.compile(r"\{\{(?!\{)([^}]*)\}\}")
_QUOTED = re.compile(r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'")
_LEGACY_CALL = re.compile(r"^\s*([A-Za-z_]\w*)\((.*)\)\s*$", re.DOTALL)
_HANDLEBARS_BLOCK = re.compile(r"^\s*(?:#\s*(?:each|if|unless|with)\b|/\s*(?:each|if|unless|with)\s*$)")
_SPACED_CALL = re.compile(r"^\s*([A-Za-z_]\w*)\s+[^\s=()]")
_ARITHMETIC = re.compile(r"[\w.\])\"']\s*([*+])\s*[\w.@(\"']")


@dataclass
class SyntaxOccurrence:
    line: int
    text: str
    kind: str


@dataclass
class SyntaxReport:
    """Result of :meth:`SyntaxDetector.detect`."""

    syntax: str
    legacy: List[SyntaxOccurrence] = field(default_factory=list)
    handlebars: List[SyntaxOccurrence] = field(default_factory=list)

    @property
    def is_mixed(self) -> bool:
        return self.syntax == MIXED


@dataclass
class MigrationSuggestion:
    line: int
    original: str
    suggested: str


def _strip_quotes(text: str) -> str:
    return _QUOTED.sub('""', text)


def _line_of(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


def classify_legacy(interior: str) -> Optional[str]:
    """Return the legacy marker kind of a mustache interior, if any."""
    text = interior.strip()
    if not text or text[0] in "#/!>&^":
        return None
    if _LEGACY_CALL.match(text):
        return "helper-call"
    unquoted = _strip_quotes(text)
    match = _ARITHMETIC.search(unquoted)
    if match:
        if match.group(1) == "+" and _QUOTED.search(text):
            return "concatenation"
        return "arithmetic"
    return None


class SyntaxDetector:
    """Classify content as legacy, Handlebars, mixed or plain.

    Args:
        helpers: Helper names that make ``{{name arg}}`` a Handlebars call
    """

    def __init__(self, helpers: Optional[Collection[str]] = None) -> None:
        self.helpers = set(helpers or ())

    def detect(self, content: str) -> SyntaxReport:
        legacy: List[SyntaxOccurrence] = []
        handlebars: List[SyntaxOccurrence] = []
        for match in _MUSTACHE.finditer(content):
            interior = match.group(1)
            line = _line_of(content, match.start())
            kind = classify_legacy(interior)
            if kind:
                legacy.append(SyntaxOccurrence(line, match.group(0), kind))
                continue
            if _HANDLEBARS_BLOCK.match(interior):
                handlebars.append(SyntaxOccurrence(line, match.group(0), "block"))
                continue
            call = _SPACED_CALL.match(interior)
            if call and call.group(1) in self.helpers:
                handlebars.append(SyntaxOccurrence(line, match.group(0), "helper-call"))

        if legacy and handlebars:
            syntax = MIXED
        elif handlebars:
            syntax = HANDLEBARS
        elif legacy:
            syntax = LEGACY
        else:
            syntax = NONE
        return SyntaxReport(syntax, legacy, handlebars)


def _split_args(args: str) -> List[str]:
    parts: List[str] = []
    current = ""
    depth = 0
    quote = ""
    for ch in args:
        if quote:
            current += ch
            if ch == quote:
                quote = ""
            continue
        if ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
            continue
        current += ch
    if current.strip():
        parts.append(current.strip())
    return parts


def suggest_handlebars(interior: str) -> Optional[str]:
    """Handlebars rewrite of a legacy mustache interior.

    Example:
        >>> suggest_handlebars('formatDate(@today, "long")')
        'formatDate @today "long"'
        >>> suggest_handlebars("price * quantity")
        'multiply price quantity'
    """
    text = interior.strip()
    call = _LEGACY_CALL.match(text)
    if call:
        args = []
        for arg in _split_args(call.group(2)):
            nested = suggest_handlebars(arg) if _LEGACY_CALL.match(arg) else None
            args.append(f"({nested})" if nested else arg)
        return " ".join([call.group(1), *args])
    kind = classify_legacy(text)
    if kind is None:
        return None
    operator = "*" if kind == "arithmetic" and "*" in _strip_quotes(text) else "+"
    left, _, right = _split_outside_quotes(text, operator)
    helper = {"*": "multiply", "+": "concat" if kind == "concatenation" else "add"}[operator]
    return f"{helper} {left.strip()} {right.strip()}"


def _split_outside_quotes(text: str, operator: str) -> tuple[str, str, str]:
    quote = ""
    for index, ch in enumerate(text):
        if quote:
            if ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif ch == operator:
            return text[:index], operator, text[index + 1:]
    return text, "", ""


def collect_migration_suggestions(content: str) -> List[MigrationSuggestion]:
    """One suggestion per legacy mustache, with its line number."""
    suggestions = []
    for match in _MUSTACHE.finditer(content):
        if classify_legacy(match.group(1)) is None:
            continue
        suggested = suggest_handlebars(match.group(1))
        if suggested:
            suggestions.append(MigrationSuggestion(
                _line_of(content, match.start()), match.group(0), "{{" + suggested + "}}",
            ))
    return suggestions


def format_migration_warning(suggestions: List[MigrationSuggestion]) -> str:
    lines = [f"Legacy template syntax detected ({len(suggestions)} occurrence(s)):"]
    for s in suggestions:
        lines.append(f"  line {s.line}: {s.original} -> {s.suggested}")
    return "\n".join(lines)


__all__ = [
    "LEGACY",
    "HANDLEBARS",
    "MIXED",
    "NONE",
    "SyntaxOccurrence",
    "SyntaxReport",
    "SyntaxDetector",
    "MigrationSuggestion",
    "classify_legacy",
    "suggest_handlebars",
    "collect_migration_suggestions",
    "format_migration_warning",
]
