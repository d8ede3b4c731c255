"""reStructuredText and LaTeX to Legal Markdown conversion.

Both converters are line-oriented and cover the constructs that appear in
contracts and policies: headings (as ``l.`` headers), emphasis, literals,
links, lists and code blocks. Anything else passes through unchanged.
Content that starts with YAML front matter is never converted.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from .base import BaseProcessor, ProcessingOptions

logger = logging.getLogger(__name__)

_RST_UNDERLINE = re.compile(r"^([=~^\"'`#*+<>-])\1{3,}[ \t]*$")
_RST_STRONG = (
    re.compile(r"^\.\.[ \t]+\w+::", re.MULTILINE),
    re.compile(r"`[^<`]+[ \t]*<[^>]+>`_"),
    re.compile(r"::[ \t]*$", re.MULTILINE),
)
_RST_WEAK = (
    re.compile(r"^[=~^\"'`#*+<>-]{4,}[ \t]*$", re.MULTILINE),
    re.compile(r"`[^`]+`__?"),
    re.compile(r"^\*[ \t]+\S", re.MULTILINE),
    re.compile(r"^\d+\.[ \t]+\S", re.MULTILINE),
)
_RST_HEADING = re.compile(r"^.+\n[=~^\"'`#*+<>-]{4,}[ \t]*$", re.MULTILINE)
_RST_DIRECTIVE = re.compile(r"^\.\.[ \t]+([\w-]+)::[ \t]*(.*)$")
_RST_ADMONITIONS = ("note", "warning", "important", "tip", "caution")

_LATEX_STRONG = tuple(
    re.compile(p)
    for p in (
        r"\\documentclass\{", r"\\begin\{document\}", r"\\section\*?\{", r"\\subsection\*?\{",
        r"\\usepackage\{", r"\\textbf\{", r"\\textit\{", r"\\emph\{", r"\\item\b",
        r"\\cite\{", r"\\ref\{", r"\\label\{",
    )
)
_LATEX_WEAK = (
    re.compile(r"\\begin\{[^}]+\}"),
    re.compile(r"\\[a-zA-Z]+\{[^}]*\}"),
    re.compile(r"\\href\{[^}]*\}\{[^}]*\}"),
)
_LATEX_SECTIONS = {"section": 1, "subsection": 2, "subsubsection": 3, "paragraph": 4, "subparagraph": 5}
_LATEX_DROP = re.compile(
    r"^\s*\\(?:documentclass|usepackage|maketitle|tableofcontents|title|author|date)\b.*$"
    r"|^\s*\\(?:begin|end)\{document\}\s*$",
    re.MULTILINE,
)
_LATEX_INLINE = (
    (re.compile(r"\\textbf\{([^{}]*)\}"), r"**\1**"),
    (re.compile(r"\\(?:textit|emph)\{([^{}]*)\}"), r"*\1*"),
    (re.compile(r"\\texttt\{([^{}]*)\}"), r"`\1`"),
    (re.compile(r"\\underline\{([^{}]*)\}"), r"\1"),
    (re.compile(r"\\href\{([^{}]*)\}\{([^{}]*)\}"), r"[\2](\1)"),
    (re.compile(r"\\url\{([^{}]*)\}"), r"<\1>"),
    (re.compile(r"\\label\{[^{}]*\}"), ""),
    (re.compile(r"\\ref\{([^{}]*)\}"), r"|\1|"),
    (re.compile(r"\\cite\{([^{}]*)\}"), r"[\1]"),
    (re.compile(r"\\\((.+?)\\\)"), r"$\1$"),
)
_LATEX_ESCAPES = (("\\&", "&"), ("\\%", "%"), ("\\$", "$"), ("\\#", "#"), ("\\_", "_"), ("~", " "))


def needs_rst_parser(content: str) -> bool:
    """Heuristic RST detection (never for content with front matter)."""
    if content.startswith("---"):
        return False
    if any(p.search(content) for p in _RST_STRONG) or _RST_HEADING.search(content):
        return True
    return sum(1 for p in _RST_WEAK if p.search(content)) >= 2


def needs_latex_parser(content: str) -> bool:
    """Heuristic LaTeX detection (never for content with front matter)."""
    if content.startswith("---"):
        return False
    if any(p.search(content) for p in _LATEX_STRONG):
        return True
    return sum(1 for p in _LATEX_WEAK if p.search(content)) >= 2


# ----------------------------------------------------------------------
# reStructuredText
# ----------------------------------------------------------------------


def _rst_inline(text: str) -> str:
    text = re.sub(r"`([^`<]+?)\s*<([^>]+)>`__?", r"[\1](\2)", text)
    text = re.sub(r"``([^`]+)``", r"`\1`", text)
    text = re.sub(r":\w+:`([^`]+)`", r"\1", text)
    return text


def convert_rst(content: str) -> str:
    """Convert reStructuredText to Legal Markdown.

    Heading levels follow the order in which underline characters first
    appear, as in RST itself.
    """
    lines = content.split("\n")
    out: List[str] = []
    styles: List[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        nxt = lines[i + 1] if i + 1 < len(lines) else ""

        # Overlined heading: ===\nTitle\n===
        if _RST_UNDERLINE.match(line) and i + 2 < len(lines) and _RST_UNDERLINE.match(lines[i + 2]) and lines[i + 1].strip():
            style = "over" + line.strip()[0]
            if style not in styles:
                styles.append(style)
            out.append("l" * min(styles.index(style) + 1, 9) + ". " + _rst_inline(lines[i + 1].strip()))
            i += 3
            continue

        if line.strip() and _RST_UNDERLINE.match(nxt) and len(nxt.strip()) >= len(line.strip()):
            style = nxt.strip()[0]
            if style not in styles:
                styles.append(style)
            out.append("l" * min(styles.index(style) + 1, 9) + ". " + _rst_inline(line.strip()))
            i += 2
            continue

        directive = _RST_DIRECTIVE.match(line)
        if directive:
            name, arg = directive.group(1).lower(), directive.group(2).strip()
            body, i = _indented_block(lines, i + 1)
            if name in _RST_ADMONITIONS:
                text = " ".join(part.strip() for part in [arg, *body] if part.strip())
                out.append(f"> **{name.capitalize()}:** {_rst_inline(text)}")
            elif name in ("code", "code-block", "sourcecode"):
                out.extend([f"```{arg}", *body, "```"])
            else:
                logger.debug("Dropping unsupported RST directive %s", name)
            continue

        if line.rstrip().endswith("::") and not line.lstrip().startswith(".."):
            stripped = line.rstrip()[:-2].rstrip()
            if stripped:
                out.append(_rst_inline(stripped) + ":")
            body, i = _indented_block(lines, i + 1)
            if body:
                out.extend(["", "```", *body, "```"])
            continue

        if line.lstrip().startswith(".. "):
            i += 1
            continue

        bullet = re.match(r"^(\s*)[*+]\s+(.*)$", line)
        if bullet:
            out.append(f"{bullet.group(1)}- {_rst_inline(bullet.group(2))}")
        else:
            out.append(_rst_inline(line))
        i += 1
    return "\n".join(out)


def _indented_block(lines: List[str], start: int) -> tuple[List[str], int]:
    """Collect the indented block starting at ``start`` (dedented)."""
    i = start
    while i < len(lines) and not lines[i].strip():
        i += 1
    block: List[str] = []
    while i < len(lines) and (not lines[i].strip() or lines[i][:1] in (" ", "\t")):
        block.append(lines[i])
        i += 1
    while block and not block[-1].strip():
        block.pop()
    indents = [len(b) - len(b.lstrip()) for b in block if b.strip()]
    cut = min(indents) if indents else 0
    return [b[cut:] for b in block], i


# ----------------------------------------------------------------------
# LaTeX
# ----------------------------------------------------------------------


def _strip_comments(line: str) -> str:
    match = re.search(r"(?<!\\)%", line)
    return line[:match.start()].rstrip() if match else line


def convert_latex(content: str) -> str:
    """Convert a LaTeX document body to Legal Markdown."""
    text = _LATEX_DROP.sub("", content)
    out: List[str] = []
    lists: List[List[Any]] = []  # [kind, counter]
    for raw in text.split("\n"):
        if raw.lstrip().startswith("%"):
            continue
        line = _strip_comments(raw).strip()

        section = re.match(r"^\\(sub)*(section|paragraph)\*?\{(.*)\}\s*$", line)
        if section:
            command = line[1:line.index("{")].rstrip("*")
            level = _LATEX_SECTIONS.get(command, 1)
            out.append("l" * level + ". " + _latex_inline(section.group(3)))
            continue

        env = re.match(r"^\\(begin|end)\{(itemize|enumerate)\}\s*$", line)
        if env:
            if env.group(1) == "begin":
                lists.append([env.group(2), 0])
            elif lists:
                lists.pop()
            continue

        item = re.match(r"^\\item\s*(.*)$", line)
        if item and lists:
            current = lists[-1]
            current[1] += 1
            indent = "  " * (len(lists) - 1)
            marker = f"{current[1]}." if current[0] == "enumerate" else "-"
            out.append(f"{indent}{marker} {_latex_inline(item.group(1))}")
            continue

        out.append(_latex_inline(line))
    return re.sub(r"\n{3,}", "\n\n", "\n".join(out)).strip("\n") + "\n"


def _latex_inline(text: str) -> str:
    text = re.sub(r"\\\\\s*", "\n", text)
    for pattern, replacement in _LATEX_INLINE:
        text = pattern.sub(replacement, text)
    for escaped, plain in _LATEX_ESCAPES:
        text = text.replace(escaped, plain)
    return text


# ----------------------------------------------------------------------
# Processors
# ----------------------------------------------------------------------


class RstConversionProcessor(BaseProcessor):
    name = "rst-conversion"
    description = "Convert reStructuredText to Legal Markdown"

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
    ) -> str:
        if not needs_rst_parser(content):
            return content
        try:
            return convert_rst(content)
        except (ValueError, IndexError) as e:
            logger.debug("RST conversion failed: %s", e)
            return content


class LatexConversionProcessor(BaseProcessor):
    name = "latex-conversion"
    description = "Convert LaTeX to Legal Markdown"

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
    ) -> str:
        if not needs_latex_parser(content):
            return content
        try:
            return convert_latex(content)
        except (ValueError, IndexError) as e:
            logger.debug("LaTeX conversion failed: %s", e)
            return content


__all__ = [
    "LatexConversionProcessor",
    "RstConversionProcessor",
    "convert_latex",
    "convert_rst",
    "needs_latex_parser",
    "needs_rst_parser",
]
