"""Header auto-numbering.

Header lines use either marker style:
- ``l. Title``, ``ll. Title``, ``lll. Title`` (level = number of ``l``)
- ``l1. Title`` ... ``l9. Title``

An optional trailing ``|key|`` defines a cross reference to the header.

Each level has a format string from metadata (``level-one`` ... ``level-nine``
or ``level-1`` ... ``level-9``) with placeholders:
- ``%n``: the level's own counter, ``%0Nn`` zero padded to N digits
- ``%a`` / ``%A``: alphabetic (``a``..``z``, then ``aa``, ``ab``, ...)
- ``%r`` / ``%R``: roman numerals
- ``%l1`` ... ``%l9``: the counter of any level (``%l1.%l2.%l3``)
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .base import BaseProcessor, ProcessingOptions

logger = logging.getLogger(__name__)

MAX_LEVEL = 9

HEADER_PATTERN = re.compile(
    r"^(?P<indent>[ \t]*)(?:(?P<ls>l{1,9})|l(?P<digit>[1-9]))\.[ \t]+(?P<text>.*?)"
    r"(?:[ \t]+\|(?P<key>[\w.-]+)\|)?[ \t]*$"
)
_PLACEHOLDER = re.compile(r"%l([1-9])|%0(\d+)n|%([naArR])")

LEVEL_WORDS = ("one", "two", "three", "four", "five", "six", "seven", "eight", "nine")

DEFAULT_LEVEL_FORMATS = {
    1: "Article %n.",
    2: "Section %n.",
    3: "%n.",
    4: "(%n)",
    5: "(%A)",
    6: "(%a)",
    7: "(%R)",
    8: "(%r)",
    9: "%n.",
}

_ROMAN = (
    (1000, "M"), (900, "CM"), (500, "D"), (400, "CD"),
    (100, "C"), (90, "XC"), (50, "L"), (40, "XL"),
    (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I"),
)


class HeaderCounters:
    """Per-level counters for levels 1..9.

    Incrementing level *k* resets every deeper level to zero (unless
    ``reset`` is disabled). Skipped intermediate levels start at 1.
    """

    def __init__(self, reset: bool = True) -> None:
        self.reset_deeper = reset
        self._counters = [0] * MAX_LEVEL
        self._previous = 0

    def increment(self, level: int) -> int:
        if not 1 <= level <= MAX_LEVEL:
            raise ValueError(f"Header level must be 1..{MAX_LEVEL}, got {level}")
        for i in range(self._previous, level - 1):
            if self._counters[i] == 0:
                self._counters[i] = 1
        self._counters[level - 1] += 1
        if self.reset_deeper:
            for i in range(level, MAX_LEVEL):
                self._counters[i] = 0
        self._previous = level
        return self._counters[level - 1]

    def value(self, level: int) -> int:
        return self._counters[level - 1]

    def snapshot(self) -> List[int]:
        return list(self._counters)

    def reset(self) -> None:
        self._counters = [0] * MAX_LEVEL
        self._previous = 0


def to_alpha(number: int, upper: bool = False) -> str:
    """Spreadsheet-style letters: 1 -> a, 26 -> z, 27 -> aa."""
    if number <= 0:
        return ""
    label = ""
    while number > 0:
        number, remainder = divmod(number - 1, 26)
        label = chr(97 + remainder) + label
    return label.upper() if upper else label


def to_roman(number: int, upper: bool = True) -> str:
    if number <= 0:
        return ""
    parts = []
    for value, numeral in _ROMAN:
        while number >= value:
            parts.append(numeral)
            number -= value
    roman = "".join(parts)
    return roman if upper else roman.lower()


def format_header_number(fmt: str, level: int, counters: HeaderCounters) -> str:
    """Substitute numbering placeholders in ``fmt`` for a header at ``level``."""
    own = counters.value(level)

    def substitute(match: re.Match[str]) -> str:
        ref_level, width, code = match.groups()
        if ref_level:
            return str(counters.value(int(ref_level)))
        if width:
            return str(own).zfill(int(width))
        if code == "n":
            return str(own)
        if code in ("a", "A"):
            return to_alpha(own, upper=code == "A")
        return to_roman(own, upper=code == "R")

    return _PLACEHOLDER.sub(substitute, fmt)


def get_level_format(metadata: Mapping[str, Any], level: int) -> str:
    """Format string for ``level``: ``level-one``, then ``level-1``, then default."""
    for key in (f"level-{LEVEL_WORDS[level - 1]}", f"level-{level}"):
        value = metadata.get(key)
        if isinstance(value, str) and value:
            return value
    return DEFAULT_LEVEL_FORMATS[level]


@dataclass
class HeaderMatch:
    line_index: int
    level: int
    text: str
    key: Optional[str] = None


def parse_header_line(line: str) -> Optional[HeaderMatch]:
    match = HEADER_PATTERN.match(line)
    if not match:
        return None
    level = len(match.group("ls")) if match.group("ls") else int(match.group("digit"))
    return HeaderMatch(-1, level, match.group("text"), match.group("key"))


def iter_headers(content: str) -> Iterator[HeaderMatch]:
    """Yield header lines of ``content`` in document order."""
    for index, line in enumerate(content.split("\n")):
        header = parse_header_line(line)
        if header is not None:
            header.line_index = index
            yield header


def _level_indent(metadata: Mapping[str, Any]) -> float:
    raw = metadata.get("level-indent")
    if raw in (None, ""):
        return 0.0
    try:
        return max(float(raw), 0.0)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid level-indent %r", raw)
        return 0.0


class HeaderProcessor(BaseProcessor):
    """Replace header markers with their formatted numbers.

    Metadata:
        level-one .. level-nine / level-1 .. level-9: per-level formats
        level-indent: indentation per level, in units of two spaces
        no-reset / no-indent: same as the ``no_reset`` / ``no_indent`` options
    """

    name = "headers"
    description = "Number l. / ll. / l1. header lines"

    def is_enabled(self, options: ProcessingOptions) -> bool:
        return not options.no_headers

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
    ) -> str:
        options = options or ProcessingOptions()
        no_reset = options.no_reset or bool(metadata.get("no-reset"))
        no_indent = options.no_indent or bool(metadata.get("no-indent"))
        counters = HeaderCounters(reset=not no_reset)
        indent_unit = 0.0 if no_indent else _level_indent(metadata)

        lines = content.split("\n")
        count = 0
        for header in iter_headers(content):
            counters.increment(header.level)
            number = format_header_number(get_level_format(metadata, header.level), header.level, counters)
            indent = " " * int((header.level - 1) * indent_unit * 2)
            lines[header.line_index] = f"{indent}{number} {header.text}".rstrip() if number else f"{indent}{header.text}"
            count += 1

        if count:
            logger.debug("Numbered %d header(s)", count)
        return "\n".join(lines)


def process_headers(content: str, metadata: Dict[str, Any], options: Optional[ProcessingOptions] = None) -> str:
    return HeaderProcessor().process(content, metadata, options)


__all__ = [
    "HeaderCounters",
    "HeaderMatch",
    "HeaderProcessor",
    "DEFAULT_LEVEL_FORMATS",
    "format_header_number",
    "get_level_format",
    "iter_headers",
    "parse_header_line",
    "process_headers",
    "to_alpha",
    "to_roman",
]
