"""Cross references: ``|key|`` resolved to header numbers or metadata values."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from legalmd.core.expressions import format_value, resolve_path
from legalmd.core.helpers.numbers import CURRENCY_SYMBOLS, format_number

from .base import BaseProcessor, ProcessingOptions
from .headers import HeaderCounters, format_header_number, get_level_format, iter_headers
from .markers import finish_step, protect_braces

logger = logging.getLogger(__name__)

CROSS_REFERENCES_KEY = "_cross_references"

REFERENCE_PATTERN = re.compile(r"\|([\w.\-\[\]]+)\|")


@dataclass
class CrossReference:
    key: str
    section_number: str
    section_text: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "section_number": self.section_number, "section_text": self.section_text}


def extract_cross_references(content: str, metadata: Mapping[str, Any]) -> List[CrossReference]:
    """Number every header and collect those that define a ``|key|``."""
    counters = HeaderCounters()
    references: List[CrossReference] = []
    for header in iter_headers(content):
        counters.increment(header.level)
        if not header.key:
            continue
        number = format_header_number(get_level_format(metadata, header.level), header.level, counters).strip()
        references.append(CrossReference(header.key, number, f"{number} {header.text}".strip()))
    return references


def format_amount(value: float, currency: str) -> str:
    """``1234.5`` in ``USD`` -> ``$1,234.50``."""
    code = (currency or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code, code + " ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{format_number(abs(value), 2)}"


def format_reference_value(value: Any, key: str, currency: str) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool) and "amount" in key:
        return format_amount(float(value), currency)
    return format_value(value)


class CrossReferenceProcessor(BaseProcessor):
    """Resolve ``|key|`` references in two passes.

    Pass 1 numbers the headers and stores the keyed ones in
    ``metadata["_cross_references"]``. Pass 2 replaces ``|key|`` on every
    line that does not define a key: header number first, then a metadata
    path, else the reference stays as written.
    """

    name = "references"
    description = "Resolve |key| cross references"

    def is_enabled(self, options: ProcessingOptions) -> bool:
        return not options.no_references

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
    ) -> str:
        options = options or ProcessingOptions()
        tracker = options.get_tracker()
        references = extract_cross_references(content, metadata)
        metadata[CROSS_REFERENCES_KEY] = [ref.to_dict() for ref in references]
        numbers = {ref.key: ref.section_number for ref in references}
        currency = str(metadata.get("payment_currency") or options.default_currency)
        definition_lines = {h.line_index for h in iter_headers(content) if h.key}

        def replace(match: re.Match[str]) -> str:
            key = match.group(1)
            field = f"crossref.{key}"
            if key in numbers:
                tracker.track_field(field, numbers[key], original_value=match.group(0), has_logic=True)
                return protect_braces(numbers[key])
            value = resolve_path(metadata, key)
            if value is not None:
                text = format_reference_value(value, key, currency)
                tracker.track_field(field, text, original_value=match.group(0))
                return protect_braces(text)
            tracker.track_field(field, "", original_value=match.group(0))
            logger.debug("Unresolved cross reference %s", match.group(0))
            return match.group(0)

        lines = content.split("\n")
        for index, line in enumerate(lines):
            if index in definition_lines or "|" not in line:
                continue
            lines[index] = REFERENCE_PATTERN.sub(replace, line)
        return finish_step("\n".join(lines), options)


def process_cross_references(
    content: str,
    metadata: Dict[str, Any],
    options: Optional[ProcessingOptions] = None,
) -> str:
    return CrossReferenceProcessor().process(content, metadata, options)


__all__ = [
    "CROSS_REFERENCES_KEY",
    "CrossReference",
    "CrossReferenceProcessor",
    "extract_cross_references",
    "format_amount",
    "format_reference_value",
    "process_cross_references",
]
