"""Field usage tracking for highlighting and completeness reports.

A :class:`FieldTracker` is created per pipeline run and handed to every
processor through ``ProcessingOptions.field_tracker``. Each resolved mixin,
loop variable or cross reference is recorded with a status:

- ``filled``: a plain value was substituted
- ``empty``: the value was missing, ``None`` or ``""``
- ``logic``: the value came from a helper, conditional, loop or cross reference
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from legalmd.core.expressions import format_value

logger = logging.getLogger(__name__)

LOGIC_MIXINS = frozenset({"conditional", "helper", "loop"})

_TAG_SPLIT = re.compile(r"(<[^>]*>)")


class FieldStatus(str, Enum):
    FILLED = "filled"
    EMPTY = "empty"
    LOGIC = "logic"


STATUS_CSS_CLASSES = {
    FieldStatus.FILLED: "legal-field imported-value",
    FieldStatus.EMPTY: "legal-field missing-value",
    FieldStatus.LOGIC: "legal-field highlight",
}


@dataclass
class TrackedField:
    """Latest tracking record for one field name."""

    name: str
    status: FieldStatus
    value: Any = None
    original_value: Any = None
    has_logic: bool = False
    mixin_used: Optional[str] = None
    occurrences: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "value": self.value,
            "original_value": self.original_value,
            "has_logic": self.has_logic,
            "mixin_used": self.mixin_used,
            "occurrences": self.occurrences,
        }


def _has_value(value: Any) -> bool:
    return value is not None and value != ""


class FieldTracker:
    """Per-run registry of tracked fields."""

    def __init__(self) -> None:
        self._fields: Dict[str, TrackedField] = {}
        self._total_occurrences = 0

    def track_field(
        self,
        name: str,
        value: Any = None,
        *,
        original_value: Any = None,
        has_logic: bool = False,
        mixin_used: Optional[str] = None,
    ) -> TrackedField:
        """Record one resolution of ``name``; the latest record wins.

        Returns:
            The stored :class:`TrackedField`
        """
        if has_logic or mixin_used in LOGIC_MIXINS:
            status = FieldStatus.LOGIC
        elif not _has_value(value):
            status = FieldStatus.EMPTY
        else:
            status = FieldStatus.FILLED

        previous = self._fields.get(name)
        record = TrackedField(
            name=name,
            status=status,
            value=value,
            original_value=original_value,
            has_logic=has_logic,
            mixin_used=mixin_used,
            occurrences=(previous.occurrences + 1) if previous else 1,
        )
        self._fields[name] = record
        self._total_occurrences += 1
        logger.debug("Field tracked: %s (%s)", name, status.value)
        return record

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_field(self, name: str) -> Optional[TrackedField]:
        return self._fields.get(name)

    def get_fields(self) -> Dict[str, TrackedField]:
        return dict(self._fields)

    def get_fields_by_status(self, status: FieldStatus) -> List[TrackedField]:
        return [f for f in self._fields.values() if f.status == status]

    @property
    def total_occurrences(self) -> int:
        return self._total_occurrences

    def __len__(self) -> int:
        return len(self._fields)

    def generate_report(self) -> Dict[str, Any]:
        """Counts by status plus the field records."""
        fields = list(self._fields.values())
        return {
            "total": len(fields),
            "filled": sum(1 for f in fields if f.status is FieldStatus.FILLED),
            "empty": sum(1 for f in fields if f.status is FieldStatus.EMPTY),
            "logic": sum(1 for f in fields if f.status is FieldStatus.LOGIC),
            "fields": [f.to_dict() for f in fields],
        }

    def copy(self) -> "FieldTracker":
        clone = FieldTracker()
        clone._fields = {name: replace(record) for name, record in self._fields.items()}
        clone._total_occurrences = self._total_occurrences
        return clone

    def restore(self, other: "FieldTracker") -> None:
        """Take over the records of ``other``, a copy this tracker handed out."""
        self._fields = dict(other._fields)
        self._total_occurrences = other._total_occurrences

    def clear(self) -> None:
        self._fields.clear()
        self._total_occurrences = 0

    # ------------------------------------------------------------------
    # Decoration
    # ------------------------------------------------------------------

    def apply_field_tracking(self, content: str) -> str:
        """Wrap tracked fields in ``legal-field`` spans.

        - Remaining ``{{field}}`` occurrences are wrapped (with the value when
          one is known, else the original pattern), except inside an open span.
        - Logic and ``crossref.*`` values are highlighted where they appear in
          text (never inside tags or already highlighted spans).
        """
        result = content
        for name, record in self._fields.items():
            css = STATUS_CSS_CLASSES[record.status]
            attr = name.replace('"', "&quot;")
            escaped_name = re.escape(name).replace("_", r"\\?_")
            pattern = re.compile(r"\{\{\s*" + escaped_name + r"\s*\}\}")

            def wrap(match: re.Match[str], _css: str = css, _attr: str = attr,
                     _record: TrackedField = record) -> str:
                before = match.string[: match.start()]
                if before.rfind("<span") > before.rfind("</span>"):
                    return match.group(0)
                text = format_value(_record.value) if _has_value(_record.value) else match.group(0)
                return f'<span class="{_css}" data-field="{_attr}">{text}</span>'

            result = pattern.sub(wrap, result)

            # Only text values are highlighted in place.
            if isinstance(record.value, str) and record.value and (
                record.status is FieldStatus.LOGIC or name.startswith("crossref.")
            ):
                result = self._highlight_value(result, record.value, css, attr)
        return result

    def _highlight_value(self, content: str, value: str, css: str, attr: str) -> str:
        parts = _TAG_SPLIT.split(content)
        for i in range(0, len(parts), 2):
            text = parts[i]
            if not text or value not in text:
                continue
            prev_tag = parts[i - 1] if i > 0 else ""
            next_tag = parts[i + 1] if i + 1 < len(parts) else ""
            inside_span = any(
                marker in prev_tag
                for marker in ('class="highlight"', "imported-value", "missing-value", "legal-field")
            )
            if inside_span and next_tag == "</span>":
                continue
            parts[i] = text.replace(value, f'<span class="{css}" data-field="{attr}">{value}</span>')
        return "".join(parts)


__all__ = ["FieldTracker", "FieldStatus", "TrackedField", "STATUS_CSS_CLASSES", "LOGIC_MIXINS"]
