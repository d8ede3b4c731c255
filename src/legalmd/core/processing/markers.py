"""Private-use markers carried through a pipeline run.

Values substituted by one step have their ``{{``/``}}`` swapped for
private-use characters, so no later step scans them as template syntax.
With centralized field tracking the mixins step also wraps each resolved
value in a field marker that the final tracking pass turns into a span.

Both are removed when the run (or a standalone processor call) finishes.
"""
from __future__ import annotations

import re

from legalmd.core.tracking import STATUS_CSS_CLASSES, FieldStatus
from legalmd.core.utils.text import escape_html_attribute

from .base import ProcessingOptions

OPEN_BRACES = "\ue000"
CLOSE_BRACES = "\ue001"
FIELD_START = "\ue002"
FIELD_SEP = "\ue003"
FIELD_END = "\ue004"

FIELD_MARKER = re.compile(
    f"{FIELD_START}([^{FIELD_SEP}]*){FIELD_SEP}(filled|empty|logic){FIELD_SEP}(.*?){FIELD_END}",
    re.DOTALL,
)


def protect_braces(text: str) -> str:
    """Hide mixin braces in a substituted value from later scans."""
    return text.replace("{{", OPEN_BRACES).replace("}}", CLOSE_BRACES)


def restore_braces(text: str) -> str:
    return text.replace(OPEN_BRACES, "{{").replace(CLOSE_BRACES, "}}")


def mark_field(name: str, status: FieldStatus, text: str) -> str:
    return f"{FIELD_START}{name}{FIELD_SEP}{status.value}{FIELD_SEP}{text}{FIELD_END}"


def render_field_markers(content: str) -> str:
    """Turn field markers into ``legal-field`` spans."""

    def span(match: re.Match[str]) -> str:
        name, status, text = match.groups()
        css = STATUS_CSS_CLASSES[FieldStatus(status)]
        return f'<span class="{css}" data-field="{escape_html_attribute(name)}">{text}</span>'

    return FIELD_MARKER.sub(span, content)


def strip_field_markers(content: str) -> str:
    return FIELD_MARKER.sub(lambda match: match.group(3), content)


def finalize_content(content: str) -> str:
    """Drop leftover field markers and restore protected braces."""
    return restore_braces(strip_field_markers(content))


def finish_step(content: str, options: ProcessingOptions) -> str:
    """Finalize ``content`` unless the pipeline defers it to the end of the run."""
    if options.defer_finalize:
        return content
    return finalize_content(content)


__all__ = [
    "FIELD_MARKER",
    "protect_braces",
    "restore_braces",
    "mark_field",
    "render_field_markers",
    "strip_field_markers",
    "finalize_content",
    "finish_step",
]
