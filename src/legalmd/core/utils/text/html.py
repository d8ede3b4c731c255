"""HTML escaping for field-tracking spans and Handlebars output."""
from __future__ import annotations

_ATTRIBUTE_ESCAPES = {
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#39;",
    "<": "&lt;",
    ">": "&gt;",
}

# Same character set Handlebars escapes in {{double-stash}} output.
_CONTENT_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "`": "&#x60;",
    "=": "&#x3D;",
}


def escape_html_attribute(value: object) -> str:
    """Escape a value for use inside a double-quoted HTML attribute."""
    return "".join(_ATTRIBUTE_ESCAPES.get(ch, ch) for ch in str(value))


def escape_html(value: object) -> str:
    return "".join(_CONTENT_ESCAPES.get(ch, ch) for ch in str(value))


__all__ = ["escape_html_attribute", "escape_html"]
