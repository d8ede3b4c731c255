"""Lightweight text template rendering.

Used for plain-text reports (pipeline metrics report) where a small Jinja2
template is easier to read than string concatenation.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict

from jinja2 import Environment, StrictUndefined, Template


@lru_cache(maxsize=1)
def _environment() -> Environment:
    # Report templates use control blocks on their own lines.
    # Without trimming, those tag-only lines become empty lines.
    return Environment(
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
        autoescape=False,
    )


@lru_cache(maxsize=32)
def _compile(text: str) -> Template:
    return _environment().from_string(text)


def render_template_text(text: str, context: Dict[str, Any]) -> str:
    """Render ``text`` as a Jinja2 template with ``context``.

    Raises:
        jinja2.TemplateError: On syntax errors or undefined variables
    """
    return _compile(text).render(**context)


__all__ = ["render_template_text"]
