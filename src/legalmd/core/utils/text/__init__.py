"""Text utilities: front matter, HTML escaping and template rendering."""
from .frontmatter import FRONTMATTER_PATTERN, ParsedDocument, parse_frontmatter
from .html import escape_html, escape_html_attribute
from .templates import render_template_text

__all__ = [
    "FRONTMATTER_PATTERN",
    "ParsedDocument",
    "parse_frontmatter",
    "escape_html",
    "escape_html_attribute",
    "render_template_text",
]
