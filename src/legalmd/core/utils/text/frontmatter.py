"""YAML front matter parsing utilities.

Legal Markdown documents carry their metadata in a YAML block delimited by
'---' markers at the very start of the file.

Example:
    ```yaml
    ---
    title: Services Agreement
    client:
      name: Acme Corp
    level-one: "Article %n."
    ---

    l. Definitions
    ```
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

import yaml


# Matches content between the first pair of '---' markers at the start of a file
FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\n(.*?)\n?---[ \t]*(?:\n|\Z)",
    re.DOTALL,
)


@dataclass
class ParsedDocument:
    """Result of parsing a document with YAML front matter.

    Attributes:
        frontmatter: Parsed YAML front matter as a dictionary
        content: The markdown content after the front matter
        raw_frontmatter: The raw YAML string (for debugging)
    """
    frontmatter: Dict[str, Any]
    content: str
    raw_frontmatter: str


def parse_frontmatter(content: str) -> ParsedDocument:
    """Parse YAML front matter from markdown content.

    Args:
        content: Full markdown content including front matter

    Returns:
        ParsedDocument with front matter dict, content, and raw YAML.
        Documents without front matter return an empty dict and the
        full content.

    Raises:
        ValueError: If the YAML is invalid or is not a mapping

    Example:
        >>> doc = parse_frontmatter('---\\nclient: Acme\\n---\\nBody')
        >>> doc.frontmatter['client']
        'Acme'
    """
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return ParsedDocument(frontmatter={}, content=content, raw_frontmatter="")

    raw_yaml = match.group(1)
    remaining_content = content[match.end():]

    try:
        data = yaml.safe_load(raw_yaml) if raw_yaml.strip() else {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML front matter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Front matter must be a mapping, got {type(data).__name__}")

    return ParsedDocument(frontmatter=data, content=remaining_content, raw_frontmatter=raw_yaml)


__all__ = ["FRONTMATTER_PATTERN", "ParsedDocument", "parse_frontmatter"]
