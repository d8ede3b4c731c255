"""YAML front matter step.

``@today`` and ``@today[format]`` inside the front matter are replaced with
the (quoted) current date before the YAML is loaded:

    ---
    effective_date: @today
    signed_on: @today[long]
    ---
"""
from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, Optional, Tuple

import yaml

from legalmd.core.exceptions import YamlParsingError
from legalmd.core.helpers.dates import format_date
from legalmd.core.utils.text import FRONTMATTER_PATTERN

from .base import BaseProcessor, ProcessingOptions

logger = logging.getLogger(__name__)

TODAY_PATTERN = re.compile(r"@today(?:\[([^\]]+)\])?")

OUTPUT_CONFIG_KEYS = {
    "yaml_output": "meta-yaml-output",
    "json_output": "meta-json-output",
    "output_path": "meta-output-path",
    "include_original": "meta-include-original",
}


def substitute_today(yaml_text: str, today: Optional[date] = None) -> str:
    """Replace ``@today[format]`` references with a quoted formatted date."""
    current = today or date.today()

    def replace(match: re.Match[str]) -> str:
        fmt = match.group(1) or "iso"
        try:
            formatted = format_date(current, fmt)
        except ValueError:
            formatted = current.isoformat()
        return '"' + formatted.replace('"', '\\"') + '"'

    return TODAY_PATTERN.sub(replace, yaml_text)


def parse_yaml_front_matter(
    content: str,
    throw_on_error: bool = False,
    today: Optional[date] = None,
) -> Tuple[str, Dict[str, Any]]:
    """Split ``content`` into its body and front matter metadata.

    Returns:
        ``(content, metadata)``. Content without front matter is returned
        unchanged with empty metadata. Invalid YAML still removes the front
        matter block and yields empty metadata.

    Raises:
        YamlParsingError: If the YAML is invalid and ``throw_on_error`` is set
    """
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return content, {}

    body = content[match.end():]
    raw = substitute_today(match.group(1), today)
    try:
        data = yaml.safe_load(raw) if raw.strip() else {}
    except yaml.YAMLError as e:
        if throw_on_error:
            raise YamlParsingError(f"Invalid YAML front matter: {e}") from e
        logger.warning("Invalid YAML front matter ignored: %s", e)
        return body, {}

    if not isinstance(data, dict):
        if throw_on_error and data is not None:
            raise YamlParsingError(f"Front matter must be a mapping, got {type(data).__name__}")
        return body, {}
    return body, data


def serialize_to_yaml(metadata: Dict[str, Any]) -> str:
    return yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True, default_flow_style=False)


def extract_metadata_output_config(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """``meta-*`` export settings found in ``metadata``."""
    return {name: metadata.get(key) for name, key in OUTPUT_CONFIG_KEYS.items()}


class YamlParsingProcessor(BaseProcessor):
    """Strip the front matter and merge it into the shared metadata."""

    name = "yaml-parsing"
    description = "Parse YAML front matter into metadata"

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
    ) -> str:
        options = options or ProcessingOptions()
        body, parsed = parse_yaml_front_matter(content, options.throw_on_yaml_error, options.today)
        metadata.update(parsed)
        if parsed:
            logger.debug("Front matter provided %d key(s)", len(parsed))
        return body


__all__ = [
    "YamlParsingProcessor",
    "extract_metadata_output_config",
    "parse_yaml_front_matter",
    "serialize_to_yaml",
    "substitute_today",
]
