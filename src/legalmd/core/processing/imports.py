"""Partial imports: ``@import path`` directives.

Each directive line is replaced by the imported file's body. Imports are
resolved relative to the importing file (``base_path`` for the top-level
document), recursively, with cycle detection and a maximum depth.

Front matter of imported files merges into the document metadata without
overriding keys the document already defines. Document-level settings
(header formats, export targets) are never taken from imports.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from legalmd.core.exceptions import ImportProcessingError, LegalFileNotFoundError
from legalmd.core.utils.merge import merge_missing
from legalmd.core.utils.text import parse_frontmatter

from .base import BaseProcessor, ProcessingOptions

logger = logging.getLogger(__name__)

IMPORT_PATTERN = re.compile(r"^[ \t]*@import[ \t]+(\S+)[ \t]*$", re.MULTILINE)

IMPORTED_FILES_KEY = "_imported_files"

# Document-level settings an imported file may not set.
RESERVED_FIELDS = frozenset(
    [f"level-{w}" for w in ("one", "two", "three", "four", "five", "six", "seven", "eight", "nine")]
    + [f"level-{n}" for n in range(1, 10)]
    + [
        "level-indent",
        "no-reset",
        "no-indent",
        "meta-yaml-output",
        "meta-json-output",
        "meta-output-path",
        "meta-include-original",
    ]
)


@dataclass
class ImportResult:
    content: str
    imported_files: List[str] = field(default_factory=list)
    merged_metadata: Dict[str, Any] = field(default_factory=dict)


class ImportResolver:
    """Resolve ``@import`` directives under ``base_path``.

    Args:
        base_path: Directory of the top-level document (defaults to cwd)
        max_depth: Maximum nesting of imports
    """

    def __init__(self, base_path: Optional[Path] = None, max_depth: int = 10) -> None:
        self.base_path = Path(base_path) if base_path else Path.cwd()
        self.max_depth = max_depth

    def resolve(self, content: str) -> ImportResult:
        result = ImportResult(content="")
        result.content = self._resolve(content, self.base_path, 0, frozenset(), result)
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve(
        self,
        content: str,
        base: Path,
        depth: int,
        seen: frozenset[Path],
        result: ImportResult,
    ) -> str:
        def replace(match: re.Match[str]) -> str:
            raw = match.group(1).strip().strip("\"'")
            try:
                return self._import_one(raw, base, depth, seen, result)
            except (ImportProcessingError, LegalFileNotFoundError, OSError) as e:
                logger.warning("Error importing %s: %s", raw, e)
                return f"<!-- Error importing {raw}: {e} -->"

        return IMPORT_PATTERN.sub(replace, content)

    def _import_one(
        self,
        raw: str,
        base: Path,
        depth: int,
        seen: frozenset[Path],
        result: ImportResult,
    ) -> str:
        path = Path(raw)
        full_path = (path if path.is_absolute() else base / path).resolve()
        if full_path in seen:
            raise ImportProcessingError("circular import", file_path=str(full_path))
        if depth >= self.max_depth:
            raise ImportProcessingError(
                f"maximum import depth {self.max_depth} exceeded", file_path=str(full_path)
            )
        if not full_path.is_file():
            raise LegalFileNotFoundError(str(full_path))

        text = full_path.read_text(encoding="utf-8")
        try:
            parsed = parse_frontmatter(text)
        except ValueError as e:
            raise ImportProcessingError(str(e), file_path=str(full_path)) from e

        for key, value in parsed.frontmatter.items():
            if key in RESERVED_FIELDS:
                logger.debug("Ignoring reserved field %r imported from %s", key, full_path)
                continue
            result.merged_metadata.setdefault(key, value)
        result.imported_files.append(str(full_path))
        logger.debug("Imported %s", full_path)

        body = parsed.content.strip("\n")
        return self._resolve(body, full_path.parent, depth + 1, seen | {full_path}, result)


def process_partial_imports(
    content: str,
    base_path: Optional[Path] = None,
    max_depth: int = 10,
) -> ImportResult:
    return ImportResolver(base_path, max_depth).resolve(content)


class ImportProcessor(BaseProcessor):
    """Inline ``@import`` files and merge their front matter."""

    name = "imports"
    description = "Resolve @import directives"

    def is_enabled(self, options: ProcessingOptions) -> bool:
        return not options.no_imports

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
    ) -> str:
        options = options or ProcessingOptions()
        if "@import" not in content:
            return content
        result = process_partial_imports(content, options.base_path, options.import_max_depth)

        if result.imported_files:
            metadata.setdefault(IMPORTED_FILES_KEY, []).extend(result.imported_files)
        added = merge_missing(metadata, result.merged_metadata)
        if added:
            logger.debug("Imports added metadata: %s", ", ".join(added))
        return result.content


__all__ = [
    "IMPORT_PATTERN",
    "IMPORTED_FILES_KEY",
    "RESERVED_FIELDS",
    "ImportProcessor",
    "ImportResolver",
    "ImportResult",
    "process_partial_imports",
]
