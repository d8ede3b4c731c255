"""Metadata export to YAML and JSON files.

Front matter keys control the export:

    meta-yaml-output: contract-data.yaml
    meta-json-output: contract-data.json
    meta-output-path: build/metadata
    meta-include-original: true   # also export internal ``_`` keys
"""
from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from legalmd.core.exceptions import MetadataExportError

from .base import BaseProcessor, ProcessingOptions
from .frontmatter import extract_metadata_output_config

logger = logging.getLogger(__name__)

EXPORTED_FILES_KEY = "_exported_files"

EXPORT_FORMATS = ("yaml", "json")


def filter_metadata_for_export(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``metadata`` without ``meta-*`` settings.

    Internal ``_``-prefixed keys are dropped unless ``meta-include-original``
    is set.
    """
    include_internal = bool(metadata.get("meta-include-original"))
    result = {}
    for key, value in metadata.items():
        if key.startswith("meta-"):
            continue
        if key.startswith("_") and not include_internal:
            continue
        result[key] = copy.deepcopy(value)
    return result


class MetadataExporter:
    """Write document metadata to disk.

    Args:
        base_dir: Directory used when neither ``meta-output-path`` nor an
            explicit path is given (defaults to cwd)
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()

    def export(
        self,
        metadata: Dict[str, Any],
        fmt: Optional[str] = None,
        path: Optional[Path] = None,
    ) -> List[str]:
        """Export ``metadata``.

        Args:
            metadata: Document metadata (including ``meta-*`` settings)
            fmt: ``yaml`` or ``json`` to export even without ``meta-*-output``
            path: File path (with extension) or directory for the export

        Returns:
            Paths of the files written

        Raises:
            MetadataExportError: On an unknown format or a write failure
        """
        if fmt is not None and fmt not in EXPORT_FORMATS:
            raise MetadataExportError(f"Unsupported export format: {fmt}")

        config = extract_metadata_output_config(metadata)
        output_dir = self._output_dir(config.get("output_path"), path)
        data = filter_metadata_for_export(metadata)

        targets: List[tuple[str, Path]] = []
        if config.get("yaml_output") or fmt == "yaml":
            if config.get("yaml_output"):
                targets.append(("yaml", output_dir / str(config["yaml_output"])))
            elif path is not None and Path(path).suffix:
                targets.append(("yaml", Path(path)))
            else:
                targets.append(("yaml", output_dir / "metadata.yaml"))
        if config.get("json_output") or fmt == "json":
            if config.get("json_output"):
                targets.append(("json", output_dir / str(config["json_output"])))
            elif path is not None and Path(path).suffix:
                targets.append(("json", Path(path)))
            else:
                targets.append(("json", output_dir / "metadata.json"))

        written = []
        for kind, target in targets:
            self._write(kind, target, data)
            written.append(str(target))
            logger.info("Exported %s metadata to %s", kind.upper(), target)
        return written

    def _output_dir(self, configured: Any, path: Optional[Path]) -> Path:
        if configured:
            directory = Path(str(configured))
            return directory if directory.is_absolute() else self.base_dir / directory
        if path is not None:
            path = Path(path)
            return path.parent if path.suffix else path
        return self.base_dir

    def _write(self, kind: str, target: Path, data: Dict[str, Any]) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if kind == "yaml":
                text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
            else:
                text = json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"
            target.write_text(text, encoding="utf-8")
        except (OSError, yaml.YAMLError, TypeError) as e:
            raise MetadataExportError(str(e), export_path=str(target)) from e


def export_metadata(
    metadata: Dict[str, Any],
    fmt: Optional[str] = None,
    path: Optional[Path] = None,
) -> List[str]:
    return MetadataExporter().export(metadata, fmt, path)


class MetadataExportProcessor(BaseProcessor):
    """Export metadata when requested by options or ``meta-*-output`` keys.

    Content passes through unchanged; written paths are appended to
    ``metadata["_exported_files"]``.
    """

    name = "metadata-export"
    description = "Export metadata to YAML/JSON"

    def __init__(self, exporter: Optional[MetadataExporter] = None) -> None:
        self.exporter = exporter

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
    ) -> str:
        options = options or ProcessingOptions()
        config = extract_metadata_output_config(metadata)
        if not (options.export_metadata or config.get("yaml_output") or config.get("json_output")):
            return content

        exporter = self.exporter or MetadataExporter(options.base_path)
        fmt = options.export_format or ("yaml" if options.export_metadata else None)
        written = exporter.export(metadata, fmt, options.output_path)
        if written:
            metadata.setdefault(EXPORTED_FILES_KEY, []).extend(written)
        return content


__all__ = [
    "EXPORTED_FILES_KEY",
    "MetadataExportProcessor",
    "MetadataExporter",
    "export_metadata",
    "filter_metadata_for_export",
]
