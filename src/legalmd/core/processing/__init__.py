"""Document processors.

Each processor implements one pipeline step (see :mod:`.base` for the
processing order) and can also be used on its own:

    >>> from legalmd.core.processing import HeaderProcessor
    >>> HeaderProcessor().process("l. Scope", {})
    'Article 1. Scope'
"""
from __future__ import annotations

from .base import WARNINGS_KEY, BaseProcessor, ProcessingOptions, add_warning
from .clauses import ClauseProcessor, evaluate_clause_condition, process_optional_clauses
from .converters import (
    LatexConversionProcessor,
    RstConversionProcessor,
    convert_latex,
    convert_rst,
    needs_latex_parser,
    needs_rst_parser,
)
from .export import EXPORTED_FILES_KEY, MetadataExporter, MetadataExportProcessor, export_metadata
from .field_tracking import FieldTrackingProcessor
from .frontmatter import (
    YamlParsingProcessor,
    extract_metadata_output_config,
    parse_yaml_front_matter,
    serialize_to_yaml,
)
from .headers import (
    HeaderCounters,
    HeaderMatch,
    HeaderProcessor,
    format_header_number,
    get_level_format,
    iter_headers,
    process_headers,
)
from .imports import IMPORTED_FILES_KEY, ImportProcessor, ImportResult, process_partial_imports
from .loops import TemplateLoopProcessor, process_template_loops
from .mixins import (
    MixinNode,
    MixinProcessor,
    ParseCache,
    ParseResult,
    classify_mixin_type,
    configure_parse_cache,
    detect_bracket_values,
    get_parse_cache,
    parse_content_to_ast,
    process_mixins,
)
from .references import CROSS_REFERENCES_KEY, CrossReferenceProcessor, process_cross_references

__all__ = [
    "WARNINGS_KEY",
    "BaseProcessor",
    "ProcessingOptions",
    "add_warning",
    "ClauseProcessor",
    "evaluate_clause_condition",
    "process_optional_clauses",
    "LatexConversionProcessor",
    "RstConversionProcessor",
    "convert_latex",
    "convert_rst",
    "needs_latex_parser",
    "needs_rst_parser",
    "EXPORTED_FILES_KEY",
    "MetadataExporter",
    "MetadataExportProcessor",
    "export_metadata",
    "FieldTrackingProcessor",
    "YamlParsingProcessor",
    "extract_metadata_output_config",
    "parse_yaml_front_matter",
    "serialize_to_yaml",
    "HeaderCounters",
    "HeaderMatch",
    "HeaderProcessor",
    "format_header_number",
    "get_level_format",
    "iter_headers",
    "process_headers",
    "IMPORTED_FILES_KEY",
    "ImportProcessor",
    "ImportResult",
    "process_partial_imports",
    "TemplateLoopProcessor",
    "process_template_loops",
    "MixinNode",
    "MixinProcessor",
    "ParseCache",
    "ParseResult",
    "classify_mixin_type",
    "configure_parse_cache",
    "detect_bracket_values",
    "get_parse_cache",
    "parse_content_to_ast",
    "process_mixins",
    "CROSS_REFERENCES_KEY",
    "CrossReferenceProcessor",
    "process_cross_references",
]
