"""Top-level processing API.

    >>> from legalmd.api import process_legal_markdown
    >>> result = process_legal_markdown("---\\nname: ACME\\n---\\nl. {{name}}")
    >>> result.content
    'Article 1. ACME'

Defaults come from the layered configuration (bundled YAML, user file,
``LEGALMD_*`` environment); keyword options override them per call.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from legalmd.core.config import LoggingConfig, PipelineSettings, ProcessingSettings, get_cached_config
from legalmd.core.pipeline import PipelineLogger, PipelineManager, PipelineResult, create_default_pipeline
from legalmd.core.processing import ProcessingOptions, configure_parse_cache
from legalmd.core.stdlib_logging import configure_stdlib_logging

logger = logging.getLogger(__name__)


def configure_logging(
    config: Optional[Dict[str, Any]] = None,
    log_path: Optional[Path] = None,
) -> None:
    """Install a handler on the ``legalmd`` logger at the configured ``logging.level``."""
    config = config if config is not None else get_cached_config()
    configure_stdlib_logging(LoggingConfig(config).level, log_path=log_path)


def build_options(config: Dict[str, Any], options: Dict[str, Any]) -> ProcessingOptions:
    """Merge configuration defaults with per-call ``options``.

    Raises:
        TypeError: On an option :class:`ProcessingOptions` does not define
    """
    unknown = sorted(set(options) - set(ProcessingOptions.__dataclass_fields__))
    if unknown:
        raise TypeError(f"Unknown processing option(s): {', '.join(unknown)}")

    pipeline_settings = PipelineSettings(config)
    processing_settings = ProcessingSettings(config)
    values: Dict[str, Any] = {
        "continue_on_error": pipeline_settings.continue_on_error,
        "step_timeouts": dict(pipeline_settings.step_timeouts),
        "import_max_depth": processing_settings.import_max_depth,
        "default_currency": processing_settings.default_currency,
    }

    # "distributed": processors emit spans; "centralized": one final pass.
    mode = pipeline_settings.field_tracking_mode
    if options.get("enable_field_tracking") and "enable_field_tracking_in_markdown" not in options:
        values["enable_field_tracking_in_markdown"] = mode == "distributed"
    elif mode == "disabled" and "enable_field_tracking" not in options:
        values["enable_field_tracking"] = False

    step_timeouts = options.pop("step_timeouts", None)
    values.update(options)
    if step_timeouts:
        values["step_timeouts"].update(step_timeouts)
    return ProcessingOptions.from_dict(values)


def process_legal_markdown(
    content: str,
    *,
    metadata: Optional[Dict[str, Any]] = None,
    config: Optional[Dict[str, Any]] = None,
    pipeline: Optional[PipelineManager] = None,
    **options: Any,
) -> PipelineResult:
    """Process a Legal Markdown document.

    Args:
        content: Document text (front matter included)
        metadata: Initial metadata; front matter overrides its keys
        config: Loaded configuration (defaults to the cached layered config)
        pipeline: Pipeline to run (defaults to the standard eleven steps)
        **options: :class:`ProcessingOptions` fields

    Returns:
        The pipeline result
    """
    config = config if config is not None else get_cached_config()
    processing_settings = ProcessingSettings(config)
    configure_parse_cache(
        processing_settings.parse_cache_max_entries, processing_settings.parse_cache_ttl
    )

    run_options = build_options(config, dict(options))
    if pipeline is None:
        pipeline_settings = PipelineSettings(config)
        pipeline = create_default_pipeline(
            PipelineLogger(pipeline_settings.log_level, pipeline_settings.enable_metrics)
        )
    logger.debug("Processing document (%d chars)", len(content))
    return pipeline.execute(content, dict(metadata or {}), run_options)


def process_legal_markdown_file(path: Union[str, Path], **kwargs: Any) -> PipelineResult:
    """Read ``path`` and process it, resolving imports next to the file."""
    path = Path(path)
    kwargs.setdefault("base_path", path.parent)
    return process_legal_markdown(path.read_text(encoding="utf-8"), **kwargs)


__all__ = ["build_options", "configure_logging", "process_legal_markdown", "process_legal_markdown_file"]
