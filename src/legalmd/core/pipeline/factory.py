"""Factories for the standard pipelines."""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from legalmd.core.exceptions import PipelineConfigurationError
from legalmd.core.processing import (
    BaseProcessor,
    ClauseProcessor,
    CrossReferenceProcessor,
    FieldTrackingProcessor,
    HeaderProcessor,
    ImportProcessor,
    LatexConversionProcessor,
    MetadataExportProcessor,
    MixinProcessor,
    RstConversionProcessor,
    TemplateLoopProcessor,
    YamlParsingProcessor,
)

from .logger import PipelineLogger
from .manager import PipelineManager
from .types import PipelineStep

PROCESSOR_FACTORIES: Dict[str, Callable[[], BaseProcessor]] = {
    "rst-conversion": RstConversionProcessor,
    "latex-conversion": LatexConversionProcessor,
    "yaml-parsing": YamlParsingProcessor,
    "imports": ImportProcessor,
    "clauses": ClauseProcessor,
    "references": CrossReferenceProcessor,
    "template-loops": TemplateLoopProcessor,
    "mixins": MixinProcessor,
    "headers": HeaderProcessor,
    "metadata-export": MetadataExportProcessor,
    "field-tracking": FieldTrackingProcessor,
}

# (name, dependencies, description) in processing order
DEFAULT_STEPS: List[Tuple[str, List[str], str]] = [
    ("rst-conversion", [], "Convert reStructuredText to Legal Markdown"),
    ("latex-conversion", [], "Convert LaTeX to Legal Markdown"),
    ("yaml-parsing", [], "Parse YAML front matter into metadata"),
    ("imports", ["yaml-parsing"], "Inline @import files"),
    ("clauses", ["yaml-parsing"], "Evaluate optional clauses"),
    ("references", ["yaml-parsing"], "Resolve |key| cross references"),
    ("template-loops", ["yaml-parsing"], "Expand template blocks and loops"),
    ("mixins", ["yaml-parsing"], "Substitute {{mixins}}"),
    ("headers", ["yaml-parsing"], "Number l. / ll. headers"),
    ("metadata-export", ["yaml-parsing"], "Export metadata to YAML/JSON"),
    ("field-tracking", [], "Highlight tracked fields"),
]

HTML_OPTION_OVERRIDES = {
    "enable_field_tracking": True,
    "enable_field_tracking_in_markdown": True,
}


def get_processor_by_name(name: str) -> Optional[BaseProcessor]:
    """New processor instance for a default step name, or None."""
    factory = PROCESSOR_FACTORIES.get(name)
    return factory() if factory else None


def create_default_pipeline(pipeline_logger: Optional[PipelineLogger] = None) -> PipelineManager:
    """Pipeline with the eleven standard steps."""
    manager = PipelineManager(pipeline_logger)
    for order, (name, dependencies, description) in enumerate(DEFAULT_STEPS, start=1):
        manager.register_step(
            PipelineStep(
                name=name,
                processor=PROCESSOR_FACTORIES[name](),
                order=order,
                dependencies=list(dependencies),
                description=description,
            )
        )
    return manager


def create_html_pipeline(pipeline_logger: Optional[PipelineLogger] = None) -> PipelineManager:
    """Default pipeline for HTML output.

    Field tracking is always on and processors emit highlight spans
    themselves, so the final tracking pass never runs.
    """
    manager = create_default_pipeline(pipeline_logger)
    manager.option_overrides.update(HTML_OPTION_OVERRIDES)
    return manager


def create_pdf_pipeline(pipeline_logger: Optional[PipelineLogger] = None) -> PipelineManager:
    """PDF output is rendered from the same content as HTML."""
    return create_html_pipeline(pipeline_logger)


def create_minimal_pipeline(pipeline_logger: Optional[PipelineLogger] = None) -> PipelineManager:
    """Front matter and mixins only."""
    manager = PipelineManager(pipeline_logger)
    manager.register_step(
        PipelineStep("yaml-parsing", YamlParsingProcessor(), order=1,
                     description="Parse YAML front matter into metadata")
    )
    manager.register_step(
        PipelineStep("mixins", MixinProcessor(), order=2, dependencies=["yaml-parsing"],
                     description="Substitute {{mixins}}")
    )
    return manager


def validate_pipeline_config(manager: PipelineManager) -> None:
    """Raise if ``manager`` has an invalid configuration.

    Raises:
        PipelineConfigurationError: Listing every configuration error
    """
    report = manager.validate_configuration()
    if not manager.list_steps():
        report.errors.insert(0, "Pipeline configuration must include at least one step")
    for step in manager.list_steps():
        if step.order < 0:
            report.errors.append(f"Step '{step.name}' has invalid order: {step.order}")
    if report.errors:
        raise PipelineConfigurationError(
            "; ".join(report.errors), context={"errors": report.errors}
        )


__all__ = [
    "PROCESSOR_FACTORIES",
    "DEFAULT_STEPS",
    "get_processor_by_name",
    "create_default_pipeline",
    "create_html_pipeline",
    "create_pdf_pipeline",
    "create_minimal_pipeline",
    "validate_pipeline_config",
]
