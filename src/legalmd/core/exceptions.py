from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class LegalMarkdownError(Exception):
    """Base exception for legalmd."""

    code: str = "LEGAL_MARKDOWN_ERROR"
    context: Dict[str, Any]

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        if context is not None:
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.code,
            "type": self.__class__.__name__,
            "context": self.context,
        }


class YamlParsingError(LegalMarkdownError, ValueError):
    """Raised when YAML front matter cannot be parsed."""

    code = "YAML_PARSING_ERROR"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LegalMarkdownError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class LegalFileNotFoundError(LegalMarkdownError, FileNotFoundError):
    """Raised when a referenced document or import cannot be found."""

    code = "FILE_NOT_FOUND"

    def __init__(self, file_path: str, *, context: Mapping[str, Any] | None = None) -> None:
        message = f"File not found: {file_path}"
        ctx = {"file_path": file_path, **dict(context or {})}
        LegalMarkdownError.__init__(self, message, context=ctx)
        FileNotFoundError.__init__(self, message)


class ImportProcessingError(LegalMarkdownError):
    """Raised when an ``@import`` directive cannot be resolved."""

    code = "IMPORT_PROCESSING_ERROR"

    def __init__(
        self,
        message: str,
        *,
        file_path: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if file_path:
            ctx["file_path"] = file_path
        super().__init__(message, context=ctx)


class MetadataExportError(LegalMarkdownError):
    """Raised when metadata cannot be written to disk."""

    code = "METADATA_EXPORT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        export_path: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if export_path:
            ctx["export_path"] = export_path
        super().__init__(message, context=ctx)


class ValidationError(LegalMarkdownError):
    """Raised when validation of a document or option set fails."""

    code = "VALIDATION_ERROR"


class ProcessorError(LegalMarkdownError, RuntimeError):
    """Raised by a processor that cannot complete its transformation."""

    code = "PROCESSING_ERROR"

    def __init__(
        self,
        message: str,
        *,
        processor: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if processor:
            ctx["processor"] = processor
        LegalMarkdownError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)


class ExpressionSyntaxError(LegalMarkdownError, ValueError):
    """Raised by the expression parser on malformed template expressions."""

    code = "EXPRESSION_SYNTAX_ERROR"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LegalMarkdownError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class HelperRegistrationError(LegalMarkdownError, ValueError):
    """Raised when a helper cannot be registered."""

    code = "HELPER_REGISTRATION_ERROR"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LegalMarkdownError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class PipelineConfigurationError(LegalMarkdownError, ValueError):
    """Raised when a pipeline is built with invalid steps or dependencies."""

    code = "PIPELINE_CONFIGURATION_ERROR"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LegalMarkdownError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class StepTimeoutError(LegalMarkdownError, TimeoutError):
    """Raised when a pipeline step exceeds its timeout."""

    code = "STEP_TIMEOUT"

    def __init__(self, step_name: str, timeout: float) -> None:
        message = f"Step '{step_name}' timed out after {timeout:g}s"
        LegalMarkdownError.__init__(
            self, message, context={"step_name": step_name, "timeout": timeout}
        )
        TimeoutError.__init__(self, message)


class ConfigError(LegalMarkdownError, ValueError):
    """Raised when configuration files or overrides are invalid."""

    code = "CONFIG_ERROR"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LegalMarkdownError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "LegalMarkdownError",
    "YamlParsingError",
    "LegalFileNotFoundError",
    "ImportProcessingError",
    "MetadataExportError",
    "ValidationError",
    "ProcessorError",
    "ExpressionSyntaxError",
    "HelperRegistrationError",
    "PipelineConfigurationError",
    "StepTimeoutError",
    "ConfigError",
]
