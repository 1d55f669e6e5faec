"""
Error Handling Module for the Schema Converter
Defines the conversion error taxonomy and warning records
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime


class ErrorSeverity(str, Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification"""
    EXTRACTION = "extraction"
    VALIDATION = "validation"
    UNSUPPORTED = "unsupported"
    TYPE_MAPPING = "type_mapping"
    GENERATION = "generation"
    LLM = "llm"
    CONFIGURATION = "configuration"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Additional context for errors"""
    correlation_id: Optional[str] = None
    request_id: Optional[str] = None
    stage: Optional[str] = None
    source_kind: Optional[str] = None
    target: Optional[str] = None
    table: Optional[str] = None
    column: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "request_id": self.request_id,
            "stage": self.stage,
            "source_kind": self.source_kind,
            "target": self.target,
            "table": self.table,
            "column": self.column,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class SchemaConverterError(Exception):
    """Base exception for the schema converter"""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[ErrorContext] = None,
        recoverable: bool = True,
        suggestions: Optional[List[str]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


class ExtractionError(SchemaConverterError):
    """Raw input could not be turned into a canonical schema"""

    def __init__(
        self,
        message: str,
        source_kind: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None,
        category: ErrorCategory = ErrorCategory.EXTRACTION,
    ):
        context = context or ErrorContext()
        if source_kind and not context.source_kind:
            context.source_kind = source_kind

        suggestions = ["Check that the input matches the declared source kind"]
        if category == ErrorCategory.TIMEOUT:
            suggestions.append("The extraction service timed out; resubmit the request")

        super().__init__(
            message=message,
            category=category,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=False,
            suggestions=suggestions,
            original_error=original_error
        )
        self.source_kind = source_kind


class ValidationError(SchemaConverterError):
    """Canonical schema is malformed or incomplete"""

    def __init__(
        self,
        message: str,
        failed_rules: Optional[List[str]] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Review the canonical schema structure"]
        if failed_rules:
            suggestions.extend([f"Fix validation: {rule}" for rule in failed_rules])

        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=False,
            suggestions=suggestions,
            original_error=original_error
        )
        self.failed_rules = failed_rules or []


class UnsupportedConstructError(SchemaConverterError):
    """A construct has no faithful representation in the target"""

    def __init__(
        self,
        message: str,
        construct: Optional[str] = None,
        fallback: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ):
        suggestions = []
        if fallback:
            suggestions.append(f"Rendered with fallback: {fallback}")

        super().__init__(
            message=message,
            category=ErrorCategory.UNSUPPORTED,
            severity=ErrorSeverity.LOW,
            context=context,
            recoverable=True,
            suggestions=suggestions,
        )
        self.construct = construct
        self.fallback = fallback


class ConfigurationError(SchemaConverterError):
    """Configuration errors"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Review configuration settings"]
        if config_key:
            suggestions.append(f"Check configuration for key: {config_key}")

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=False,
            suggestions=suggestions,
            original_error=original_error
        )
        self.config_key = config_key


class LLMError(SchemaConverterError):
    """LLM-related errors"""

    def __init__(
        self,
        message: str,
        model_id: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.LLM,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=True,
            suggestions=[
                "Check AWS credentials and permissions",
                "Verify Bedrock model availability",
                "Check for rate limiting",
            ],
            original_error=original_error
        )
        self.model_id = model_id


class WarningCode(str, Enum):
    """Codes for non-fatal conversion findings"""
    TYPE_MAPPING_FALLBACK = "type_mapping_fallback"
    UNSUPPORTED_CONSTRUCT = "unsupported_construct"
    VALIDATION = "validation"
    OPAQUE_STRUCTURE = "opaque_structure"
    DUPLICATE_EMBEDDING = "duplicate_embedding"
    IDENTIFIER_RENAMED = "identifier_renamed"
    EXTRACTION = "extraction"


@dataclass
class ConversionWarning:
    """A non-fatal finding attached to an otherwise successful result"""
    code: WarningCode
    message: str
    location: Optional[str] = None

    @classmethod
    def from_error(cls, error: SchemaConverterError, location: Optional[str] = None) -> "ConversionWarning":
        code = WarningCode.UNSUPPORTED_CONSTRUCT
        if error.category == ErrorCategory.TYPE_MAPPING:
            code = WarningCode.TYPE_MAPPING_FALLBACK
        return cls(code=code, message=error.message, location=location)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "location": self.location,
        }

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


def format_error_report(error: SchemaConverterError) -> str:
    """Format an error for display to the caller"""
    lines = [
        f"Error Type: {error.__class__.__name__}",
        f"Category: {error.category.value}",
        f"Message: {error.message}",
    ]

    if error.suggestions:
        lines.append("Suggestions:")
        for suggestion in error.suggestions:
            lines.append(f"  - {suggestion}")

    if error.context.table:
        location = error.context.table
        if error.context.column:
            location += f".{error.context.column}"
        lines.append(f"Location: {location}")

    if error.original_error:
        lines.append(f"Original Error: {str(error.original_error)}")

    return "\n".join(lines)
