"""
Utilities Package for the Schema Converter
"""
from .logging import (
    setup_logging,
    get_logger,
    set_correlation_id,
    get_correlation_id,
    set_request_id,
    get_request_id,
    clear_context,
    log_context,
    log_operation,
)

from .errors import (
    ErrorSeverity,
    ErrorCategory,
    ErrorContext,
    SchemaConverterError,
    ExtractionError,
    ValidationError,
    UnsupportedConstructError,
    ConfigurationError,
    LLMError,
    WarningCode,
    ConversionWarning,
    format_error_report,
)

from .metrics import (
    MetricsCollector,
    get_metrics_collector,
    counter,
    gauge,
    timer,
    ConverterMetrics,
)

from .naming import (
    IdentifierAllocator,
    pluralize,
    sanitize_identifier,
    singularize,
    to_camel_case,
    to_snake_case,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "set_request_id",
    "get_request_id",
    "clear_context",
    "log_context",
    "log_operation",
    # Errors
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorContext",
    "SchemaConverterError",
    "ExtractionError",
    "ValidationError",
    "UnsupportedConstructError",
    "ConfigurationError",
    "LLMError",
    "WarningCode",
    "ConversionWarning",
    "format_error_report",
    # Metrics
    "MetricsCollector",
    "get_metrics_collector",
    "counter",
    "gauge",
    "timer",
    "ConverterMetrics",
    # Naming
    "IdentifierAllocator",
    "pluralize",
    "sanitize_identifier",
    "singularize",
    "to_camel_case",
    "to_snake_case",
]
