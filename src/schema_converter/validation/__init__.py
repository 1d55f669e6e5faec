"""
Validation Package
Structural checks over the canonical schema
"""
from .validator import (
    SchemaValidator,
    ValidationIssue,
    ValidationReport,
    validate_schema,
)

__all__ = [
    "SchemaValidator",
    "ValidationIssue",
    "ValidationReport",
    "validate_schema",
]
