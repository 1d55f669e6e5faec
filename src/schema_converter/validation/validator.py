"""
Schema Validator

Structural soundness checks over the canonical model. Errors abort the
conversion before generation; everything else is reported as a warning on
an otherwise successful result.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from ..schemas.models import (
    CanonicalSchema,
    CanonicalType,
    Column,
    RelationshipKind,
    Table,
    TableKind,
)
from ..utils.errors import ConversionWarning, ErrorContext, ValidationError, WarningCode
from ..utils.logging import get_logger

logger = get_logger(__name__)

ERROR = "error"
WARNING = "warning"


@dataclass
class ValidationIssue:
    """A single finding of the validator"""
    rule: str
    severity: str  # "error" or "warning"
    message: str
    location: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule,
            "severity": self.severity,
            "message": self.message,
            "location": self.location,
        }


@dataclass
class ValidationReport:
    """Result of validating a canonical schema"""
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == WARNING]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def to_warnings(self) -> List[ConversionWarning]:
        """Warnings in the form attached to a conversion result"""
        return [
            ConversionWarning(code=WarningCode.VALIDATION, message=i.message, location=i.location)
            for i in self.warnings
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
        }


class SchemaValidator:
    """
    Validates a CanonicalSchema

    Fatal rules:
        - table name empty or duplicated
        - column without a name or a canonical type
        - relationship endpoint naming an absent table
        - many_to_many whose junction table does not have exactly two foreign keys
    """

    def validate(self, schema: CanonicalSchema) -> ValidationReport:
        report = ValidationReport()
        seen: Set[str] = set()

        for position, table in enumerate(schema.tables):
            if not table.name or not table.name.strip():
                self._error(report, "table_name", f"Table #{position + 1} has an empty name")
                continue
            key = table.name.lower()
            if key in seen:
                self._error(report, "table_unique", f"Duplicate table name '{table.name}'", table.name)
            seen.add(key)
            self._validate_table(report, schema, table)

        self._validate_relationships(report, schema)

        logger.debug(
            "Validated schema",
            extra={"extra_fields": {
                "tables": len(schema.tables),
                "errors": len(report.errors),
                "warnings": len(report.warnings),
            }}
        )
        return report

    def validate_or_raise(self, schema: CanonicalSchema) -> ValidationReport:
        """Validate and raise ValidationError if any fatal rule fails"""
        report = self.validate(schema)
        if not report.is_valid:
            first = report.errors[0]
            message = first.message
            if len(report.errors) > 1:
                message += f" (and {len(report.errors) - 1} more errors)"
            raise ValidationError(
                message,
                failed_rules=[e.rule for e in report.errors],
                context=ErrorContext(stage="validate", table=first.location),
            )
        return report

    def _validate_table(self, report: ValidationReport, schema: CanonicalSchema, table: Table) -> None:
        if not table.columns and table.kind != TableKind.VIEW:
            self._warning(report, "table_empty", f"Table '{table.name}' has no columns", table.name)

        self._validate_columns(report, table.columns, table.name)

        if table.kind == TableKind.TABLE and not table.primary_key_columns and table.columns:
            self._warning(report, "primary_key_missing", f"Table '{table.name}' has no primary key", table.name)

        for column_name in table.primary_key_columns:
            if not table.has_column(column_name):
                self._warning(
                    report, "primary_key_columns",
                    f"Primary key column '{column_name}' does not exist in '{table.name}'",
                    table.name,
                )

        for fk in table.foreign_keys:
            location = f"{table.name}({', '.join(fk.columns)})"
            for column_name in fk.columns:
                if not table.has_column(column_name):
                    self._warning(
                        report, "foreign_key_columns",
                        f"Foreign key column '{column_name}' does not exist in '{table.name}'",
                        location,
                    )
            target = schema.get_table(fk.referenced_table)
            if target is None:
                self._warning(
                    report, "foreign_key_target",
                    f"Foreign key references unknown table '{fk.referenced_table}'",
                    location,
                )
                continue
            for column_name in fk.referenced_columns:
                if not target.has_column(column_name):
                    self._warning(
                        report, "foreign_key_referenced_columns",
                        f"Referenced column '{column_name}' does not exist in '{target.name}'",
                        location,
                    )
            if fk.referenced_columns and len(fk.referenced_columns) != len(fk.columns):
                self._warning(
                    report, "foreign_key_arity",
                    "Foreign key column count differs from referenced column count",
                    location,
                )

    def _validate_columns(self, report: ValidationReport, columns: List[Column], location: str) -> None:
        seen: Set[str] = set()
        for position, column in enumerate(columns):
            if not column.name or not column.name.strip():
                self._error(report, "column_name", f"Column #{position + 1} has no name", location)
                continue
            column_location = f"{location}.{column.name}"
            if not isinstance(column.type, CanonicalType):
                detail = f" ('{column.type}')" if column.type else ""
                self._error(
                    report, "column_type",
                    f"Column '{column.name}' has no canonical type{detail}",
                    column_location,
                )
            key = column.name.lower()
            if key in seen:
                self._warning(report, "column_unique", f"Duplicate column name '{column.name}'", column_location)
            seen.add(key)

            if column.type == CanonicalType.ENUM and not column.enum_values:
                self._warning(report, "enum_values", f"Enum column '{column.name}' has no values", column_location)
            if column.fields:
                self._validate_columns(report, column.fields, column_location)

    def _validate_relationships(self, report: ValidationReport, schema: CanonicalSchema) -> None:
        for rel in schema.relationships:
            for endpoint in (rel.from_, rel.to):
                if not schema.has_table(endpoint.table):
                    self._error(
                        report, "relationship_endpoint",
                        f"Relationship '{rel.id}' references unknown table '{endpoint.table}'",
                        rel.id,
                    )
            if rel.kind == RelationshipKind.MANY_TO_MANY:
                junction = schema.get_table(rel.junction_table) if rel.junction_table else None
                if junction is None:
                    self._error(
                        report, "junction_table",
                        f"Many-to-many relationship '{rel.id}' names no existing junction table",
                        rel.id,
                    )
                elif len(junction.foreign_keys) != 2:
                    self._error(
                        report, "junction_foreign_keys",
                        f"Junction table '{junction.name}' must have exactly two foreign keys, "
                        f"found {len(junction.foreign_keys)}",
                        rel.id,
                    )

    def _error(self, report: ValidationReport, rule: str, message: str, location: Optional[str] = None) -> None:
        report.issues.append(ValidationIssue(rule=rule, severity=ERROR, message=message, location=location))

    def _warning(self, report: ValidationReport, rule: str, message: str, location: Optional[str] = None) -> None:
        report.issues.append(ValidationIssue(rule=rule, severity=WARNING, message=message, location=location))


def validate_schema(schema: CanonicalSchema, raise_on_error: bool = True) -> ValidationReport:
    """Convenience wrapper around SchemaValidator"""
    validator = SchemaValidator()
    if raise_on_error:
        return validator.validate_or_raise(schema)
    return validator.validate(schema)
