"""
Schemas Package for the Schema Converter
"""
from .models import (
    SCHEMA_VERSION,
    NOW_SENTINEL,
    NOW_SENTINEL_TOKEN,
    CanonicalType,
    TableKind,
    ReferentialAction,
    ConstraintType,
    RelationshipKind,
    SourceKind,
    Column,
    PrimaryKey,
    ForeignKey,
    Index,
    Constraint,
    Table,
    Endpoint,
    Relationship,
    SchemaMetadata,
    CanonicalSchema,
)

__all__ = [
    "SCHEMA_VERSION",
    "NOW_SENTINEL",
    "NOW_SENTINEL_TOKEN",
    "CanonicalType",
    "TableKind",
    "ReferentialAction",
    "ConstraintType",
    "RelationshipKind",
    "SourceKind",
    "Column",
    "PrimaryKey",
    "ForeignKey",
    "Index",
    "Constraint",
    "Table",
    "Endpoint",
    "Relationship",
    "SchemaMetadata",
    "CanonicalSchema",
]
