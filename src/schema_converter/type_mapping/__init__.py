"""
Type Normalization Tables

Bidirectional maps between native relational types, document types and the
canonical type enumeration, plus default-value normalization.
"""
from .tables import (
    DIALECT_TRAITS,
    DIALECT_TYPES,
    DOCUMENT_NOW,
    DOCUMENT_TO_CANONICAL,
    DOCUMENT_TYPES,
    NATIVE_EXACT,
    NUMERIC_TYPES,
    STRING_TYPES,
    TEMPORAL_TYPES,
    DialectTraits,
)
from .mapper import (
    RenderedType,
    TypeMapping,
    dialect_traits,
    normalize_default,
    normalize_document_type,
    normalize_native_type,
    quote_literal,
    render_column_type,
    render_default,
    render_document_default,
    resolve_dialect,
    split_arguments,
    to_document_type,
    unquote_literal,
)

__all__ = [
    "DIALECT_TRAITS",
    "DIALECT_TYPES",
    "DOCUMENT_NOW",
    "DOCUMENT_TO_CANONICAL",
    "DOCUMENT_TYPES",
    "NATIVE_EXACT",
    "NUMERIC_TYPES",
    "STRING_TYPES",
    "TEMPORAL_TYPES",
    "DialectTraits",
    "RenderedType",
    "TypeMapping",
    "dialect_traits",
    "normalize_default",
    "normalize_document_type",
    "normalize_native_type",
    "quote_literal",
    "render_column_type",
    "render_default",
    "render_document_default",
    "resolve_dialect",
    "split_arguments",
    "to_document_type",
    "unquote_literal",
]
