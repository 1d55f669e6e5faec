"""
Conversion Report

Plain-text summary of a conversion: table/collection counts, how each
relationship was represented, recommended indexes and the warnings raised.
"""
from typing import List, Optional, Union

from ..analysis.embedding import EmbeddingPlan, EmbeddingStrategy
from ..schemas.models import CanonicalSchema, RelationshipKind
from ..utils.errors import ConversionWarning
from .document import DocumentSchema

_STRATEGY_LABELS = {
    EmbeddingStrategy.EMBED: "EMBEDDED",
    EmbeddingStrategy.REFERENCE: "REFERENCED",
    EmbeddingStrategy.LINK: "LINKED",
}


def generate_conversion_report(
    schema: CanonicalSchema,
    output: Union[DocumentSchema, str, None] = None,
    plan: Optional[EmbeddingPlan] = None,
    warnings: Optional[List[ConversionWarning]] = None,
) -> str:
    """
    Build a human-readable conversion report.

    Args:
        schema: Analyzed canonical schema
        output: Generated DocumentSchema or relational DDL text
        plan: Embedding plan used for document output
        warnings: Warnings collected during the conversion
    """
    lines: List[str] = []

    if isinstance(output, DocumentSchema):
        lines.append("=== Relational to Document Conversion Report ===")
        lines.append(f"Tables: {len(schema.tables)} -> Collections: {len(output.collections)}")
    else:
        lines.append("=== Schema Conversion Report ===")
        lines.append(f"Tables: {len(schema.tables)}")

    lines.append("")
    lines.append("--- Relationship Transformations ---")
    if plan is not None and plan.decisions:
        for decision in plan.decisions:
            label = _STRATEGY_LABELS[EmbeddingStrategy(decision.strategy)]
            kind = RelationshipKind(decision.kind).value
            source = decision.related_table if decision.is_array else decision.host_table
            target = decision.host_table if decision.is_array else decision.related_table
            columns = ", ".join(decision.columns)
            lines.append(f"{label} {kind}: {source}.{columns} -> {target}")
    elif schema.relationships:
        for rel in schema.relationships:
            lines.append(
                f"{RelationshipKind(rel.kind).value}: {rel.from_.table}.{', '.join(rel.from_.columns)} "
                f"-> {rel.to.table}"
                + (f" via {rel.junction_table}" if rel.junction_table else "")
            )
    else:
        lines.append("(none)")

    if isinstance(output, DocumentSchema):
        lines.append("")
        lines.append("--- Index Recommendations ---")
        for collection in output.collections:
            if not collection.indexes:
                continue
            lines.append(f"Collection: {collection.name}")
            for index in collection.indexes:
                unique = " (UNIQUE)" if index.unique else ""
                lines.append(f"  - Index on: {', '.join(index.fields)}{unique}")

    if warnings:
        lines.append("")
        lines.append(f"--- Warnings ({len(warnings)}) ---")
        for warning in warnings:
            location = f" [{warning.location}]" if warning.location else ""
            lines.append(f"{warning.code.value}{location}: {warning.message}")

    return "\n".join(lines)
