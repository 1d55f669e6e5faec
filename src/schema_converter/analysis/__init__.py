"""
Analysis Package
Relationship inference, schema inspection, embedding strategy and relational normalization
"""
from .relationships import RelationshipAnalyzer, summarize_relationships
from .embedding import (
    EmbeddingDecision,
    EmbeddingPlan,
    EmbeddingPlanner,
    EmbeddingStrategy,
    IndexRecommendation,
)
from .normalization import NormalizationResult, RelationalNormalizer
from .insights import (
    IndexFinding,
    NormalizationViolation,
    Priority,
    Recommendation,
    SchemaInsights,
    SchemaInspector,
    SchemaSummary,
)

__all__ = [
    "RelationshipAnalyzer",
    "summarize_relationships",
    "EmbeddingDecision",
    "EmbeddingPlan",
    "EmbeddingPlanner",
    "EmbeddingStrategy",
    "IndexRecommendation",
    "NormalizationResult",
    "RelationalNormalizer",
    "IndexFinding",
    "NormalizationViolation",
    "Priority",
    "Recommendation",
    "SchemaInsights",
    "SchemaInspector",
    "SchemaSummary",
]
