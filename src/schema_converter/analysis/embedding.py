"""
Embedding Strategy Planner

Decides, per relationship, whether a document target embeds the related
entity or references it:

- one_to_one (when enabled): EMBED a singular sub-object, named after the
  singularized referenced entity, in the collection holding the foreign key
- small one_to_many (when enabled): EMBED an array of sub-objects, named
  after the pluralized child entity, in the parent collection
- otherwise: REFERENCE, the foreign key becomes an identifier field and an
  index is recommended for it
- many_to_many: LINK, a standalone link collection with both reference
  fields and a unique compound index over the pair

Decisions are independent of each other. A child embedded into several
parents is duplicated into each; this is reported but not deduplicated.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import ConversionOptions
from ..schemas.models import CanonicalSchema, Relationship, RelationshipKind
from ..utils.errors import ConversionWarning, WarningCode
from ..utils.logging import get_logger
from ..utils.naming import pluralize, singularize

logger = get_logger(__name__)


class EmbeddingStrategy(str, Enum):
    EMBED = "embed"
    REFERENCE = "reference"
    LINK = "link"


@dataclass
class EmbeddingDecision:
    """How one relationship is represented in the document target"""
    relationship_id: str
    kind: RelationshipKind
    strategy: EmbeddingStrategy
    host_table: str
    related_table: str
    columns: List[str] = field(default_factory=list)
    field_name: Optional[str] = None
    is_array: bool = False
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "relationship_id": self.relationship_id,
            "kind": RelationshipKind(self.kind).value,
            "strategy": self.strategy.value,
            "host_table": self.host_table,
            "related_table": self.related_table,
            "columns": list(self.columns),
            "field_name": self.field_name,
            "is_array": self.is_array,
            "reason": self.reason,
        }


@dataclass
class IndexRecommendation:
    table: str
    columns: List[str]
    unique: bool = False
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "columns": list(self.columns),
            "unique": self.unique,
            "reason": self.reason,
        }


@dataclass
class EmbeddingPlan:
    """All decisions for one schema"""
    decisions: List[EmbeddingDecision] = field(default_factory=list)
    index_recommendations: List[IndexRecommendation] = field(default_factory=list)
    warnings: List[ConversionWarning] = field(default_factory=list)

    def decision_for_foreign_key(self, table: str, columns: List[str]) -> Optional[EmbeddingDecision]:
        """Decision for the relationship originating at ``table(columns)``"""
        wanted = [c.lower() for c in columns]
        for decision in self.decisions:
            if decision.strategy == EmbeddingStrategy.LINK:
                continue
            source = decision.related_table if decision.is_array else decision.host_table
            if source.lower() == table.lower() and [c.lower() for c in decision.columns] == wanted:
                return decision
        return None

    def embeds_into(self, table: str) -> List[EmbeddingDecision]:
        """EMBED decisions hosted by ``table``"""
        return [
            d for d in self.decisions
            if d.strategy == EmbeddingStrategy.EMBED and d.host_table.lower() == table.lower()
        ]

    def link_decisions(self) -> List[EmbeddingDecision]:
        return [d for d in self.decisions if d.strategy == EmbeddingStrategy.LINK]

    def count(self, strategy: EmbeddingStrategy) -> int:
        return sum(1 for d in self.decisions if d.strategy == strategy)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decisions": [d.to_dict() for d in self.decisions],
            "index_recommendations": [r.to_dict() for r in self.index_recommendations],
            "warnings": [w.to_dict() for w in self.warnings],
        }


class EmbeddingPlanner:
    """Plans embed-vs-reference for a schema whose relationships are analyzed"""

    def __init__(self, embed_one_to_one: bool = True, embed_small_one_to_many: bool = True):
        self.embed_one_to_one = embed_one_to_one
        self.embed_small_one_to_many = embed_small_one_to_many

    @classmethod
    def from_options(cls, options: ConversionOptions) -> "EmbeddingPlanner":
        return cls(
            embed_one_to_one=options.embed_one_to_one,
            embed_small_one_to_many=options.embed_small_one_to_many,
        )

    def plan(self, schema: CanonicalSchema) -> EmbeddingPlan:
        plan = EmbeddingPlan()
        junctions = {name.lower() for name in schema.junction_tables()}

        for rel in schema.relationships:
            kind = RelationshipKind(rel.kind)
            if kind == RelationshipKind.MANY_TO_MANY:
                self._plan_link(schema, rel, plan)
                continue
            if rel.from_.table.lower() in junctions:
                continue

            if kind == RelationshipKind.ONE_TO_ONE and self.embed_one_to_one:
                decision = EmbeddingDecision(
                    relationship_id=rel.id,
                    kind=kind,
                    strategy=EmbeddingStrategy.EMBED,
                    host_table=rel.from_.table,
                    related_table=rel.to.table,
                    columns=list(rel.from_.columns),
                    field_name=singularize(rel.to.table),
                    reason="one-to-one relationship",
                )
            elif kind == RelationshipKind.ONE_TO_MANY and self.embed_small_one_to_many and rel.is_small:
                decision = EmbeddingDecision(
                    relationship_id=rel.id,
                    kind=kind,
                    strategy=EmbeddingStrategy.EMBED,
                    host_table=rel.to.table,
                    related_table=rel.from_.table,
                    columns=list(rel.from_.columns),
                    field_name=pluralize(singularize(rel.from_.table)),
                    is_array=True,
                    reason=f"small one-to-many ({rel.from_.table} is small)",
                )
            else:
                decision = EmbeddingDecision(
                    relationship_id=rel.id,
                    kind=kind,
                    strategy=EmbeddingStrategy.REFERENCE,
                    host_table=rel.from_.table,
                    related_table=rel.to.table,
                    columns=list(rel.from_.columns),
                    field_name=rel.from_.columns[0] if len(rel.from_.columns) == 1 else None,
                    reason=self._reference_reason(kind),
                )
                plan.index_recommendations.append(IndexRecommendation(
                    table=rel.from_.table,
                    columns=list(rel.from_.columns),
                    reason=f"reference to {rel.to.table}",
                ))

            plan.decisions.append(decision)
            logger.debug(
                f"{decision.strategy.value} {kind.value}: {rel.from_.table} -> {rel.to.table}",
                extra={"extra_fields": {"relationship_id": rel.id, "host": decision.host_table}}
            )

        self._flag_duplicate_embeddings(plan)
        logger.info(
            "Planned embedding strategy",
            extra={"extra_fields": {
                "embedded": plan.count(EmbeddingStrategy.EMBED),
                "referenced": plan.count(EmbeddingStrategy.REFERENCE),
                "linked": plan.count(EmbeddingStrategy.LINK),
            }}
        )
        return plan

    def _plan_link(self, schema: CanonicalSchema, rel: Relationship, plan: EmbeddingPlan) -> None:
        junction = schema.get_table(rel.junction_table) if rel.junction_table else None
        if junction is None:
            return
        pair = [c for fk in junction.foreign_keys for c in fk.columns]
        plan.decisions.append(EmbeddingDecision(
            relationship_id=rel.id,
            kind=RelationshipKind.MANY_TO_MANY,
            strategy=EmbeddingStrategy.LINK,
            host_table=junction.name,
            related_table=rel.to.table,
            columns=pair,
            field_name=junction.name,
            reason=f"many-to-many between {rel.from_.table} and {rel.to.table}",
        ))
        plan.index_recommendations.append(IndexRecommendation(
            table=junction.name,
            columns=pair,
            unique=True,
            reason="one link per pair",
        ))

    def _reference_reason(self, kind: RelationshipKind) -> str:
        if kind == RelationshipKind.ONE_TO_ONE:
            return "one-to-one embedding disabled"
        if not self.embed_small_one_to_many:
            return "one-to-many embedding disabled"
        return "child table too large to embed"

    def _flag_duplicate_embeddings(self, plan: EmbeddingPlan) -> None:
        hosts: Dict[str, List[str]] = defaultdict(list)
        for decision in plan.decisions:
            if decision.strategy == EmbeddingStrategy.EMBED:
                hosts[decision.related_table].append(decision.host_table)
        for related, host_tables in hosts.items():
            if len(host_tables) > 1:
                message = (
                    f"'{related}' is embedded into {len(host_tables)} collections "
                    f"({', '.join(host_tables)}); its data is duplicated in each"
                )
                plan.warnings.append(ConversionWarning(
                    code=WarningCode.DUPLICATE_EMBEDDING,
                    message=message,
                    location=related,
                ))
                logger.warning(message, extra={"extra_fields": {"table": related}})
