"""
Relationship Analyzer

Derives relationships from the foreign keys of a canonical schema:

1. Cardinality: a foreign key whose local columns are unique is one_to_one,
   every other foreign key is one_to_many
2. Link entities: a table with exactly two foreign keys and few other
   (non-timestamp) columns is a junction table and yields one many_to_many
   relationship in place of its own two one_to_many records

The junction heuristic can misclassify a genuine associative entity that
carries few attributes; the column allowance is configurable for that reason.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional

from ..config import AnalyzerConfig
from ..schemas.models import (
    CanonicalSchema,
    Endpoint,
    ForeignKey,
    ReferentialAction,
    Relationship,
    RelationshipKind,
    Table,
)
from ..utils.logging import get_logger
from ..utils.metrics import ConverterMetrics

logger = get_logger(__name__)


class RelationshipAnalyzer:
    """
    Computes ``schema.relationships`` from the authoritative foreign keys

    Usage:
        analyzer = RelationshipAnalyzer(AnalyzerConfig(small_table_threshold=5))
        relationships = analyzer.analyze(schema)
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()
        self._timestamp_pattern = re.compile(self.config.timestamp_pattern, re.IGNORECASE)

    def is_timestamp_column(self, name: str) -> bool:
        return bool(self._timestamp_pattern.search(name))

    def is_junction(self, table: Table) -> bool:
        """Exactly two foreign keys and at most N other non-timestamp columns"""
        if len(table.foreign_keys) != 2:
            return False
        fk_columns = {c.lower() for c in table.foreign_key_columns()}
        extra = [
            column for column in table.columns
            if column.name.lower() not in fk_columns and not self.is_timestamp_column(column.name)
        ]
        return len(extra) <= self.config.junction_max_extra_columns

    def is_one_to_one(self, table: Table, fk: ForeignKey) -> bool:
        """The FK's local column set is declared unique"""
        if len(fk.columns) == 1:
            column = table.get_column(fk.columns[0])
            if column is not None and column.unique:
                return True
        wanted = sorted(c.lower() for c in fk.columns)
        return any(sorted(c.lower() for c in cols) == wanted for cols in table.unique_column_sets())

    def detect_junction_tables(self, schema: CanonicalSchema) -> List[str]:
        junctions = []
        for table in schema.tables:
            if not self.is_junction(table):
                continue
            if not all(schema.has_table(fk.referenced_table) for fk in table.foreign_keys):
                logger.debug(
                    f"Skipping junction candidate {table.name}: unknown referenced table",
                    extra={"extra_fields": {"table": table.name}}
                )
                continue
            junctions.append(table.name)
            logger.info(f"Identified junction table: {table.name}")
        return junctions

    def analyze(self, schema: CanonicalSchema) -> List[Relationship]:
        """Recompute and store the relationship projection of ``schema``"""
        junctions = {name.lower() for name in self.detect_junction_tables(schema)}
        relationships: List[Relationship] = []

        def next_id() -> str:
            return f"rel_{len(relationships) + 1}"

        for table in schema.tables:
            if table.name.lower() in junctions:
                first, second = table.foreign_keys
                left = schema.get_table(first.referenced_table)
                right = schema.get_table(second.referenced_table)
                relationships.append(Relationship(
                    id=next_id(),
                    kind=RelationshipKind.MANY_TO_MANY,
                    from_=Endpoint(left.name, self._referenced_columns(first, left)),
                    to=Endpoint(right.name, self._referenced_columns(second, right)),
                    junction_table=table.name,
                    cascade=ReferentialAction.CASCADE in (first.on_delete, second.on_delete),
                    description=f"{left.name} <-> {right.name} via {table.name}",
                ))
                continue

            for fk in table.foreign_keys:
                target = schema.get_table(fk.referenced_table)
                if target is None:
                    logger.debug(
                        "Foreign key to unknown table ignored",
                        extra={"extra_fields": {"table": table.name, "referenced_table": fk.referenced_table}}
                    )
                    continue
                kind = (
                    RelationshipKind.ONE_TO_ONE if self.is_one_to_one(table, fk)
                    else RelationshipKind.ONE_TO_MANY
                )
                relationships.append(Relationship(
                    id=next_id(),
                    kind=kind,
                    from_=Endpoint(table.name, list(fk.columns)),
                    to=Endpoint(target.name, self._referenced_columns(fk, target)),
                    cascade=fk.on_delete == ReferentialAction.CASCADE,
                    is_small=len(table.columns) <= self.config.small_table_threshold,
                    description=f"{table.name}.{', '.join(fk.columns)} -> {target.name}",
                ))

        schema.relationships = relationships
        ConverterMetrics.record_relationships(len(relationships))
        logger.info(
            f"Analyzed {len(relationships)} relationships",
            extra={"extra_fields": summarize_relationships(relationships)}
        )
        return relationships

    def _referenced_columns(self, fk: ForeignKey, target: Table) -> List[str]:
        if fk.referenced_columns:
            return list(fk.referenced_columns)
        return target.primary_key_columns


def summarize_relationships(relationships: List[Relationship]) -> Dict[str, int]:
    """Count relationships per kind"""
    summary = {kind.value: 0 for kind in RelationshipKind}
    for rel in relationships:
        summary[RelationshipKind(rel.kind).value] += 1
    summary["total"] = len(relationships)
    return summary
